"""
External payload storage for workflow clients.
"""
from .config import PayloadStorageConfig
from .errors import (
    InvalidLocation,
    LocationNotSupported,
    PayloadStorageError,
    TransferFailed,
    is_retryable,
)
from .http_storage import PayloadStorage
from .interfaces import ExternalPayloadStorage, ExternalStorageLocation, Operation, PayloadType
from .streams import PayloadStream

__all__ = [
    'PayloadStorage',
    'PayloadStorageConfig',
    'PayloadStream',
    'ExternalPayloadStorage',
    'ExternalStorageLocation',
    'Operation',
    'PayloadType',
    'PayloadStorageError',
    'InvalidLocation',
    'TransferFailed',
    'LocationNotSupported',
    'is_retryable',
]
