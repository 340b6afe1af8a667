from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO


class Operation(Enum):
    READ = "READ"
    WRITE = "WRITE"


class PayloadType(Enum):
    WORKFLOW_INPUT = "WORKFLOW_INPUT"
    WORKFLOW_OUTPUT = "WORKFLOW_OUTPUT"
    TASK_INPUT = "TASK_INPUT"
    TASK_OUTPUT = "TASK_OUTPUT"


@dataclass(frozen=True)
class ExternalStorageLocation:
    """Where a payload lives: the transfer URI plus the storage-relative path."""

    uri: str
    path: str


class ExternalPayloadStorage(ABC):
    """Abstract base class for external payload storage adapters"""

    @abstractmethod
    def get_location(
        self, operation: Operation, payload_type: PayloadType, path: str | None = None
    ) -> ExternalStorageLocation:
        """Obtain a location to read from or write to for the given payload type"""
        pass

    @abstractmethod
    def upload(self, destination: str, payload: BinaryIO, size: int) -> None:
        """Upload `size` bytes read from `payload` to `destination`"""
        pass

    @abstractmethod
    def download(self, source: str) -> BinaryIO | None:
        """Download from `source`; returns a readable stream, or None when nothing is stored there"""
        pass
