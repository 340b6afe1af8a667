"""
Canonical error codes and exceptions for external payload storage.

Every failure surfaced by the transfer adapter carries one of these codes, the
locator it was working on, and the underlying cause.
"""

from __future__ import annotations

ERR_INVALID_LOCATION = "ERR_INVALID_LOCATION"
ERR_TRANSFER_FAILED = "ERR_TRANSFER_FAILED"
ERR_UNSUPPORTED_OPERATION = "ERR_UNSUPPORTED_OPERATION"

# Classification for callers that layer a retry policy on top.
RETRYABLE = {
    ERR_TRANSFER_FAILED: True,  # Network failures, timeouts, dropped connections
    ERR_INVALID_LOCATION: False,  # Same locator will never parse
    ERR_UNSUPPORTED_OPERATION: False,  # Not wired up in this adapter
}


def is_retryable(code: str) -> bool:
    """Check if an error code indicates a retryable failure."""
    return RETRYABLE.get(code, False)


class PayloadStorageError(Exception):
    """Base exception for payload storage failures."""

    code = "ERR_PAYLOAD_STORAGE"

    def __init__(self, message: str, location: str | None = None, cause: BaseException | None = None):
        super().__init__(message)
        self.location = location
        self.cause = cause


class InvalidLocation(PayloadStorageError):
    """Raised when a locator cannot be parsed into an absolute URL."""

    code = ERR_INVALID_LOCATION


class TransferFailed(PayloadStorageError):
    """Raised on I/O failure while connecting, writing the body or reading the response."""

    code = ERR_TRANSFER_FAILED


class LocationNotSupported(PayloadStorageError, NotImplementedError):
    """Raised when asked to issue a locator; a remote coordinator owns that."""

    code = ERR_UNSUPPORTED_OPERATION
