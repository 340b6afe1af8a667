# libs/payload_storage/config.py
"""
Transfer configuration for external payload storage.

Timeouts are off unless configured: a transfer blocks until the transport
completes or fails. Set them here (or via environment) when the surrounding
environment needs connect/read deadlines.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple, Union

TimeoutValue = Union[None, float, Tuple[Optional[float], Optional[float]]]


def _env_float(name: str) -> float | None:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class PayloadStorageConfig:
    """Configuration for payload transfers."""

    connect_timeout_s: float | None = None
    read_timeout_s: float | None = None
    chunk_size: int = 64 * 1024  # 64 KB chunks
    allowed_schemes: tuple[str, ...] = ("http", "https")

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        for name in ("connect_timeout_s", "read_timeout_s"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must not be negative, got {value}")
        if not self.allowed_schemes:
            raise ValueError("allowed_schemes must not be empty")

    @property
    def timeout(self) -> TimeoutValue:
        """Timeout argument in the form `requests` expects."""
        if self.connect_timeout_s is None and self.read_timeout_s is None:
            return None
        return (self.connect_timeout_s, self.read_timeout_s)

    @classmethod
    def from_env(cls) -> "PayloadStorageConfig":
        """
        Build configuration from environment variables.

        Reads PAYLOAD_STORAGE_CONNECT_TIMEOUT_S, PAYLOAD_STORAGE_READ_TIMEOUT_S and
        PAYLOAD_STORAGE_CHUNK_SIZE. Unset or empty variables keep the defaults.
        """
        return cls(
            connect_timeout_s=_env_float("PAYLOAD_STORAGE_CONNECT_TIMEOUT_S"),
            read_timeout_s=_env_float("PAYLOAD_STORAGE_READ_TIMEOUT_S"),
            chunk_size=_env_int("PAYLOAD_STORAGE_CHUNK_SIZE", cls.chunk_size),
        )
