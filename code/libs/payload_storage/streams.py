# libs/payload_storage/streams.py
"""
Byte-stream wrappers used by the transfer adapter.

SizedPayloadReader feeds an upload body to the transport in bounded chunks and
advertises the declared size so the request goes out with Content-Length.

PayloadStream hands a downloaded body to the caller. It owns the transport
session behind it and releases that session exactly once, on close.
"""

from __future__ import annotations

import io
from typing import BinaryIO, Callable, Iterator

import requests

from .errors import TransferFailed
from .logging import debug, error
from .redaction import redact_msg


class SizedPayloadReader:
    """
    Read-only view over a caller-owned payload stream.

    Never returns more than the declared size and never more than `chunk_size`
    bytes per call. Once the declared size has been read, one more byte is
    read to confirm the payload is exhausted. The wrapped stream is not closed.
    """

    def __init__(self, payload: BinaryIO, size: int, chunk_size: int):
        self._payload = payload
        self._size = size
        self._chunk_size = chunk_size
        self._exhausted = False
        self.bytes_read = 0

    def __len__(self) -> int:
        return self._size

    @property
    def remaining(self) -> int:
        return self._size - self.bytes_read

    def _check_exhausted(self) -> None:
        if self._exhausted:
            return
        self._exhausted = True
        if self._payload.read(1):
            raise OSError(f"Payload longer than declared size of {self._size} bytes")

    def read(self, n: int = -1) -> bytes:
        if self.remaining <= 0:
            self._check_exhausted()
            return b""
        if n is None or n < 0:
            n = self._chunk_size
        n = min(n, self._chunk_size, self.remaining)

        data = self._payload.read(n)
        if not data:
            raise OSError(f"Payload ended after {self.bytes_read} of {self._size} declared bytes")
        self.bytes_read += len(data)
        # Fail before the last chunk goes out so the request is never completed
        if self.remaining == 0:
            self._check_exhausted()
        return data


class PayloadStream(io.RawIOBase):
    """
    Readable stream bound to a successful download response.

    The caller owns this object. Closing it (directly, via `with`, or when it
    is garbage collected) releases the response and the session behind it.
    """

    def __init__(
        self,
        response: requests.Response,
        release: Callable[[], None],
        *,
        location: str = "",
        chunk_size: int = 64 * 1024,
    ):
        super().__init__()
        self._response = response
        self._release = release
        self._location = location
        self._chunks = response.iter_content(chunk_size=chunk_size)
        self._pending = b""
        self._eof = False
        self.bytes_read = 0

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self):
        return self._response.headers

    @property
    def content_length(self) -> int | None:
        raw = self._response.headers.get("Content-Length")
        try:
            return int(raw) if raw is not None else None
        except ValueError:
            return None

    def readable(self) -> bool:
        return True

    def _next_chunk(self) -> bytes:
        try:
            return next(self._chunks, b"")
        except (requests.exceptions.RequestException, OSError) as e:
            error("payload.stream.read_failed", location=self._location, bytes_read=self.bytes_read, err=str(e))
            raise TransferFailed(
                f"Error reading payload from {self._location}: {redact_msg(str(e))}",
                location=self._location,
                cause=e,
            ) from e

    def readinto(self, b) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed payload stream")
        if not self._pending and not self._eof:
            self._pending = self._next_chunk()
            self._eof = not self._pending
        if not self._pending:
            return 0

        n = min(len(b), len(self._pending))
        b[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        self.bytes_read += n
        return n

    def iter_chunks(self, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
        """Yield the remaining body in chunks of at most `chunk_size` bytes."""
        while True:
            chunk = self.read(chunk_size)
            if not chunk:
                return
            yield chunk

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._release()
            debug("payload.stream.closed", location=self._location, bytes_read=self.bytes_read)
        finally:
            super().close()
