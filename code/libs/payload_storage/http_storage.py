from __future__ import annotations

import time
from contextlib import ExitStack
from typing import BinaryIO, Callable

import requests

from .config import PayloadStorageConfig
from .errors import InvalidLocation, LocationNotSupported, TransferFailed
from .interfaces import ExternalPayloadStorage, ExternalStorageLocation, Operation, PayloadType
from .locations import describe_location, parse_location
from .logging import bound, error, info, warn
from .redaction import redact_msg
from .streams import PayloadStream, SizedPayloadReader

HTTP_OK = 200

# Raised by requests while preparing a request for a URL it cannot open
_LOCATION_ERRORS = (
    requests.exceptions.InvalidURL,
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
)
_TRANSPORT_ERRORS = (requests.exceptions.RequestException, OSError)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class PayloadStorage(ExternalPayloadStorage):
    """
    Moves payloads to and from caller-supplied URLs (usually pre-signed).

    Responsibilities:
      - PUT an upload body, streamed in bounded chunks with Content-Length.
      - GET a download and hand the open body to the caller on 200.
      - Classify failures: unparseable locator vs transport failure.
      - Release the transport on every exit path, except a successful
        download, where the returned stream owns it.

    Each call opens its own `requests.Session` from `session_factory` and
    closes it before returning; nothing is shared between calls.
    """

    def __init__(
        self,
        config: PayloadStorageConfig | None = None,
        session_factory: Callable[[], requests.Session] | None = None,
    ) -> None:
        self._config = config or PayloadStorageConfig()
        self._session_factory = session_factory or requests.Session

    def get_location(
        self, operation: Operation, payload_type: PayloadType, path: str | None = None
    ) -> ExternalStorageLocation:
        """Not available on the client: locations are issued by the server."""
        raise LocationNotSupported(
            f"{type(self).__name__} does not issue storage locations "
            f"(operation={operation.value}, payload_type={payload_type.value}); request one from the server"
        )

    # --- Shared helpers -------------------------------------------------------
    def _parse(self, location: str, op: str) -> None:
        try:
            parse_location(location, self._config.allowed_schemes)
        except InvalidLocation as e:
            error("payload.location.invalid", op=op, location=describe_location(location), err=str(e.cause))
            raise

    def _invalid(self, location: str, op: str, cause: Exception) -> InvalidLocation:
        target = describe_location(location)
        error("payload.location.invalid", op=op, location=target, err=str(cause))
        message = f"Invalid location {target}: {redact_msg(str(cause))}"
        return InvalidLocation(message, location=location, cause=cause)

    def _open_session(self, stack: ExitStack) -> requests.Session:
        session = self._session_factory()
        stack.callback(session.close)
        return session

    # --- Operations -----------------------------------------------------------
    def upload(self, destination: str, payload: BinaryIO, size: int) -> None:
        """
        Upload the payload to the destination with a single PUT.

        Args:
            destination: Absolute URL to write to
            payload: Readable byte stream holding exactly `size` bytes; left open
            size: Exact payload length in bytes, sent as Content-Length

        Raises:
            InvalidLocation: If destination is not an absolute URL
            TransferFailed: If connecting, sending the body or reading the status
                fails, or the payload does not hold exactly `size` bytes

        Any response status completes the call. Non-2xx statuses are logged,
        not raised; callers needing strict validation must check separately.
        """
        if size < 0:
            raise ValueError(f"size must not be negative, got {size}")
        self._parse(destination, "upload")

        target = describe_location(destination)
        body = SizedPayloadReader(payload, size, self._config.chunk_size)
        start = time.monotonic()

        with bound(op="upload", location=target):
            info("payload.upload.start", size=size)
            try:
                with ExitStack() as stack:
                    session = self._open_session(stack)
                    # A streamed body cannot be replayed, so redirects are not followed
                    response = session.put(
                        destination,
                        data=body,
                        stream=True,
                        allow_redirects=False,
                        timeout=self._config.timeout,
                    )
                    stack.callback(response.close)
                    status = response.status_code
            except _LOCATION_ERRORS as e:
                raise self._invalid(destination, "upload", e) from e
            except _TRANSPORT_ERRORS as e:
                error("payload.upload.failed", bytes_sent=body.bytes_read, elapsed_ms=_elapsed_ms(start), err=str(e))
                message = f"Error uploading to {target}: {redact_msg(str(e))}"
                raise TransferFailed(message, location=destination, cause=e) from e

            if not 200 <= status < 300:
                warn("payload.upload.unexpected_status", status=status)
            info("payload.upload.complete", status=status, bytes_sent=body.bytes_read, elapsed_ms=_elapsed_ms(start))

    def download(self, source: str) -> PayloadStream | None:
        """
        Download the payload stored at source with a single GET.

        Returns:
            An open PayloadStream on HTTP 200. The caller must close it; the
            connection stays open until then. None for any other status.

        Raises:
            InvalidLocation: If source is not an absolute URL
            TransferFailed: If connecting or reading the status fails
        """
        self._parse(source, "download")

        target = describe_location(source)
        start = time.monotonic()

        with bound(op="download", location=target):
            info("payload.download.start")
            try:
                with ExitStack() as stack:
                    session = self._open_session(stack)
                    response = session.get(source, stream=True, timeout=self._config.timeout)
                    stack.callback(response.close)

                    if response.status_code != HTTP_OK:
                        info("payload.download.absent", status=response.status_code, elapsed_ms=_elapsed_ms(start))
                        return None

                    info(
                        "payload.download.ready",
                        status=response.status_code,
                        content_length=response.headers.get("Content-Length"),
                        elapsed_ms=_elapsed_ms(start),
                    )
                    return PayloadStream(
                        response,
                        stack.pop_all().close,
                        location=target,
                        chunk_size=self._config.chunk_size,
                    )
            except _LOCATION_ERRORS as e:
                raise self._invalid(source, "download", e) from e
            except _TRANSPORT_ERRORS as e:
                error("payload.download.failed", elapsed_ms=_elapsed_ms(start), err=str(e))
                message = f"Error downloading from {target}: {redact_msg(str(e))}"
                raise TransferFailed(message, location=source, cause=e) from e
