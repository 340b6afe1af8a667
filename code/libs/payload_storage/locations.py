# libs/payload_storage/locations.py
"""
Locator parsing for external payload storage.

A locator is an opaque string the caller obtained from the coordinator. The
only requirement placed on it here is that it is an absolute URL the HTTP
transport can open; signatures and expiry are not inspected.
"""

from __future__ import annotations

from urllib.parse import SplitResult, urlsplit

from .errors import InvalidLocation
from .redaction import redact_msg

DEFAULT_SCHEMES = ("http", "https")


def _has_illegal_chars(value: str) -> bool:
    return any(ch.isspace() or ord(ch) < 0x20 or ord(ch) == 0x7F for ch in value)


def _check(location: str, allowed_schemes: tuple[str, ...]) -> SplitResult:
    if not location:
        raise ValueError("Locator is empty")
    if _has_illegal_chars(location):
        raise ValueError("Locator contains whitespace or control characters")

    parts = urlsplit(location)

    if not parts.scheme:
        raise ValueError("Locator is not an absolute URL (missing scheme)")
    if parts.scheme.lower() not in allowed_schemes:
        raise ValueError(f"Scheme '{parts.scheme}' not in allowed schemes: {allowed_schemes}")
    if not parts.hostname:
        raise ValueError("Locator missing hostname")

    # Accessing .port validates it (non-numeric or out of range raises)
    _ = parts.port
    return parts


def parse_location(location: str, allowed_schemes: tuple[str, ...] = DEFAULT_SCHEMES) -> SplitResult:
    """
    Parse a locator into an absolute URL.

    Args:
        location: Locator string supplied by the caller
        allowed_schemes: Schemes the transport can open

    Returns:
        The split URL

    Raises:
        InvalidLocation: If the locator is not a usable absolute URL. The parse
            error is attached as `cause` and chained.
    """
    if not isinstance(location, str):
        cause = ValueError(f"Locator must be a string, got {type(location).__name__}")
        raise InvalidLocation(f"Invalid location: {cause}", location=location, cause=cause) from cause
    try:
        return _check(location, allowed_schemes)
    except ValueError as e:
        raise InvalidLocation(
            f"Invalid location {describe_location(location)}: {e}", location=location, cause=e
        ) from e


def describe_location(location) -> str:
    """
    Log-safe rendering of a locator.

    Keeps scheme, host, port and path; drops credentials, query and fragment
    where the pre-signed authorization lives.
    """
    if not isinstance(location, str):
        return repr(location)
    try:
        parts = urlsplit(location)
    except ValueError:
        return redact_msg(location.split("?", 1)[0])
    if not parts.scheme or not parts.netloc:
        return redact_msg(location.split("?", 1)[0])
    host = parts.netloc.rpartition("@")[2]
    return f"{parts.scheme}://{host}{parts.path}"
