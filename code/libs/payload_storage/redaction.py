"""
Redaction utilities for sensitive information in logs and error messages.

Pre-signed locators embed their authorization in the query string, so
signature and credential parameters are redacted alongside the usual tokens.
"""

import re

PATTERNS = [
    # Pre-signed URL authorization parameters (S3, GCS, Azure SAS)
    r"\b(X-Amz-(Signature|Credential|Security-Token)|X-Goog-(Signature|Credential)|Signature|sig)=[^&\s]+",
    # Authorization headers (full header pattern)
    r"\bAuthorization:\s+Bearer\s+[A-Za-z0-9._-]+",
    # Bearer tokens (standalone)
    r"\bBearer\s+[A-Za-z0-9._-]+",
    # API keys and tokens (key=value pattern)
    r"\b(api[_-]?key|token)\b[:=]\s*[^,\s&]+",
    # URL credentials (user:pass@host)
    r"(https?://)[^/\s]+:[^/@\s]+@",
    # Long hex strings (potential secrets)
    r"\b[0-9a-fA-F]{32,}\b",
]

REDACT = re.compile("|".join(f"({p})" for p in PATTERNS), re.IGNORECASE)


def redact_msg(s: str) -> str:
    """
    Redact sensitive information from a message.

    Args:
        s: Message to redact

    Returns:
        Message with sensitive parts replaced by [REDACTED]
    """
    if not s:
        return s
    try:
        return REDACT.sub("[REDACTED]", s)
    except Exception:
        # If any error, better to redact everything than leak
        return "[REDACTED]"
