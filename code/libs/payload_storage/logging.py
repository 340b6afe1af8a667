"""
Structured JSON event logging for payload transfers.

One JSON object per line: ts, level, event, service, env, the fields bound for
the current transfer, then the event's own fields. String values pass through
redaction and are truncated before output.
"""

from __future__ import annotations
import contextvars
import json
import os
import random
import sys
import time
from contextlib import contextmanager

from .redaction import redact_msg

_transfer_ctx = contextvars.ContextVar("payload_transfer_ctx", default=None)

MAX_FIELD_CHARS = 2000


def _ts() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


@contextmanager
def bound(**fields):
    """Attach fields to every event logged inside the block, then restore the previous context."""
    ctx = dict(_transfer_ctx.get() or {})
    ctx.update({k: v for k, v in fields.items() if v is not None})
    token = _transfer_ctx.set(ctx)
    try:
        yield
    finally:
        _transfer_ctx.reset(token)


def _sample(env_key: str, default: float = 0.0) -> bool:
    try:
        rate = float(os.getenv(env_key, default))
    except ValueError:
        rate = default
    return random.random() < rate


def _log_stream():
    stream_name = (os.getenv("LOG_STREAM") or "stdout").lower()
    return sys.stderr if stream_name == "stderr" else sys.stdout


def _scrub(value):
    if isinstance(value, str):
        return redact_msg(value)[:MAX_FIELD_CHARS]
    return value


def _pretty(record: dict) -> str:
    rest = " ".join(f"{k}={v}" for k, v in record.items() if k not in ("ts", "level", "event"))
    return f"[{record['level'].upper()}] {record['event']} {rest}"


def log(level: str, event: str, **fields):
    """Emit one transfer event with the bound context merged in."""
    record = {
        "ts": _ts(),
        "level": level,
        "event": event,
        "service": os.getenv("SERVICE", "payload-storage"),
        "env": os.getenv("APP_ENV", "dev"),
        "version": os.getenv("RELEASE", ""),
    }
    for k, v in {**(_transfer_ctx.get() or {}), **fields}.items():
        record[k] = _scrub(v)

    stream = _log_stream()
    if os.getenv("JSON_LOGS", "1").lower() not in ("0", "false", "no"):
        json.dump(record, stream, separators=(",", ":"), sort_keys=True, default=str)
        stream.write("\n")
    else:
        stream.write(_pretty(record) + "\n")
    stream.flush()


def info(event: str, **fields):
    log("info", event, **fields)


def warn(event: str, **fields):
    log("warn", event, **fields)


def error(event: str, **fields):
    log("error", event, **fields)


def debug(event: str, **fields):
    """Sampled by LOG_SAMPLE_DEBUG (0.0 by default, so off)."""
    if _sample("LOG_SAMPLE_DEBUG", 0.0):
        log("debug", event, **fields)
