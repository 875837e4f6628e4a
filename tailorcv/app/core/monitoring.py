"""
Error and performance monitoring.
Errors are reported as structured log records on the "tailorcv.monitoring" logger
with sensitive metadata redacted; hook an external sink onto that logger in production.
"""
import json
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Callable

from tailorcv.app.core.logging_config import get_logger

logger = get_logger("monitoring")

REDACTED = "[REDACTED]"

# Key fragments that mark a metadata field as sensitive (case-insensitive substring match)
SENSITIVE_KEYS = (
    "email",
    "phone",
    "name",
    "address",
    "token",
    "password",
    "secret",
    "key",
    "authorization",
    "credential",
    "session",
    "cv",
    "resume",
    "image",
    "photo",
)

SLOW_THRESHOLD_SECONDS = 1.0


def _is_sensitive(key: str) -> bool:
    k = key.lower()
    return any(s in k for s in SENSITIVE_KEYS)


def redact(metadata: Any) -> Any:
    """Return a copy of metadata with sensitive fields masked, recursively."""
    if isinstance(metadata, dict):
        return {
            k: REDACTED if _is_sensitive(str(k)) else redact(v)
            for k, v in metadata.items()
        }
    if isinstance(metadata, (list, tuple)):
        return [redact(v) for v in metadata]
    return metadata


def capture_error(
    name: str,
    error: BaseException,
    metadata: dict[str, Any] | None = None,
    severity: str = "medium",
) -> dict[str, Any]:
    """Report an error to the monitoring sink. Returns the record that was emitted."""
    record = {
        "name": name,
        "error_type": type(error).__name__,
        "message": str(error),
        "severity": severity,
        "metadata": redact(metadata or {}),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    logger.error("%s", json.dumps(record, default=str), exc_info=error)
    return record


@asynccontextmanager
async def time_execution(name: str):
    """Log how long the wrapped block took; report it as an error if it raises."""
    started = time.monotonic()
    try:
        yield
    except Exception as e:
        duration = time.monotonic() - started
        capture_error(f"{name} failed after {duration * 1000:.2f}ms", e, {"duration": duration}, "high")
        raise
    duration = time.monotonic() - started
    if duration > SLOW_THRESHOLD_SECONDS:
        logger.warning("%s completed in %.2fms", name, duration * 1000)
    else:
        logger.info("%s completed in %.2fms", name, duration * 1000)


def best_effort(label: str, fn: Callable[..., Any], *args, **kwargs) -> bool:
    """
    Run a non-critical side effect. Failures are logged and swallowed.
    Returns True on success so callers may inspect it; most simply discard it.
    """
    try:
        fn(*args, **kwargs)
        return True
    except Exception as e:
        logger.warning("Best-effort operation failed label=%s error=%s", label, e)
        return False


async def best_effort_async(label: str, fn: Callable[..., Any], *args, **kwargs) -> bool:
    """Async counterpart of best_effort; accepts sync or async callables."""
    try:
        result = fn(*args, **kwargs)
        if hasattr(result, "__await__"):
            await result
        return True
    except Exception as e:
        logger.warning("Best-effort operation failed label=%s error=%s", label, e)
        return False
