"""
Logging utilities for safe structured logging.

Helpers that turn arbitrary context into `extra=` dicts that can never break
a log call: values are summarized and truncated, secret-looking keys are
masked, and keys that collide with LogRecord attributes are prefixed.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import logging
from typing import Any

# Attributes set by LogRecord itself; passing them in `extra` raises KeyError.
_RESERVED_KEYS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

_SECRET_MARKERS = ("key", "secret", "token", "password", "authorization")


def safe_log_value(value: Any, max_length: int = 500) -> str:
    """
    Convert any value to a bounded string for logging.

    Collections are summarized by size rather than dumped (transcripts and
    scenes can be large).

    Args:
        value: Value to convert
        max_length: Maximum length before truncating

    Returns:
        str: Safe string representation
    """
    if value is None:
        return "None"
    if isinstance(value, str):
        text = value
    elif isinstance(value, (list, tuple, set, frozenset)):
        text = f"{type(value).__name__}({len(value)} items)"
    elif isinstance(value, dict):
        text = f"dict({len(value)} keys)"
    else:
        text = repr(value) if not isinstance(value, (int, float, bool)) else str(value)

    if len(text) > max_length:
        return text[:max_length] + f"... (truncated, {len(text)} total)"
    return text


def safe_context(context: dict[str, Any]) -> dict[str, str]:
    """Build an `extra` dict from arbitrary context."""
    result = {}
    for key, value in context.items():
        if any(marker in key.lower() for marker in _SECRET_MARKERS) and "tokens_used" != key:
            value = "***"
        name = f"ctx_{key}" if key in _RESERVED_KEYS else key
        result[name] = safe_log_value(value)
    return result


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context: Any,
) -> None:
    """
    Log a message with structured context, safely converting all values.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        message: Log message
        **context: Arbitrary key-value pairs
    """
    logger.log(level, message, extra=safe_context(context))


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context: Any,
) -> None:
    """
    Log an exception with traceback and context.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance
        **context: Additional context
    """
    extra = safe_context(context)
    extra.update({"error_type": type(exc).__name__, "error_msg": safe_log_value(str(exc))})
    logger.error(message, exc_info=exc, extra=extra)
