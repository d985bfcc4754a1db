"""Secure logging utilities to prevent information disclosure."""

import logging
import re

from licence_analytics.config import get_settings

MAX_LOGGED_MESSAGE_LENGTH = 200

# Applied in order: connection strings before paths so a DSN is not half-replaced
_REDACTIONS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(?:postgres(?:ql)?(?:\+asyncpg)?|sqlite(?:\+aiosqlite)?|https?)://\S+"), "[URL]"),
    (re.compile(r"['\"]?(?:/[\w.\-]+)+/?['\"]?|[A-Z]:\\[^\s'\"]+"), "[PATH]"),
    (re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+"), "[EMAIL]"),
    (re.compile(r"[\w-]{32,}"), "[TOKEN]"),
)


def sanitize_exception_message(error: BaseException) -> str:
    """Exception text with DSNs, paths, e-mail addresses and tokens masked.

    Database errors carry the failing SQL and connection details, which must
    not reach production logs. Long messages are truncated.
    """
    text = str(error)
    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)
    if len(text) > MAX_LOGGED_MESSAGE_LENGTH:
        text = text[: MAX_LOGGED_MESSAGE_LENGTH - 3] + "..."
    return text


def _log(logger: logging.Logger, level: int, message: str, error: BaseException | None) -> None:
    if error is None:
        logger.log(level, message)
    elif get_settings().debug:
        logger.log(level, "%s: %s", message, error, exc_info=error if level >= logging.ERROR else None)
    else:
        logger.log(level, "%s: %s", message, sanitize_exception_message(error))


def log_error(logger: logging.Logger, message: str, error: BaseException | None = None) -> None:
    """Log an error; the exception is shown in full, with traceback, only in debug mode.

    Args:
        logger: The logger instance to use
        message: Generic description, no sensitive data
        error: Optional exception to include
    """
    _log(logger, logging.ERROR, message, error)


def log_warning(logger: logging.Logger, message: str, error: BaseException | None = None) -> None:
    """Log a warning; the exception text is sanitized unless in debug mode."""
    _log(logger, logging.WARNING, message, error)
