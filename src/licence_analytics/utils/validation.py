"""Input validation utilities for report filters."""

import re

# Maximum lengths for common fields
MAX_TEXT_FILTER_LENGTH = 255
MAX_STATUS_LENGTH = 50

# Pattern for safe text input (letters, numbers, spaces, common punctuation)
SAFE_TEXT_PATTERN = re.compile(r'^[\w\s\-.,&()\'"/+]+$', re.UNICODE)


def sanitize_text_filter(
    value: str | None, max_length: int = MAX_TEXT_FILTER_LENGTH
) -> str | None:
    """Sanitize a free-text equality filter such as a provider name.

    Args:
        value: Raw filter string
        max_length: Maximum allowed length

    Returns:
        Sanitized string, or None if empty or outside the safe pattern
    """
    if value is None:
        return None

    value = value[:max_length].strip()
    if not value:
        return None

    if not SAFE_TEXT_PATTERN.match(value):
        return None

    return value


def validate_sort_by(sort_by: str | None, allowed_columns: set[str], default: str) -> str:
    """Validate sort column against whitelist.

    Args:
        sort_by: Raw sort column name
        allowed_columns: Set of allowed column names
        default: Default column if invalid

    Returns:
        Validated sort column name
    """
    if sort_by and sort_by in allowed_columns:
        return sort_by
    return default


def sanitize_status(status: str | None, allowed_values: set[str] | None = None) -> str | None:
    """Sanitize status filter input.

    Args:
        status: Raw status string
        allowed_values: Optional set of allowed status values

    Returns:
        Sanitized status string or None
    """
    if status is None:
        return None

    status = status[:MAX_STATUS_LENGTH].strip().lower()
    if not status:
        return None

    if allowed_values and status not in allowed_values:
        return None

    return status

