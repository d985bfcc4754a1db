"""Filter and range resolution.

Turns request-level filters (ISO date strings, relative tokens, provider and
department values, status) into ``LicensePredicate`` objects and absolute
``[start, end)`` windows. Every call site passes its own named default window.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from licence_analytics.constants.reporting import DATE_RANGE_ALL, DATE_RANGE_TOKENS
from licence_analytics.exceptions import ValidationError
from licence_analytics.models.domain.license import LicenseStatusFilter
from licence_analytics.repositories.query import LicensePredicate
from licence_analytics.utils.dates import add_months, start_of_day
from licence_analytics.utils.validation import sanitize_status, sanitize_text_filter

STATUS_VALUES = {s.value for s in LicenseStatusFilter}


@dataclass(frozen=True)
class DateWindow:
    """Half-open absolute time window ``[start, end)``; ``start=None`` leaves it open below."""

    start: datetime | None
    end: datetime

    @property
    def days(self) -> int | None:
        if self.start is None:
            return None
        return (self.end - self.start).days


def utc_now() -> datetime:
    """Current time, timezone-aware."""
    return datetime.now(timezone.utc)


def parse_date(value: str | date | None, field: str) -> date | None:
    """Parse an ISO date (or datetime) string.

    Raises:
        ValidationError: The string is not a valid ISO date; names ``field``
    """
    if value is None or isinstance(value, date):
        return value
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10]) if len(text) > 10 else date.fromisoformat(text)
    except ValueError as e:
        raise ValidationError(f"Invalid date for {field}: expected YYYY-MM-DD", field=field) from e


def resolve_window(
    start: str | date | None,
    end: str | date | None,
    now: datetime,
    default_days: int | None,
) -> DateWindow | None:
    """Resolve an optional absolute range into a half-open window.

    ``end`` is an inclusive calendar date, so the window closes at the start
    of the following day. Without either bound the caller's default window
    (the last ``default_days`` days) applies; ``default_days=None`` means no
    date filter. A missing start falls back to ``default_days`` before the end,
    or leaves the window open below when there is no default.

    Raises:
        ValidationError: A date is malformed, or start is after end
    """
    start_date = parse_date(start, "startDate")
    end_date = parse_date(end, "endDate")

    if start_date is None and end_date is None:
        if default_days is None:
            return None
        return DateWindow(start=now - timedelta(days=default_days), end=now)

    if start_date is not None and end_date is not None and start_date > end_date:
        raise ValidationError("startDate must not be after endDate", field="startDate")

    window_end = start_of_day(end_date + timedelta(days=1)) if end_date is not None else now
    if start_date is not None:
        window_start = start_of_day(start_date)
    elif default_days is not None:
        window_start = window_end - timedelta(days=default_days)
    else:
        window_start = None
    return DateWindow(start=window_start, end=window_end)


def resolve_relative_range(token: str | None, now: datetime) -> DateWindow | None:
    """Resolve a relative token such as ``"30"`` (days) into a window.

    ``"all"`` and unknown tokens mean no date filter.
    """
    if token is None or token == DATE_RANGE_ALL:
        return None
    days = DATE_RANGE_TOKENS.get(token.strip())
    if days is None:
        return None
    return DateWindow(start=now - timedelta(days=days), end=now)


def relative_range_label(token: str | None) -> str | None:
    """Human label of a relative token, or None when no range applies."""
    if token is None or token.strip() not in DATE_RANGE_TOKENS:
        return None
    return f"Last {DATE_RANGE_TOKENS[token.strip()]} days"


def resolve_month_window(months: int, now: datetime) -> DateWindow:
    """Window covering the last ``months`` calendar months, current month included."""
    first = add_months(now.date(), -(months - 1))
    return DateWindow(start=start_of_day(first), end=now)


def parse_department(value: str | int | None) -> int | None:
    """Parse a department id filter.

    Raises:
        ValidationError: The value is not an integer id
    """
    if value is None or isinstance(value, int):
        return value
    text = value.strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError as e:
        raise ValidationError("Department must be a numeric id", field="department") from e


def parse_text_filter(value: str | None, field: str) -> str | None:
    """Parse a free-text equality filter such as a provider name.

    Raises:
        ValidationError: The value contains characters outside the safe set
    """
    if value is None or not value.strip():
        return None
    text = sanitize_text_filter(value)
    if text is None:
        raise ValidationError(f"Invalid characters in {field} filter", field=field)
    return text


def parse_status(value: str | None) -> LicenseStatusFilter | None:
    """Parse a status filter.

    Raises:
        ValidationError: The value is not one of active, inactive, expiring
    """
    if value is None or not value.strip():
        return None
    status = sanitize_status(value, STATUS_VALUES)
    if status is None:
        raise ValidationError(
            f"Status must be one of: {', '.join(sorted(STATUS_VALUES))}", field="status"
        )
    return LicenseStatusFilter(status)


def build_predicate(
    window: DateWindow | None = None,
    provider: str | None = None,
    department: str | int | None = None,
    status: str | None = None,
    billing_cycle: str | None = None,
    today: date | None = None,
    expiring_days: int = 30,
) -> LicensePredicate:
    """Assemble a license predicate from resolved request filters.

    The window applies to license creation time. ``expiring`` selects active
    licenses whose expiration falls within ``expiring_days`` of ``today``.
    """
    predicate = LicensePredicate(
        created_from=window.start if window else None,
        created_before=window.end if window else None,
        provider=parse_text_filter(provider, "provider"),
        department_id=parse_department(department),
        billing_cycle=parse_text_filter(billing_cycle, "billingCycle"),
    )

    parsed_status = parse_status(status)
    if parsed_status == LicenseStatusFilter.ACTIVE:
        predicate = predicate.narrow(active=True)
    elif parsed_status == LicenseStatusFilter.INACTIVE:
        predicate = predicate.narrow(active=False)
    elif parsed_status == LicenseStatusFilter.EXPIRING:
        reference = today or utc_now().date()
        predicate = predicate.narrow(
            active=True,
            expires_from=reference,
            expires_until=reference + timedelta(days=expiring_days),
        )

    return predicate
