"""Tests for filter and date-range resolution."""

from datetime import date, datetime, timezone

import pytest

from licence_analytics.exceptions import ValidationError
from licence_analytics.repositories.query import LicensePredicate
from licence_analytics.services.filter_resolver import (
    build_predicate,
    parse_date,
    relative_range_label,
    resolve_month_window,
    resolve_relative_range,
    resolve_window,
)

NOW = datetime(2025, 6, 15, 10, 30, tzinfo=timezone.utc)


class TestResolveWindow:
    """Absolute start/end resolution into half-open windows."""

    def test_end_date_is_inclusive(self) -> None:
        window = resolve_window("2025-01-01", "2025-01-31", NOW, default_days=None)

        assert window.start == datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert window.end == datetime(2025, 2, 1, tzinfo=timezone.utc)

    def test_no_range_without_default(self) -> None:
        assert resolve_window(None, None, NOW, default_days=None) is None

    def test_named_default_window(self) -> None:
        window = resolve_window(None, "", NOW, default_days=90)

        assert window.end == NOW
        assert window.days == 90

    def test_open_start_uses_default_length(self) -> None:
        window = resolve_window(None, "2025-03-10", NOW, default_days=30)

        assert window.end == datetime(2025, 3, 11, tzinfo=timezone.utc)
        assert window.days == 30

    def test_open_start_without_default_is_unbounded_below(self) -> None:
        window = resolve_window(None, "2025-03-10", NOW, default_days=None)

        assert window.start is None
        assert window.end == datetime(2025, 3, 11, tzinfo=timezone.utc)
        assert window.days is None

    def test_datetime_strings_are_truncated_to_dates(self) -> None:
        window = resolve_window("2025-01-01T12:00:00Z", None, NOW, default_days=None)

        assert window.start == datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert window.end == NOW

    def test_start_after_end_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            resolve_window("2025-02-01", "2025-01-01", NOW, default_days=None)
        assert exc_info.value.field == "startDate"

    @pytest.mark.parametrize("value", ["yesterday", "2025-13-01", "01/02/2025"])
    def test_malformed_date_names_field(self, value: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            resolve_window(None, value, NOW, default_days=None)
        assert exc_info.value.field == "endDate"


class TestRelativeRanges:
    """Relative range tokens of the report builder."""

    def test_day_tokens(self) -> None:
        window = resolve_relative_range("30", NOW)

        assert window.end == NOW
        assert window.days == 30

    @pytest.mark.parametrize("token", [None, "all", "45", "thirty"])
    def test_no_filter(self, token: str | None) -> None:
        assert resolve_relative_range(token, NOW) is None

    def test_labels(self) -> None:
        assert relative_range_label("7") == "Last 7 days"
        assert relative_range_label("all") is None


class TestMonthWindow:
    """Calendar month windows."""

    def test_includes_current_month(self) -> None:
        window = resolve_month_window(12, NOW)

        assert window.start == datetime(2024, 7, 1, tzinfo=timezone.utc)
        assert window.end == NOW

    def test_single_month(self) -> None:
        assert resolve_month_window(1, NOW).start == datetime(2025, 6, 1, tzinfo=timezone.utc)


class TestBuildPredicate:
    """Request filters into license predicates."""

    def test_empty_filters(self) -> None:
        assert build_predicate() == LicensePredicate()

    def test_equality_filters(self) -> None:
        predicate = build_predicate(provider=" Microsoft ", department="3", billing_cycle="MONTHLY")

        assert predicate.provider == "Microsoft"
        assert predicate.department_id == 3
        assert predicate.billing_cycle == "MONTHLY"

    def test_end_only_window_bounds_creation_above(self) -> None:
        window = resolve_window(None, "2025-03-10", NOW, default_days=None)

        predicate = build_predicate(window=window)

        assert predicate.created_from is None
        assert predicate.created_before == datetime(2025, 3, 11, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        ("kwargs", "field"),
        [
            ({"provider": "x'; DROP TABLE licenses; --"}, "provider"),
            ({"provider": "Nonexistent: Corp"}, "provider"),
            ({"billing_cycle": "MONTHLY#1"}, "billingCycle"),
        ],
    )
    def test_unsafe_text_filter_rejected(self, kwargs: dict, field: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            build_predicate(**kwargs)
        assert exc_info.value.field == field

    def test_blank_text_filter_means_no_filter(self) -> None:
        assert build_predicate(provider="   ", billing_cycle="").provider is None

    def test_status_active_and_inactive(self) -> None:
        assert build_predicate(status="ACTIVE").active is True
        assert build_predicate(status="inactive").active is False

    def test_status_expiring(self) -> None:
        predicate = build_predicate(status="expiring", today=date(2025, 6, 15), expiring_days=30)

        assert predicate.active is True
        assert predicate.expires_from == date(2025, 6, 15)
        assert predicate.expires_until == date(2025, 7, 15)

    def test_unknown_status_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            build_predicate(status="archived")
        assert exc_info.value.field == "status"

    def test_non_numeric_department_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            build_predicate(department="finance")
        assert exc_info.value.field == "department"

    def test_window_bounds_creation_time(self) -> None:
        window = resolve_window("2025-01-01", "2025-01-31", NOW, default_days=None)

        predicate = build_predicate(window=window)

        assert predicate.created_from == window.start
        assert predicate.created_before == window.end

    def test_equality_only_drops_ranges(self) -> None:
        predicate = build_predicate(
            window=resolve_window("2025-01-01", None, NOW, default_days=None),
            provider="Zoom",
            status="expiring",
            today=date(2025, 6, 15),
        )

        assert predicate.equality_only() == LicensePredicate(provider="Zoom")


def test_parse_date_passthrough() -> None:
    assert parse_date(date(2025, 1, 2), "startDate") == date(2025, 1, 2)
    assert parse_date("   ", "startDate") is None
