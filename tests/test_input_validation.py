"""Injection and malformed input tests for report filters.

SQLAlchemy parameterizes every query, which is the primary protection. These
tests cover the second layer: filters are matched against safe patterns and
whitelists before they reach a predicate, and report configurations are a
closed schema.

Security Model:
1. PRIMARY: SQLAlchemy ORM parameterizes ALL queries (no raw SQL)
2. SECONDARY: Free-text filters must match a safe character pattern
3. TERTIARY: Whitelist validation for enumeration fields (sort columns, statuses, metrics)
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from licence_analytics.exceptions import UnknownMetricError, ValidationError
from licence_analytics.models.domain.report_config import ReportConfig
from licence_analytics.services.custom_report_service import BREAKDOWN_SORT_COLUMNS
from licence_analytics.services.filter_resolver import build_predicate, parse_department
from licence_analytics.services.metric_catalog import get_metric
from licence_analytics.utils.validation import (
    sanitize_status,
    sanitize_text_filter,
    validate_sort_by,
)

SQL_INJECTION_PAYLOADS = [
    "'; DROP TABLE licenses; --",
    "1' OR '1'='1",
    "1; DELETE FROM licenses WHERE '1'='1",
    "' UNION SELECT * FROM saved_reports --",
    "1' AND (SELECT COUNT(*) FROM users) > 0 --",
    "1'; SELECT pg_sleep(5) --",
    "' UNION ALL SELECT name, config FROM saved_reports WHERE 1=1 --",
    "%27%20OR%201%3D1%20--",
    "ʼ; DROP TABLE users; --",
    "1'/**/OR/**/1=1--",
    "1'#",
    "$$; DROP TABLE licenses; $$",
    "1'\x00 OR 1=1 --",
]


class TestFilterInjection:
    """Free-text and enumeration filters reject injection payloads."""

    @pytest.mark.parametrize("payload", SQL_INJECTION_PAYLOADS)
    def test_provider_filter_rejected(self, payload: str) -> None:
        """Payloads contain characters outside the safe pattern and fail validation."""
        assert sanitize_text_filter(payload) is None
        with pytest.raises(ValidationError) as exc_info:
            build_predicate(provider=payload)
        assert exc_info.value.field == "provider"

    @pytest.mark.parametrize("payload", SQL_INJECTION_PAYLOADS)
    def test_department_must_be_numeric(self, payload: str) -> None:
        with pytest.raises(ValidationError):
            parse_department(payload)

    @pytest.mark.parametrize("payload", SQL_INJECTION_PAYLOADS)
    def test_status_whitelist(self, payload: str) -> None:
        assert sanitize_status(payload, {"active", "inactive", "expiring"}) is None
        with pytest.raises(ValidationError):
            build_predicate(status=payload)

    @pytest.mark.parametrize("payload", SQL_INJECTION_PAYLOADS)
    def test_sort_column_whitelist(self, payload: str) -> None:
        assert validate_sort_by(payload, BREAKDOWN_SORT_COLUMNS, "label") == "label"

    @pytest.mark.parametrize("payload", SQL_INJECTION_PAYLOADS)
    def test_metric_ids_are_catalog_only(self, payload: str) -> None:
        with pytest.raises(UnknownMetricError):
            get_metric(payload)


class TestInputValidation:
    """Length limits and the closed configuration schema."""

    def test_provider_max_length(self) -> None:
        result = sanitize_text_filter("A" * 1000)

        assert result is not None
        assert len(result) == 255

    def test_ordinary_provider_names_pass(self) -> None:
        assert sanitize_text_filter("Adobe Systems, Inc.") == "Adobe Systems, Inc."
        assert sanitize_text_filter("AT&T (Business)") == "AT&T (Business)"

    def test_unknown_config_keys_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            ReportConfig.model_validate({"metrics": ["totalCost"], "rawSql": "SELECT 1"})

    def test_unknown_filter_keys_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            ReportConfig.model_validate({"filters": {"provider": "Zoom", "where": "1=1"}})

    def test_group_by_is_enumerated(self) -> None:
        with pytest.raises(PydanticValidationError):
            ReportConfig.model_validate({"groupBy": "provider; DROP TABLE licenses"})

    def test_metric_list_is_bounded(self) -> None:
        with pytest.raises(PydanticValidationError):
            ReportConfig(metrics=["totalCost"] * 51)
