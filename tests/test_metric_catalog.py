"""Tests for the metric catalog and its compute functions."""

from datetime import date
from decimal import Decimal

import pytest

from licence_analytics.exceptions import UnknownMetricError
from licence_analytics.models.domain.report_config import ChartType, GroupByDimension
from licence_analytics.repositories.query import GroupAggregate, LicensePredicate
from licence_analytics.services.metric_catalog import (
    GROUP_BY_CATALOG,
    GROUP_METRIC_VALUES,
    METRIC_CATALOG,
    MetricContext,
    get_metric,
    group_metric_value,
    is_compatible,
    metrics_for_chart,
)


class TestCatalog:
    """Static catalog integrity."""

    def test_unknown_metric(self) -> None:
        with pytest.raises(UnknownMetricError) as exc_info:
            get_metric("profitMargin")
        assert exc_info.value.metric_id == "profitMargin"
        assert exc_info.value.field == "metrics"

    def test_every_compatible_metric_exists(self) -> None:
        for option in GROUP_BY_CATALOG.values():
            assert option.compatible_metrics <= set(METRIC_CATALOG)

    def test_breakdown_metrics_have_group_values(self) -> None:
        for option in GROUP_BY_CATALOG.values():
            if option.supports_breakdown:
                assert option.compatible_metrics <= set(GROUP_METRIC_VALUES)

    def test_every_dimension_is_cataloged(self) -> None:
        assert set(GROUP_BY_CATALOG) == set(GroupByDimension)

    def test_currency_metrics_use_configured_currency(self) -> None:
        assert get_metric("totalCost").display_unit == "DOP"
        assert get_metric("utilizationRate").display_unit == "%"

    def test_pie_chart_excludes_rates(self) -> None:
        pie = metrics_for_chart(ChartType.PIE)

        assert "totalLicenses" in pie
        assert "utilizationRate" not in pie

    def test_compatibility(self) -> None:
        assert is_compatible("monthlyCost", GroupByDimension.BILLING_CYCLE)
        assert not is_compatible("monthlyCost", GroupByDimension.DEPARTMENT)
        assert not is_compatible("expiringSoon", GroupByDimension.PROVIDER)


class TestGroupMetricValues:
    """Per-group metric values."""

    def test_values_from_group(self) -> None:
        group = GroupAggregate(
            key="Microsoft",
            license_count=3,
            active_count=2,
            total_cost=Decimal("1500"),
            total_seats=20,
            used_seats=15,
        )

        assert group_metric_value("totalLicenses", group) == Decimal(3)
        assert group_metric_value("activeLicenses", group) == Decimal(2)
        assert group_metric_value("utilizationRate", group) == Decimal(75)
        assert group_metric_value("availableSeats", group) == Decimal(5)


class TestComputeFunctions:
    """Each metric issues one aggregate read against the seeded data."""

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        ("metric_id", "expected"),
        [
            ("totalLicenses", Decimal("5")),
            ("activeLicenses", Decimal("4")),
            ("expiredLicenses", Decimal("1")),
            ("expiringSoon", Decimal("1")),
            ("totalCost", Decimal("1640")),
            ("installmentCost", Decimal("1640")),
            ("monthlyCost", Decimal("340")),
            ("utilizationRate", Decimal("69")),
            ("totalLicense", Decimal("29")),
            ("usedLicense", Decimal("20")),
            ("availableSeats", Decimal("9")),
            ("userCount", Decimal("3")),
        ],
    )
    async def test_metric_value(self, repository, seeded, today: date, metric_id: str, expected: Decimal) -> None:
        context = MetricContext(predicate=LicensePredicate(), today=today)

        value = await get_metric(metric_id).compute(repository, context)

        assert value == expected

    @pytest.mark.anyio
    async def test_department_filter(self, repository, seeded, today: date) -> None:
        context = MetricContext(predicate=LicensePredicate(department_id=seeded.finance_id), today=today)

        assert await get_metric("totalLicenses").compute(repository, context) == Decimal(2)
        assert await get_metric("userCount").compute(repository, context) == Decimal(2)
