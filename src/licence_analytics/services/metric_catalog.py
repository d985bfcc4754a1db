"""Metric catalog.

Static registry of the metrics a custom report may request. Every metric
declares its unit, the chart types it can be drawn with and an async compute
function that issues exactly one aggregate read. Group-by options declare
which metrics can be broken down along them.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from licence_analytics.config import get_settings
from licence_analytics.exceptions import UnknownMetricError
from licence_analytics.models.domain.report_config import ChartType, GroupByDimension
from licence_analytics.repositories.query import GroupAggregate, LicensePredicate
from licence_analytics.repositories.reporting import ReportingRepository
from licence_analytics.services.compliance import utilization_rate
from licence_analytics.utils.numbers import to_decimal

CURRENCY_UNIT = "currency"


@dataclass(frozen=True)
class MetricContext:
    """Resolved filters a metric is computed under."""

    predicate: LicensePredicate
    today: date
    expiring_days: int = 30


MetricCompute = Callable[[ReportingRepository, MetricContext], Awaitable[Decimal]]


@dataclass(frozen=True)
class MetricDefinition:
    """Catalog entry for one metric."""

    id: str
    label: str
    category: str
    unit: str
    description: str
    compatible_charts: frozenset[ChartType]
    compute: MetricCompute = field(repr=False, compare=False)

    @property
    def display_unit(self) -> str:
        """Unit as printed in reports; currency metrics use the configured currency."""
        if self.unit == CURRENCY_UNIT:
            return get_settings().report_currency
        return self.unit


@dataclass(frozen=True)
class GroupByDefinition:
    """Catalog entry for one group-by dimension."""

    id: GroupByDimension
    label: str
    description: str
    compatible_metrics: frozenset[str]
    supports_breakdown: bool


# -----------------------------------------------------------------------------
# Compute functions (one aggregate read each)
# -----------------------------------------------------------------------------


async def _total_licenses(repo: ReportingRepository, ctx: MetricContext) -> Decimal:
    return Decimal(await repo.licenses.count(ctx.predicate))


async def _active_licenses(repo: ReportingRepository, ctx: MetricContext) -> Decimal:
    return Decimal(await repo.licenses.count(ctx.predicate.narrow(active=True)))


async def _expired_licenses(repo: ReportingRepository, ctx: MetricContext) -> Decimal:
    return Decimal(await repo.licenses.count(ctx.predicate.narrow(expires_before=ctx.today)))


async def _expiring_soon(repo: ReportingRepository, ctx: MetricContext) -> Decimal:
    predicate = ctx.predicate.narrow(
        active=True,
        expires_from=ctx.today,
        expires_until=ctx.today + timedelta(days=ctx.expiring_days),
    )
    return Decimal(await repo.licenses.count(predicate))


async def _total_cost(repo: ReportingRepository, ctx: MetricContext) -> Decimal:
    sums = await repo.licenses.sum(ctx.predicate.narrow(active=True), "unit_cost")
    return sums["unit_cost"]


async def _installment_cost(repo: ReportingRepository, ctx: MetricContext) -> Decimal:
    sums = await repo.licenses.sum(ctx.predicate.narrow(active=True), "installment_cost")
    return sums["installment_cost"]


async def _monthly_cost(repo: ReportingRepository, ctx: MetricContext) -> Decimal:
    groups = await repo.licenses.group_by(ctx.predicate.narrow(active=True), "billingCycle")
    return sum((g.monthly_cost for g in groups), Decimal("0"))


async def _utilization_rate(repo: ReportingRepository, ctx: MetricContext) -> Decimal:
    sums = await repo.licenses.sum(ctx.predicate.narrow(active=True), "total_seats", "used_seats")
    return Decimal(utilization_rate(int(sums["used_seats"]), int(sums["total_seats"])))


async def _total_seats(repo: ReportingRepository, ctx: MetricContext) -> Decimal:
    sums = await repo.licenses.sum(ctx.predicate.narrow(active=True), "total_seats")
    return sums["total_seats"]


async def _used_seats(repo: ReportingRepository, ctx: MetricContext) -> Decimal:
    sums = await repo.licenses.sum(ctx.predicate.narrow(active=True), "used_seats")
    return sums["used_seats"]


async def _available_seats(repo: ReportingRepository, ctx: MetricContext) -> Decimal:
    sums = await repo.licenses.sum(ctx.predicate.narrow(active=True), "total_seats", "used_seats")
    return sums["total_seats"] - sums["used_seats"]


async def _user_count(repo: ReportingRepository, ctx: MetricContext) -> Decimal:
    return Decimal(await repo.users.count(department_id=ctx.predicate.department_id))


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------

_TREND_CHARTS = frozenset({ChartType.BAR, ChartType.LINE, ChartType.AREA, ChartType.TABLE})
_SHARE_CHARTS = _TREND_CHARTS | {ChartType.PIE}
_POINT_CHARTS = frozenset({ChartType.BAR, ChartType.LINE, ChartType.TABLE})

METRIC_CATALOG: dict[str, MetricDefinition] = {
    m.id: m
    for m in (
        MetricDefinition(
            "totalLicenses", "Total Licenses", "General", "licenses",
            "Number of licenses matching the filters", _SHARE_CHARTS, _total_licenses,
        ),
        MetricDefinition(
            "activeLicenses", "Active Licenses", "General", "licenses",
            "Number of active licenses", _SHARE_CHARTS, _active_licenses,
        ),
        MetricDefinition(
            "expiredLicenses", "Expired Licenses", "Time", "licenses",
            "Licenses whose expiration date has passed", _POINT_CHARTS, _expired_licenses,
        ),
        MetricDefinition(
            "expiringSoon", "Expiring Soon", "Time", "licenses",
            "Active licenses expiring within the look-ahead window", _POINT_CHARTS, _expiring_soon,
        ),
        MetricDefinition(
            "totalCost", "Total Cost", "Financial", CURRENCY_UNIT,
            "Sum of unit cost of active licenses", _TREND_CHARTS, _total_cost,
        ),
        MetricDefinition(
            "installmentCost", "Installment Cost", "Financial", CURRENCY_UNIT,
            "Sum of installment cost of active licenses", _TREND_CHARTS, _installment_cost,
        ),
        MetricDefinition(
            "monthlyCost", "Monthly Cost", "Financial", CURRENCY_UNIT,
            "Installment cost normalized to one month by billing cycle", _TREND_CHARTS, _monthly_cost,
        ),
        MetricDefinition(
            "utilizationRate", "Utilization Rate", "Usage", "%",
            "Used seats as a percentage of total seats", _POINT_CHARTS, _utilization_rate,
        ),
        MetricDefinition(
            "totalLicense", "Total Seats", "Usage", "seats",
            "Seats purchased across active licenses", _TREND_CHARTS, _total_seats,
        ),
        MetricDefinition(
            "usedLicense", "Used Seats", "Usage", "seats",
            "Seats in use across active licenses", _TREND_CHARTS, _used_seats,
        ),
        MetricDefinition(
            "availableSeats", "Available Seats", "Usage", "seats",
            "Purchased seats not in use", _SHARE_CHARTS, _available_seats,
        ),
        MetricDefinition(
            "userCount", "Users", "General", "users",
            "Licensed end users", _POINT_CHARTS, _user_count,
        ),
    )
}

# Per-group value of each metric that a grouped read can answer
GROUP_METRIC_VALUES: dict[str, Callable[[GroupAggregate], Decimal]] = {
    "totalLicenses": lambda g: Decimal(g.license_count),
    "activeLicenses": lambda g: Decimal(g.active_count),
    "totalCost": lambda g: g.total_cost,
    "installmentCost": lambda g: g.installment_cost,
    "monthlyCost": lambda g: g.monthly_cost,
    "utilizationRate": lambda g: Decimal(utilization_rate(g.used_seats, g.total_seats)),
    "totalLicense": lambda g: Decimal(g.total_seats),
    "usedLicense": lambda g: Decimal(g.used_seats),
    "availableSeats": lambda g: Decimal(g.available_seats),
}

_SEAT_METRICS = frozenset({"utilizationRate", "totalLicense", "usedLicense", "availableSeats"})

GROUP_BY_CATALOG: dict[GroupByDimension, GroupByDefinition] = {
    g.id: g
    for g in (
        GroupByDefinition(
            GroupByDimension.PROVIDER, "Provider", "Breakdown per license provider",
            frozenset(GROUP_METRIC_VALUES), True,
        ),
        GroupByDefinition(
            GroupByDimension.DEPARTMENT, "Department", "Breakdown per owning department",
            frozenset({"totalLicenses", "activeLicenses", "totalCost"}) | _SEAT_METRICS, True,
        ),
        GroupByDefinition(
            GroupByDimension.BILLING_CYCLE, "Billing Cycle", "Breakdown per invoice cadence",
            frozenset({"totalLicenses", "activeLicenses", "totalCost", "installmentCost", "monthlyCost"}),
            True,
        ),
        GroupByDefinition(
            GroupByDimension.MONTH, "Month", "Monthly trend of license creation",
            frozenset({"totalLicenses", "totalCost", "totalLicense", "usedLicense"}), False,
        ),
        GroupByDefinition(
            GroupByDimension.STATUS, "Status", "Active versus inactive licenses",
            frozenset({"totalLicenses", "totalCost", "utilizationRate"}), False,
        ),
        GroupByDefinition(
            GroupByDimension.USER, "User", "Assignments per user",
            frozenset({"totalLicenses", "userCount"}), False,
        ),
    )
}

CHART_TYPE_LABELS: dict[ChartType, tuple[str, str]] = {
    ChartType.BAR: ("Bar Chart", "Compare values across categories"),
    ChartType.LINE: ("Line Chart", "Show changes over time"),
    ChartType.PIE: ("Pie Chart", "Show parts of a whole"),
    ChartType.AREA: ("Area Chart", "Show cumulative totals over time"),
    ChartType.TABLE: ("Table", "Show exact values"),
}


def get_metric(metric_id: str) -> MetricDefinition:
    """Look up a metric.

    Raises:
        UnknownMetricError: The id is not in the catalog
    """
    metric = METRIC_CATALOG.get(metric_id)
    if metric is None:
        raise UnknownMetricError(metric_id)
    return metric


def get_group_by(dimension: GroupByDimension) -> GroupByDefinition:
    """Look up a group-by dimension."""
    return GROUP_BY_CATALOG[dimension]


def metrics_for_chart(chart_type: ChartType) -> list[str]:
    """Metric ids drawable with a chart type, in catalog order."""
    return [m.id for m in METRIC_CATALOG.values() if chart_type in m.compatible_charts]


def is_compatible(metric_id: str, dimension: GroupByDimension) -> bool:
    """Whether a metric can be broken down along a dimension."""
    return metric_id in GROUP_BY_CATALOG[dimension].compatible_metrics


def group_metric_value(metric_id: str, group: GroupAggregate) -> Decimal:
    """Value of a compatible metric within one group."""
    return to_decimal(GROUP_METRIC_VALUES[metric_id](group))
