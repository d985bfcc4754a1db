"""Custom report DTOs."""

from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Literal

from pydantic import Field

from licence_analytics.models.domain.report_config import ChartType, GroupByDimension, ReportConfig
from licence_analytics.models.dto.common import CamelModel, Money


class MetricStatus(StrEnum):
    """Whether a value was computed or does not apply to the requested grouping."""

    COMPUTED = "computed"
    NOT_APPLICABLE = "not_applicable"


class MetricCell(CamelModel):
    """One metric value inside a grouped row.

    ``value`` is None exactly when ``status`` is not applicable, so a computed
    zero is never confused with a metric that was not computed.
    """

    status: MetricStatus
    value: Money | None = None

    @classmethod
    def computed(cls, value: Decimal) -> "MetricCell":
        return cls(status=MetricStatus.COMPUTED, value=value)

    @classmethod
    def not_applicable(cls) -> "MetricCell":
        return cls(status=MetricStatus.NOT_APPLICABLE)


class MetricResult(CamelModel):
    """A top-level metric of a custom report."""

    id: str
    label: str
    category: str
    unit: str
    value: Money
    chart_compatible: bool = True


class GroupRow(CamelModel):
    """Aggregates for one value of the group-by dimension."""

    key: str | None
    label: str
    license_count: int
    active_count: int
    total_cost: Money
    installment_cost: Money
    monthly_cost: Money
    average_cost: Money
    total_seats: int
    used_seats: int
    utilization_rate: int
    metrics: dict[str, MetricCell] = {}


class GroupedBreakdown(CamelModel):
    """Grouped breakdown of a custom report."""

    dimension: GroupByDimension
    label: str
    applicable: bool
    rows: list[GroupRow] = []
    total_licenses: int = 0
    total_cost: Money = Decimal("0")


class CustomReportResult(CamelModel):
    """Computed custom report. Never persisted."""

    name: str
    description: str
    generated_at: datetime
    date_range: str
    date_range_label: str | None = None
    group_by: GroupByDimension | None = None
    group_by_label: str | None = None
    chart_type: ChartType | None = None
    metrics: list[MetricResult]
    breakdown: GroupedBreakdown | None = None


class CustomReportRequest(CamelModel):
    """Request to generate a custom report."""

    config: ReportConfig


class CustomExportRequest(CamelModel):
    """Request to export a custom report."""

    config: ReportConfig
    format: Literal["csv"] = "csv"


class BuilderMetricOption(CamelModel):
    """A catalog metric as offered by the report builder."""

    id: str
    label: str
    category: str
    unit: str
    description: str
    compatible_charts: list[str]
    current_value: Money | None = None


class GroupByOption(CamelModel):
    """A group-by dimension offered by the report builder."""

    id: str
    label: str
    description: str
    compatible_metrics: list[str]
    supports_breakdown: bool


class ChartTypeOption(CamelModel):
    """A chart type offered by the report builder."""

    id: str
    label: str
    description: str
    compatible_metrics: list[str]


class DateRangeOption(CamelModel):
    """A relative date range offered by the report builder."""

    value: str
    label: str


class BuilderStatistics(CamelModel):
    """Catalog size and repository availability."""

    total_metrics: int
    total_group_by_options: int
    total_chart_types: int
    repository_available: bool
    generated_at: datetime


class BuilderOptionsResponse(CamelModel):
    """Report builder options response DTO."""

    metrics: list[BuilderMetricOption]
    group_by_options: list[GroupByOption]
    chart_types: list[ChartTypeOption]
    date_range_options: list[DateRangeOption] = Field(default_factory=list)
    statistics: BuilderStatistics
