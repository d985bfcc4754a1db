"""Custom report compiler.

A report configuration moves through ``validate`` (pure, no reads) and
``execute`` (only the requested metrics plus one grouped read). Saving and
exporting consume the compiled or executed forms.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from licence_analytics.config import get_settings
from licence_analytics.constants.reporting import DATE_RANGE_TOKENS
from licence_analytics.exceptions import RepositoryError, ValidationError
from licence_analytics.models.domain.report_config import (
    ChartType,
    GroupByDimension,
    ReportConfig,
    ReportPurpose,
)
from licence_analytics.models.dto.custom_report import (
    BuilderMetricOption,
    BuilderOptionsResponse,
    BuilderStatistics,
    ChartTypeOption,
    CustomReportResult,
    DateRangeOption,
    GroupByOption,
    GroupedBreakdown,
    GroupRow,
    MetricCell,
    MetricResult,
)
from licence_analytics.repositories.query import GroupAggregate, LicensePredicate
from licence_analytics.repositories.reporting import ReportingRepository
from licence_analytics.services.aggregation import AggregationPipeline, run_concurrently
from licence_analytics.services.compliance import utilization_rate
from licence_analytics.services.filter_resolver import (
    build_predicate,
    relative_range_label,
    resolve_relative_range,
    resolve_window,
    utc_now,
)
from licence_analytics.services.metric_catalog import (
    CHART_TYPE_LABELS,
    GROUP_BY_CATALOG,
    METRIC_CATALOG,
    GroupByDefinition,
    MetricContext,
    MetricDefinition,
    get_metric,
    group_metric_value,
    is_compatible,
    metrics_for_chart,
)
from licence_analytics.utils.numbers import ZERO, quantize
from licence_analytics.utils.secure_logging import log_warning
from licence_analytics.utils.validation import validate_sort_by

logger = logging.getLogger(__name__)

# Whitelist for breakdown row ordering; numeric columns sort descending
BREAKDOWN_SORT_COLUMNS = {"label", "license_count", "total_cost", "utilization_rate"}
BREAKDOWN_DEFAULT_SORT = "label"


@dataclass(frozen=True)
class CompiledReport:
    """A validated configuration with its filters resolved."""

    config: ReportConfig
    purpose: ReportPurpose
    metrics: list[MetricDefinition]
    group_by: GroupByDefinition | None
    context: MetricContext
    generated_at: datetime
    date_range_label: str | None = None
    sort_by: str = BREAKDOWN_DEFAULT_SORT


@dataclass
class ExecutedReport:
    """Result of executing a compiled report, ready to serialize."""

    compiled: CompiledReport
    result: CustomReportResult
    values: dict[str, Decimal] = field(default_factory=dict)


def _resolve_predicate(config: ReportConfig, now: datetime) -> LicensePredicate:
    """Resolve the report filters and relative date range into a predicate.

    Custom reports only cover active licenses. Explicit start and end dates
    bound license creation. A relative range keeps licenses expiring on or
    after the start of the range.
    """
    filters = config.filters
    window = resolve_window(filters.start_date, filters.end_date, now, default_days=None)
    predicate = build_predicate(
        window=window,
        provider=filters.provider,
        department=filters.department,
        billing_cycle=filters.billing_cycle,
        today=now.date(),
    ).narrow(active=True)
    relative = resolve_relative_range(config.date_range, now)
    if relative is not None:
        predicate = predicate.narrow(expires_from=relative.start.date())
    return predicate


class CustomReportCompiler:
    """Validates, executes and describes user-defined reports."""

    def __init__(self, repository: ReportingRepository) -> None:
        """Initialize compiler with the reporting repository."""
        self.repository = repository
        self.pipeline = AggregationPipeline(repository)

    def validate(
        self, config: ReportConfig, purpose: ReportPurpose, now: datetime | None = None
    ) -> CompiledReport:
        """Validate a configuration without touching the repository.

        Args:
            config: Report configuration
            purpose: Whether the report is saved, generated or exported
            now: Reference time (defaults to the current UTC time)

        Returns:
            Compiled report

        Raises:
            ValidationError: Empty name when saving, empty metric list when
                generating or exporting, or a malformed filter
            UnknownMetricError: A metric id is not in the catalog
        """
        if purpose == ReportPurpose.SAVE and not config.name.strip():
            raise ValidationError("Report name is required", field="name")
        if purpose != ReportPurpose.SAVE and not config.metrics:
            raise ValidationError("At least one metric is required", field="metrics")

        metrics: list[MetricDefinition] = []
        seen: set[str] = set()
        for metric_id in config.metrics:
            metric = get_metric(metric_id)
            if metric_id not in seen:
                seen.add(metric_id)
                metrics.append(metric)

        now = now or utc_now()
        predicate = _resolve_predicate(config, now)

        return CompiledReport(
            config=config,
            purpose=purpose,
            metrics=metrics,
            group_by=GROUP_BY_CATALOG[config.group_by] if config.group_by else None,
            context=MetricContext(
                predicate=predicate,
                today=now.date(),
                expiring_days=get_settings().expiring_soon_days,
            ),
            generated_at=now,
            date_range_label=relative_range_label(config.date_range),
            sort_by=validate_sort_by(config.sort_by, BREAKDOWN_SORT_COLUMNS, BREAKDOWN_DEFAULT_SORT),
        )

    async def execute(self, compiled: CompiledReport) -> ExecutedReport:
        """Compute the requested metrics and the grouped breakdown.

        Metric reads and the grouped read run concurrently. A read failure
        aborts the whole report.

        Raises:
            RepositoryError: An aggregate read failed
        """
        reads = {
            metric.id: metric.compute(self.repository, compiled.context)
            for metric in compiled.metrics
        }
        group_by = compiled.group_by
        if group_by is not None and group_by.supports_breakdown:
            reads["__breakdown__"] = self.repository.licenses.group_by(
                compiled.context.predicate, group_by.id.value
            )

        results = await run_concurrently(reads)
        groups: list[GroupAggregate] | None = results.pop("__breakdown__", None)
        if groups is not None and group_by is not None and group_by.id == GroupByDimension.DEPARTMENT:
            await self.pipeline.label_department_groups(groups)

        values = {metric_id: quantize(value) for metric_id, value in results.items()}
        config = compiled.config
        result = CustomReportResult(
            name=config.name,
            description=config.description,
            generated_at=compiled.generated_at,
            date_range=config.date_range,
            date_range_label=compiled.date_range_label,
            group_by=group_by.id if group_by else None,
            group_by_label=group_by.label if group_by else None,
            chart_type=config.chart_type,
            metrics=[
                MetricResult(
                    id=metric.id,
                    label=metric.label,
                    category=metric.category,
                    unit=metric.display_unit,
                    value=values[metric.id],
                    chart_compatible=(
                        config.chart_type is None or config.chart_type in metric.compatible_charts
                    ),
                )
                for metric in compiled.metrics
            ],
            breakdown=self._breakdown(compiled, groups) if group_by else None,
        )
        return ExecutedReport(compiled=compiled, result=result, values=values)

    async def generate(self, config: ReportConfig) -> CustomReportResult:
        """Validate and execute a configuration in one step."""
        compiled = self.validate(config, ReportPurpose.GENERATE)
        executed = await self.execute(compiled)
        return executed.result

    def _breakdown(
        self, compiled: CompiledReport, groups: list[GroupAggregate] | None
    ) -> GroupedBreakdown:
        """Build the breakdown, marking incompatible metrics as not applicable."""
        group_by = compiled.group_by
        if groups is None:
            return GroupedBreakdown(dimension=group_by.id, label=group_by.label, applicable=False)

        rows = []
        for group in groups:
            cells = {}
            for metric in compiled.metrics:
                if is_compatible(metric.id, group_by.id):
                    cells[metric.id] = MetricCell.computed(quantize(group_metric_value(metric.id, group)))
                else:
                    cells[metric.id] = MetricCell.not_applicable()
            rows.append(
                GroupRow(
                    key=None if group.key is None else str(group.key),
                    label=group.label or _group_label(group),
                    license_count=group.license_count,
                    active_count=group.active_count,
                    total_cost=group.total_cost,
                    installment_cost=group.installment_cost,
                    monthly_cost=group.monthly_cost,
                    average_cost=(
                        group.total_cost / group.license_count if group.license_count else ZERO
                    ),
                    total_seats=group.total_seats,
                    used_seats=group.used_seats,
                    utilization_rate=utilization_rate(group.used_seats, group.total_seats),
                    metrics=cells,
                )
            )

        sort_by = compiled.sort_by
        rows.sort(key=lambda r: getattr(r, sort_by), reverse=sort_by != "label")

        return GroupedBreakdown(
            dimension=group_by.id,
            label=group_by.label,
            applicable=True,
            rows=rows,
            total_licenses=sum(g.license_count for g in groups),
            total_cost=sum((g.total_cost for g in groups), ZERO),
        )

    async def builder_options(self) -> BuilderOptionsResponse:
        """Describe the catalog for the report builder, with current values.

        Current values cover every active license, like a report without
        filters. When the repository cannot be read the static catalog is
        returned without values.
        """
        now = utc_now()
        context = MetricContext(
            predicate=LicensePredicate(active=True),
            today=now.date(),
            expiring_days=get_settings().expiring_soon_days,
        )
        available = True
        try:
            current = await run_concurrently({
                metric.id: metric.compute(self.repository, context)
                for metric in METRIC_CATALOG.values()
            })
        except RepositoryError as e:
            log_warning(logger, "Report builder current values unavailable", e)
            current = {}
            available = False

        return BuilderOptionsResponse(
            metrics=[
                BuilderMetricOption(
                    id=metric.id,
                    label=metric.label,
                    category=metric.category,
                    unit=metric.display_unit,
                    description=metric.description,
                    compatible_charts=sorted(c.value for c in metric.compatible_charts),
                    current_value=current.get(metric.id),
                )
                for metric in METRIC_CATALOG.values()
            ],
            group_by_options=[
                GroupByOption(
                    id=option.id.value,
                    label=option.label,
                    description=option.description,
                    compatible_metrics=[m for m in METRIC_CATALOG if m in option.compatible_metrics],
                    supports_breakdown=option.supports_breakdown,
                )
                for option in GROUP_BY_CATALOG.values()
            ],
            chart_types=[
                ChartTypeOption(
                    id=chart.value,
                    label=label,
                    description=description,
                    compatible_metrics=metrics_for_chart(chart),
                )
                for chart, (label, description) in CHART_TYPE_LABELS.items()
            ],
            date_range_options=[
                DateRangeOption(value=token, label=relative_range_label(token))
                for token in DATE_RANGE_TOKENS
            ],
            statistics=BuilderStatistics(
                total_metrics=len(METRIC_CATALOG),
                total_group_by_options=len(GROUP_BY_CATALOG),
                total_chart_types=len(ChartType),
                repository_available=available,
                generated_at=now,
            ),
        )


def _group_label(group: GroupAggregate) -> str:
    """Label of a group whose key is already human readable."""
    if group.key is None:
        return "-"
    return str(group.key)
