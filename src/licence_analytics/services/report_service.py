"""Report service for summary, temporal, audit and dashboard reports."""

import logging
import math
from datetime import datetime, timedelta

from licence_analytics.config import get_settings
from licence_analytics.constants.reporting import (
    ALL_PROVIDERS_LABEL,
    AUDIT_CHANGES_DEFAULT_DAYS,
    AUDIT_DEPARTMENT_ACCESS_DEFAULT_DAYS,
    AUDIT_HISTORY_DEFAULT_DAYS,
    MONTH_ABBREVIATIONS,
    MOST_USED_PROVIDERS_LIMIT,
    TEMPORAL_DEFAULT_MONTHS,
    TEMPORAL_MAX_MONTHS,
    USER_ACTIVITY_WINDOW_DAYS,
)
from licence_analytics.exceptions import ValidationError
from licence_analytics.models.dto.audit import (
    AssignmentHistoryEntry,
    AuditReportResponse,
    ComplianceAnalysis,
    DepartmentAccessEntry,
    LicenseChangeEntry,
    UserActivityEntry,
)
from licence_analytics.models.dto.dashboard import (
    DashboardStatsResponse,
    DashboardTotals,
    DashboardTrends,
    ExpiringName,
    ProviderUsage,
    UsagePoint,
)
from licence_analytics.models.dto.options import (
    DepartmentOption,
    ExportFormatOption,
    ExportOptionsResponse,
    ExportStatistics,
    FilterOptionsResponse,
    StatusCounts,
)
from licence_analytics.models.dto.summary import (
    CostProjection,
    DepartmentUtilization,
    ExpiringLicense,
    MonthlyTrend,
    ProviderBreakdown,
    ReportSummary,
    SummaryReportResponse,
    TopUser,
    UnderutilizedLicense,
)
from licence_analytics.models.dto.temporal import (
    CreationTrend,
    ExpirationTrend,
    ForwardProjection,
    SeasonalPoint,
    TemporalReportResponse,
    TemporalSummary,
    UtilizationTrend,
    YearOverYearPoint,
)
from licence_analytics.models.orm.license import LicenseORM
from licence_analytics.repositories.query import GroupAggregate, LicensePredicate
from licence_analytics.repositories.reporting import ReportingRepository
from licence_analytics.services.aggregation import (
    AggregationPipeline,
    SummaryEnvelope,
    degrade,
    department_label,
    run_concurrently,
)
from licence_analytics.services.compliance import (
    find_underutilized,
    utilization_fraction,
    utilization_percentage,
    utilization_rate,
)
from licence_analytics.services.filter_resolver import (
    build_predicate,
    resolve_window,
    utc_now,
)
from licence_analytics.services.trends import (
    average_monthly_growth,
    growth_percent,
    historical_cost_projections,
    percent_change,
    project_forward,
    savings_potential,
    seasonal_analysis,
)
from licence_analytics.utils.dates import days_until
from licence_analytics.utils.numbers import ZERO, quantize, round_half_up

logger = logging.getLogger(__name__)

# Estimated export size per license record, in KB
EXPORT_SIZE_PER_RECORD_KB = {"csv": 0.5, "json": 2.0, "xlsx": 0.8}

EXPORT_FORMATS = (
    ("csv", "CSV", "One row per license, opens in any spreadsheet", "text/csv"),
    ("json", "JSON", "Complete data with metadata and analysis", "application/json"),
    (
        "xlsx",
        "Excel",
        "Workbook with summary, license and provider sheets",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ),
)


def _license_name(lic: LicenseORM) -> str:
    """Short display name of a license."""
    return " ".join(part for part in (lic.provider, lic.model) if part)


def _active_group(groups: list[GroupAggregate]) -> GroupAggregate:
    """The active-license group of a by-status grouping (empty when absent)."""
    for group in groups:
        if group.key:
            return group
    return GroupAggregate(key=True)


class ReportService:
    """Service for generating the fixed analytics reports."""

    def __init__(self, repository: ReportingRepository) -> None:
        """Initialize service with the reporting repository."""
        self.repository = repository
        self.pipeline = AggregationPipeline(repository)

    # =========================================================================
    # Summary
    # =========================================================================

    async def get_summary(
        self,
        start_date: str | None = None,
        end_date: str | None = None,
        provider: str | None = None,
        department: str | None = None,
        status: str | None = None,
    ) -> SummaryReportResponse:
        """Get the summary report.

        Args:
            start_date: Inclusive ISO start date of license creation
            end_date: Inclusive ISO end date of license creation
            provider: Provider filter
            department: Department id filter
            status: active, inactive or expiring

        Returns:
            SummaryReportResponse

        Raises:
            ValidationError: A filter is malformed
            RepositoryError: A core read failed
        """
        now = utc_now()
        window = resolve_window(start_date, end_date, now, default_days=None)
        predicate = build_predicate(
            window=window,
            provider=provider,
            department=department,
            status=status,
            today=now.date(),
            expiring_days=get_settings().expiring_soon_days,
        )
        envelope = await self.pipeline.summary(predicate, now)

        active = _active_group(envelope.by_status)
        utilization = utilization_fraction(active.used_seats, active.total_seats)

        return SummaryReportResponse(
            summary=degrade("summary", lambda: self._summary_block(envelope), self._empty_summary()),
            licenses_by_provider=degrade(
                "licenses by provider", lambda: self._provider_breakdown(envelope.by_provider), []
            ),
            monthly_trends=degrade(
                "monthly trends",
                lambda: [
                    MonthlyTrend(
                        month=b.key,
                        licenses_created=b.license_count,
                        total_seats=b.total_seats,
                        used_seats=b.used_seats,
                        total_cost=b.total_cost,
                    )
                    for b in envelope.monthly
                ],
                [],
            ),
            cost_projections=degrade(
                "cost projections",
                lambda: [
                    CostProjection(
                        month=p.month,
                        current_cost=p.current_cost,
                        growth_rate=float(quantize(p.growth_rate, 4)),
                        projected_cost=p.projected_cost,
                        savings_potential=p.savings_potential,
                    )
                    for p in historical_cost_projections(
                        [(b.key, b.total_cost) for b in envelope.monthly], utilization
                    )
                ],
                [],
            ),
            expiring_soon=degrade(
                "expiring soon", lambda: self._expiring(envelope, now), []
            ),
            utilization_by_dept=degrade(
                "utilization by department",
                lambda: self._department_utilization(envelope.by_department),
                [],
            ),
            underutilized_licenses=degrade(
                "underutilized licenses",
                lambda: [
                    UnderutilizedLicense(
                        id=e.license.id,
                        provider=e.license.provider,
                        model=e.license.model,
                        plan=e.license.plan,
                        total_seats=e.license.total_seats,
                        used_seats=e.license.used_seats,
                        unit_cost=e.license.unit_cost,
                        utilization=float(quantize(e.utilization, 4)),
                        potential_savings=e.potential_savings,
                    )
                    for e in find_underutilized(envelope.active_with_seats)
                ],
                [],
            ),
            top_users=degrade(
                "top users",
                lambda: [
                    TopUser(
                        id=user.id,
                        name=user.name,
                        username=user.username,
                        status=user.status,
                        department_id=user.department_id,
                        assignment_count=count,
                        total_cost=cost,
                    )
                    for user, count, cost in envelope.top_users
                ],
                [],
            ),
        )

    def _summary_block(self, envelope: SummaryEnvelope) -> ReportSummary:
        total = sum(g.license_count for g in envelope.by_status)
        active = _active_group(envelope.by_status)
        monthly_cost = active.total_cost
        utilization = utilization_fraction(active.used_seats, active.total_seats)

        trend = 0.0
        if len(envelope.monthly) >= 2:
            trend = growth_percent(envelope.monthly[0].total_cost, envelope.monthly[1].total_cost)

        return ReportSummary(
            total_licenses=total,
            active_licenses=active.license_count,
            inactive_licenses=total - active.license_count,
            total_seats=active.total_seats,
            used_seats=active.used_seats,
            utilization_rate=utilization_rate(active.used_seats, active.total_seats),
            monthly_cost=monthly_cost,
            annual_projection=monthly_cost * 12,
            monthly_trend=trend,
            potential_savings=savings_potential(monthly_cost, utilization),
        )

    @staticmethod
    def _empty_summary() -> ReportSummary:
        return ReportSummary(
            total_licenses=0,
            active_licenses=0,
            inactive_licenses=0,
            total_seats=0,
            used_seats=0,
            utilization_rate=0,
            monthly_cost=ZERO,
            annual_projection=ZERO,
            monthly_trend=0.0,
            potential_savings=0,
        )

    @staticmethod
    def _provider_breakdown(groups: list[GroupAggregate]) -> list[ProviderBreakdown]:
        return [
            ProviderBreakdown(
                provider=g.key,
                license_count=g.license_count,
                total_seats=g.total_seats,
                used_seats=g.used_seats,
                total_cost=g.total_cost,
                utilization_rate=utilization_rate(g.used_seats, g.total_seats),
            )
            for g in sorted(groups, key=lambda g: (-g.license_count, str(g.key)))
        ]

    @staticmethod
    def _expiring(envelope: SummaryEnvelope, now: datetime) -> list[ExpiringLicense]:
        today = now.date()
        return [
            ExpiringLicense(
                id=lic.id,
                provider=lic.provider,
                model=lic.model,
                plan=lic.plan,
                expiration=lic.expiration,
                days_left=days_until(lic.expiration, today),
                department_id=lic.department_id,
                department_name=department_label(lic.department_id, envelope.department_names),
                assigned_users=[a.user.name for a in lic.assignments if a.user is not None],
            )
            for lic in envelope.expiring
        ]

    @staticmethod
    def _department_utilization(groups: list[GroupAggregate]) -> list[DepartmentUtilization]:
        rows = []
        for g in groups:
            count = g.license_count or 1
            rows.append(
                DepartmentUtilization(
                    department_id=g.key,
                    department_name=g.label,
                    license_count=g.license_count,
                    total_seats=g.total_seats,
                    used_seats=g.used_seats,
                    avg_total_seats=float(quantize(g.total_seats / count, 2)),
                    avg_used_seats=float(quantize(g.used_seats / count, 2)),
                    total_cost=g.total_cost,
                    utilization_rate=utilization_rate(g.used_seats, g.total_seats),
                )
            )
        rows.sort(key=lambda r: (-r.utilization_rate, r.department_name))
        return rows

    # =========================================================================
    # Temporal
    # =========================================================================

    async def get_temporal(
        self, months: int = TEMPORAL_DEFAULT_MONTHS, provider: str | None = None
    ) -> TemporalReportResponse:
        """Get the temporal report over the last ``months`` calendar months.

        Raises:
            ValidationError: ``months`` is outside 1..36
            RepositoryError: A core read failed
        """
        if months < 1 or months > TEMPORAL_MAX_MONTHS:
            raise ValidationError(
                f"months must be between 1 and {TEMPORAL_MAX_MONTHS}", field="months"
            )
        now = utc_now()
        provider_filter = build_predicate(provider=provider).provider
        envelope = await self.pipeline.temporal(months, provider_filter, now)

        return TemporalReportResponse(
            license_creation_trends=degrade(
                "creation trends",
                lambda: [
                    CreationTrend(
                        month=b.key,
                        licenses_created=b.license_count,
                        total_seats_added=b.total_seats,
                        total_cost_added=b.total_cost,
                        providers=", ".join(envelope.creation_providers.get((b.year, b.month), [])),
                    )
                    for b in envelope.creation
                ],
                [],
            ),
            utilization_trends=degrade(
                "utilization trends",
                lambda: [
                    UtilizationTrend(
                        month=b.key,
                        total_seats=b.total_seats,
                        used_seats=b.used_seats,
                        utilization_percentage=utilization_percentage(b.used_seats, b.total_seats),
                    )
                    for b in envelope.creation
                ],
                [],
            ),
            projections=degrade(
                "projections",
                lambda: [
                    ForwardProjection(
                        month=p.month,
                        month_offset=p.month_offset,
                        projected_licenses=p.licenses,
                        projected_cost=p.cost,
                        projected_seats=p.seats,
                        confidence=p.confidence,
                    )
                    for p in project_forward(envelope.trailing, now.date())
                ],
                [],
            ),
            seasonal_analysis=degrade(
                "seasonal analysis",
                lambda: [
                    SeasonalPoint(
                        month=s.month,
                        month_number=s.month_number,
                        licenses_created=s.licenses_created,
                        total_cost=s.total_cost,
                        avg_monthly_licenses=float(s.avg_monthly_licenses),
                    )
                    for s in seasonal_analysis(envelope.seasonal)
                ],
                [],
            ),
            year_over_year=degrade(
                "year over year",
                lambda: [
                    YearOverYearPoint(
                        year=y.year,
                        total_licenses=y.license_count,
                        total_seats=y.total_seats,
                        total_cost=y.total_cost,
                        unique_providers=y.unique_providers,
                    )
                    for y in envelope.yearly
                ],
                [],
            ),
            expiration_trends=degrade(
                "expiration trends",
                lambda: [
                    ExpirationTrend(
                        month=b.key,
                        expiring_licenses=b.license_count,
                        seats_affected=b.total_seats,
                        cost_at_risk=b.total_cost,
                    )
                    for b in reversed(envelope.expirations)
                ],
                [],
            ),
            summary=TemporalSummary(
                total_months_analyzed=months,
                provider=provider_filter or ALL_PROVIDERS_LABEL,
                generated_at=now,
                avg_monthly_growth=degrade(
                    "average monthly growth", lambda: average_monthly_growth(envelope.creation), 0.0
                ),
            ),
        )

    # =========================================================================
    # Audit
    # =========================================================================

    async def get_audit(
        self, start_date: str | None = None, end_date: str | None = None
    ) -> AuditReportResponse:
        """Get the audit report.

        Assignment history defaults to the last 90 days, license changes and
        department access to the last 30 days when no range is given. User
        activity always covers the last 30 days.

        Raises:
            ValidationError: A date is malformed
            RepositoryError: A core read failed
        """
        now = utc_now()
        history_window = resolve_window(start_date, end_date, now, AUDIT_HISTORY_DEFAULT_DAYS)
        changes_window = resolve_window(start_date, end_date, now, AUDIT_CHANGES_DEFAULT_DAYS)
        access_window = resolve_window(start_date, end_date, now, AUDIT_DEPARTMENT_ACCESS_DEFAULT_DAYS)
        envelope = await self.pipeline.audit(
            history_window,
            changes_window,
            access_window,
            now - timedelta(days=USER_ACTIVITY_WINDOW_DAYS),
            now.date(),
        )

        history = [
            AssignmentHistoryEntry(
                id=a.id,
                assigned_at=a.assigned_at,
                user_id=a.user_id,
                user_name=a.user.name if a.user else None,
                username=a.user.username if a.user else None,
                license_id=a.license_id,
                provider=a.license.provider if a.license else None,
                model=a.license.model if a.license else None,
                plan=a.license.plan if a.license else None,
            )
            for a in envelope.history
        ]

        activity = []
        for user_id, count, last_assigned_at in envelope.activity:
            user = envelope.activity_users.get(user_id)
            activity.append(
                UserActivityEntry(
                    user_id=user_id,
                    name=user.name if user else None,
                    username=user.username if user else None,
                    status=user.status if user else None,
                    assignment_count=count,
                    last_assigned_at=last_assigned_at,
                )
            )

        compliance = envelope.compliance
        return AuditReportResponse(
            assignment_history=history,
            user_activity=activity,
            license_changes=[
                LicenseChangeEntry(
                    id=lic.id,
                    provider=lic.provider,
                    model=lic.model,
                    plan=lic.plan,
                    active=lic.active,
                    total_seats=lic.total_seats,
                    used_seats=lic.used_seats,
                    updated_at=lic.updated_at,
                )
                for lic in envelope.changes
            ],
            compliance=ComplianceAnalysis(
                total_active=compliance.total_active,
                over_allocated=compliance.over_allocated,
                under_utilized=compliance.under_utilized,
                expired_active=compliance.expired_active,
                compliance_score=compliance.score,
            ),
            department_access=[
                DepartmentAccessEntry(
                    department_id=department_id,
                    department_name=department_label(department_id, envelope.department_names),
                    license_count=count,
                )
                for department_id, count in envelope.department_access
            ],
        )

    # =========================================================================
    # Dashboard
    # =========================================================================

    async def get_dashboard_stats(self) -> DashboardStatsResponse:
        """Get dashboard totals, month-over-month trends and charts.

        Raises:
            RepositoryError: A core read failed
        """
        now = utc_now()
        today = now.date()
        envelope = await self.pipeline.dashboard(now)
        counts = envelope.counts

        total_licenses = sum(g.license_count for g in envelope.by_provider)
        most_used = sorted(envelope.by_provider, key=lambda g: (-g.license_count, str(g.key)))

        return DashboardStatsResponse(
            totals=DashboardTotals(
                total_users=counts["total_users"],
                total_licenses=counts["total_licenses"],
                active_licenses=counts["active_licenses"],
                expiring_soon=counts["expiring_soon"],
                expired=counts["expired"],
            ),
            trends=DashboardTrends(
                users=percent_change(counts["users_this_month"], counts["users_last_month"]),
                licenses=percent_change(counts["licenses_this_month"], counts["licenses_last_month"]),
                active_licenses=percent_change(
                    counts["active_this_month"], counts["active_last_month"]
                ),
                expiring=percent_change(
                    counts["expiring_this_month"], counts["expiring_last_month"]
                ),
            ),
            chart_data=[
                UsagePoint(month=label, used_seats=envelope.used_seats_by_month.get(number, 0))
                for number, label in enumerate(MONTH_ABBREVIATIONS, start=1)
            ],
            most_used=degrade(
                "most used providers",
                lambda: [
                    ProviderUsage(
                        provider=g.key,
                        license_count=g.license_count,
                        percentage=round_half_up(g.license_count * 100 / total_licenses)
                        if total_licenses
                        else 0,
                    )
                    for g in most_used[:MOST_USED_PROVIDERS_LIMIT]
                ],
                [],
            ),
            expiring_soon=degrade(
                "expiring soon",
                lambda: [
                    ExpiringName(
                        id=lic.id,
                        name=_license_name(lic),
                        days_left=days_until(lic.expiration, today),
                    )
                    for lic in envelope.expiring
                ],
                [],
            ),
        )

    # =========================================================================
    # Options
    # =========================================================================

    async def get_filter_options(self) -> FilterOptionsResponse:
        """Get the provider, department and status values reports can filter by."""
        today = utc_now().date()
        expiring_until = today + timedelta(days=get_settings().expiring_soon_days)
        reads = await run_concurrently({
            "providers": self.repository.licenses.distinct_providers(),
            "departments": self.repository.departments.list_active(),
            "active": self.repository.licenses.count(LicensePredicate(active=True)),
            "inactive": self.repository.licenses.count(LicensePredicate(active=False)),
            "expirations": self.repository.licenses.expiration_counts(today, expiring_until),
        })
        return FilterOptionsResponse(
            providers=[p for p in reads["providers"] if p],
            departments=[DepartmentOption(id=d.id, name=d.name) for d in reads["departments"]],
            status_counts=StatusCounts(
                active=reads["active"],
                inactive=reads["inactive"],
                expiring=reads["expirations"]["expiring"],
            ),
        )

    async def get_export_options(
        self,
        start_date: str | None = None,
        end_date: str | None = None,
        provider: str | None = None,
        department: str | None = None,
        status: str | None = None,
    ) -> ExportOptionsResponse:
        """Get the export formats with the size of the export under the given filters.

        Raises:
            ValidationError: A filter is malformed
        """
        now = utc_now()
        today = now.date()
        expiring_days = get_settings().expiring_soon_days
        predicate = build_predicate(
            window=resolve_window(start_date, end_date, now, default_days=None),
            provider=provider,
            department=department,
            status=status,
            today=today,
            expiring_days=expiring_days,
        )
        active = predicate.narrow(active=True)
        licenses = self.repository.licenses
        reads = await run_concurrently({
            "total": licenses.count(predicate),
            "active": licenses.count(active),
            "expiring": licenses.count(
                active.narrow(
                    expires_from=today, expires_until=today + timedelta(days=expiring_days)
                )
            ),
            "sums": licenses.sum(active, "unit_cost", "total_seats", "used_seats"),
        })

        total = reads["total"]
        sums = reads["sums"]
        total_seats = int(sums["total_seats"])
        used_seats = int(sums["used_seats"])
        return ExportOptionsResponse(
            formats=[
                ExportFormatOption(
                    id=format_id,
                    label=label,
                    description=description,
                    media_type=media_type,
                    enabled=total > 0,
                    record_count=total,
                    estimated_size_kb=math.ceil(total * EXPORT_SIZE_PER_RECORD_KB[format_id]),
                )
                for format_id, label, description, media_type in EXPORT_FORMATS
            ],
            statistics=ExportStatistics(
                total_records=total,
                active_records=reads["active"],
                expiring_records=reads["expiring"],
                total_cost=sums["unit_cost"],
                utilization_rate=utilization_rate(used_seats, total_seats),
                total_seats=total_seats,
                used_seats=used_seats,
            ),
        )
