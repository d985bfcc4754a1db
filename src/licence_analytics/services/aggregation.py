"""Aggregation pipeline.

Each report declares the aggregate reads it needs; the pipeline issues the
independent ones concurrently, joins them, then runs dependent enrichment
reads (department and user names) once the ids are known. Calculators only
ever see the assembled envelope.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, TypeVar

from licence_analytics.config import get_settings
from licence_analytics.constants.reporting import (
    ASSIGNMENT_HISTORY_LIMIT,
    COMPLIANCE_UNDERUTILIZED_RATIO,
    EXPIRATION_HORIZON_MONTHS,
    EXPORT_ACTIVE_USERS_LIMIT,
    EXPORT_ROW_LIMIT,
    LICENSE_CHANGES_LIMIT,
    NO_DEPARTMENT_LABEL,
    PROJECTION_TRAILING_MONTHS,
    SEASONAL_LOOKBACK_MONTHS,
    SUMMARY_TREND_MONTHS,
    TOP_USERS_LIMIT,
    UPCOMING_EXPIRATIONS_DAYS,
    YEAR_OVER_YEAR_LOOKBACK_MONTHS,
)
from licence_analytics.models.orm.assignment import AssignmentORM
from licence_analytics.models.orm.license import LicenseORM
from licence_analytics.models.orm.user import UserORM
from licence_analytics.repositories.query import GroupAggregate, LicensePredicate, MonthlyBucket, YearlyBucket
from licence_analytics.repositories.reporting import ReportingRepository
from licence_analytics.services.compliance import ComplianceCounts
from licence_analytics.services.filter_resolver import DateWindow, resolve_month_window
from licence_analytics.utils.dates import add_months, shift_months, start_of_day
from licence_analytics.utils.secure_logging import log_warning

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_concurrently(
    reads: Mapping[str, Awaitable[Any]], max_concurrency: int | None = None
) -> dict[str, Any]:
    """Await independent reads concurrently and return their results by name.

    If any read fails, or the caller is cancelled, the remaining reads are
    cancelled before the exception propagates, so no partial envelope escapes.

    Args:
        reads: Named awaitables
        max_concurrency: Upper bound on reads in flight (defaults to settings)

    Returns:
        Mapping of read name to result
    """
    limit = max_concurrency or get_settings().report_max_concurrent_reads
    semaphore = asyncio.Semaphore(limit)

    async def bounded(read: Awaitable[Any]) -> Any:
        async with semaphore:
            return await read

    tasks = {name: asyncio.ensure_future(bounded(read)) for name, read in reads.items()}
    try:
        await asyncio.gather(*tasks.values())
    except BaseException:
        for task in tasks.values():
            task.cancel()
        await asyncio.gather(*tasks.values(), return_exceptions=True)
        raise
    return {name: task.result() for name, task in tasks.items()}


def degrade(section: str, compute: Callable[[], T], fallback: T) -> T:
    """Compute a derived report section, falling back to an empty value on failure.

    Dashboards stay usable with partial data: a failing section is logged as
    a warning and replaced with ``fallback``.
    """
    try:
        return compute()
    except Exception as e:
        log_warning(logger, f"Report section '{section}' failed, returning empty result", e)
        return fallback


async def degrade_read(section: str, read: Awaitable[T], fallback: T) -> T:
    """Async form of ``degrade`` for optional enrichment reads."""
    try:
        return await read
    except Exception as e:
        log_warning(logger, f"Report section '{section}' failed, returning empty result", e)
        return fallback


def department_label(department_id: int | None, names: Mapping[int, str]) -> str:
    """Department name, or the no-department sentinel for null or deleted ids."""
    if department_id is None:
        return NO_DEPARTMENT_LABEL
    return names.get(department_id, NO_DEPARTMENT_LABEL)


# =============================================================================
# Envelopes
# =============================================================================


@dataclass
class SummaryEnvelope:
    """Raw reads behind the summary report."""

    by_status: list[GroupAggregate]
    by_provider: list[GroupAggregate]
    by_department: list[GroupAggregate]
    monthly: list[MonthlyBucket]
    expiring: list[LicenseORM]
    active_with_seats: list[LicenseORM]
    top_users: list[tuple[UserORM, int, Decimal]]
    department_names: dict[int, str]


@dataclass
class TemporalEnvelope:
    """Raw reads behind the temporal report."""

    creation: list[MonthlyBucket]
    creation_providers: dict[tuple[int, int], list[str]]
    trailing: list[MonthlyBucket]
    seasonal: list[MonthlyBucket]
    yearly: list[YearlyBucket]
    expirations: list[MonthlyBucket]


@dataclass
class AuditEnvelope:
    """Raw reads behind the audit report."""

    history: list[AssignmentORM]
    activity: list[tuple[int, int, datetime]]
    activity_users: dict[int, UserORM]
    changes: list[LicenseORM]
    compliance: ComplianceCounts
    department_access: list[tuple[int, int]]
    department_names: dict[int, str]


@dataclass
class DashboardEnvelope:
    """Raw reads behind the dashboard statistics."""

    counts: dict[str, int]
    used_seats_by_month: dict[int, int]
    by_provider: list[GroupAggregate]
    expiring: list[LicenseORM]


@dataclass
class ExportEnvelope:
    """Raw reads behind the full detail export."""

    licenses: list[LicenseORM]
    by_provider: list[GroupAggregate]
    by_department: list[GroupAggregate]
    top_users: list[tuple[UserORM, int, Decimal]]
    upcoming: list[LicenseORM]
    department_names: dict[int, str]


# =============================================================================
# Pipeline
# =============================================================================


class AggregationPipeline:
    """Issues the reads each report needs against an injected repository."""

    def __init__(self, repository: ReportingRepository) -> None:
        """Initialize pipeline with the reporting repository."""
        self.repository = repository

    async def department_names(self, department_ids: Iterable[int | None]) -> dict[int, str]:
        """Secondary lookup of department names for ids found by a grouped read."""
        ids = [i for i in department_ids if i is not None]
        if not ids:
            return {}
        return await degrade_read(
            "department names", self.repository.departments.names_by_ids(ids), {}
        )

    async def label_department_groups(self, groups: list[GroupAggregate]) -> dict[int, str]:
        """Fill in ``label`` of department groups and return the name lookup."""
        names = await self.department_names(g.key for g in groups)
        for group in groups:
            group.label = department_label(group.key, names)
        return names

    async def summary(self, predicate: LicensePredicate, now: datetime) -> SummaryEnvelope:
        """Reads for the summary report.

        The request window applies to counts and groupings. The trailing
        trend, expiring list and underutilization candidates keep only the
        equality filters and use their own fixed windows.
        """
        today = now.date()
        licenses = self.repository.licenses
        equality = predicate.equality_only()
        expiring_days = get_settings().expiring_soon_days

        reads = await run_concurrently({
            "by_status": licenses.group_by(predicate, "status"),
            "by_provider": licenses.group_by(predicate, "provider"),
            "by_department": licenses.group_by(predicate.narrow(has_department=True), "department"),
            "monthly": licenses.monthly_series(
                equality.narrow(created_from=resolve_month_window(SUMMARY_TREND_MONTHS, now).start)
            ),
            "expiring": licenses.list_licenses(
                equality.narrow(
                    active=True,
                    expires_from=today,
                    expires_until=today + timedelta(days=expiring_days),
                ),
                order_by="expiration",
                with_details=True,
            ),
            "active_with_seats": licenses.list_licenses(equality.narrow(active=True, has_seats=True)),
            "top_users": self.repository.users.top_by_assignments(TOP_USERS_LIMIT),
        })

        # Second phase: names for every department id seen above
        department_ids = {g.key for g in reads["by_department"]}
        department_ids.update(lic.department_id for lic in reads["expiring"])
        names = await self.department_names(department_ids)
        for group in reads["by_department"]:
            group.label = department_label(group.key, names)

        return SummaryEnvelope(department_names=names, **reads)

    async def temporal(self, months: int, provider: str | None, now: datetime) -> TemporalEnvelope:
        """Reads for the temporal report."""
        today = now.date()
        licenses = self.repository.licenses
        base = LicensePredicate(provider=provider)
        creation = base.narrow(created_from=resolve_month_window(months, now).start)

        reads = await run_concurrently({
            "creation": licenses.monthly_series(creation),
            "creation_providers": licenses.monthly_providers(creation),
            "trailing": licenses.monthly_series(
                base.narrow(created_from=resolve_month_window(PROJECTION_TRAILING_MONTHS, now).start)
            ),
            "seasonal": licenses.monthly_series(
                base.narrow(created_from=resolve_month_window(SEASONAL_LOOKBACK_MONTHS, now).start)
            ),
            "yearly": licenses.yearly_series(
                base.narrow(
                    created_from=resolve_month_window(YEAR_OVER_YEAR_LOOKBACK_MONTHS, now).start
                )
            ),
            "expirations": licenses.monthly_series(
                base.narrow(
                    active=True,
                    expires_from=today,
                    expires_until=shift_months(today, EXPIRATION_HORIZON_MONTHS),
                ),
                date_field="expiration",
            ),
        })
        return TemporalEnvelope(**reads)

    async def audit(
        self,
        history_window: DateWindow,
        changes_window: DateWindow,
        access_window: DateWindow,
        activity_since: datetime,
        today: date,
    ) -> AuditEnvelope:
        """Reads for the audit report."""
        licenses = self.repository.licenses
        active = LicensePredicate(active=True)

        reads = await run_concurrently({
            "history": self.repository.assignments.history(
                history_window.start, history_window.end, ASSIGNMENT_HISTORY_LIMIT
            ),
            "activity": self.repository.assignments.activity_by_user(activity_since),
            "changes": licenses.list_licenses(
                LicensePredicate(
                    updated_from=changes_window.start, updated_before=changes_window.end
                ),
                order_by="updated_at",
                descending=True,
                limit=LICENSE_CHANGES_LIMIT,
            ),
            "total_active": licenses.count(active),
            "over_allocated": licenses.count(active.narrow(over_allocated=True)),
            "under_utilized": licenses.count(
                active.narrow(utilization_below=COMPLIANCE_UNDERUTILIZED_RATIO)
            ),
            "expired_active": licenses.count(active.narrow(expires_before=today)),
            "department_access": licenses.count_assigned_by_department(
                LicensePredicate(), access_window.start, access_window.end
            ),
        })

        # Second phase: user and department details for the ids found above
        enrichment = await run_concurrently({
            "users": degrade_read(
                "user activity details",
                self.repository.users.get_by_ids(user_id for user_id, _, _ in reads["activity"]),
                {},
            ),
            "departments": self.department_names(
                department_id for department_id, _ in reads["department_access"]
            ),
        })

        return AuditEnvelope(
            history=reads["history"],
            activity=reads["activity"],
            activity_users=enrichment["users"],
            changes=reads["changes"],
            compliance=ComplianceCounts(
                total_active=reads["total_active"],
                over_allocated=reads["over_allocated"],
                under_utilized=reads["under_utilized"],
                expired_active=reads["expired_active"],
            ),
            department_access=reads["department_access"],
            department_names=enrichment["departments"],
        )

    async def dashboard(self, now: datetime) -> DashboardEnvelope:
        """Reads for the dashboard statistics.

        Month-over-month trends compare records created in the current
        calendar month with those created in the previous one.
        """
        today = now.date()
        licenses = self.repository.licenses
        users = self.repository.users
        expiring_days = timedelta(days=get_settings().expiring_soon_days)

        this_month = start_of_day(today.replace(day=1))
        last_month = start_of_day(add_months(today, -1))
        this_month_created = LicensePredicate(created_from=this_month)
        last_month_created = LicensePredicate(created_from=last_month, created_before=this_month)
        active = LicensePredicate(active=True)

        reads = await run_concurrently({
            "total_users": users.count(),
            "users_this_month": users.count(created_from=this_month),
            "users_last_month": users.count(created_from=last_month, created_before=this_month),
            "total_licenses": licenses.count(LicensePredicate()),
            "licenses_this_month": licenses.count(this_month_created),
            "licenses_last_month": licenses.count(last_month_created),
            "active_licenses": licenses.count(active),
            "active_this_month": licenses.count(this_month_created.narrow(active=True)),
            "active_last_month": licenses.count(last_month_created.narrow(active=True)),
            "expiring_soon": licenses.count(
                active.narrow(expires_from=today, expires_until=today + expiring_days)
            ),
            "expiring_this_month": licenses.count(
                active.narrow(
                    expires_from=this_month.date(), expires_until=this_month.date() + expiring_days
                )
            ),
            "expiring_last_month": licenses.count(
                active.narrow(
                    expires_from=last_month.date(), expires_until=last_month.date() + expiring_days
                )
            ),
            "expired": licenses.count(LicensePredicate(expires_before=today)),
            "used_seats_by_month": licenses.used_seats_by_start_month(active, today.year),
            "by_provider": licenses.group_by(LicensePredicate(), "provider"),
            "expiring": licenses.list_licenses(
                active.narrow(expires_from=today, expires_until=today + expiring_days),
                order_by="expiration",
                limit=TOP_USERS_LIMIT,
            ),
        })

        used_seats = reads.pop("used_seats_by_month")
        by_provider = reads.pop("by_provider")
        expiring = reads.pop("expiring")
        return DashboardEnvelope(
            counts=reads, used_seats_by_month=used_seats, by_provider=by_provider, expiring=expiring
        )

    async def export(self, predicate: LicensePredicate, today: date) -> ExportEnvelope:
        """Reads for the full detail export."""
        licenses = self.repository.licenses
        reads = await run_concurrently({
            "licenses": licenses.list_licenses(predicate, with_details=True, limit=EXPORT_ROW_LIMIT),
            "by_provider": licenses.group_by(predicate, "provider"),
            "by_department": licenses.group_by(predicate, "department"),
            "top_users": self.repository.users.top_by_assignments(EXPORT_ACTIVE_USERS_LIMIT),
            "upcoming": licenses.list_licenses(
                predicate.equality_only().narrow(
                    active=True,
                    expires_from=today,
                    expires_until=today + timedelta(days=UPCOMING_EXPIRATIONS_DAYS),
                ),
                order_by="expiration",
                with_details=True,
            ),
        })

        department_ids = {g.key for g in reads["by_department"]}
        department_ids.update(lic.department_id for lic in reads["licenses"])
        department_ids.update(lic.department_id for lic in reads["upcoming"])
        names = await self.department_names(department_ids)
        for group in reads["by_department"]:
            group.label = department_label(group.key, names)

        return ExportEnvelope(department_names=names, **reads)
