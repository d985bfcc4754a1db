"""License repository: aggregate primitives and report reads."""

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Select, and_, case, desc, distinct, exists, extract, func, select
from sqlalchemy.engine import Row
from sqlalchemy.orm import selectinload

from licence_analytics.models.domain.license import normalize_to_monthly
from licence_analytics.models.orm.assignment import AssignmentORM
from licence_analytics.models.orm.license import LicenseORM
from licence_analytics.repositories.base import BaseRepository
from licence_analytics.repositories.query import (
    DATE_COLUMNS,
    GROUP_COLUMNS,
    SUM_COLUMNS,
    GroupAggregate,
    LicensePredicate,
    MonthlyBucket,
    YearlyBucket,
    license_conditions,
)
from licence_analytics.utils.numbers import to_decimal, to_int


class LicenseRepository(BaseRepository[LicenseORM]):
    """Repository for license aggregate reads."""

    model = LicenseORM

    # -------------------------------------------------------------------------
    # Query-builder primitives
    # -------------------------------------------------------------------------

    async def count(self, predicate: LicensePredicate) -> int:
        """Count licenses matching a predicate."""
        value = await self._fetch_scalar(
            select(func.count(LicenseORM.id)).where(*license_conditions(predicate)),
            "count licenses",
        )
        return to_int(value)

    async def sum(self, predicate: LicensePredicate, *fields: str) -> dict[str, Decimal]:
        """Sum one or more numeric columns over matching licenses.

        Args:
            predicate: License filter
            *fields: Column names from ``SUM_COLUMNS``

        Returns:
            Mapping of field name to its total (0 when nothing matches)
        """
        unknown = [f for f in fields if f not in SUM_COLUMNS]
        if unknown:
            raise ValueError(f"Cannot sum unknown license fields: {', '.join(unknown)}")

        columns = [func.coalesce(func.sum(SUM_COLUMNS[f]), 0).label(f) for f in fields]
        row = await self._fetch_one(
            select(*columns).where(*license_conditions(predicate)),
            "sum licenses",
        )
        return {f: to_decimal(row._mapping[f] if row is not None else None) for f in fields}

    async def group_by(self, predicate: LicensePredicate, dimension: str) -> list[GroupAggregate]:
        """Count and sum licenses per value of a dimension.

        Rows are grouped by dimension and billing cycle in SQL, then folded per
        dimension value so the monthly-normalized installment cost can be
        computed per cycle.

        Args:
            predicate: License filter
            dimension: Key of ``GROUP_COLUMNS``

        Returns:
            One aggregate per distinct dimension value, ordered by key
        """
        if dimension not in GROUP_COLUMNS:
            raise ValueError(f"Cannot group licenses by {dimension}")

        key_column = GROUP_COLUMNS[dimension]
        group_columns = [key_column]
        if key_column is not LicenseORM.billing_cycle:
            group_columns.append(LicenseORM.billing_cycle)

        statement = (
            select(
                key_column.label("key"),
                LicenseORM.billing_cycle.label("billing_cycle"),
                func.count(LicenseORM.id).label("license_count"),
                func.sum(case((LicenseORM.active.is_(True), 1), else_=0)).label("active_count"),
                func.coalesce(func.sum(LicenseORM.unit_cost), 0).label("total_cost"),
                func.coalesce(func.sum(LicenseORM.installment_cost), 0).label("installment_cost"),
                func.coalesce(func.sum(LicenseORM.total_seats), 0).label("total_seats"),
                func.coalesce(func.sum(LicenseORM.used_seats), 0).label("used_seats"),
            )
            .where(*license_conditions(predicate))
            .group_by(*group_columns)
        )
        rows = await self._fetch_all(statement, f"group licenses by {dimension}")

        groups: dict[Any, GroupAggregate] = {}
        for row in rows:
            group = groups.get(row.key)
            if group is None:
                group = groups[row.key] = GroupAggregate(key=row.key)
            installment = to_decimal(row.installment_cost)
            group.license_count += to_int(row.license_count)
            group.active_count += to_int(row.active_count)
            group.total_cost += to_decimal(row.total_cost)
            group.installment_cost += installment
            group.monthly_cost += normalize_to_monthly(installment, row.billing_cycle)
            group.total_seats += to_int(row.total_seats)
            group.used_seats += to_int(row.used_seats)
            if row.billing_cycle:
                group.billing_cycles.add(row.billing_cycle)

        return sorted(groups.values(), key=lambda g: (g.key is None, str(g.key)))

    async def raw_aggregate(self, statement: Select[Any], operation: str = "raw aggregate") -> list[Row[Any]]:
        """Run a caller-built aggregate statement and return its rows."""
        return await self._fetch_all(statement, operation)

    # -------------------------------------------------------------------------
    # Time series
    # -------------------------------------------------------------------------

    async def monthly_series(
        self, predicate: LicensePredicate, date_field: str = "created_at"
    ) -> list[MonthlyBucket]:
        """Aggregate licenses per calendar month of a date column, newest first.

        Months without matching licenses are absent from the result.
        """
        column = DATE_COLUMNS[date_field]
        year = extract("year", column)
        month = extract("month", column)
        statement = (
            select(
                year.label("year"),
                month.label("month"),
                func.count(LicenseORM.id).label("license_count"),
                func.coalesce(func.sum(LicenseORM.total_seats), 0).label("total_seats"),
                func.coalesce(func.sum(LicenseORM.used_seats), 0).label("used_seats"),
                func.coalesce(func.sum(LicenseORM.unit_cost), 0).label("total_cost"),
            )
            .where(column.is_not(None), *license_conditions(predicate))
            .group_by(year, month)
            .order_by(desc(year), desc(month))
        )
        rows = await self.raw_aggregate(statement, f"monthly series by {date_field}")
        return [
            MonthlyBucket(
                year=to_int(row.year),
                month=to_int(row.month),
                license_count=to_int(row.license_count),
                total_seats=to_int(row.total_seats),
                used_seats=to_int(row.used_seats),
                total_cost=to_decimal(row.total_cost),
            )
            for row in rows
        ]

    async def monthly_providers(self, predicate: LicensePredicate) -> dict[tuple[int, int], list[str]]:
        """Distinct providers per creation month, alphabetically sorted."""
        year = extract("year", LicenseORM.created_at)
        month = extract("month", LicenseORM.created_at)
        statement = (
            select(year.label("year"), month.label("month"), LicenseORM.provider)
            .where(*license_conditions(predicate))
            .group_by(year, month, LicenseORM.provider)
        )
        rows = await self.raw_aggregate(statement, "monthly providers")

        providers: dict[tuple[int, int], list[str]] = defaultdict(list)
        for row in rows:
            providers[(to_int(row.year), to_int(row.month))].append(row.provider)
        return {key: sorted(names) for key, names in providers.items()}

    async def yearly_series(self, predicate: LicensePredicate) -> list[YearlyBucket]:
        """Aggregate licenses per creation year, newest first."""
        year = extract("year", LicenseORM.created_at)
        statement = (
            select(
                year.label("year"),
                func.count(LicenseORM.id).label("license_count"),
                func.coalesce(func.sum(LicenseORM.total_seats), 0).label("total_seats"),
                func.coalesce(func.sum(LicenseORM.unit_cost), 0).label("total_cost"),
                func.count(distinct(LicenseORM.provider)).label("unique_providers"),
            )
            .where(*license_conditions(predicate))
            .group_by(year)
            .order_by(desc(year))
        )
        rows = await self.raw_aggregate(statement, "yearly series")
        return [
            YearlyBucket(
                year=to_int(row.year),
                license_count=to_int(row.license_count),
                total_seats=to_int(row.total_seats),
                total_cost=to_decimal(row.total_cost),
                unique_providers=to_int(row.unique_providers),
            )
            for row in rows
        ]

    async def used_seats_by_start_month(self, predicate: LicensePredicate, year: int) -> dict[int, int]:
        """Sum used seats per start month of the given calendar year."""
        start_year = extract("year", LicenseORM.start_date)
        start_month = extract("month", LicenseORM.start_date)
        statement = (
            select(
                start_month.label("month"),
                func.coalesce(func.sum(LicenseORM.used_seats), 0).label("used_seats"),
            )
            .where(LicenseORM.start_date.is_not(None), start_year == year, *license_conditions(predicate))
            .group_by(start_month)
        )
        rows = await self.raw_aggregate(statement, "used seats by start month")
        return {to_int(row.month): to_int(row.used_seats) for row in rows}

    # -------------------------------------------------------------------------
    # Record lists
    # -------------------------------------------------------------------------

    async def list_licenses(
        self,
        predicate: LicensePredicate,
        order_by: str = "id",
        descending: bool = False,
        limit: int | None = None,
        with_details: bool = False,
    ) -> list[LicenseORM]:
        """List licenses matching a predicate.

        Args:
            predicate: License filter
            order_by: One of id, expiration, updated_at, created_at
            descending: Sort direction
            limit: Optional maximum number of rows
            with_details: Eager-load department and assignments with their users

        Returns:
            Detached license rows, safe to read after the session closes
        """
        sort_columns = {
            "id": LicenseORM.id,
            "expiration": LicenseORM.expiration,
            "updated_at": LicenseORM.updated_at,
            "created_at": LicenseORM.created_at,
        }
        column = sort_columns.get(order_by, LicenseORM.id)
        statement = select(LicenseORM).where(*license_conditions(predicate))
        statement = statement.order_by(desc(column) if descending else column, LicenseORM.id)
        if limit is not None:
            statement = statement.limit(limit)
        if with_details:
            statement = statement.options(
                selectinload(LicenseORM.department),
                selectinload(LicenseORM.assignments).selectinload(AssignmentORM.user),
            )
        return await self._fetch_scalars(statement, "list licenses")

    async def distinct_providers(self) -> list[str]:
        """All provider names, alphabetically."""
        return await self._fetch_scalars(
            select(distinct(LicenseORM.provider)).order_by(LicenseORM.provider),
            "distinct providers",
        )

    async def count_assigned_by_department(
        self, predicate: LicensePredicate, assigned_from: datetime, assigned_before: datetime
    ) -> list[tuple[int, int]]:
        """Count licenses per department that gained an assignment within ``[assigned_from, assigned_before)``.

        Returns:
            (department_id, license_count) pairs, highest count first
        """
        recently_assigned = exists().where(
            AssignmentORM.license_id == LicenseORM.id,
            AssignmentORM.assigned_at >= assigned_from,
            AssignmentORM.assigned_at < assigned_before,
        )
        statement = (
            select(LicenseORM.department_id, func.count(LicenseORM.id).label("license_count"))
            .where(
                LicenseORM.department_id.is_not(None),
                recently_assigned,
                *license_conditions(predicate),
            )
            .group_by(LicenseORM.department_id)
            .order_by(desc("license_count"), LicenseORM.department_id)
        )
        rows = await self.raw_aggregate(statement, "department access")
        return [(to_int(row.department_id), to_int(row.license_count)) for row in rows]

    async def expiration_counts(self, today: date, expiring_until: date) -> dict[str, int]:
        """Active licenses expiring soon, and active licenses already expired."""
        row = await self._fetch_one(
            select(
                func.sum(
                    case(
                        (and_(LicenseORM.expiration >= today, LicenseORM.expiration <= expiring_until), 1),
                        else_=0,
                    )
                ).label("expiring"),
                func.sum(case((LicenseORM.expiration < today, 1), else_=0)).label("expired"),
            ).where(LicenseORM.active.is_(True)),
            "expiration counts",
        )
        if row is None:
            return {"expiring": 0, "expired": 0}
        return {"expiring": to_int(row.expiring), "expired": to_int(row.expired)}
