"""License predicates and aggregate building blocks.

``LicensePredicate`` is the repository-level form of a report filter. The
filter resolver produces it; repositories turn it into SQL conditions. Keeping
it immutable lets one request derive several narrowed predicates (active
only, expired only, ...) from the same base without aliasing bugs.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import ColumnElement

from licence_analytics.models.orm.license import LicenseORM
from licence_analytics.utils.dates import month_key
from licence_analytics.utils.numbers import ZERO


@dataclass(frozen=True)
class LicensePredicate:
    """Normalized filter over the licenses table.

    Date bounds on creation and update time are half-open ``[from, before)``.
    Expiration bounds are inclusive on ``expires_from``/``expires_until`` and
    exclusive on ``expires_before``.
    """

    created_from: datetime | None = None
    created_before: datetime | None = None
    updated_from: datetime | None = None
    updated_before: datetime | None = None
    provider: str | None = None
    department_id: int | None = None
    billing_cycle: str | None = None
    active: bool | None = None
    expires_from: date | None = None
    expires_until: date | None = None
    expires_before: date | None = None
    has_department: bool = False
    has_seats: bool = False
    over_allocated: bool = False
    utilization_below: float | None = None

    def narrow(self, **changes: Any) -> "LicensePredicate":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def equality_only(self) -> "LicensePredicate":
        """Keep provider/department/billing-cycle filters and drop every range."""
        return LicensePredicate(
            provider=self.provider,
            department_id=self.department_id,
            billing_cycle=self.billing_cycle,
        )


def license_conditions(predicate: LicensePredicate) -> list[ColumnElement[bool]]:
    """Translate a predicate into SQLAlchemy WHERE conditions."""
    conditions: list[ColumnElement[bool]] = []
    lic = LicenseORM

    if predicate.created_from is not None:
        conditions.append(lic.created_at >= predicate.created_from)
    if predicate.created_before is not None:
        conditions.append(lic.created_at < predicate.created_before)
    if predicate.updated_from is not None:
        conditions.append(lic.updated_at >= predicate.updated_from)
    if predicate.updated_before is not None:
        conditions.append(lic.updated_at < predicate.updated_before)
    if predicate.provider is not None:
        conditions.append(lic.provider == predicate.provider)
    if predicate.department_id is not None:
        conditions.append(lic.department_id == predicate.department_id)
    if predicate.billing_cycle is not None:
        conditions.append(lic.billing_cycle == predicate.billing_cycle)
    if predicate.active is not None:
        conditions.append(lic.active.is_(predicate.active))
    if predicate.expires_from is not None:
        conditions.append(lic.expiration >= predicate.expires_from)
    if predicate.expires_until is not None:
        conditions.append(lic.expiration <= predicate.expires_until)
    if predicate.expires_before is not None:
        conditions.append(lic.expiration < predicate.expires_before)
    if predicate.has_department:
        conditions.append(lic.department_id.is_not(None))
    if predicate.has_seats:
        conditions.append(lic.total_seats > 0)
    if predicate.over_allocated:
        conditions.append(lic.used_seats > lic.total_seats)
    if predicate.utilization_below is not None:
        conditions.append(lic.total_seats > 0)
        conditions.append(lic.used_seats < lic.total_seats * predicate.utilization_below)

    return conditions


# Columns a caller may sum or group by, keyed by their public name
SUM_COLUMNS = {
    "unit_cost": LicenseORM.unit_cost,
    "installment_cost": LicenseORM.installment_cost,
    "penalty_cost": LicenseORM.penalty_cost,
    "total_seats": LicenseORM.total_seats,
    "used_seats": LicenseORM.used_seats,
}

GROUP_COLUMNS = {
    "provider": LicenseORM.provider,
    "department": LicenseORM.department_id,
    "billingCycle": LicenseORM.billing_cycle,
    "status": LicenseORM.active,
}

DATE_COLUMNS = {
    "created_at": LicenseORM.created_at,
    "expiration": LicenseORM.expiration,
    "start_date": LicenseORM.start_date,
}


@dataclass
class GroupAggregate:
    """Count and sums for one group of licenses.

    ``label`` starts empty and is filled in by enrichment for dimensions
    whose key is an id.
    """

    key: Any
    license_count: int = 0
    active_count: int = 0
    total_cost: Decimal = ZERO
    installment_cost: Decimal = ZERO
    monthly_cost: Decimal = ZERO
    total_seats: int = 0
    used_seats: int = 0
    billing_cycles: set[str] = field(default_factory=set)
    label: str = ""

    @property
    def available_seats(self) -> int:
        return self.total_seats - self.used_seats


@dataclass(frozen=True)
class MonthlyBucket:
    """Per-month aggregate of licenses bucketed by a date column."""

    year: int
    month: int
    license_count: int
    total_seats: int
    used_seats: int
    total_cost: Decimal

    @property
    def key(self) -> str:
        return month_key(self.year, self.month)


@dataclass(frozen=True)
class YearlyBucket:
    """Per-year aggregate of licenses by creation date."""

    year: int
    license_count: int
    total_seats: int
    total_cost: Decimal
    unique_providers: int
