"""Compliance and utilization scoring.

Pure functions: the aggregation pipeline gathers the counts, these turn them
into rates, scores and the underutilization list.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import StrEnum

from licence_analytics.constants.reporting import (
    COMPLIANCE_UNDERUTILIZED_RATIO,
    UNDERUTILIZED_LIMIT,
    UNDERUTILIZED_THRESHOLD,
)
from licence_analytics.models.orm.license import LicenseORM
from licence_analytics.utils.numbers import ZERO, quantize, round_half_up, to_decimal


class ComplianceFlag(StrEnum):
    """Compliance problems a single license can have."""

    OVER_ALLOCATED = "over_allocated"
    UNDER_UTILIZED = "under_utilized"
    EXPIRED_ACTIVE = "expired_active"


def utilization_rate(used: int, total: int) -> int:
    """Used seats as a whole percentage of total seats; 0 when there are no seats."""
    if total <= 0:
        return 0
    return round_half_up(Decimal(used) / Decimal(total) * 100)


def utilization_fraction(used: int, total: int) -> Decimal:
    """Used seats as a fraction of total seats; 0 when there are no seats."""
    if total <= 0:
        return ZERO
    return Decimal(used) / Decimal(total)


def utilization_percentage(used: int, total: int) -> float:
    """Utilization in percent with two decimals."""
    return float(quantize(utilization_fraction(used, total) * 100, 2))


def compliance_score(total_active: int, over_allocated: int, expired_active: int) -> int:
    """Share of active licenses that are neither over-allocated nor expired.

    No active licenses means nothing is out of compliance, so the score is 100.
    """
    if total_active <= 0:
        return 100
    compliant = total_active - over_allocated - expired_active
    return min(100, max(0, round_half_up(Decimal(compliant) / Decimal(total_active) * 100)))


@dataclass(frozen=True)
class ComplianceCounts:
    """Independent counts over active licenses."""

    total_active: int
    over_allocated: int
    under_utilized: int
    expired_active: int

    @property
    def score(self) -> int:
        return compliance_score(self.total_active, self.over_allocated, self.expired_active)


def license_flags(lic: LicenseORM, today: date) -> list[ComplianceFlag]:
    """Compliance flags of one license. Inactive licenses are never flagged."""
    if not lic.active:
        return []
    flags = []
    if lic.used_seats > lic.total_seats:
        flags.append(ComplianceFlag.OVER_ALLOCATED)
    if lic.total_seats > 0 and lic.used_seats < lic.total_seats * COMPLIANCE_UNDERUTILIZED_RATIO:
        flags.append(ComplianceFlag.UNDER_UTILIZED)
    if lic.expiration is not None and lic.expiration < today:
        flags.append(ComplianceFlag.EXPIRED_ACTIVE)
    return flags


@dataclass(frozen=True)
class UnderutilizedEntry:
    """A license whose seats are mostly unused."""

    license: LicenseORM
    utilization: Decimal
    potential_savings: int


def find_underutilized(
    licenses: Iterable[LicenseORM],
    threshold: float = UNDERUTILIZED_THRESHOLD,
    limit: int = UNDERUTILIZED_LIMIT,
) -> list[UnderutilizedEntry]:
    """Paid licenses below the utilization threshold, biggest savings first.

    Args:
        licenses: Active licenses
        threshold: Utilization fraction below which a license is listed
        limit: Maximum number of entries

    Returns:
        At most ``limit`` entries sorted by potential savings, descending
    """
    entries = []
    for lic in licenses:
        if not lic.active or lic.total_seats <= 0:
            continue
        unit_cost = to_decimal(lic.unit_cost)
        if unit_cost <= 0:
            continue
        utilization = utilization_fraction(lic.used_seats, lic.total_seats)
        if utilization >= Decimal(str(threshold)):
            continue
        entries.append(
            UnderutilizedEntry(
                license=lic,
                utilization=utilization,
                potential_savings=round_half_up(unit_cost * (1 - utilization)),
            )
        )
    entries.sort(key=lambda e: (-e.potential_savings, e.license.id))
    return entries[:limit]
