"""License domain enums and billing-cycle rules."""

from decimal import Decimal
from enum import StrEnum


class BillingCycle(StrEnum):
    """Invoice cadence of a license."""

    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    SEMIANNUAL = "SEMIANNUAL"
    YEARLY = "YEARLY"


class UserStatus(StrEnum):
    """Status of a licensed end user."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class LicenseStatusFilter(StrEnum):
    """Status filter accepted by report endpoints."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRING = "expiring"


# Cycle length in months, keyed by stored label. Older records use Spanish labels.
CYCLE_MONTHS: dict[str, int] = {
    BillingCycle.MONTHLY: 1,
    BillingCycle.QUARTERLY: 3,
    BillingCycle.SEMIANNUAL: 6,
    BillingCycle.YEARLY: 12,
    "Mensual": 1,
    "Trimestral": 3,
    "Semestral": 6,
    "Anual": 12,
}


def cycle_months(billing_cycle: str | None) -> int | None:
    """Get the length of a billing cycle in months, or None if unknown."""
    if billing_cycle is None:
        return None
    return CYCLE_MONTHS.get(billing_cycle)


def normalize_to_monthly(amount: Decimal, billing_cycle: str | None) -> Decimal:
    """Convert an installment amount into its monthly equivalent.

    Unknown cycles contribute nothing rather than being guessed.
    """
    months = cycle_months(billing_cycle)
    if not months:
        return Decimal("0")
    return amount / months
