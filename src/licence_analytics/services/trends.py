"""Trend and projection calculators.

Pure functions over aggregate results: no I/O, no clock reads. Callers pass
the current date in explicitly.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from licence_analytics.constants.reporting import (
    PROJECTION_BASE_CONFIDENCE,
    PROJECTION_CONFIDENCE_STEP,
    PROJECTION_HORIZON_MONTHS,
    PROJECTION_MIN_CONFIDENCE,
)
from licence_analytics.repositories.query import MonthlyBucket
from licence_analytics.utils.dates import add_months, month_key
from licence_analytics.utils.numbers import ZERO, quantize, round_half_up, to_decimal


def percent_change(current: int | Decimal, previous: int | Decimal) -> int:
    """Percent change between two adjacent periods.

    ``round((current - previous) / previous * 100)`` when the previous value
    is positive. Without a previous value, any growth counts as 100%.
    """
    current_value = to_decimal(current)
    previous_value = to_decimal(previous)
    if previous_value > 0:
        return round_half_up((current_value - previous_value) / previous_value * 100)
    return 100 if current_value > 0 else 0


def growth_percent(current: Decimal, previous: Decimal) -> float:
    """Unrounded growth in percent to two decimals; 0 without a positive previous value."""
    if previous <= 0:
        return 0.0
    return float(quantize((current - previous) / previous * 100, 2))


def projection_confidence(month_offset: int) -> int:
    """Confidence of a forward projection ``month_offset`` months ahead (1-indexed)."""
    return max(
        PROJECTION_BASE_CONFIDENCE - PROJECTION_CONFIDENCE_STEP * month_offset,
        PROJECTION_MIN_CONFIDENCE,
    )


@dataclass(frozen=True)
class Projection:
    """Projected figures for one future month."""

    month: str
    month_offset: int
    licenses: int
    cost: Decimal
    seats: int
    confidence: int


def project_forward(
    trailing: Sequence[MonthlyBucket],
    today: date,
    horizon: int = PROJECTION_HORIZON_MONTHS,
) -> list[Projection]:
    """Project the next months as the trailing monthly means, without compounding.

    Args:
        trailing: Monthly buckets of the trailing window (months with data only)
        today: Current date; projections start the month after it
        horizon: Number of months to project

    Returns:
        One projection per future month, confidence decreasing with distance
    """
    if trailing:
        count = len(trailing)
        mean_licenses = sum(to_decimal(b.license_count) for b in trailing) / count
        mean_cost = sum((b.total_cost for b in trailing), ZERO) / count
        mean_seats = sum(to_decimal(b.total_seats) for b in trailing) / count
    else:
        mean_licenses = mean_cost = mean_seats = ZERO

    projections = []
    for offset in range(1, horizon + 1):
        future = add_months(today, offset)
        projections.append(
            Projection(
                month=month_key(future.year, future.month),
                month_offset=offset,
                licenses=round_half_up(mean_licenses),
                cost=quantize(mean_cost, 2),
                seats=round_half_up(mean_seats),
                confidence=projection_confidence(offset),
            )
        )
    return projections


@dataclass(frozen=True)
class CostProjectionPoint:
    """Cost projection derived from one historical month."""

    month: str
    current_cost: Decimal
    growth_rate: Decimal
    projected_cost: Decimal
    savings_potential: int


def historical_cost_projections(
    series: Sequence[tuple[str, Decimal]],
    utilization: Decimal,
) -> list[CostProjectionPoint]:
    """Project each month's cost from its growth over the next-older month.

    Args:
        series: (month, cost) pairs ordered newest first
        utilization: Current seat utilization as a fraction in [0, 1]

    Returns:
        One point per month, in the same order as ``series``
    """
    points = []
    for index, (month, cost) in enumerate(series):
        older = series[index + 1][1] if index + 1 < len(series) else ZERO
        growth_rate = (cost - older) / older if older > 0 else ZERO
        points.append(
            CostProjectionPoint(
                month=month,
                current_cost=cost,
                growth_rate=growth_rate,
                projected_cost=cost * (1 + growth_rate),
                savings_potential=savings_potential(cost, utilization),
            )
        )
    return points


def savings_potential(cost: Decimal, utilization: Decimal) -> int:
    """Cost attributable to unused capacity, rounded and floored at 0."""
    return max(0, round_half_up(cost * (1 - utilization)))


@dataclass(frozen=True)
class SeasonalEntry:
    """One month of the seasonal window with the window-wide mean."""

    month: str
    month_number: int
    licenses_created: int
    total_cost: Decimal
    avg_monthly_licenses: Decimal


def seasonal_analysis(buckets: Sequence[MonthlyBucket]) -> list[SeasonalEntry]:
    """Annotate monthly buckets with the mean license count over the whole window.

    Entries are ordered oldest month first, whatever the order of ``buckets``.
    """
    if not buckets:
        return []
    window_mean = sum(to_decimal(b.license_count) for b in buckets) / len(buckets)
    return [
        SeasonalEntry(
            month=b.key,
            month_number=b.month,
            licenses_created=b.license_count,
            total_cost=b.total_cost,
            avg_monthly_licenses=quantize(window_mean, 2),
        )
        for b in sorted(buckets, key=lambda b: (b.year, b.month))
    ]


def average_monthly_growth(buckets: Sequence[MonthlyBucket]) -> float:
    """Mean month-over-month growth of license creation, in percent.

    ``buckets`` is newest first. Pairs without a positive older value are skipped.
    """
    rates = [
        (to_decimal(newer.license_count) - older.license_count) / older.license_count * 100
        for newer, older in zip(buckets, buckets[1:])
        if older.license_count > 0
    ]
    if not rates:
        return 0.0
    return float(quantize(sum(rates, ZERO) / len(rates), 2))
