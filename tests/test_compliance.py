"""Tests for utilization and compliance scoring."""

from datetime import date
from decimal import Decimal

import pytest

from licence_analytics.models.orm.license import LicenseORM
from licence_analytics.services.compliance import (
    ComplianceCounts,
    ComplianceFlag,
    compliance_score,
    find_underutilized,
    license_flags,
    utilization_percentage,
    utilization_rate,
)

TODAY = date(2025, 6, 15)


def _license(id: int, total: int, used: int, unit_cost: str = "100", active: bool = True, **kwargs) -> LicenseORM:
    return LicenseORM(
        id=id,
        provider="Acme",
        total_seats=total,
        used_seats=used,
        unit_cost=Decimal(unit_cost),
        active=active,
        **kwargs,
    )


class TestUtilization:
    """Seat utilization helpers."""

    @pytest.mark.parametrize(
        ("used", "total", "expected"),
        [(0, 0, 0), (5, 10, 50), (1, 3, 33), (2, 3, 67), (12, 10, 120)],
    )
    def test_rate(self, used: int, total: int, expected: int) -> None:
        assert utilization_rate(used, total) == expected

    def test_percentage_two_decimals(self) -> None:
        assert utilization_percentage(1, 3) == 33.33
        assert utilization_percentage(0, 0) == 0.0


class TestComplianceScore:
    """Share of active licenses without hard compliance problems."""

    def test_no_active_licenses_is_fully_compliant(self) -> None:
        assert compliance_score(0, 0, 0) == 100

    def test_over_allocated_and_expired_reduce_score(self) -> None:
        assert compliance_score(4, 1, 1) == 50

    def test_clamped_at_zero(self) -> None:
        # A license can be both over-allocated and expired
        assert compliance_score(2, 2, 2) == 0

    def test_under_utilization_does_not_affect_score(self) -> None:
        counts = ComplianceCounts(total_active=10, over_allocated=0, under_utilized=9, expired_active=0)
        assert counts.score == 100


class TestLicenseFlags:
    """Per-license compliance flags."""

    def test_all_flags(self) -> None:
        over = _license(1, 5, 6, expiration=date(2025, 6, 14))
        under = _license(2, 10, 4)

        assert license_flags(over, TODAY) == [ComplianceFlag.OVER_ALLOCATED, ComplianceFlag.EXPIRED_ACTIVE]
        assert license_flags(under, TODAY) == [ComplianceFlag.UNDER_UTILIZED]

    def test_expiring_today_is_not_expired(self) -> None:
        lic = _license(1, 10, 10, expiration=TODAY)
        assert license_flags(lic, TODAY) == []

    def test_inactive_licenses_are_never_flagged(self) -> None:
        lic = _license(1, 5, 9, active=False, expiration=date(2020, 1, 1))
        assert license_flags(lic, TODAY) == []


class TestFindUnderutilized:
    """Underutilized license selection."""

    def test_sorted_by_potential_savings(self) -> None:
        licenses = [
            _license(1, 10, 5, unit_cost="100"),   # 50% -> saves 50
            _license(2, 10, 1, unit_cost="300"),   # 10% -> saves 270
            _license(3, 10, 6, unit_cost="1000"),  # at threshold, excluded
        ]

        entries = find_underutilized(licenses)

        assert [e.license.id for e in entries] == [2, 1]
        assert [e.potential_savings for e in entries] == [270, 50]

    def test_skips_free_seatless_and_inactive(self) -> None:
        licenses = [
            _license(1, 10, 0, unit_cost="0"),
            _license(2, 0, 0),
            _license(3, 10, 0, active=False),
        ]

        assert find_underutilized(licenses) == []

    def test_limit(self) -> None:
        licenses = [_license(i, 10, 0, unit_cost=str(i)) for i in range(1, 16)]

        entries = find_underutilized(licenses, limit=3)

        assert [e.license.id for e in entries] == [15, 14, 13]
