"""Integration tests for the fixed reports against a seeded database."""

from datetime import date
from decimal import Decimal

import pytest

from licence_analytics.constants.reporting import NO_DEPARTMENT_LABEL
from licence_analytics.exceptions import RepositoryError, ValidationError
from licence_analytics.models.domain.license import UserStatus
from licence_analytics.services import report_service as report_service_module
from licence_analytics.services.report_service import ReportService


class TestSummaryReport:
    """Summary report sections."""

    @pytest.mark.anyio
    async def test_summary_block(self, repository, seeded) -> None:
        report = await ReportService(repository).get_summary()

        summary = report.summary
        assert summary.total_licenses == 5
        assert summary.active_licenses == 4
        assert summary.inactive_licenses == 1
        assert summary.total_seats == 29
        assert summary.used_seats == 20
        assert summary.utilization_rate == 69
        assert summary.monthly_cost == Decimal("1640")
        assert summary.annual_projection == Decimal("19680")

    @pytest.mark.anyio
    async def test_department_utilization_with_deleted_department(self, repository, seeded) -> None:
        report = await ReportService(repository).get_summary()

        rows = [(r.department_name, r.utilization_rate) for r in report.utilization_by_dept]
        # Slack references a department that no longer exists
        assert rows == [("Tecnologia", 120), ("Finanzas", 86), (NO_DEPARTMENT_LABEL, 0)]

    @pytest.mark.anyio
    async def test_expiring_soon_with_assigned_users(self, repository, seeded) -> None:
        report = await ReportService(repository).get_summary()

        assert len(report.expiring_soon) == 1
        expiring = report.expiring_soon[0]
        assert expiring.id == seeded.license_ids["microsoft-monthly"]
        assert expiring.days_left == 10
        assert expiring.department_name == "Finanzas"
        assert sorted(expiring.assigned_users) == ["Ana Perez", "Luis Gomez"]

    @pytest.mark.anyio
    async def test_underutilized_and_providers(self, repository, seeded) -> None:
        report = await ReportService(repository).get_summary()

        assert [(u.provider, u.potential_savings) for u in report.underutilized_licenses] == [("Adobe", 240)]
        assert [p.provider for p in report.licenses_by_provider] == ["Microsoft", "Adobe", "Slack", "Zoom"]
        assert len(report.top_users) == 3

    @pytest.mark.anyio
    async def test_monthly_trend_covers_current_month(self, repository, seeded, today: date) -> None:
        report = await ReportService(repository).get_summary()

        assert [(t.month, t.licenses_created) for t in report.monthly_trends] == [
            (f"{today.year:04d}-{today.month:02d}", 5)
        ]
        assert len(report.cost_projections) == 1

    @pytest.mark.anyio
    async def test_filters(self, repository, seeded) -> None:
        service = ReportService(repository)

        by_provider = await service.get_summary(provider="Adobe")
        inactive = await service.get_summary(status="inactive")

        assert by_provider.summary.total_licenses == 1
        assert inactive.summary.total_licenses == 1
        assert inactive.summary.active_licenses == 0

    @pytest.mark.anyio
    async def test_future_window_is_empty(self, repository, seeded, today: date) -> None:
        report = await ReportService(repository).get_summary(start_date=date(today.year + 1, 1, 1).isoformat())

        assert report.summary.total_licenses == 0
        assert report.licenses_by_provider == []

    @pytest.mark.anyio
    async def test_end_date_without_start(self, repository, seeded, today: date) -> None:
        service = ReportService(repository)

        through_today = await service.get_summary(end_date=today.isoformat())
        through_last_year = await service.get_summary(end_date=date(today.year - 1, 12, 31).isoformat())

        assert through_today.summary.total_licenses == 5
        assert through_last_year.summary.total_licenses == 0

    @pytest.mark.anyio
    async def test_invalid_status(self, repository) -> None:
        with pytest.raises(ValidationError):
            await ReportService(repository).get_summary(status="archived")

    @pytest.mark.anyio
    async def test_failing_section_degrades(self, repository, seeded, monkeypatch) -> None:
        def broken(*args, **kwargs):
            raise ZeroDivisionError("boom")

        monkeypatch.setattr(report_service_module, "find_underutilized", broken)

        report = await ReportService(repository).get_summary()

        assert report.underutilized_licenses == []
        assert report.summary.total_licenses == 5

    @pytest.mark.anyio
    async def test_failing_department_lookup_uses_sentinel(self, repository, seeded, monkeypatch) -> None:
        async def unavailable(ids):
            raise RepositoryError("department names")

        monkeypatch.setattr(repository.departments, "names_by_ids", unavailable)

        report = await ReportService(repository).get_summary()

        assert {r.department_name for r in report.utilization_by_dept} == {NO_DEPARTMENT_LABEL}

    @pytest.mark.anyio
    async def test_core_read_failure_propagates(self, repository, seeded, monkeypatch) -> None:
        async def unavailable(*args, **kwargs):
            raise RepositoryError("group licenses")

        monkeypatch.setattr(repository.licenses, "group_by", unavailable)

        with pytest.raises(RepositoryError):
            await ReportService(repository).get_summary()


class TestTemporalReport:
    """Temporal report sections."""

    @pytest.mark.anyio
    async def test_creation_and_projection(self, repository, seeded) -> None:
        report = await ReportService(repository).get_temporal(months=6)

        assert len(report.license_creation_trends) == 1
        creation = report.license_creation_trends[0]
        assert creation.licenses_created == 5
        assert creation.providers == "Adobe, Microsoft, Slack, Zoom"
        assert len(report.projections) == 6
        assert report.projections[0].projected_licenses == 5
        assert report.projections[0].confidence == 55
        assert report.summary.provider == "All"
        assert report.summary.total_months_analyzed == 6

    @pytest.mark.anyio
    async def test_expiration_trends(self, repository, seeded) -> None:
        report = await ReportService(repository).get_temporal()

        # Zoom already expired, Slack is inactive
        assert sum(t.expiring_licenses for t in report.expiration_trends) == 3
        months = [t.month for t in report.expiration_trends]
        assert months == sorted(months)

    @pytest.mark.anyio
    async def test_provider_filter(self, repository, seeded) -> None:
        report = await ReportService(repository).get_temporal(provider="Zoom")

        assert report.summary.provider == "Zoom"
        assert report.license_creation_trends[0].licenses_created == 1

    @pytest.mark.anyio
    @pytest.mark.parametrize("months", [0, 37])
    async def test_months_out_of_range(self, repository, months: int) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await ReportService(repository).get_temporal(months=months)
        assert exc_info.value.field == "months"


class TestAuditReport:
    """Audit report sections."""

    @pytest.mark.anyio
    async def test_compliance(self, repository, seeded) -> None:
        report = await ReportService(repository).get_audit()

        compliance = report.compliance
        assert compliance.total_active == 4
        assert compliance.over_allocated == 1
        assert compliance.under_utilized == 1
        assert compliance.expired_active == 1
        assert compliance.compliance_score == 50

    @pytest.mark.anyio
    async def test_history_and_activity(self, repository, seeded) -> None:
        report = await ReportService(repository).get_audit()

        assert len(report.assignment_history) == 3
        assert {e.name for e in report.user_activity} == {"Ana Perez", "Luis Gomez", "Maria Diaz"}
        assert {e.status for e in report.user_activity} == {UserStatus.ACTIVE}
        assert len(report.license_changes) == 5
        assert sorted((d.department_name, d.license_count) for d in report.department_access) == [
            ("Finanzas", 1),
            ("Tecnologia", 1),
        ]

    @pytest.mark.anyio
    async def test_past_window_excludes_recent_assignments(self, repository, seeded) -> None:
        report = await ReportService(repository).get_audit(start_date="2020-01-01", end_date="2020-12-31")

        assert report.assignment_history == []
        assert report.license_changes == []
        assert report.department_access == []
        # Compliance is always computed over current state
        assert report.compliance.total_active == 4


class TestDashboardStats:
    """Dashboard totals and trends."""

    @pytest.mark.anyio
    async def test_totals_and_trends(self, repository, seeded) -> None:
        stats = await ReportService(repository).get_dashboard_stats()

        assert stats.totals.total_users == 3
        assert stats.totals.total_licenses == 5
        assert stats.totals.active_licenses == 4
        assert stats.totals.expiring_soon == 1
        assert stats.totals.expired == 1
        # Everything was created this month and nothing last month
        assert stats.trends.licenses == 100
        assert stats.trends.users == 100

    @pytest.mark.anyio
    async def test_charts(self, repository, seeded) -> None:
        stats = await ReportService(repository).get_dashboard_stats()

        assert [p.month for p in stats.chart_data][:3] == ["Jan", "Feb", "Mar"]
        assert len(stats.chart_data) == 12
        assert (stats.most_used[0].provider, stats.most_used[0].percentage) == ("Microsoft", 40)
        assert [e.name for e in stats.expiring_soon] == ["Microsoft Office"]

    @pytest.mark.anyio
    async def test_empty_database(self, repository) -> None:
        stats = await ReportService(repository).get_dashboard_stats()

        assert stats.totals.total_licenses == 0
        assert stats.trends.licenses == 0
        assert stats.most_used == []


class TestOptions:
    """Filter and export options."""

    @pytest.mark.anyio
    async def test_filter_options(self, repository, seeded) -> None:
        options = await ReportService(repository).get_filter_options()

        assert options.providers == ["Adobe", "Microsoft", "Slack", "Zoom"]
        assert [d.name for d in options.departments] == ["Finanzas", "Tecnologia"]
        assert (options.status_counts.active, options.status_counts.inactive) == (4, 1)
        assert options.status_counts.expiring == 1

    @pytest.mark.anyio
    async def test_export_options(self, repository, seeded) -> None:
        options = await ReportService(repository).get_export_options()

        sizes = {f.id: f.estimated_size_kb for f in options.formats}
        assert sizes == {"csv": 3, "json": 10, "xlsx": 4}
        assert all(f.enabled and f.record_count == 5 for f in options.formats)
        assert options.statistics.total_cost == Decimal("1640")
        assert options.statistics.utilization_rate == 69

    @pytest.mark.anyio
    async def test_export_disabled_without_records(self, repository) -> None:
        options = await ReportService(repository).get_export_options()

        assert not any(f.enabled for f in options.formats)
