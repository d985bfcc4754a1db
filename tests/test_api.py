"""HTTP tests for the report endpoints."""

import pytest
from httpx import AsyncClient

REPORTS = "/api/v1/reports"


class TestHealthEndpoint:
    """GET /health."""

    @pytest.mark.anyio
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
        assert response.headers["X-Content-Type-Options"] == "nosniff"


class TestFixedReports:
    """Summary, temporal, audit and dashboard endpoints."""

    @pytest.mark.anyio
    async def test_summary_is_camel_case(self, client: AsyncClient, seeded) -> None:
        response = await client.get(f"{REPORTS}/summary")

        assert response.status_code == 200
        data = response.json()
        assert data["summary"]["totalLicenses"] == 5
        assert data["summary"]["monthlyCost"] == 1640.0
        assert "utilizationByDept" in data

    @pytest.mark.anyio
    async def test_summary_filters(self, client: AsyncClient, seeded) -> None:
        response = await client.get(f"{REPORTS}/summary", params={"provider": "Microsoft", "status": "active"})

        assert response.status_code == 200
        assert response.json()["summary"]["totalLicenses"] == 2

    @pytest.mark.anyio
    async def test_end_date_only(self, client: AsyncClient, seeded, today) -> None:
        response = await client.get(f"{REPORTS}/summary", params={"endDate": today.isoformat()})

        assert response.status_code == 200
        assert response.json()["summary"]["totalLicenses"] == 5

    @pytest.mark.anyio
    async def test_invalid_date_is_400(self, client: AsyncClient) -> None:
        response = await client.get(f"{REPORTS}/summary", params={"startDate": "not-a-date"})

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["field"] == "startDate"

    @pytest.mark.anyio
    async def test_temporal_months_bounds(self, client: AsyncClient) -> None:
        response = await client.get(f"{REPORTS}/temporal", params={"months": 0})

        assert response.status_code == 422

    @pytest.mark.anyio
    async def test_temporal(self, client: AsyncClient, seeded) -> None:
        response = await client.get(f"{REPORTS}/temporal", params={"months": 3})

        assert response.status_code == 200
        assert len(response.json()["projections"]) == 6

    @pytest.mark.anyio
    async def test_audit(self, client: AsyncClient, seeded) -> None:
        response = await client.get(f"{REPORTS}/audit")

        assert response.status_code == 200
        assert response.json()["compliance"]["complianceScore"] == 50

    @pytest.mark.anyio
    async def test_dashboard(self, client: AsyncClient, seeded) -> None:
        response = await client.get("/api/v1/dashboard/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["totals"]["totalUsers"] == 3
        assert len(data["chartData"]) == 12


class TestCustomReports:
    """Custom report generation and export."""

    @pytest.mark.anyio
    async def test_generate(self, client: AsyncClient, seeded) -> None:
        response = await client.post(
            f"{REPORTS}/custom",
            json={"config": {"metrics": ["totalLicenses", "totalCost"], "groupBy": "provider"}},
        )

        assert response.status_code == 200
        data = response.json()
        assert [m["value"] for m in data["metrics"]] == [4.0, 1640.0]
        assert data["breakdown"]["rows"][0]["label"] == "Adobe"
        assert data["breakdown"]["rows"][0]["metrics"]["totalCost"] == {"status": "computed", "value": 300.0}

    @pytest.mark.anyio
    async def test_unsafe_provider_filter_is_400(self, client: AsyncClient, seeded) -> None:
        response = await client.post(
            f"{REPORTS}/custom",
            json={"config": {"metrics": ["totalLicenses"], "filters": {"provider": "Nonexistent: Corp"}}},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["field"] == "provider"

    @pytest.mark.anyio
    async def test_unknown_metric(self, client: AsyncClient) -> None:
        response = await client.post(f"{REPORTS}/custom", json={"config": {"metrics": ["revenue"]}})

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "UNKNOWN_METRIC"
        assert body["metric_id"] == "revenue"

    @pytest.mark.anyio
    async def test_empty_metrics(self, client: AsyncClient) -> None:
        response = await client.post(f"{REPORTS}/custom", json={"config": {"metrics": []}})

        assert response.status_code == 400
        assert response.json()["field"] == "metrics"

    @pytest.mark.anyio
    async def test_unknown_config_key_rejected(self, client: AsyncClient) -> None:
        response = await client.post(
            f"{REPORTS}/custom", json={"config": {"metrics": ["totalCost"], "sql": "SELECT 1"}}
        )

        assert response.status_code == 422

    @pytest.mark.anyio
    async def test_export_csv(self, client: AsyncClient, seeded) -> None:
        response = await client.post(
            f"{REPORTS}/custom-export",
            json={"config": {"name": "Costs", "metrics": ["totalCost"], "groupBy": "billingCycle"}},
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        disposition = response.headers["content-disposition"]
        assert disposition.startswith('attachment; filename="reporte_personalizado_')
        assert disposition.endswith('.csv"')
        assert response.content.startswith(b"\xef\xbb\xbf")
        assert "DETAILED ANALYSIS - GROUPED BY BILLING CYCLE" in response.content.decode("utf-8-sig")

    @pytest.mark.anyio
    async def test_export_requires_metrics(self, client: AsyncClient) -> None:
        response = await client.post(f"{REPORTS}/custom-export", json={"config": {"name": "Empty"}})

        assert response.status_code == 400

    @pytest.mark.anyio
    async def test_builder_options(self, client: AsyncClient, seeded) -> None:
        response = await client.get(f"{REPORTS}/builder-options")

        assert response.status_code == 200
        data = response.json()
        assert data["statistics"]["repositoryAvailable"] is True
        assert {o["id"] for o in data["groupByOptions"]} >= {"provider", "department", "billingCycle"}


class TestExports:
    """Full export and options endpoints."""

    @pytest.mark.anyio
    async def test_full_export_download(self, client: AsyncClient, seeded) -> None:
        response = await client.get(f"{REPORTS}/export", params={"format": "csv"})

        assert response.status_code == 200
        assert 'filename="licencias_reporte_' in response.headers["content-disposition"]

    @pytest.mark.anyio
    async def test_unsupported_format(self, client: AsyncClient) -> None:
        response = await client.get(f"{REPORTS}/export", params={"format": "pdf"})

        assert response.status_code == 400
        assert response.json()["field"] == "format"

    @pytest.mark.anyio
    async def test_filter_and_export_options(self, client: AsyncClient, seeded) -> None:
        filters = await client.get(f"{REPORTS}/filter-options")
        exports = await client.get(f"{REPORTS}/export-options")

        assert filters.json()["statusCounts"]["active"] == 4
        assert [f["id"] for f in exports.json()["formats"]] == ["csv", "json", "xlsx"]


class TestSavedReports:
    """Saved report lifecycle."""

    @pytest.mark.anyio
    async def test_crud(self, client: AsyncClient) -> None:
        payload = {
            "name": "Monthly costs",
            "description": "Cost per billing cycle",
            "config": {"metrics": ["totalCost", "monthlyCost"], "groupBy": "billingCycle"},
        }

        created = await client.post(f"{REPORTS}/saved", json=payload)
        assert created.status_code == 201
        report = created.json()
        assert report["name"] == "Monthly costs"
        assert report["config"]["groupBy"] == "billingCycle"
        report_id = report["id"]

        listing = await client.get(f"{REPORTS}/saved")
        assert listing.json()["total"] == 1

        payload["name"] = "Renamed"
        updated = await client.put(f"{REPORTS}/saved/{report_id}", json=payload)
        assert updated.status_code == 200
        assert updated.json()["name"] == "Renamed"
        assert updated.json()["config"]["name"] == "Renamed"

        fetched = await client.get(f"{REPORTS}/saved/{report_id}")
        assert fetched.json()["description"] == "Cost per billing cycle"

        deleted = await client.delete(f"{REPORTS}/saved/{report_id}")
        assert deleted.status_code == 204

        missing = await client.get(f"{REPORTS}/saved/{report_id}")
        assert missing.status_code == 404
        assert missing.json()["error_code"] == "NOT_FOUND"

    @pytest.mark.anyio
    async def test_name_required(self, client: AsyncClient) -> None:
        response = await client.post(
            f"{REPORTS}/saved", json={"name": "   ", "config": {"metrics": ["totalCost"]}}
        )

        assert response.status_code == 400
        assert response.json()["field"] == "name"

    @pytest.mark.anyio
    async def test_unknown_metric_not_saved(self, client: AsyncClient) -> None:
        response = await client.post(
            f"{REPORTS}/saved", json={"name": "Bad", "config": {"metrics": ["revenue"]}}
        )
        listing = await client.get(f"{REPORTS}/saved")

        assert response.status_code == 400
        assert listing.json()["total"] == 0

    @pytest.mark.anyio
    async def test_update_missing(self, client: AsyncClient) -> None:
        response = await client.put(
            f"{REPORTS}/saved/999", json={"name": "Ghost", "config": {"metrics": ["totalCost"]}}
        )

        assert response.status_code == 404
