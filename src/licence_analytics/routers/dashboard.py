"""Dashboard router."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from licence_analytics.dependencies import get_report_service
from licence_analytics.models.dto.dashboard import DashboardStatsResponse
from licence_analytics.security.rate_limit import EXPENSIVE_READ_LIMIT, limiter
from licence_analytics.services.report_service import ReportService

router = APIRouter()


@router.get("/stats", response_model=DashboardStatsResponse)
@limiter.limit(EXPENSIVE_READ_LIMIT)
async def get_dashboard_stats(
    request: Request,
    report_service: Annotated[ReportService, Depends(get_report_service)],
) -> DashboardStatsResponse:
    """Get totals, month-over-month trends and chart data for the dashboard."""
    return await report_service.get_dashboard_stats()
