"""Reports router."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import Response

from licence_analytics.constants.reporting import TEMPORAL_DEFAULT_MONTHS, TEMPORAL_MAX_MONTHS
from licence_analytics.dependencies import (
    get_csv_exporter,
    get_custom_report_compiler,
    get_export_service,
    get_report_service,
    get_saved_report_service,
)
from licence_analytics.models.domain.report_config import ReportPurpose
from licence_analytics.models.dto.audit import AuditReportResponse
from licence_analytics.models.dto.custom_report import (
    BuilderOptionsResponse,
    CustomExportRequest,
    CustomReportRequest,
    CustomReportResult,
)
from licence_analytics.models.dto.options import ExportOptionsResponse, FilterOptionsResponse
from licence_analytics.models.dto.saved_report import (
    SavedReportCreate,
    SavedReportListResponse,
    SavedReportResponse,
)
from licence_analytics.models.dto.summary import SummaryReportResponse
from licence_analytics.models.dto.temporal import TemporalReportResponse
from licence_analytics.security.rate_limit import EXPENSIVE_READ_LIMIT, EXPORT_LIMIT, limiter
from licence_analytics.services.csv_exporter import CSV_MEDIA_TYPE, CsvExporter, custom_report_filename
from licence_analytics.services.custom_report_service import CustomReportCompiler
from licence_analytics.services.export_service import ExportService
from licence_analytics.services.report_service import ReportService
from licence_analytics.services.saved_report_service import SavedReportService

router = APIRouter()

StartDate = Annotated[
    str | None, Query(alias="startDate", max_length=40, description="Inclusive start date (YYYY-MM-DD)")
]
EndDate = Annotated[
    str | None, Query(alias="endDate", max_length=40, description="Inclusive end date (YYYY-MM-DD)")
]
Provider = Annotated[str | None, Query(max_length=255, description="Filter by provider")]
Department = Annotated[str | None, Query(max_length=20, description="Filter by department id")]
Status = Annotated[
    str | None, Query(max_length=50, description="Filter by status: active, inactive, expiring")
]


def _download(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-cache",
        },
    )


# ==================== FIXED REPORTS ====================


@router.get("/summary", response_model=SummaryReportResponse)
@limiter.limit(EXPENSIVE_READ_LIMIT)
async def get_summary_report(
    request: Request,
    report_service: Annotated[ReportService, Depends(get_report_service)],
    start_date: StartDate = None,
    end_date: EndDate = None,
    provider: Provider = None,
    department: Department = None,
    license_status: Annotated[
        str | None, Query(alias="status", max_length=50, description="active, inactive or expiring")
    ] = None,
) -> SummaryReportResponse:
    """Get the summary report.

    Without a date range all licenses are counted; trend and expiring
    sections use their own fixed windows.
    """
    return await report_service.get_summary(
        start_date=start_date,
        end_date=end_date,
        provider=provider,
        department=department,
        status=license_status,
    )


@router.get("/temporal", response_model=TemporalReportResponse)
@limiter.limit(EXPENSIVE_READ_LIMIT)
async def get_temporal_report(
    request: Request,
    report_service: Annotated[ReportService, Depends(get_report_service)],
    months: int = Query(
        default=TEMPORAL_DEFAULT_MONTHS,
        ge=1,
        le=TEMPORAL_MAX_MONTHS,
        description="Number of calendar months to analyse",
    ),
    provider: Provider = None,
) -> TemporalReportResponse:
    """Get creation, utilization, projection, seasonal and expiration trends."""
    return await report_service.get_temporal(months=months, provider=provider)


@router.get("/audit", response_model=AuditReportResponse)
@limiter.limit(EXPENSIVE_READ_LIMIT)
async def get_audit_report(
    request: Request,
    report_service: Annotated[ReportService, Depends(get_report_service)],
    start_date: StartDate = None,
    end_date: EndDate = None,
) -> AuditReportResponse:
    """Get assignment history, user activity, license changes and compliance.

    Assignment history defaults to the last 90 days and license changes to
    the last 30 days.
    """
    return await report_service.get_audit(start_date=start_date, end_date=end_date)


@router.get("/export")
@limiter.limit(EXPORT_LIMIT)
async def export_full_report(
    request: Request,
    export_service: Annotated[ExportService, Depends(get_export_service)],
    export_format: Annotated[
        str, Query(alias="format", max_length=10, description="csv, json or xlsx")
    ] = "json",
    start_date: StartDate = None,
    end_date: EndDate = None,
    provider: Provider = None,
    department: Department = None,
    license_status: Annotated[
        str | None, Query(alias="status", max_length=50, description="active, inactive or expiring")
    ] = None,
) -> Response:
    """Export licenses, assignments and provider/department analysis.

    Returns a downloadable file in the requested format.
    """
    export_file = await export_service.export(
        export_format.strip().lower(),
        start_date=start_date,
        end_date=end_date,
        provider=provider,
        department=department,
        status=license_status,
    )
    return _download(export_file.content, export_file.media_type, export_file.filename)


# ==================== CUSTOM REPORTS ====================


@router.post("/custom", response_model=CustomReportResult)
@limiter.limit(EXPENSIVE_READ_LIMIT)
async def generate_custom_report(
    request: Request,
    body: CustomReportRequest,
    compiler: Annotated[CustomReportCompiler, Depends(get_custom_report_compiler)],
) -> CustomReportResult:
    """Validate and execute a custom report configuration."""
    return await compiler.generate(body.config)


@router.post("/custom-export")
@limiter.limit(EXPORT_LIMIT)
async def export_custom_report(
    request: Request,
    body: CustomExportRequest,
    compiler: Annotated[CustomReportCompiler, Depends(get_custom_report_compiler)],
    exporter: Annotated[CsvExporter, Depends(get_csv_exporter)],
) -> Response:
    """Export a custom report configuration as CSV."""
    compiled = compiler.validate(body.config, ReportPurpose.EXPORT)
    executed = await compiler.execute(compiled)
    content = exporter.export(executed.result)
    return _download(
        content, CSV_MEDIA_TYPE, custom_report_filename(executed.result.generated_at.date())
    )


@router.get("/builder-options", response_model=BuilderOptionsResponse)
@limiter.limit(EXPENSIVE_READ_LIMIT)
async def get_builder_options(
    request: Request,
    compiler: Annotated[CustomReportCompiler, Depends(get_custom_report_compiler)],
) -> BuilderOptionsResponse:
    """Get the metric catalog, group-by options, chart types and date ranges."""
    return await compiler.builder_options()


@router.get("/filter-options", response_model=FilterOptionsResponse)
async def get_filter_options(
    report_service: Annotated[ReportService, Depends(get_report_service)],
) -> FilterOptionsResponse:
    """Get the providers, departments and status counts reports can filter by."""
    return await report_service.get_filter_options()


@router.get("/export-options", response_model=ExportOptionsResponse)
async def get_export_options(
    report_service: Annotated[ReportService, Depends(get_report_service)],
    start_date: StartDate = None,
    end_date: EndDate = None,
    provider: Provider = None,
    department: Department = None,
    license_status: Annotated[
        str | None, Query(alias="status", max_length=50, description="active, inactive or expiring")
    ] = None,
) -> ExportOptionsResponse:
    """Get the supported export formats with record counts and estimated sizes."""
    return await report_service.get_export_options(
        start_date=start_date,
        end_date=end_date,
        provider=provider,
        department=department,
        status=license_status,
    )


# ==================== SAVED REPORTS ====================


@router.get("/saved", response_model=SavedReportListResponse)
async def list_saved_reports(
    service: Annotated[SavedReportService, Depends(get_saved_report_service)],
    limit: int = Query(default=100, ge=1, le=500),
) -> SavedReportListResponse:
    """List saved reports, most recently used first."""
    return await service.list_reports(limit=limit)


@router.post("/saved", response_model=SavedReportResponse, status_code=status.HTTP_201_CREATED)
async def create_saved_report(
    data: SavedReportCreate,
    service: Annotated[SavedReportService, Depends(get_saved_report_service)],
) -> SavedReportResponse:
    """Save a report configuration."""
    return await service.create_report(data)


@router.get("/saved/{report_id}", response_model=SavedReportResponse)
async def get_saved_report(
    report_id: int,
    service: Annotated[SavedReportService, Depends(get_saved_report_service)],
) -> SavedReportResponse:
    """Get a saved report configuration."""
    return await service.get_report(report_id)


@router.put("/saved/{report_id}", response_model=SavedReportResponse)
async def update_saved_report(
    report_id: int,
    data: SavedReportCreate,
    service: Annotated[SavedReportService, Depends(get_saved_report_service)],
) -> SavedReportResponse:
    """Replace a saved report configuration."""
    return await service.update_report(report_id, data)


@router.delete("/saved/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_saved_report(
    report_id: int,
    service: Annotated[SavedReportService, Depends(get_saved_report_service)],
) -> None:
    """Delete a saved report configuration."""
    await service.delete_report(report_id)
