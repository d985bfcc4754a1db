"""Data transfer objects package."""

from licence_analytics.models.dto.audit import AuditReportResponse
from licence_analytics.models.dto.custom_report import (
    BuilderOptionsResponse,
    CustomExportRequest,
    CustomReportRequest,
    CustomReportResult,
)
from licence_analytics.models.dto.dashboard import DashboardStatsResponse
from licence_analytics.models.dto.export import FullExportResponse
from licence_analytics.models.dto.options import ExportOptionsResponse, FilterOptionsResponse
from licence_analytics.models.dto.saved_report import (
    SavedReportCreate,
    SavedReportListResponse,
    SavedReportResponse,
)
from licence_analytics.models.dto.summary import SummaryReportResponse
from licence_analytics.models.dto.temporal import TemporalReportResponse

__all__ = [
    "AuditReportResponse",
    "BuilderOptionsResponse",
    "CustomExportRequest",
    "CustomReportRequest",
    "CustomReportResult",
    "DashboardStatsResponse",
    "ExportOptionsResponse",
    "FilterOptionsResponse",
    "FullExportResponse",
    "SavedReportCreate",
    "SavedReportListResponse",
    "SavedReportResponse",
    "SummaryReportResponse",
    "TemporalReportResponse",
]
