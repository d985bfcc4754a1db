"""Saved report DTOs."""

from datetime import datetime

from pydantic import Field

from licence_analytics.models.domain.report_config import ReportConfig
from licence_analytics.models.dto.common import CamelModel


class SavedReportCreate(CamelModel):
    """Request body to save or edit a report configuration."""

    name: str = Field(max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    config: ReportConfig


class SavedReportResponse(CamelModel):
    """A saved report configuration."""

    id: int
    name: str
    description: str | None = None
    config: ReportConfig
    last_used: datetime
    created_at: datetime
    updated_at: datetime


class SavedReportListResponse(CamelModel):
    """Saved reports, most recently used first."""

    items: list[SavedReportResponse]
    total: int
