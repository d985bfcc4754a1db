"""Filter and export option DTOs."""

from pydantic import BaseModel

from licence_analytics.models.dto.common import CamelModel, Money


class DepartmentOption(BaseModel):
    """A department selectable as filter."""

    id: int
    name: str


class StatusCounts(CamelModel):
    """License counts per status filter value."""

    active: int
    inactive: int
    expiring: int


class FilterOptionsResponse(CamelModel):
    """Available report filter values."""

    providers: list[str]
    departments: list[DepartmentOption]
    status_counts: StatusCounts


class ExportFormatOption(CamelModel):
    """An export format and the size of the export it would produce."""

    id: str
    label: str
    description: str
    media_type: str
    enabled: bool
    record_count: int
    estimated_size_kb: int


class ExportStatistics(CamelModel):
    """Headline numbers of the records an export would contain."""

    total_records: int
    active_records: int
    expiring_records: int
    total_cost: Money
    utilization_rate: int
    total_seats: int
    used_seats: int


class ExportOptionsResponse(CamelModel):
    """Export options response DTO."""

    formats: list[ExportFormatOption]
    statistics: ExportStatistics
