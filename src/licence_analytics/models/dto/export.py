"""Full detail export DTOs."""

from datetime import date, datetime

from licence_analytics.models.dto.common import CamelModel, Money


class ExportMetadata(CamelModel):
    """Context of a full export."""

    generated_at: datetime
    format: str
    start_date: date | None = None
    end_date: date | None = None
    total_records: int
    currency: str
    system: str


class ExecutiveSummary(CamelModel):
    """Headline figures of the exported licenses."""

    total_licenses: int
    active_licenses: int
    inactive_licenses: int
    total_seats: int
    used_seats: int
    utilization_rate: int
    total_cost: Money
    monthly_cost: Money
    compliance_score: int


class ExportAssignment(CamelModel):
    """An assignment of an exported license."""

    user_id: int
    user_name: str
    username: str
    assigned_at: datetime


class ExportLicense(CamelModel):
    """One license with its assignments."""

    id: int
    site: str | None = None
    provider: str
    model: str | None = None
    plan: str | None = None
    department_id: int | None = None
    department_name: str
    start_date: date | None = None
    expiration: date | None = None
    total_seats: int
    used_seats: int
    unit_cost: Money
    installment_cost: Money
    penalty_cost: Money
    billing_cycle: str
    active: bool
    compliance_flags: list[str] = []
    assignments: list[ExportAssignment] = []


class ProviderAnalysis(CamelModel):
    """Exported licenses grouped by provider."""

    provider: str
    license_count: int
    active_count: int
    total_seats: int
    used_seats: int
    total_cost: Money
    utilization_rate: int


class DepartmentAnalysis(CamelModel):
    """Exported licenses grouped by department."""

    department_id: int | None = None
    department_name: str
    license_count: int
    total_seats: int
    used_seats: int
    total_cost: Money
    utilization_rate: int


class ActiveUserEntry(CamelModel):
    """A user ranked by number of assignments."""

    id: int
    name: str
    username: str
    department_id: int | None = None
    assignment_count: int
    total_cost: Money


class UpcomingExpiration(CamelModel):
    """An active license expiring within the export horizon."""

    id: int
    provider: str
    plan: str | None = None
    expiration: date
    days_left: int
    department_name: str


class FullExportResponse(CamelModel):
    """JSON form of the full detail export."""

    metadata: ExportMetadata
    executive_summary: ExecutiveSummary
    licenses: list[ExportLicense]
    provider_analysis: list[ProviderAnalysis]
    department_analysis: list[DepartmentAnalysis]
    active_users: list[ActiveUserEntry]
    upcoming_expirations: list[UpcomingExpiration]
