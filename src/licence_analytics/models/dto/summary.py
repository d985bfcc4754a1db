"""Summary report DTOs."""

from datetime import date

from licence_analytics.models.dto.common import CamelModel, Money


class ReportSummary(CamelModel):
    """Headline figures of the summary report."""

    total_licenses: int
    active_licenses: int
    inactive_licenses: int
    total_seats: int
    used_seats: int
    utilization_rate: int
    monthly_cost: Money
    annual_projection: Money
    monthly_trend: float
    potential_savings: int


class ProviderBreakdown(CamelModel):
    """License counts and sums for one provider."""

    provider: str
    license_count: int
    total_seats: int
    used_seats: int
    total_cost: Money
    utilization_rate: int


class MonthlyTrend(CamelModel):
    """Licenses created in one month."""

    month: str
    licenses_created: int
    total_seats: int
    used_seats: int
    total_cost: Money


class CostProjection(CamelModel):
    """Cost projection derived from one historical month."""

    month: str
    current_cost: Money
    growth_rate: float
    projected_cost: Money
    savings_potential: int


class ExpiringLicense(CamelModel):
    """An active license approaching its expiration date."""

    id: int
    provider: str
    model: str | None = None
    plan: str | None = None
    expiration: date
    days_left: int
    department_id: int | None = None
    department_name: str
    assigned_users: list[str] = []


class DepartmentUtilization(CamelModel):
    """Seat utilization of one department."""

    department_id: int
    department_name: str
    license_count: int
    total_seats: int
    used_seats: int
    avg_total_seats: float
    avg_used_seats: float
    total_cost: Money
    utilization_rate: int


class UnderutilizedLicense(CamelModel):
    """A license using less than the underutilization threshold of its seats."""

    id: int
    provider: str
    model: str | None = None
    plan: str | None = None
    total_seats: int
    used_seats: int
    unit_cost: Money
    utilization: float
    potential_savings: int


class TopUser(CamelModel):
    """A user ranked by number of assignments."""

    id: int
    name: str
    username: str
    status: str
    department_id: int | None = None
    assignment_count: int
    total_cost: Money


class SummaryReportResponse(CamelModel):
    """Summary report response DTO."""

    summary: ReportSummary
    licenses_by_provider: list[ProviderBreakdown]
    monthly_trends: list[MonthlyTrend]
    cost_projections: list[CostProjection]
    expiring_soon: list[ExpiringLicense]
    utilization_by_dept: list[DepartmentUtilization]
    underutilized_licenses: list[UnderutilizedLicense]
    top_users: list[TopUser]
