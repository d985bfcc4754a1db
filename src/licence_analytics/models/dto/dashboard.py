"""Dashboard statistics DTOs."""

from licence_analytics.models.dto.common import CamelModel


class DashboardTotals(CamelModel):
    """Current totals."""

    total_users: int
    total_licenses: int
    active_licenses: int
    expiring_soon: int
    expired: int


class DashboardTrends(CamelModel):
    """Percent change of the current calendar month against the previous one."""

    users: int
    licenses: int
    active_licenses: int
    expiring: int


class UsagePoint(CamelModel):
    """Used seats of licenses started in one month of the current year."""

    month: str
    used_seats: int


class ProviderUsage(CamelModel):
    """Provider share of all licenses."""

    provider: str
    license_count: int
    percentage: int


class ExpiringName(CamelModel):
    """Short label of a license that expires soon."""

    id: int
    name: str
    days_left: int


class DashboardStatsResponse(CamelModel):
    """Dashboard statistics response DTO."""

    totals: DashboardTotals
    trends: DashboardTrends
    chart_data: list[UsagePoint]
    most_used: list[ProviderUsage]
    expiring_soon: list[ExpiringName]
