"""Temporal report DTOs."""

from datetime import datetime

from licence_analytics.models.dto.common import CamelModel, Money


class CreationTrend(CamelModel):
    """Licenses created in one month."""

    month: str
    licenses_created: int
    total_seats_added: int
    total_cost_added: Money
    providers: str


class UtilizationTrend(CamelModel):
    """Seat utilization of licenses created in one month."""

    month: str
    total_seats: int
    used_seats: int
    utilization_percentage: float


class ForwardProjection(CamelModel):
    """Projected figures for one future month."""

    month: str
    month_offset: int
    projected_licenses: int
    projected_cost: Money
    projected_seats: int
    confidence: int


class SeasonalPoint(CamelModel):
    """Licenses created in one month, with the window-wide monthly average."""

    month: str
    month_number: int
    licenses_created: int
    total_cost: Money
    avg_monthly_licenses: float


class YearOverYearPoint(CamelModel):
    """Licenses created in one calendar year."""

    year: int
    total_licenses: int
    total_seats: int
    total_cost: Money
    unique_providers: int


class ExpirationTrend(CamelModel):
    """Active licenses expiring in one future month."""

    month: str
    expiring_licenses: int
    seats_affected: int
    cost_at_risk: Money


class TemporalSummary(CamelModel):
    """Metadata of a temporal report."""

    total_months_analyzed: int
    provider: str
    generated_at: datetime
    avg_monthly_growth: float


class TemporalReportResponse(CamelModel):
    """Temporal report response DTO."""

    license_creation_trends: list[CreationTrend]
    utilization_trends: list[UtilizationTrend]
    projections: list[ForwardProjection]
    seasonal_analysis: list[SeasonalPoint]
    year_over_year: list[YearOverYearPoint]
    expiration_trends: list[ExpirationTrend]
    summary: TemporalSummary
