"""Audit report DTOs."""

from datetime import datetime

from licence_analytics.models.dto.common import CamelModel


class AssignmentHistoryEntry(CamelModel):
    """One assignment of a license to a user."""

    id: int
    assigned_at: datetime
    user_id: int
    user_name: str | None = None
    username: str | None = None
    license_id: int
    provider: str | None = None
    model: str | None = None
    plan: str | None = None


class UserActivityEntry(CamelModel):
    """Assignment activity of one user in the activity window."""

    user_id: int
    name: str | None = None
    username: str | None = None
    status: str | None = None
    assignment_count: int
    last_assigned_at: datetime | None = None


class LicenseChangeEntry(CamelModel):
    """A recently updated license."""

    id: int
    provider: str
    model: str | None = None
    plan: str | None = None
    active: bool
    total_seats: int
    used_seats: int
    updated_at: datetime


class ComplianceAnalysis(CamelModel):
    """License compliance counts and overall score."""

    total_active: int
    over_allocated: int
    under_utilized: int
    expired_active: int
    compliance_score: int


class DepartmentAccessEntry(CamelModel):
    """Licenses per department with recent assignment activity."""

    department_id: int
    department_name: str
    license_count: int


class AuditReportResponse(CamelModel):
    """Audit report response DTO."""

    assignment_history: list[AssignmentHistoryEntry]
    user_activity: list[UserActivityEntry]
    license_changes: list[LicenseChangeEntry]
    compliance: ComplianceAnalysis
    department_access: list[DepartmentAccessEntry]
