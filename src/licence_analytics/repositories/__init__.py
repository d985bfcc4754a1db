"""Repositories package."""

from licence_analytics.repositories.assignment_repository import AssignmentRepository
from licence_analytics.repositories.department_repository import DepartmentRepository
from licence_analytics.repositories.license_repository import LicenseRepository
from licence_analytics.repositories.query import LicensePredicate
from licence_analytics.repositories.reporting import ReportingRepository
from licence_analytics.repositories.saved_report_repository import SavedReportRepository
from licence_analytics.repositories.user_repository import UserRepository

__all__ = [
    "AssignmentRepository",
    "DepartmentRepository",
    "LicensePredicate",
    "LicenseRepository",
    "ReportingRepository",
    "SavedReportRepository",
    "UserRepository",
]
