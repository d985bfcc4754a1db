"""ORM models package."""

from licence_analytics.models.orm.assignment import AssignmentORM
from licence_analytics.models.orm.base import Base
from licence_analytics.models.orm.department import DepartmentORM
from licence_analytics.models.orm.license import LicenseORM
from licence_analytics.models.orm.saved_report import SavedReportORM
from licence_analytics.models.orm.user import UserORM

__all__ = [
    "AssignmentORM",
    "Base",
    "DepartmentORM",
    "LicenseORM",
    "SavedReportORM",
    "UserORM",
]
