"""Repository bundle injected into the reporting engine."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from licence_analytics.repositories.assignment_repository import AssignmentRepository
from licence_analytics.repositories.department_repository import DepartmentRepository
from licence_analytics.repositories.license_repository import LicenseRepository
from licence_analytics.repositories.user_repository import UserRepository


@dataclass(frozen=True)
class ReportingRepository:
    """Read access to every record type the reports aggregate."""

    licenses: LicenseRepository
    departments: DepartmentRepository
    users: UserRepository
    assignments: AssignmentRepository

    @classmethod
    def from_session_factory(
        cls, session_factory: async_sessionmaker[AsyncSession]
    ) -> "ReportingRepository":
        """Build all repositories over one session factory."""
        return cls(
            licenses=LicenseRepository(session_factory),
            departments=DepartmentRepository(session_factory),
            users=UserRepository(session_factory),
            assignments=AssignmentRepository(session_factory),
        )
