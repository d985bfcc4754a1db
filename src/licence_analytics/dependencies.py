"""Centralized dependency injection factories for FastAPI.

Every engine entry point receives an explicit ``ReportingRepository`` built
from the request's session factory; nothing constructs its own client.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from licence_analytics.database import get_session_factory
from licence_analytics.repositories.reporting import ReportingRepository
from licence_analytics.services.csv_exporter import CsvExporter
from licence_analytics.services.custom_report_service import CustomReportCompiler
from licence_analytics.services.export_service import ExportService
from licence_analytics.services.report_service import ReportService
from licence_analytics.services.saved_report_service import SavedReportService


def get_reporting_repository(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ReportingRepository:
    """Get ReportingRepository instance."""
    return ReportingRepository.from_session_factory(session_factory)


# =============================================================================
# Report Service Factories
# =============================================================================


def get_report_service(
    repository: ReportingRepository = Depends(get_reporting_repository),
) -> ReportService:
    """Get ReportService instance."""
    return ReportService(repository)


def get_custom_report_compiler(
    repository: ReportingRepository = Depends(get_reporting_repository),
) -> CustomReportCompiler:
    """Get CustomReportCompiler instance."""
    return CustomReportCompiler(repository)


def get_export_service(
    repository: ReportingRepository = Depends(get_reporting_repository),
) -> ExportService:
    """Get ExportService instance."""
    return ExportService(repository)


def get_csv_exporter() -> CsvExporter:
    """Get CsvExporter instance."""
    return CsvExporter()


def get_saved_report_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> SavedReportService:
    """Get SavedReportService instance."""
    return SavedReportService(session_factory)
