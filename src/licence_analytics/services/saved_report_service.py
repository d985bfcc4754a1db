"""Saved report service."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from licence_analytics.exceptions import SavedReportNotFoundError
from licence_analytics.models.domain.report_config import ReportConfig, ReportPurpose
from licence_analytics.models.dto.saved_report import (
    SavedReportCreate,
    SavedReportListResponse,
    SavedReportResponse,
)
from licence_analytics.models.orm.base import utcnow
from licence_analytics.models.orm.saved_report import SavedReportORM
from licence_analytics.repositories.reporting import ReportingRepository
from licence_analytics.repositories.saved_report_repository import SavedReportRepository
from licence_analytics.services.custom_report_service import CustomReportCompiler

logger = logging.getLogger(__name__)


class SavedReportService:
    """Service for the saved report lifecycle.

    Only configurations are stored; results are recomputed on every run.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize service with a session factory."""
        self.saved_report_repo = SavedReportRepository(session_factory)
        self.compiler = CustomReportCompiler(ReportingRepository.from_session_factory(session_factory))

    def _validated_config(self, data: SavedReportCreate) -> ReportConfig:
        """Validate the configuration for storage under the request's name."""
        config = data.config.model_copy(
            update={"name": data.name.strip(), "description": data.description or ""}
        )
        return self.compiler.validate(config, ReportPurpose.SAVE).config

    @staticmethod
    def _to_response(report: SavedReportORM) -> SavedReportResponse:
        return SavedReportResponse(
            id=report.id,
            name=report.name,
            description=report.description,
            config=ReportConfig.model_validate(report.config),
            last_used=report.last_used,
            created_at=report.created_at,
            updated_at=report.updated_at,
        )

    async def list_reports(self, limit: int = 100) -> SavedReportListResponse:
        """List saved reports, most recently used first."""
        reports = await self.saved_report_repo.list_recent(limit)
        return SavedReportListResponse(
            items=[self._to_response(r) for r in reports],
            total=len(reports),
        )

    async def get_report(self, report_id: int) -> SavedReportResponse:
        """Get a saved report.

        Raises:
            SavedReportNotFoundError: No report with this id
        """
        report = await self.saved_report_repo.get(report_id)
        if report is None:
            raise SavedReportNotFoundError(report_id)
        return self._to_response(report)

    async def create_report(self, data: SavedReportCreate) -> SavedReportResponse:
        """Save a report configuration.

        Raises:
            ValidationError: Empty name
            UnknownMetricError: The configuration names an unknown metric
        """
        config = self._validated_config(data)
        report = await self.saved_report_repo.create(
            name=config.name,
            description=data.description,
            config=config.model_dump(mode="json", by_alias=True),
            last_used=utcnow(),
        )
        logger.info("Saved report %s created", report.id)
        return self._to_response(report)

    async def update_report(self, report_id: int, data: SavedReportCreate) -> SavedReportResponse:
        """Replace a saved report's name, description and configuration.

        Raises:
            ValidationError: Empty name
            UnknownMetricError: The configuration names an unknown metric
            SavedReportNotFoundError: No report with this id
        """
        config = self._validated_config(data)
        report = await self.saved_report_repo.update(
            report_id,
            name=config.name,
            description=data.description,
            config=config.model_dump(mode="json", by_alias=True),
            last_used=utcnow(),
        )
        if report is None:
            raise SavedReportNotFoundError(report_id)
        return self._to_response(report)

    async def delete_report(self, report_id: int) -> None:
        """Delete a saved report.

        Raises:
            SavedReportNotFoundError: No report with this id
        """
        if not await self.saved_report_repo.delete(report_id):
            raise SavedReportNotFoundError(report_id)
        logger.info("Saved report %s deleted", report_id)
