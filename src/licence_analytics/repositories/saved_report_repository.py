"""Saved report repository."""

from sqlalchemy import desc, select

from licence_analytics.models.orm.saved_report import SavedReportORM
from licence_analytics.repositories.base import BaseRepository


class SavedReportRepository(BaseRepository[SavedReportORM]):
    """Repository for persisted report configurations."""

    model = SavedReportORM

    async def list_recent(self, limit: int = 100) -> list[SavedReportORM]:
        """Saved reports, most recently used first."""
        return await self._fetch_scalars(
            select(SavedReportORM)
            .order_by(desc(SavedReportORM.last_used), desc(SavedReportORM.id))
            .limit(limit),
            "list saved reports",
        )
