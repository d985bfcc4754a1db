"""Department repository."""

from collections.abc import Iterable

from sqlalchemy import select

from licence_analytics.models.orm.department import DepartmentORM
from licence_analytics.repositories.base import BaseRepository


class DepartmentRepository(BaseRepository[DepartmentORM]):
    """Repository for department lookups."""

    model = DepartmentORM

    async def names_by_ids(self, ids: Iterable[int]) -> dict[int, str]:
        """Resolve department names for a set of ids.

        Ids without a matching department are simply absent from the result.
        """
        unique_ids = sorted({i for i in ids if i is not None})
        if not unique_ids:
            return {}
        rows = await self._fetch_all(
            select(DepartmentORM.id, DepartmentORM.name).where(DepartmentORM.id.in_(unique_ids)),
            "department names",
        )
        return {row.id: row.name for row in rows}

    async def list_active(self) -> list[DepartmentORM]:
        """Active departments ordered by name."""
        return await self._fetch_scalars(
            select(DepartmentORM).where(DepartmentORM.active.is_(True)).order_by(DepartmentORM.name),
            "active departments",
        )
