"""Assignment repository."""

from datetime import datetime

from sqlalchemy import desc, func, select
from sqlalchemy.orm import selectinload

from licence_analytics.models.orm.assignment import AssignmentORM
from licence_analytics.repositories.base import BaseRepository
from licence_analytics.utils.numbers import to_int


class AssignmentRepository(BaseRepository[AssignmentORM]):
    """Repository for assignment history reads."""

    model = AssignmentORM

    async def history(
        self,
        assigned_from: datetime | None,
        assigned_before: datetime | None,
        limit: int,
    ) -> list[AssignmentORM]:
        """Most recent assignments in a window, with user and license loaded."""
        statement = select(AssignmentORM).options(
            selectinload(AssignmentORM.user),
            selectinload(AssignmentORM.license),
        )
        if assigned_from is not None:
            statement = statement.where(AssignmentORM.assigned_at >= assigned_from)
        if assigned_before is not None:
            statement = statement.where(AssignmentORM.assigned_at < assigned_before)
        statement = statement.order_by(desc(AssignmentORM.assigned_at), desc(AssignmentORM.id)).limit(limit)
        return await self._fetch_scalars(statement, "assignment history")

    async def activity_by_user(self, assigned_from: datetime) -> list[tuple[int, int, datetime]]:
        """Assignment counts per user since a point in time, busiest first.

        Returns:
            (user_id, assignment_count, last_assigned_at) tuples
        """
        assignment_count = func.count(AssignmentORM.id)
        statement = (
            select(
                AssignmentORM.user_id,
                assignment_count.label("assignment_count"),
                func.max(AssignmentORM.assigned_at).label("last_assigned_at"),
            )
            .where(AssignmentORM.assigned_at >= assigned_from)
            .group_by(AssignmentORM.user_id)
            .order_by(desc(assignment_count), AssignmentORM.user_id)
        )
        rows = await self._fetch_all(statement, "user activity")
        return [(row.user_id, to_int(row.assignment_count), row.last_assigned_at) for row in rows]
