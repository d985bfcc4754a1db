"""Licensed end-user repository."""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal

from sqlalchemy import desc, func, select

from licence_analytics.models.orm.assignment import AssignmentORM
from licence_analytics.models.orm.license import LicenseORM
from licence_analytics.models.orm.user import UserORM
from licence_analytics.repositories.base import BaseRepository
from licence_analytics.utils.numbers import to_decimal, to_int


class UserRepository(BaseRepository[UserORM]):
    """Repository for user reads."""

    model = UserORM

    async def count(
        self,
        created_from: datetime | None = None,
        created_before: datetime | None = None,
        department_id: int | None = None,
    ) -> int:
        """Count users, optionally by creation window and department."""
        statement = select(func.count(UserORM.id))
        if created_from is not None:
            statement = statement.where(UserORM.created_at >= created_from)
        if created_before is not None:
            statement = statement.where(UserORM.created_at < created_before)
        if department_id is not None:
            statement = statement.where(UserORM.department_id == department_id)
        return to_int(await self._fetch_scalar(statement, "count users"))

    async def get_by_ids(self, ids: Iterable[int]) -> dict[int, UserORM]:
        """Fetch users keyed by id. Unknown ids are absent."""
        unique_ids = sorted(set(ids))
        if not unique_ids:
            return {}
        users = await self._fetch_scalars(
            select(UserORM).where(UserORM.id.in_(unique_ids)), "users by id"
        )
        return {user.id: user for user in users}

    async def top_by_assignments(self, limit: int) -> list[tuple[UserORM, int, Decimal]]:
        """Users with the most assignments.

        Returns:
            (user, assignment_count, summed unit cost of assigned licenses)
        """
        assignment_count = func.count(AssignmentORM.id)
        statement = (
            select(
                UserORM,
                assignment_count.label("assignment_count"),
                func.coalesce(func.sum(LicenseORM.unit_cost), 0).label("total_cost"),
            )
            .join(AssignmentORM, AssignmentORM.user_id == UserORM.id)
            .join(LicenseORM, LicenseORM.id == AssignmentORM.license_id)
            .group_by(UserORM.id)
            .order_by(desc(assignment_count), UserORM.id)
            .limit(limit)
        )
        rows = await self._fetch_all(statement, "top users")
        return [
            (row.UserORM, to_int(row.assignment_count), to_decimal(row.total_cost))
            for row in rows
        ]
