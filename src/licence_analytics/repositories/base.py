"""Base repository with common database operations.

Repositories hold a session factory rather than a session. Every public
operation opens its own short-lived session, so independent reads issued
through ``asyncio.gather`` never share a connection.
"""

import logging
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.engine import Row
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from licence_analytics.exceptions import RepositoryError
from licence_analytics.models.orm.base import Base
from licence_analytics.utils.secure_logging import log_error

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """Base repository with common CRUD operations."""

    model: type[T]

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize repository with a session factory."""
        self.session_factory = session_factory

    # -------------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------------

    async def _fetch_all(self, statement: Select[Any], operation: str) -> list[Row[Any]]:
        """Execute a select and return all rows."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(statement)
                return list(result.all())
        except SQLAlchemyError as e:
            log_error(logger, f"Repository read failed ({operation})", e)
            raise RepositoryError(operation) from e

    async def _fetch_scalars(self, statement: Select[Any], operation: str) -> list[Any]:
        """Execute a select and return the first column of every row."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(statement)
                return list(result.scalars().unique().all())
        except SQLAlchemyError as e:
            log_error(logger, f"Repository read failed ({operation})", e)
            raise RepositoryError(operation) from e

    async def _fetch_one(self, statement: Select[Any], operation: str) -> Row[Any] | None:
        """Execute a select expected to return at most one row."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(statement)
                return result.first()
        except SQLAlchemyError as e:
            log_error(logger, f"Repository read failed ({operation})", e)
            raise RepositoryError(operation) from e

    async def _fetch_scalar(self, statement: Select[Any], operation: str) -> Any:
        """Execute a select returning a single value."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(statement)
                return result.scalar()
        except SQLAlchemyError as e:
            log_error(logger, f"Repository read failed ({operation})", e)
            raise RepositoryError(operation) from e

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    async def get(self, id: int) -> T | None:
        """Get a record by ID.

        Args:
            id: Record ID

        Returns:
            Record or None if not found
        """
        rows = await self._fetch_scalars(
            select(self.model).where(self.model.id == id),
            f"get {self.model.__tablename__}",
        )
        return rows[0] if rows else None

    async def create(self, **kwargs: Any) -> T:
        """Create a new record.

        Args:
            **kwargs: Field values

        Returns:
            Created record
        """
        async with self.session_factory() as session:
            async with session.begin():
                instance = self.model(**kwargs)
                session.add(instance)
            await session.refresh(instance)
            return instance

    async def update(self, id: int, **kwargs: Any) -> T | None:
        """Update a record by ID.

        Args:
            id: Record ID
            **kwargs: Fields to update

        Returns:
            Updated record or None if not found
        """
        async with self.session_factory() as session:
            async with session.begin():
                instance = await session.get(self.model, id)
                if instance is None:
                    return None
                for key, value in kwargs.items():
                    if hasattr(instance, key):
                        setattr(instance, key, value)
            await session.refresh(instance)
            return instance

    async def delete(self, id: int) -> bool:
        """Delete a record by ID.

        Args:
            id: Record ID

        Returns:
            True if deleted, False if not found
        """
        async with self.session_factory() as session:
            async with session.begin():
                instance = await session.get(self.model, id)
                if instance is None:
                    return False
                await session.delete(instance)
            return True
