"""Database engine and session factory management."""

from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from licence_analytics.config import get_settings


@lru_cache
def get_engine() -> AsyncEngine:
    """Get the application-wide async engine, created on first use."""
    settings = get_settings()
    return create_async_engine(
        settings.async_database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        # Validate connections before checkout to detect stale connections
        pool_pre_ping=True,
        # Recycle connections after 1 hour (important for cloud proxies)
        pool_recycle=3600,
        # Never echo SQL statements as they may contain sensitive data
        echo=False,
    )


@lru_cache
def get_async_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get the session factory bound to the application engine."""
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get session factory dependency.

    Repositories open one short-lived session per read so that independent
    report queries can run concurrently.
    """
    return get_async_session_maker()
