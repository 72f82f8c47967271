"""Database configuration and session management.

Provides async SQLAlchemy engine and session factory.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from catalog_codegen.infrastructure.config import settings


def build_engine(url: str, isolation_level: str | None = None, **kwargs: Any) -> AsyncEngine:
    """Create an async engine.

    Args:
        url: SQLAlchemy database URL.
        isolation_level: Transaction isolation level, if the backend should
            use something other than its default.
        **kwargs: Extra engine options.

    Returns:
        Configured async engine.
    """
    if isolation_level:
        kwargs["isolation_level"] = isolation_level
    return create_async_engine(url, echo=settings.debug, **kwargs)


# Create async engine
engine = build_engine(
    settings.database_url,
    isolation_level=settings.database_isolation_level,
    pool_pre_ping=True,
)

# Session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Base class for models
Base = declarative_base()


async def create_tables(target: AsyncEngine | None = None) -> None:
    """Create database tables if they don't exist.

    Args:
        target: Engine to create tables on. Defaults to the application engine.
    """
    # Models must be registered on Base.metadata before create_all
    import catalog_codegen.catalog.models  # noqa: F401

    async with (target or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    One session spans the whole request, so every write issued while
    handling it is committed or rolled back together.

    Yields:
        AsyncSession for database operations.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# SQLSTATE codes PostgreSQL raises when a concurrent transaction wins
SERIALIZATION_FAILURES = {"40001", "40P01"}


def is_write_conflict(error: DBAPIError) -> bool:
    """Check whether a failed write lost a race with a concurrent transaction.

    Unique constraint violations, serialization failures and deadlocks
    count as conflicts; anything else is a genuine database failure.

    Args:
        error: Error raised by a flush or commit.

    Returns:
        True if retrying the request can succeed.
    """
    if isinstance(error, IntegrityError):
        return True
    sqlstate = getattr(error.orig, "sqlstate", None) or getattr(error.orig, "pgcode", None)
    return sqlstate in SERIALIZATION_FAILURES
