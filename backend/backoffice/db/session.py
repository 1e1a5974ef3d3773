"""
Database session management.

WHY: Async database sessions are required for FastAPI's async/await pattern.
Each request runs in one session/transaction: ownership checks and the
mutations that follow them commit together, or roll back together when any
exception is raised.
"""

from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from backoffice.core.config import settings


# Create async engine
# WHY: pool_pre_ping ensures stale connections are recycled
engine = create_async_engine(
    settings.async_database_url,
    echo=settings.DEBUG,
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20,
)

# Create session factory
# WHY: expire_on_commit=False prevents lazy-loading issues after commit.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.

    WHY: Every request gets its own session. Committing only after the
    handler returns makes the request the transaction boundary; any raised
    exception (including a failed last-owner re-check) rolls back every
    statement the request issued.

    Yields:
        AsyncSession: Database session for the request
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
