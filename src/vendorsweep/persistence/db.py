"""
Database connection and session management.

Provides async database access for the local cache store.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .models import Base


DEFAULT_CACHE_URL = "sqlite+aiosqlite:///data/cache.db"


# =============================================================================
# SQLite Configuration
# =============================================================================


def _configure_sqlite(engine: AsyncEngine) -> None:
    """Configure SQLite for concurrent readers and a single writer.

    Enables:
    - WAL mode so lookups don't block on writes
    - A busy timeout instead of immediate "database is locked" errors
    """
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()


def get_async_url(url: str) -> str:
    """Convert sync database URL to async variant.

    SQLite: sqlite:/// -> sqlite+aiosqlite:///
    PostgreSQL: postgresql:// -> postgresql+asyncpg://
    """
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    elif url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url


# =============================================================================
# Engine Creation
# =============================================================================


def create_engine_for(
    url: str = DEFAULT_CACHE_URL,
    echo: bool = False,
    pool_size: int = 5,
) -> AsyncEngine:
    """Create an asynchronous database engine.

    Args:
        url: SQLAlchemy database URL (converted to async variant)
        echo: Whether to log SQL statements
        pool_size: Connection pool size (ignored for SQLite)

    Returns:
        SQLAlchemy AsyncEngine instance
    """
    async_url = get_async_url(url)

    if async_url.startswith("sqlite"):
        db_path = async_url.split(":///", 1)[-1]
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        engine = create_async_engine(async_url, echo=echo)
        _configure_sqlite(engine)
        return engine

    return create_async_engine(
        async_url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=10,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


# =============================================================================
# Session Management
# =============================================================================


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session that commits on success and rolls back on error.

    Usage:
        async with session_scope(factory) as session:
            await session.execute(...)
    """
    session = factory()

    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


# =============================================================================
# Database Initialization
# =============================================================================


async def init_db_async(engine: AsyncEngine) -> None:
    """Create all tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
