"""
Repository pattern for cache table operations.

The ranked upsert is a single INSERT ... ON CONFLICT DO UPDATE statement
whose WHERE clause compares quality ranks, so concurrent writers from
different processes resolve by the same rule without a read lock.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import case, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from vendorsweep.core.quality import QUALITY_RANK, UNKNOWN_RANK

from .models import GlobalCacheEntry, utcnow


def quality_rank_expr(column: Any) -> ColumnElement[int]:
    """SQL expression mapping a quality column to its ordinal rank."""
    return case(QUALITY_RANK, value=column, else_=UNKNOWN_RANK)


# Columns overwritten when a better (or equal) result arrives
_UPDATABLE_COLUMNS = (
    "identity_key",
    "vendor",
    "extract_data",
    "original_hero_url",
    "scraped_fields",
    "scrape_quality",
)


class CacheEntryRepository:
    """Repository for GlobalCacheEntry rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_url(self, source_url: str) -> GlobalCacheEntry | None:
        """Get the cache row for a URL."""
        stmt = select(GlobalCacheEntry).where(GlobalCacheEntry.source_url == source_url)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def exists(self, source_url: str) -> bool:
        stmt = (
            select(GlobalCacheEntry.id)
            .where(GlobalCacheEntry.source_url == source_url)
            .limit(1)
        )
        return (await self.session.execute(stmt)).first() is not None

    async def get_quality(self, source_url: str) -> str | None:
        """Return the stored quality, "" for a row without one, None if absent."""
        stmt = select(GlobalCacheEntry.scrape_quality).where(
            GlobalCacheEntry.source_url == source_url
        )
        row = (await self.session.execute(stmt)).first()
        if row is None:
            return None
        return row[0] or ""

    async def upsert_ranked(self, row: dict[str, Any]) -> bool:
        """Insert a row, or overwrite it if the new quality ranks >= stored.

        Returns:
            True if a row was inserted or updated
        """
        dialect = self.session.bind.dialect.name
        insert = pg_insert if dialect == "postgresql" else sqlite_insert

        stmt = insert(GlobalCacheEntry).values(**row)
        excluded = stmt.excluded
        stmt = stmt.on_conflict_do_update(
            index_elements=[GlobalCacheEntry.source_url],
            set_={
                **{name: getattr(excluded, name) for name in _UPDATABLE_COLUMNS},
                "updated_at": utcnow(),
            },
            where=(
                quality_rank_expr(GlobalCacheEntry.scrape_quality)
                <= quality_rank_expr(excluded.scrape_quality)
            ),
        )
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) > 0
