"""
Local SQL cache store.

Uses SQLAlchemy's async engine; the write is a single conditional upsert
so the quality rule holds even with several processes writing at once.
"""

from __future__ import annotations

import asyncio

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from vendorsweep.persistence.db import (
    DEFAULT_CACHE_URL,
    create_engine_for,
    create_session_factory,
    init_db_async,
    session_scope,
)
from vendorsweep.persistence.repo import CacheEntryRepository

from .base import CacheRecord, CacheStore, CacheStoreError


class SqlCacheStore(CacheStore):
    """Cache store backed by a SQL database (SQLite or PostgreSQL)."""

    def __init__(
        self,
        url: str = DEFAULT_CACHE_URL,
        *,
        echo: bool = False,
        engine: AsyncEngine | None = None,
    ):
        self.url = url
        self.engine = engine or create_engine_for(url, echo=echo)
        self._session_factory = create_session_factory(self.engine)
        self._initialized = False
        self._schema_lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return "sql"

    async def _ensure_schema(self) -> None:
        async with self._schema_lock:
            if self._initialized:
                return
            await init_db_async(self.engine)
            self._initialized = True

    async def exists(self, source_url: str) -> bool:
        try:
            await self._ensure_schema()
            async with session_scope(self._session_factory) as session:
                return await CacheEntryRepository(session).exists(source_url)
        except SQLAlchemyError as e:
            raise CacheStoreError(f"Lookup failed: {e}", url=source_url, cause=e) from e

    async def get_quality(self, source_url: str) -> str | None:
        try:
            await self._ensure_schema()
            async with session_scope(self._session_factory) as session:
                return await CacheEntryRepository(session).get_quality(source_url)
        except SQLAlchemyError as e:
            raise CacheStoreError(f"Lookup failed: {e}", url=source_url, cause=e) from e

    async def write(self, record: CacheRecord) -> bool:
        try:
            await self._ensure_schema()
            async with session_scope(self._session_factory) as session:
                return await CacheEntryRepository(session).upsert_ranked(record.to_row())
        except SQLAlchemyError as e:
            raise CacheStoreError(
                f"Write failed: {e}", url=record.source_url, cause=e
            ) from e

    async def close(self) -> None:
        await self.engine.dispose()
