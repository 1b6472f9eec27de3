"""Database persistence layer for the local cache store."""

from .db import create_engine_for, create_session_factory, init_db_async, session_scope
from .models import Base, GlobalCacheEntry
from .repo import CacheEntryRepository, quality_rank_expr

__all__ = [
    "create_engine_for",
    "create_session_factory",
    "init_db_async",
    "session_scope",
    "Base",
    "GlobalCacheEntry",
    "CacheEntryRepository",
    "quality_rank_expr",
]
