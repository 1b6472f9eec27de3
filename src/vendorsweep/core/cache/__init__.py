"""Cache gateway and store implementations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import CacheRecord, CacheStore, CacheStoreError, UpsertOutcome
from .gateway import CacheGateway
from .rest_store import RestCacheStore
from .sql_store import SqlCacheStore

if TYPE_CHECKING:
    from vendorsweep.core.config.models import CacheConfig


def create_cache_store(config: "CacheConfig") -> CacheStore:
    """Build the cache store selected in configuration."""
    from vendorsweep.core.config.models import CacheBackendType

    if config.backend == CacheBackendType.SQL:
        return SqlCacheStore(config.sql.url, echo=config.sql.echo)

    return RestCacheStore(
        config.rest.url,
        config.rest.service_key,
        table=config.rest.table,
        timeout=config.rest.timeout_seconds,
        max_attempts=config.rest.max_attempts,
    )


__all__ = [
    "CacheRecord",
    "CacheStore",
    "CacheStoreError",
    "UpsertOutcome",
    "CacheGateway",
    "RestCacheStore",
    "SqlCacheStore",
    "create_cache_store",
]
