"""
Quality-ranked cache gateway.

Wraps a CacheStore with the merge policy: a row is only overwritten by a
result of equal or better quality. Lookup failures degrade to "not
cached" and write failures to UpsertOutcome.FAILED; neither is raised.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from vendorsweep.core.quality import is_at_least

from .base import CacheRecord, CacheStore, CacheStoreError, UpsertOutcome

logger = logging.getLogger(__name__)


class CacheGateway:
    """Read/conditional-write access to the shared cache."""

    def __init__(self, store: CacheStore) -> None:
        self.store = store

    @property
    def name(self) -> str:
        return self.store.name

    async def exists(self, url: str) -> bool:
        """Check whether a URL is already cached.

        False negatives are acceptable (a wasted scrape); a lookup error
        never reports a URL as cached.
        """
        try:
            return await self.store.exists(url)
        except CacheStoreError as e:
            logger.warning("Cache lookup failed, treating as not cached: %s (%s)", url, e)
            return False
        except Exception:
            logger.exception("Unexpected cache lookup error for %s", url)
            return False

    async def upsert(self, url: str, quality: str, payload: CacheRecord) -> UpsertOutcome:
        """Write ``payload`` unless the stored row ranks higher.

        Args:
            url: Cache key (source URL)
            quality: Quality label of the new result
            payload: Record to store

        Returns:
            REPLACED when written, KEPT when the existing row was better,
            FAILED on store errors
        """
        record = replace(payload, source_url=url, scrape_quality=quality)

        try:
            existing = await self.store.get_quality(url)
            if not is_at_least(quality, existing):
                logger.debug(
                    "Kept existing %s row for %s over %s",
                    existing, url, quality,
                    extra={"url": url, "quality": quality},
                )
                return UpsertOutcome.KEPT

            written = await self.store.write(record)
        except CacheStoreError as e:
            logger.error("Cache write failed for %s: %s", url, e, extra={"url": url})
            return UpsertOutcome.FAILED
        except Exception:
            logger.exception("Unexpected cache write error for %s", url)
            return UpsertOutcome.FAILED

        if not written:
            # A concurrent writer landed a better row between read and write
            return UpsertOutcome.KEPT
        return UpsertOutcome.REPLACED

    async def close(self) -> None:
        await self.store.close()
