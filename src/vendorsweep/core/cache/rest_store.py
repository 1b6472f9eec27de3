"""
PostgREST cache store.

Talks to the shared cache table through a Supabase-style REST API using
the service role key. PostgREST has no conditional upsert, so writes
rely on the gateway's read-then-write ordering.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from vendorsweep.core.fetch.retries import RetryConfig, retry_async

from .base import CacheRecord, CacheStore, CacheStoreError

logger = logging.getLogger(__name__)


class RestCacheStore(CacheStore):
    """Cache store backed by a PostgREST table."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        *,
        table: str = "global_plant_cache",
        timeout: float = 5.0,
        max_attempts: int = 2,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize REST store.

        Args:
            base_url: Project URL (without /rest/v1)
            service_key: Service role key used for apikey and bearer auth
            table: Cache table name
            timeout: Per-call timeout in seconds
            max_attempts: Attempts per call on transport errors
            client: Shared HTTP client (created lazily if omitted)
        """
        self.base_url = base_url.rstrip("/")
        self.table = table
        self.timeout = timeout
        self.retry_config = RetryConfig(
            max_attempts=max_attempts,
            retry_exceptions=(httpx.TransportError,),
        )
        self.headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
        }
        self._client = client
        self._owns_client = client is None

    @property
    def name(self) -> str:
        return "rest"

    @property
    def table_url(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
            self._owns_client = True
        return self._client

    async def _request(self, method: str, **kwargs: Any) -> httpx.Response:
        client = await self._ensure_client()
        headers = {**self.headers, **kwargs.pop("headers", {})}

        try:
            response = await retry_async(
                client.request,
                method,
                self.table_url,
                headers=headers,
                timeout=self.timeout,
                config=self.retry_config,
                **kwargs,
            )
        except httpx.HTTPError as e:
            raise CacheStoreError(f"{method} {self.table} failed: {e}", cause=e) from e

        if not response.is_success:
            raise CacheStoreError(
                f"{method} {self.table} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response

    async def _select(self, source_url: str, columns: str) -> list[dict[str, Any]]:
        response = await self._request(
            "GET",
            params={
                "source_url": f"eq.{source_url}",
                "select": columns,
                "limit": "1",
            },
        )
        try:
            rows = response.json()
        except ValueError as e:
            raise CacheStoreError("Malformed cache response", url=source_url, cause=e) from e

        if not isinstance(rows, list):
            raise CacheStoreError("Cache response is not a list", url=source_url)
        return rows

    async def exists(self, source_url: str) -> bool:
        return len(await self._select(source_url, "id")) > 0

    async def get_quality(self, source_url: str) -> str | None:
        rows = await self._select(source_url, "scrape_quality")
        if not rows:
            return None
        # Rows written before quality tracking have a null label
        return rows[0].get("scrape_quality") or ""

    async def write(self, record: CacheRecord) -> bool:
        row = record.to_row()
        row["updated_at"] = datetime.now(timezone.utc).isoformat()

        await self._request(
            "POST",
            params={"on_conflict": "source_url"},
            headers={
                "Content-Type": "application/json",
                "Prefer": "resolution=merge-duplicates,return=minimal",
            },
            json=row,
        )
        logger.debug("Upserted %s (%s)", record.source_url, record.scrape_quality)
        return True

    async def close(self) -> None:
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
