"""
HTTP scrape client.

Calls the scraping service's extraction endpoint with httpx and turns
every outcome, good or bad, into a ScrapeResult.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from vendorsweep.core.quality import Quality

from .base import ScrapeOptions, ScrapeResponse, ScrapeResult, Scraper
from .payload import build_cache_record

logger = logging.getLogger(__name__)


class HttpScrapeClient(Scraper):
    """Scrape client for the ``/api/seed/scrape-url`` endpoint."""

    def __init__(
        self,
        endpoint: str,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize scrape client.

        Args:
            endpoint: Full URL of the scrape endpoint
            timeout: Per-call timeout in seconds
            client: Shared HTTP client (created lazily if omitted)
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def name(self) -> str:
        return "http"

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={"Content-Type": "application/json"},
            )
            self._owns_client = True
        return self._client

    async def scrape(self, url: str, options: ScrapeOptions | None = None) -> ScrapeResult:
        options = options or ScrapeOptions()
        body: dict[str, object] = {"url": url}
        if options.skip_ai_fallback:
            body["skipAiFallback"] = True

        client = await self._ensure_client()
        try:
            response = await client.post(self.endpoint, json=body, timeout=self.timeout)
        except httpx.TimeoutException:
            return ScrapeResult.failure(url, f"Timed out after {self.timeout:.0f}s")
        except httpx.HTTPError as e:
            return ScrapeResult.failure(url, f"Request error: {e}")

        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get("error"):
            return ScrapeResult.failure(url, str(data["error"]))
        if not response.is_success:
            return ScrapeResult.failure(url, f"HTTP {response.status_code}")
        if not isinstance(data, dict):
            return ScrapeResult.failure(url, "Response body is not a JSON object")

        try:
            parsed = ScrapeResponse.model_validate(data)
        except ValidationError as e:
            return ScrapeResult.failure(
                url, f"Malformed response: {e.error_count()} invalid field(s)"
            )

        record = build_cache_record(url, parsed)
        fields_found = len(record.scraped_fields)

        if record.scrape_quality == Quality.FAILED.value:
            return ScrapeResult.failure(
                url, parsed.scrape_status or "Scrape failed", fields_found=fields_found
            )

        logger.debug(
            f"Scraped {url}: {record.scrape_quality} ({fields_found} fields)",
            extra={"url": url, "quality": record.scrape_quality},
        )
        return ScrapeResult(
            url=url,
            success=True,
            quality=record.scrape_quality,
            fields_found=fields_found,
            record=record,
        )

    async def close(self) -> None:
        if self._client and self._owns_client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
