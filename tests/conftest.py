"""Shared fixtures: in-memory cache store, scripted scraper, recording sleep."""

from __future__ import annotations

import asyncio
from pathlib import Path

import orjson
import pytest

from vendorsweep.core.cache import CacheGateway, CacheRecord, CacheStore, CacheStoreError
from vendorsweep.core.fetch import RateLimitConfig, RateLimiter
from vendorsweep.core.progress import ProgressStore
from vendorsweep.core.quality import is_at_least
from vendorsweep.core.scrape import ScrapeOptions, ScrapeResult, Scraper
from vendorsweep.core.scrape.payload import vendor_from_url


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class MemoryCacheStore(CacheStore):
    """Dict-backed store; can be told to fail lookups or writes."""

    def __init__(self, rows: dict[str, CacheRecord] | None = None):
        self.rows: dict[str, CacheRecord] = dict(rows or {})
        self.fail_exists = False
        self.fail_write = False
        self.exists_calls: list[str] = []
        self.writes: list[CacheRecord] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "memory"

    def seed(self, url: str, quality: str = "full", **extract) -> None:
        self.rows[url] = CacheRecord(
            source_url=url,
            identity_key="seeded",
            vendor=vendor_from_url(url),
            scrape_quality=quality,
            extract_data=extract,
        )

    async def exists(self, source_url: str) -> bool:
        self.exists_calls.append(source_url)
        if self.fail_exists:
            raise CacheStoreError("lookup down", url=source_url)
        return source_url in self.rows

    async def get_quality(self, source_url: str) -> str | None:
        row = self.rows.get(source_url)
        return None if row is None else row.scrape_quality

    async def write(self, record: CacheRecord) -> bool:
        if self.fail_write:
            raise CacheStoreError("write down", url=record.source_url)
        existing = self.rows.get(record.source_url)
        if existing is not None and not is_at_least(record.scrape_quality, existing.scrape_quality):
            return False
        self.rows[record.source_url] = record
        self.writes.append(record)
        return True

    async def close(self) -> None:
        self.closed = True


class FakeScraper(Scraper):
    """Scraper returning scripted results per URL.

    ``script[url]`` is a list consumed one entry per call; an entry is a
    quality label or ``"error"``. URLs without a script scrape as ``full``.
    """

    def __init__(self, script: dict[str, list[str]] | None = None):
        self.script = {url: list(v) for url, v in (script or {}).items()}
        self.calls: list[str] = []
        self.options: list[ScrapeOptions | None] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    @property
    def name(self) -> str:
        return "fake"

    async def scrape(self, url: str, options: ScrapeOptions | None = None) -> ScrapeResult:
        self.calls.append(url)
        self.options.append(options)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            entries = self.script.get(url)
            outcome = entries.pop(0) if entries else "full"
        finally:
            self.in_flight -= 1

        if outcome in ("error", "failed"):
            return ScrapeResult.failure(url, "scripted failure")

        record = CacheRecord(
            source_url=url,
            identity_key="tomato_test",
            vendor=vendor_from_url(url),
            scrape_quality=outcome,
            extract_data={"type": "Tomato", "source_url": url},
            scraped_fields=["sun"],
        )
        return ScrapeResult(url=url, success=True, quality=outcome, fields_found=1, record=record)

    async def close(self) -> None:
        self.closed = True


class SleepRecorder:
    """Awaitable sleep that records durations instead of waiting."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def memory_store() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture()
def gateway(memory_store) -> CacheGateway:
    return CacheGateway(memory_store)


@pytest.fixture()
def limiter_sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture()
def cooldown_sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture()
def rate_limiter(limiter_sleep) -> RateLimiter:
    return RateLimiter(RateLimitConfig(base_delay_ms=2000, jitter_ms=0), sleep=limiter_sleep)


@pytest.fixture()
def progress_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "scrape-progress.json"


@pytest.fixture()
def progress_store(progress_path) -> ProgressStore:
    return ProgressStore(progress_path)


def write_json(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(orjson.dumps(data))
    return path


def read_json(path: Path):
    return orjson.loads(path.read_bytes())
