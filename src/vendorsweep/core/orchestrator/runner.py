"""
Round-robin sweep orchestrator.

Coordinates the full sweep: vendor queues → cache check → scrape →
quality-ranked upsert → progress checkpoint, one URL per vendor per
round, in bounded concurrent batches.
"""

from __future__ import annotations

import asyncio
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator

from vendorsweep.core.cache import CacheGateway, UpsertOutcome, create_cache_store
from vendorsweep.core.fetch.throttling import RateLimitConfig, RateLimiter, SleepFunc
from vendorsweep.core.logging import get_contextual_logger
from vendorsweep.core.progress import ProgressState, ProgressStore
from vendorsweep.core.scrape import HttpScrapeClient, ScrapeOptions, ScrapeResult, Scraper

from .queues import VendorQueue, load_vendor_queues

if TYPE_CHECKING:
    from vendorsweep.core.config.models import AppConfig


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ItemSource(str, Enum):
    """Where a work item came from."""

    FRESH = "fresh"  # taken at the vendor's cursor
    RETRY = "retry"  # persisted failure from an earlier run
    FINAL = "final"  # first-time failure retried at the end of this run


class ItemStatus(str, Enum):
    CACHED = "cached"
    SCRAPED = "scraped"
    FAILED = "failed"


@dataclass(frozen=True)
class WorkItem:
    vendor: str
    url: str
    source: ItemSource
    index: int | None = None


@dataclass
class ItemOutcome:
    """Settled result for one work item, produced by a batch worker."""

    item: WorkItem
    status: ItemStatus
    quality: str | None = None
    fields_found: int = 0
    upsert: UpsertOutcome | None = None
    error: str | None = None


@dataclass
class BatchReport:
    """Passed to the progress callback after every batch."""

    phase: str
    batch: int
    round: int
    items: int
    cached: int
    scraped: int
    failed: int
    settled: int
    total: int

    @property
    def percent(self) -> float:
        if not self.total:
            return 100.0
        return min(self.settled / self.total * 100, 100.0)


@dataclass
class VendorRunStats:
    """Per-vendor counts for one run."""

    scraped: int = 0
    failed: int = 0
    cached: int = 0
    already_done: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "scraped": self.scraped,
            "failed": self.failed,
            "cached": self.cached,
            "already_done": self.already_done,
        }


@dataclass
class RunStats:
    """Statistics for a sweep run."""

    run_id: str = ""
    vendors: dict[str, VendorRunStats] = field(default_factory=dict)
    scrape_calls: int = 0
    batches: int = 0
    rounds: int = 0
    final_retries: int = 0
    checkpoint_errors: int = 0

    started_at: datetime = field(default_factory=utcnow)
    finished_at: datetime | None = None

    def vendor(self, name: str) -> VendorRunStats:
        return self.vendors.setdefault(name, VendorRunStats())

    @property
    def total_scraped(self) -> int:
        return sum(v.scraped for v in self.vendors.values())

    @property
    def total_failed(self) -> int:
        return sum(v.failed for v in self.vendors.values())

    @property
    def total_cached(self) -> int:
        return sum(v.cached for v in self.vendors.values())

    @property
    def duration_seconds(self) -> float | None:
        if self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "vendors": {name: v.to_dict() for name, v in self.vendors.items()},
            "total_scraped": self.total_scraped,
            "total_failed": self.total_failed,
            "total_cached": self.total_cached,
            "scrape_calls": self.scrape_calls,
            "batches": self.batches,
            "rounds": self.rounds,
            "final_retries": self.final_retries,
            "checkpoint_errors": self.checkpoint_errors,
            "duration_seconds": self.duration_seconds,
        }


@dataclass
class SchedulerSettings:
    """Run-time knobs for the scheduler."""

    max_parallel: int = 4
    retry_cooldown_seconds: float = 30.0
    skip_ai_fallback: bool = False

    def __post_init__(self) -> None:
        if self.max_parallel < 1:
            raise ValueError("max_parallel must be at least 1")

    @classmethod
    def from_config(cls, config: "AppConfig") -> "SchedulerSettings":
        return cls(
            max_parallel=config.scheduler.max_parallel,
            retry_cooldown_seconds=config.scheduler.retry_cooldown_seconds,
            skip_ai_fallback=config.scraper.skip_ai_fallback,
        )


BatchCallback = Callable[[BatchReport], Any]


class _VendorCursor:
    """Scan position and retry queue for one vendor during a run."""

    def __init__(self, queue: VendorQueue, state: ProgressState):
        self.queue = queue
        self.next_index = state.cursor_for(queue.vendor)
        self.retry: deque[str] = deque(self._retry_order(state.failed_for(queue.vendor)))

    @property
    def vendor(self) -> str:
        return self.queue.vendor

    def _retry_order(self, failed: set[str]) -> list[str]:
        known = sorted(
            (u for u in failed if self.queue.position(u) is not None),
            key=self.queue.position,
        )
        unknown = sorted(u for u in failed if self.queue.position(u) is None)
        return known + unknown

    def next_item(self, state: ProgressState) -> WorkItem | None:
        """Persisted failures first, then the next unsettled URL at the cursor."""
        while self.retry:
            url = self.retry.popleft()
            # Another path may have completed it this run
            if not state.is_completed(self.vendor, url):
                return WorkItem(self.vendor, url, ItemSource.RETRY)

        urls = self.queue.urls
        while self.next_index < len(urls) and state.is_settled(self.vendor, urls[self.next_index]):
            self.next_index += 1
        # Everything before next_index is settled
        state.advance_cursor(self.vendor, self.next_index)

        if self.next_index >= len(urls):
            return None

        index = self.next_index
        self.next_index += 1
        return WorkItem(self.vendor, urls[index], ItemSource.FRESH, index)

    def pending(self, state: ProgressState) -> int:
        start = state.cursor_for(self.vendor)
        fresh = sum(1 for u in self.queue.urls[start:] if not state.is_settled(self.vendor, u))
        return fresh + len(self.retry)


def _chunks(items: list[WorkItem], size: int) -> Iterator[list[WorkItem]]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


class RoundRobinScheduler:
    """Drives a resumable sweep over many vendor queues.

    Each round takes at most one work item per vendor (its persisted
    retry queue first, then its cursor), in input order. A round is split
    into batches of ``max_parallel`` items; batch members run concurrently
    and the batch is a barrier before progress is updated and checkpointed.
    First-time failures get one more attempt in an end-of-run pass.
    """

    def __init__(
        self,
        queues: Iterable[VendorQueue],
        store: ProgressStore,
        gateway: CacheGateway,
        scraper: Scraper,
        rate_limiter: RateLimiter | None = None,
        settings: SchedulerSettings | None = None,
        *,
        on_batch: BatchCallback | None = None,
        on_start: Callable[[int], Any] | None = None,
        sleep: SleepFunc | None = None,
        run_id: str | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            queues: Vendor queues in visiting order
            store: Progress document store
            gateway: Cache gateway for existence checks and upserts
            scraper: Scrape client
            rate_limiter: Delay between batches that made scrape calls
            settings: Parallelism, retry cooldown and scrape options
            on_batch: Called with a BatchReport after every batch
            on_start: Called with the number of pending items before the first batch
            sleep: Awaitable sleep used for the retry cooldown
            run_id: Identifier attached to log records
        """
        self.queues = list(queues)
        self.store = store
        self.gateway = gateway
        self.scraper = scraper
        self.rate_limiter = rate_limiter or RateLimiter()
        self.settings = settings or SchedulerSettings()
        self.on_batch = on_batch
        self.on_start = on_start
        self._sleep = sleep or asyncio.sleep
        self.run_id = run_id or uuid.uuid4().hex[:8]
        self.log = get_contextual_logger("orchestrator", run_id=self.run_id)

        self.options = ScrapeOptions(skip_ai_fallback=self.settings.skip_ai_fallback)
        self.state: ProgressState | None = None
        self.stats = RunStats(run_id=self.run_id)

        self._final_queue: list[WorkItem] = []
        self._needs_delay = False
        self._settled = 0
        self._total = 0
        self._round = 0

    async def run(self) -> RunStats:
        """Execute the sweep to exhaustion.

        Returns:
            RunStats for this run
        """
        state = self.state = self.store.load()
        cursors = [_VendorCursor(q, state) for q in self.queues]

        for c in cursors:
            vstats = self.stats.vendor(c.vendor)
            vstats.already_done = sum(1 for u in c.queue.urls if state.is_completed(c.vendor, u))
        self._total = sum(c.pending(state) for c in cursors)

        self.log.info(
            f"Sweep {self.run_id}: {len(cursors)} vendor(s), {self._total} pending, "
            f"max_parallel={self.settings.max_parallel}",
        )
        if self.on_start:
            self.on_start(self._total)

        # Round loop
        while True:
            items = [item for c in cursors if (item := c.next_item(state)) is not None]
            if not items:
                break
            self._round += 1
            self.stats.rounds = self._round
            for batch in _chunks(items, self.settings.max_parallel):
                await self._run_batch(batch, phase="sweep")

        # End-of-run retry pass
        if self._final_queue:
            final_items, self._final_queue = self._final_queue, []
            self.stats.final_retries = len(final_items)
            self._total += len(final_items)
            self.log.info(
                f"Retrying {len(final_items)} failed URL(s) after "
                f"{self.settings.retry_cooldown_seconds:.0f}s cooldown",
            )
            await self._sleep(self.settings.retry_cooldown_seconds)
            self._needs_delay = False
            for batch in _chunks(final_items, self.settings.max_parallel):
                await self._run_batch(batch, phase="retry")

        self._checkpoint()
        self.stats.finished_at = utcnow()

        self.log.info(
            f"Sweep {self.run_id} finished: {self.stats.total_scraped} scraped, "
            f"{self.stats.total_failed} failed, {self.stats.total_cached} cached "
            f"({self.stats.scrape_calls} scrape calls, {self.stats.batches} batches)",
        )
        return self.stats

    async def _run_batch(self, batch: list[WorkItem], phase: str) -> None:
        if self._needs_delay:
            await self.rate_limiter.delay()

        self.stats.batches += 1
        outcomes = await self._process_batch(batch)

        for outcome in outcomes:
            self._apply(outcome)
        self._settled += len(outcomes)
        self._needs_delay = any(o.status != ItemStatus.CACHED for o in outcomes)
        self._checkpoint()

        report = BatchReport(
            phase=phase,
            batch=self.stats.batches,
            round=self._round,
            items=len(outcomes),
            cached=sum(1 for o in outcomes if o.status == ItemStatus.CACHED),
            scraped=sum(1 for o in outcomes if o.status == ItemStatus.SCRAPED),
            failed=sum(1 for o in outcomes if o.status == ItemStatus.FAILED),
            settled=self._settled,
            total=self._total,
        )
        self.log.debug(
            f"Batch {report.batch} ({phase}, round {report.round}): {report.scraped} scraped, "
            f"{report.cached} cached, {report.failed} failed [{report.percent:.0f}%]",
            extra={"batch": report.batch},
        )
        if self.on_batch:
            self.on_batch(report)

    async def _process_batch(self, batch: list[WorkItem]) -> list[ItemOutcome]:
        """Cache-check every item, then scrape the uncached ones concurrently."""
        cached = await asyncio.gather(*(self.gateway.exists(item.url) for item in batch))

        outcomes: list[ItemOutcome] = []
        to_scrape: list[WorkItem] = []
        for item, is_cached in zip(batch, cached):
            if is_cached:
                outcomes.append(ItemOutcome(item, ItemStatus.CACHED))
            else:
                to_scrape.append(item)

        if to_scrape:
            self.stats.scrape_calls += len(to_scrape)
            outcomes.extend(await asyncio.gather(*(self._scrape_item(i) for i in to_scrape)))
        return outcomes

    async def _scrape_item(self, item: WorkItem) -> ItemOutcome:
        try:
            result = await self.scraper.scrape(item.url, self.options)
        except Exception as e:
            self.log.with_context(vendor=item.vendor).exception(
                f"Scraper raised for {item.url}", extra={"url": item.url}
            )
            result = ScrapeResult.failure(item.url, f"Unexpected error: {e}")

        if not result.success or result.record is None:
            return ItemOutcome(
                item,
                ItemStatus.FAILED,
                quality=result.quality,
                fields_found=result.fields_found,
                error=result.error or "scrape failed",
            )

        upsert = await self.gateway.upsert(item.url, result.quality, result.record)
        if not upsert.ok:
            return ItemOutcome(
                item,
                ItemStatus.FAILED,
                quality=result.quality,
                fields_found=result.fields_found,
                upsert=upsert,
                error="cache write failed",
            )

        return ItemOutcome(
            item,
            ItemStatus.SCRAPED,
            quality=result.quality,
            fields_found=result.fields_found,
            upsert=upsert,
        )

    def _apply(self, outcome: ItemOutcome) -> None:
        """Fold one settled outcome into progress state and run stats."""
        state = self.state
        item = outcome.item
        vendor, url, source = item.vendor, item.url, item.source
        vstats = self.stats.vendor(vendor)
        log = self.log.with_context(vendor=vendor)
        extra = {"url": url, "quality": outcome.quality}

        if outcome.status == ItemStatus.CACHED:
            state.mark_completed(vendor, url)
            if source == ItemSource.FRESH:
                state.record_cached()
            else:
                state.record_retry_cached()
            vstats.cached += 1
            if source == ItemSource.FINAL:
                vstats.failed -= 1
            log.debug(f"Already cached: {url}", extra=extra)

        elif outcome.status == ItemStatus.SCRAPED:
            state.mark_completed(vendor, url)
            if source == ItemSource.FRESH:
                state.record_scraped()
            else:
                state.record_retry_success()
            if source == ItemSource.FINAL:
                vstats.failed -= 1
            vstats.scraped += 1
            log.info(
                f"{outcome.quality} ({outcome.fields_found} fields, "
                f"{outcome.upsert.value if outcome.upsert else 'n/a'}) {url}",
                extra=extra,
            )

        else:
            if source == ItemSource.FRESH:
                state.mark_failed(vendor, url)
                state.record_failed()
                vstats.failed += 1
                self._final_queue.append(WorkItem(vendor, url, ItemSource.FINAL))
            elif source == ItemSource.RETRY:
                state.mark_failed(vendor, url)
                vstats.failed += 1
            # FINAL failures are already recorded in failed[vendor]
            log.warning(f"Failed ({source.value}): {url}: {outcome.error}", extra=extra)

        if item.index is not None:
            state.advance_cursor(vendor, item.index + 1)

    def _checkpoint(self) -> None:
        if not self.store.checkpoint(self.state):
            self.stats.checkpoint_errors += 1


async def run_sweep(
    config: "AppConfig",
    *,
    vendor_filter: str | None = None,
    on_batch: BatchCallback | None = None,
    on_start: Callable[[int], Any] | None = None,
    scraper: Scraper | None = None,
    gateway: CacheGateway | None = None,
) -> RunStats:
    """Build every collaborator from configuration and run one sweep.

    Args:
        config: Application configuration
        vendor_filter: Only vendors whose domain contains this substring
        on_batch: Progress callback
        on_start: Called with the number of pending items once known
        scraper: Override the HTTP scrape client
        gateway: Override the configured cache gateway

    Raises:
        VendorQueueError: Missing or empty vendor URL file
    """
    queues = load_vendor_queues(config.paths.vendor_urls_file, vendor_filter)

    scraper = scraper or HttpScrapeClient(
        config.scraper.endpoint, timeout=config.scraper.timeout_seconds
    )
    gateway = gateway or CacheGateway(create_cache_store(config.cache))
    limiter = RateLimiter(
        RateLimitConfig(
            base_delay_ms=config.scheduler.base_delay_ms,
            jitter_ms=config.scheduler.jitter_ms,
        )
    )

    scheduler = RoundRobinScheduler(
        queues,
        ProgressStore(config.paths.progress_file),
        gateway,
        scraper,
        limiter,
        SchedulerSettings.from_config(config),
        on_batch=on_batch,
        on_start=on_start,
    )

    try:
        return await scheduler.run()
    finally:
        await scraper.close()
        await gateway.close()
