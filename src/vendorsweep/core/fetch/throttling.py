"""
Rate limiting between dispatch batches.

Requests inside one batch fire concurrently; the limiter gates the start
of the next batch with a jittered pause so vendor origins never see a
steady burst.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable


SleepFunc = Callable[[float], Awaitable[Any]]


@dataclass
class RateLimitConfig:
    """Configuration for rate limiting."""

    base_delay_ms: int = 2000
    jitter_ms: int = 2000

    @property
    def max_delay_ms(self) -> int:
        return self.base_delay_ms + self.jitter_ms


class RateLimiter:
    """Jittered delay applied once per batch.

    The sleep function is injectable so tests can record delays instead of
    waiting for them.
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        *,
        sleep: SleepFunc | None = None,
        rng: random.Random | None = None,
    ):
        """Initialize rate limiter.

        Args:
            config: Delay settings (defaults to 2-4 seconds)
            sleep: Awaitable sleep function (default: asyncio.sleep)
            rng: Random source for jitter
        """
        self.config = config or RateLimitConfig()
        self._sleep = sleep or asyncio.sleep
        self._rng = rng or random.Random()

        self._delays_applied = 0
        self._total_slept = 0.0

    def calculate_delay(self) -> float:
        """Calculate jittered delay in seconds."""
        jitter = self._rng.uniform(0, self.config.jitter_ms) if self.config.jitter_ms else 0.0
        return (self.config.base_delay_ms + jitter) / 1000.0

    async def delay(self) -> float:
        """Wait before the next dispatch batch.

        Returns:
            Seconds waited
        """
        seconds = self.calculate_delay()
        if seconds > 0:
            await self._sleep(seconds)

        self._delays_applied += 1
        self._total_slept += seconds
        return seconds

    def stats(self) -> dict[str, Any]:
        """Get rate limiter statistics."""
        return {
            "delays_applied": self._delays_applied,
            "total_slept_seconds": round(self._total_slept, 3),
            "config": self.config,
        }
