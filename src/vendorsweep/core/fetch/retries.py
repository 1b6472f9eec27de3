"""
Short transport retries for cache store calls (tenacity).

Scrape calls are never retried here: a failed scrape goes back to the
scheduler, which decides whether the URL gets another attempt.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """How often and how patiently to retry a cache call.

    The defaults give one retry after roughly a quarter second, which
    keeps a cache lookup well inside the batch it belongs to.
    """

    max_attempts: int = 2
    min_wait: float = 0.25
    max_wait: float = 2.0
    multiplier: float = 0.5
    jitter: bool = True
    retry_exceptions: tuple[type[BaseException], ...] = (httpx.TransportError,)

    def wait_strategy(self):
        wait = wait_random_exponential if self.jitter else wait_exponential
        return wait(multiplier=self.multiplier, min=self.min_wait, max=self.max_wait)


async def retry_async(
    coro_func: Callable[..., Awaitable[T]],
    *args: Any,
    config: RetryConfig | None = None,
    **kwargs: Any,
) -> T:
    """Await ``coro_func(*args, **kwargs)``, retrying on transport errors.

    Raises:
        The last exception once attempts are exhausted
    """
    config = config or RetryConfig()

    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(config.max_attempts),
        wait=config.wait_strategy(),
        retry=retry_if_exception_type(config.retry_exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    ):
        with attempt:
            return await coro_func(*args, **kwargs)

    raise RuntimeError("unreachable")  # pragma: no cover
