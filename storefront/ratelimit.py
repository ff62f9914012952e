"""
Rate limiter — in-process fixed-window counters.

    limiter = RateLimiter()
    decision = limiter.check(f"orders:{client}", ORDER_CREATE)
    if not decision.allowed:
        ...  # 429, Retry-After = decision.retry_after(now)

Single instance only: counters live in this process and are not shared
across workers.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

SWEEP_INTERVAL = 60.0
USER_AGENT_PREFIX = 50


@dataclass(frozen=True, slots=True)
class RateLimit:
    window_seconds: float
    max_requests: int


ADMIN = RateLimit(window_seconds=60, max_requests=20)
ORDER_CREATE = RateLimit(window_seconds=60, max_requests=6)
API = RateLimit(window_seconds=60, max_requests=60)
PUBLIC = RateLimit(window_seconds=60, max_requests=100)


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    reset_at: float

    def retry_after(self, now: float) -> int:
        return max(1, math.ceil(self.reset_at - now))


@dataclass(slots=True)
class Window:
    count: int
    reset_at: float


def client_id(forwarded_for: str | None, user_agent: str | None) -> str:
    """First forwarded address plus a user-agent prefix."""
    ip = forwarded_for.split(",")[0].strip() if forwarded_for else "unknown"
    agent = user_agent or "unknown"
    return f"{ip}:{agent[:USER_AGENT_PREFIX]}"


class RateLimiter:
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._windows: dict[str, Window] = {}
        self._sweeper: asyncio.Task[None] | None = None

    def now(self) -> float:
        return self._clock()

    def check(self, key: str, limit: RateLimit) -> RateLimitDecision:
        now = self._clock()
        window = self._windows.get(key)

        if window is None or now > window.reset_at:
            window = Window(count=1, reset_at=now + limit.window_seconds)
            self._windows[key] = window
            return RateLimitDecision(True, limit.max_requests - 1, window.reset_at)

        if window.count < limit.max_requests:
            window.count += 1
            return RateLimitDecision(True, limit.max_requests - window.count, window.reset_at)

        return RateLimitDecision(False, 0, window.reset_at)

    def reset(self, key: str) -> None:
        self._windows.pop(key, None)

    def status(self, key: str) -> Window | None:
        """Current window for `key`, without counting a request."""
        return self._windows.get(key)

    def sweep(self) -> int:
        now = self._clock()
        expired = [key for key, w in self._windows.items() if now > w.reset_at]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)

    # ═══════════════════════════════════════════════════════════════════════════
    # Background sweep
    # ═══════════════════════════════════════════════════════════════════════════

    def start_sweeper(self, interval: float = SWEEP_INTERVAL) -> None:
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.create_task(self._sweep_loop(interval), name="ratelimit-sweep")

    async def stop(self) -> None:
        task, self._sweeper = self._sweeper, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        self._windows.clear()

    async def _sweep_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            evicted = self.sweep()
            if evicted:
                logger.debug("Evicted %d expired rate-limit windows", evicted)


__all__ = (
    "RateLimit",
    "RateLimitDecision",
    "RateLimiter",
    "Window",
    "client_id",
    "ADMIN",
    "ORDER_CREATE",
    "API",
    "PUBLIC",
)
