"""Per-host sliding-window rate limiter for outgoing HTTP requests.

Each host gets its own budget of *permits* admissions per *window* seconds.
Hosts are independent: a saturated image CDN never delays the main site.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Awaitable, Callable
from urllib.parse import urlparse

import structlog

from mangacrawl.domain.entities import RateBudget

log = structlog.get_logger(__name__)

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


def host_of(target: str) -> str:
    """Lower-cased host of a URL, or *target* itself when it is a bare host."""
    if "://" not in target:
        return target.strip().lower()
    try:
        return (urlparse(target).hostname or "").lower()
    except ValueError:
        return ""


class SlidingWindow:
    """Admission log for one host.

    Waiters are served in arrival order (``asyncio.Lock`` is FIFO), so no
    caller starves while others keep arriving.
    """

    def __init__(
        self,
        budget: RateBudget,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.budget = budget
        self._clock = clock
        self._sleep = sleep
        self._admitted: deque[float] = deque()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait until the budget allows one more request, then record it."""
        if self.budget.permits <= 0:
            return  # unlimited

        async with self._lock:
            while True:
                now = self._clock()
                window = self.budget.window_seconds
                while self._admitted and self._admitted[0] + window <= now:
                    self._admitted.popleft()

                if len(self._admitted) < self.budget.permits:
                    self._admitted.append(now)
                    return

                wait = self._admitted[0] + window - now
                log.debug(
                    "rate_limit_wait",
                    host=self.budget.host,
                    wait_seconds=round(wait, 3),
                )
                await self._sleep(wait)


class HostRateLimiter:
    """Manages per-host sliding windows.

    Args:
        default_permits: Permits per window for hosts without an explicit
            budget. 0 = unlimited.
        default_window_seconds: Window length for the default budget.
    """

    def __init__(
        self,
        default_permits: int = 0,
        default_window_seconds: float = 1.0,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._default_permits = default_permits
        self._default_window = default_window_seconds
        self._clock = clock
        self._sleep = sleep
        self._budgets: dict[str, RateBudget] = {}
        self._windows: dict[str, SlidingWindow] = {}

    def configure(self, budget: RateBudget) -> None:
        """Set (or replace) the budget for ``budget.host``."""
        host = host_of(budget.host)
        budget = RateBudget(
            host=host, permits=budget.permits, window_seconds=budget.window_seconds
        )
        self._budgets[host] = budget
        window = self._windows.get(host)
        if window is not None:
            window.budget = budget
        log.debug(
            "rate_budget_configured",
            host=host,
            permits=budget.permits,
            window_seconds=budget.window_seconds,
        )

    def budget_for(self, host: str) -> RateBudget:
        host = host_of(host)
        budget = self._budgets.get(host)
        if budget is None:
            budget = RateBudget(
                host=host,
                permits=self._default_permits,
                window_seconds=self._default_window,
            )
        return budget

    def _get_window(self, host: str) -> SlidingWindow:
        window = self._windows.get(host)
        if window is None:
            window = SlidingWindow(
                self.budget_for(host), clock=self._clock, sleep=self._sleep
            )
            self._windows[host] = window
        return window

    async def acquire(self, target: str) -> None:
        """Wait for clearance to send a request to *target* (URL or host)."""
        host = host_of(target)
        if not host:
            return
        await self._get_window(host).acquire()
