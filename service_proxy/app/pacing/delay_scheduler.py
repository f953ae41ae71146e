"""
Human-like pacing for outbound upstream calls.
"""

import asyncio
import random
import time
from typing import Awaitable, Callable, Optional, Tuple, TYPE_CHECKING

from shared.errors import BudgetExceeded
from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class RequestBudget:
    """Process-wide count of outbound calls in the current window.

    The window restarts once ``window_seconds`` have elapsed since process
    start or the previous reset; the check happens lazily whenever the
    counter is read or written.
    """

    def __init__(self, cap: int = 25, window_seconds: float = 3600.0,
                 clock: Callable[[], float] = time.monotonic):
        self.cap = cap
        self.window_seconds = window_seconds
        self._clock = clock
        self._count = 0
        self._window_started = clock()

    def _roll_window(self) -> None:
        now = self._clock()
        if now - self._window_started >= self.window_seconds:
            self._count = 0
            self._window_started = now

    @property
    def used(self) -> int:
        self._roll_window()
        return self._count

    def exceeded(self) -> bool:
        return self.used > self.cap

    def increment(self) -> int:
        # Runs on the event loop between awaits, so the increment itself is
        # never torn; a check/increment pair across an await is not atomic.
        self._roll_window()
        self._count += 1
        return self._count

    def reset(self) -> None:
        self._count = 0
        self._window_started = self._clock()


class DelayScheduler:
    """Spaces outbound calls and enforces the request budget."""

    def __init__(self,
                 budget: RequestBudget,
                 min_delay: float = 2.0,
                 max_delay: float = 5.0,
                 distracted_probability: float = 0.15,
                 distracted_range: Tuple[float, float] = (5.0, 8.0),
                 budget_cooldown: float = 60.0,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 rng: Optional[random.Random] = None,
                 metrics: Optional["MetricsCollector"] = None):
        if min_delay > max_delay:
            raise ValueError("min_delay must not exceed max_delay")
        self.budget = budget
        self.min_delay = min_delay
        self.max_delay = max_delay
        self.distracted_probability = distracted_probability
        self.distracted_range = distracted_range
        self.budget_cooldown = budget_cooldown
        self.logger = get_logger("proxy.delay_scheduler")
        self.metrics = metrics
        self._sleep = sleep
        self._rng = rng or random.Random()

    async def await_slot(self) -> float:
        """Sleep for a jittered delay; occasionally add a longer pause.

        Returns:
            Total seconds slept.
        """
        delay = self._rng.uniform(self.min_delay, self.max_delay)
        await self._sleep(delay)
        total = delay

        if self._rng.random() < self.distracted_probability:
            extra = self._rng.uniform(*self.distracted_range)
            self.logger.info("Distracted delay", extra_seconds=round(extra, 3))
            await self._sleep(extra)
            total += extra

        return total

    def check_budget(self) -> bool:
        """True while the window's call count has not exceeded the cap."""
        return not self.budget.exceeded()

    async def wait_for_budget(self) -> float:
        """Block for the cooldown and reset the budget if the cap was exceeded.

        Returns:
            Seconds waited (0 when the budget still had room).
        """
        if self.check_budget():
            return 0.0

        exc = BudgetExceeded(used=self.budget.used, cap=self.budget.cap)
        self.logger.warning(
            "Hourly limit reached, pausing",
            code=exc.code,
            used=exc.used,
            cap=exc.cap,
            cooldown_seconds=self.budget_cooldown
        )
        await self._sleep(self.budget_cooldown)
        self.budget.reset()
        self._publish()
        return self.budget_cooldown

    def tick(self) -> int:
        """Count one issued outbound call."""
        count = self.budget.increment()
        self._publish()
        return count

    @property
    def requests_this_window(self) -> int:
        return self.budget.used

    def _publish(self) -> None:
        if self.metrics is not None:
            self.metrics.set_gauge("proxy_requests_this_window", self.budget.used)
