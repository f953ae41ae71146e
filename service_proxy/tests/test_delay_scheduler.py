"""
Unit tests for DelayScheduler and RequestBudget.
"""

import random

import pytest

from service_proxy.app.pacing import DelayScheduler, RequestBudget
from shared.test_helpers import FakeClock, RecordingSleep


class ScriptedRandom(random.Random):
    """Random source with a fixed ``random()`` draw and midpoint ``uniform``."""

    def __init__(self, draw: float):
        super().__init__(0)
        self.draw = draw

    def random(self):
        return self.draw

    def uniform(self, a, b):
        return (a + b) / 2


class TestRequestBudget:
    """Test cases for RequestBudget."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    def test_exceeded_only_past_cap(self, clock):
        budget = RequestBudget(cap=2, window_seconds=3600.0, clock=clock)
        budget.increment()
        budget.increment()
        assert budget.exceeded() is False
        budget.increment()
        assert budget.exceeded() is True

    def test_window_resets_counter(self, clock):
        budget = RequestBudget(cap=25, window_seconds=3600.0, clock=clock)
        for _ in range(10):
            budget.increment()
        clock.advance(3599.0)
        assert budget.used == 10
        clock.advance(1.0)
        assert budget.used == 0

    def test_reset_restarts_window(self, clock):
        budget = RequestBudget(cap=25, window_seconds=3600.0, clock=clock)
        clock.advance(3000.0)
        budget.increment()
        budget.reset()
        budget.increment()
        clock.advance(1000.0)
        # Window restarted at the reset, so 1000s later it is still running
        assert budget.used == 1


class TestDelayScheduler:
    """Test cases for DelayScheduler."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def sleep(self, clock):
        return RecordingSleep(clock)

    def _scheduler(self, clock, sleep, draw=0.99, cap=25):
        return DelayScheduler(
            RequestBudget(cap=cap, window_seconds=3600.0, clock=clock),
            min_delay=2.0,
            max_delay=5.0,
            distracted_probability=0.15,
            distracted_range=(5.0, 8.0),
            budget_cooldown=60.0,
            sleep=sleep,
            rng=ScriptedRandom(draw),
        )

    def test_rejects_inverted_range(self, clock, sleep):
        with pytest.raises(ValueError):
            DelayScheduler(RequestBudget(clock=clock), min_delay=5.0, max_delay=2.0, sleep=sleep)

    @pytest.mark.asyncio
    async def test_await_slot_regular_delay(self, clock, sleep):
        scheduler = self._scheduler(clock, sleep, draw=0.5)
        slept = await scheduler.await_slot()
        assert slept == pytest.approx(3.5)
        assert sleep.calls == [pytest.approx(3.5)]

    @pytest.mark.asyncio
    async def test_await_slot_distracted_delay(self, clock, sleep):
        scheduler = self._scheduler(clock, sleep, draw=0.1)
        slept = await scheduler.await_slot()
        assert slept == pytest.approx(3.5 + 6.5)
        assert len(sleep.calls) == 2

    @pytest.mark.asyncio
    async def test_await_slot_stays_within_bounds(self, clock, sleep):
        scheduler = DelayScheduler(
            RequestBudget(clock=clock),
            min_delay=2.0,
            max_delay=5.0,
            distracted_probability=0.0,
            sleep=sleep,
            rng=random.Random(42),
        )
        for _ in range(50):
            slept = await scheduler.await_slot()
            assert 2.0 <= slept <= 5.0

    def test_tick_and_check_budget(self, clock, sleep):
        scheduler = self._scheduler(clock, sleep, cap=2)
        assert scheduler.check_budget() is True
        scheduler.tick()
        scheduler.tick()
        assert scheduler.check_budget() is True
        scheduler.tick()
        assert scheduler.check_budget() is False
        assert scheduler.requests_this_window == 3

    @pytest.mark.asyncio
    async def test_wait_for_budget_noop_when_allowed(self, clock, sleep):
        scheduler = self._scheduler(clock, sleep)
        assert await scheduler.wait_for_budget() == 0.0
        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_wait_for_budget_blocks_then_resets(self, clock, sleep):
        scheduler = self._scheduler(clock, sleep, cap=1)
        scheduler.tick()
        scheduler.tick()

        waited = await scheduler.wait_for_budget()

        assert waited == 60.0
        assert sleep.calls == [60.0]
        assert scheduler.requests_this_window == 0
        assert scheduler.check_budget() is True
