"""
Unit Tests for the Fetch Scheduler

Run with:
    pytest tests/unit/test_scheduler.py -v
"""

import asyncio

import pytest

from core.schemas import ExchangeStatus, FundingRatesSnapshot
from core.utils.time import current_utc_datetime
from services.scheduler import (
    INITIAL_JOB_NAME,
    MANUAL_JOB_NAME,
    SCHEDULE_NAME,
    FetchScheduler,
)
from tests.unit.fakes import build_rate


class FakeEngine:
    """Counts fetch_all calls and the peak number running at once."""

    def __init__(self, delay: float = 0.0, fail_times: int = 0):
        self.delay = delay
        self.fail_times = fail_times
        self.calls = 0
        self.running = 0
        self.max_running = 0

    async def fetch_all(self) -> FundingRatesSnapshot:
        self.calls += 1
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        try:
            await asyncio.sleep(self.delay)
            if self.calls <= self.fail_times:
                raise RuntimeError("database exploded")
            return FundingRatesSnapshot(
                rates=[build_rate("dydx", "BTC-USD", 0.1)],
                exchanges=[
                    ExchangeStatus(id="dydx", name="dYdX v4", enabled=True),
                    ExchangeStatus(id="gmx", name="GMX", enabled=True, error="HTTP 502: Bad Gateway"),
                ],
                last_updated=current_utc_datetime(),
            )
        finally:
            self.running -= 1


class TestFetchScheduler:

    @pytest.mark.asyncio
    async def test_start_runs_initial_job(self):
        engine = FakeEngine()
        scheduler = FetchScheduler(engine, interval_seconds=60)

        await scheduler.start()
        await scheduler.join()

        assert engine.calls == 1
        [record] = scheduler.completed
        assert record.name == INITIAL_JOB_NAME
        assert record.status == "completed"
        assert record.venues_succeeded == 1
        assert record.rate_count == 1
        assert scheduler.schedules == {SCHEDULE_NAME: 60}

        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_recurring_trigger(self):
        engine = FakeEngine()
        scheduler = FetchScheduler(engine, interval_seconds=0.05)

        await scheduler.start()
        await asyncio.sleep(0.3)
        await scheduler.stop()

        assert engine.calls >= 3

    @pytest.mark.asyncio
    async def test_single_flight(self):
        engine = FakeEngine(delay=0.05)
        scheduler = FetchScheduler(engine, interval_seconds=60)

        await scheduler.start()
        for _ in range(3):
            scheduler.trigger_now()
        await scheduler.join()
        await scheduler.stop()

        assert engine.calls == 4
        assert engine.max_running == 1
        assert [r.name for r in scheduler.completed][1:] == [MANUAL_JOB_NAME] * 3

    @pytest.mark.asyncio
    async def test_slow_cycles_do_not_pile_up_recurring_jobs(self):
        engine = FakeEngine(delay=0.05)
        scheduler = FetchScheduler(engine, interval_seconds=0.01)

        await scheduler.start()
        await asyncio.sleep(0.02)
        peak = 0
        for _ in range(60):
            peak = max(peak, scheduler.status()["pending"])
            await asyncio.sleep(0.01)
        await scheduler.stop()

        assert peak <= 1
        assert engine.max_running == 1
        assert SCHEDULE_NAME in {r.name for r in scheduler.completed}

    @pytest.mark.asyncio
    async def test_manual_trigger_queues_behind_recurring_job(self):
        engine = FakeEngine(delay=0.3)
        scheduler = FetchScheduler(engine, interval_seconds=0.01)

        await scheduler.start()
        await asyncio.sleep(0.02)
        scheduler.trigger_now()

        assert scheduler.status()["pending"] == 2
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_failed_job_does_not_stop_later_jobs(self):
        engine = FakeEngine(fail_times=1)
        scheduler = FetchScheduler(engine, interval_seconds=60)

        await scheduler.start()
        scheduler.trigger_now()
        await scheduler.join()
        await scheduler.stop()

        [failed] = scheduler.failed
        assert failed.error == "database exploded"
        assert len(scheduler.completed) == 1

    @pytest.mark.asyncio
    async def test_restart_replaces_schedule(self):
        scheduler = FetchScheduler(FakeEngine(), interval_seconds=60)

        await scheduler.start()
        await scheduler.start()

        assert list(scheduler.schedules) == [SCHEDULE_NAME]
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_stop_waits_for_running_job(self):
        engine = FakeEngine(delay=0.1)
        scheduler = FetchScheduler(engine, interval_seconds=60)

        await scheduler.start()
        await asyncio.sleep(0.02)
        await scheduler.stop()

        assert engine.running == 0
        assert len(scheduler.completed) == 1
        assert scheduler.is_running is False
        assert scheduler.schedules == {}

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        scheduler = FetchScheduler(FakeEngine())
        await scheduler.stop()
        assert scheduler.is_running is False

    @pytest.mark.asyncio
    async def test_history_is_bounded(self):
        scheduler = FetchScheduler(FakeEngine(), interval_seconds=60, keep_completed=2)

        await scheduler.start()
        for _ in range(4):
            scheduler.trigger_now()
        await scheduler.join()
        await scheduler.stop()

        assert len(scheduler.completed) == 2
        assert [r.id for r in scheduler.completed] == [4, 5]

    @pytest.mark.asyncio
    async def test_status(self):
        scheduler = FetchScheduler(FakeEngine(), interval_seconds=60)
        await scheduler.start()
        await scheduler.join()

        status = scheduler.status()

        assert status["running"] is True
        assert status["completed"] == 1
        assert status["last_completed"]["name"] == INITIAL_JOB_NAME
        assert status["last_failed"] is None
        await scheduler.stop()
