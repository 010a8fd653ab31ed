"""
Fetch Cycle Scheduler

Drives AggregationEngine.fetch_all() on a fixed interval.

- One named recurring schedule ("fetch-all"); start() replaces any existing
  schedule with that name, so restarts never stack timers
- start() also enqueues one immediate run ("fetch-all-initial")
- A single worker consumes the job queue: triggers that fire while a cycle
  is executing wait their turn instead of running concurrently
- At most one recurring job waits in the queue; ticks that fire while one
  is already queued are dropped
- A failing cycle is logged and recorded; later triggers keep running
- Bounded job history (last 100 completed, last 50 failed)
"""

import asyncio
import contextlib
import itertools
from collections import deque
from datetime import datetime
from typing import Deque, Dict, Optional, Set, Tuple

from pydantic import BaseModel

from core.logging import get_logger
from core.utils.time import current_utc_datetime
from services.aggregator import AggregationEngine


SCHEDULE_NAME = "fetch-all"
INITIAL_JOB_NAME = "fetch-all-initial"
MANUAL_JOB_NAME = "fetch-all-manual"


class JobRecord(BaseModel):
    """Outcome of one scheduled fetch cycle."""

    id: int
    name: str
    status: str  # "completed" | "failed"
    started_at: datetime
    finished_at: datetime
    duration: float
    venues_succeeded: int = 0
    rate_count: int = 0
    error: Optional[str] = None


class FetchScheduler:
    """
    Single-flight scheduler for fetch cycles.

    Attributes:
        engine: AggregationEngine whose fetch_all() each job runs
        interval_seconds: Seconds between recurring triggers
        completed: Most recent completed jobs (bounded)
        failed: Most recent failed jobs (bounded)
    """

    def __init__(
        self,
        engine: AggregationEngine,
        interval_seconds: float = 30,
        keep_completed: int = 100,
        keep_failed: int = 50
    ) -> None:
        self.engine = engine
        self.interval_seconds = interval_seconds
        self.completed: Deque[JobRecord] = deque(maxlen=keep_completed)
        self.failed: Deque[JobRecord] = deque(maxlen=keep_failed)

        self._logger = get_logger(__name__)
        self._running = asyncio.Event()
        self._queue: "asyncio.Queue[Tuple[int, str]]" = asyncio.Queue()
        self._schedules: Dict[str, asyncio.Task] = {}
        # Recurring schedules with a job already waiting in the queue
        self._pending_schedules: Set[str] = set()
        self._worker: Optional[asyncio.Task] = None
        self._job_ids = itertools.count(1)
        self._active_job: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    @property
    def schedules(self) -> Dict[str, float]:
        """Active schedule names and their intervals."""
        return {name: self.interval_seconds for name, task in self._schedules.items() if not task.done()}

    # ============================================
    # Lifecycle
    # ============================================

    async def start(self) -> None:
        """Start the worker, (re)install the recurring schedule and run once now."""
        if not self._running.is_set():
            self._running.set()
            self._worker = asyncio.create_task(self._work(), name="fetch_worker")

        await self._remove_schedule(SCHEDULE_NAME)
        self._schedules[SCHEDULE_NAME] = asyncio.create_task(
            self._repeat(SCHEDULE_NAME), name=f"schedule:{SCHEDULE_NAME}"
        )
        self.enqueue(INITIAL_JOB_NAME)

        self._logger.info(f"✓ Fetch scheduler started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        """
        Remove schedules, drop queued jobs and stop the worker.

        A cycle already executing is allowed to finish.
        """
        if not self._running.is_set():
            return

        self._logger.info("Stopping fetch scheduler...")
        self._running.clear()

        for name in list(self._schedules):
            await self._remove_schedule(name)

        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._queue.task_done()
        self._pending_schedules.clear()

        await self._queue.join()

        if self._worker:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None

        self._logger.info("✓ Fetch scheduler stopped")

    async def _remove_schedule(self, name: str) -> None:
        task = self._schedules.pop(name, None)
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        self._logger.debug(f"Removed schedule '{name}'")

    # ============================================
    # Triggers
    # ============================================

    def enqueue(self, name: str) -> int:
        """Queue a fetch job; returns its id."""
        job_id = next(self._job_ids)
        self._queue.put_nowait((job_id, name))
        self._logger.debug(f"Queued job {job_id} ({name}), {self._queue.qsize()} pending")
        return job_id

    def trigger_now(self) -> int:
        """Queue a manual run behind whatever is already pending."""
        return self.enqueue(MANUAL_JOB_NAME)

    async def join(self) -> None:
        """Wait until every queued job has run."""
        await self._queue.join()

    async def _repeat(self, name: str) -> None:
        while self._running.is_set():
            await asyncio.sleep(self.interval_seconds)
            if name in self._pending_schedules:
                self._logger.debug(f"Skipping '{name}' tick, previous run still queued")
                continue
            self._pending_schedules.add(name)
            self.enqueue(name)

    # ============================================
    # Worker
    # ============================================

    async def _work(self) -> None:
        while True:
            job_id, name = await self._queue.get()
            self._pending_schedules.discard(name)
            try:
                await self._run_job(job_id, name)
            finally:
                self._queue.task_done()

    async def _run_job(self, job_id: int, name: str) -> JobRecord:
        started_at = current_utc_datetime()
        loop = asyncio.get_running_loop()
        start = loop.time()
        self._active_job = name

        try:
            snapshot = await self.engine.fetch_all()
        except Exception as e:
            duration = loop.time() - start
            self._logger.exception(f"Job {job_id} ({name}) failed after {duration:.2f}s: {e}")
            record = JobRecord(
                id=job_id,
                name=name,
                status="failed",
                started_at=started_at,
                finished_at=current_utc_datetime(),
                duration=duration,
                error=str(e) or e.__class__.__name__,
            )
            self.failed.append(record)
            return record
        finally:
            self._active_job = None

        duration = loop.time() - start
        succeeded = sum(1 for s in snapshot.exchanges if s.enabled and not s.error)
        record = JobRecord(
            id=job_id,
            name=name,
            status="completed",
            started_at=started_at,
            finished_at=current_utc_datetime(),
            duration=duration,
            venues_succeeded=succeeded,
            rate_count=len(snapshot.rates),
        )
        self.completed.append(record)
        self._logger.info(
            f"Job {job_id} ({name}) completed in {duration:.2f}s: "
            f"{succeeded} venues, {len(snapshot.rates)} rates"
        )
        return record

    def status(self) -> Dict[str, object]:
        """Summary used by the health endpoint."""
        return {
            "running": self.is_running,
            "interval_seconds": self.interval_seconds,
            "schedules": list(self.schedules),
            "pending": self._queue.qsize(),
            "active_job": self._active_job,
            "completed": len(self.completed),
            "failed": len(self.failed),
            "last_completed": self.completed[-1].model_dump(mode="json") if self.completed else None,
            "last_failed": self.failed[-1].model_dump(mode="json") if self.failed else None,
        }
