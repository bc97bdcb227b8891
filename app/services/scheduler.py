# app/services/scheduler.py
"""
Scheduler for the scrape and retention jobs.

Every tick (default: every 5 minutes) scrapes CrowdMonitor and appends the
snapshot. On ticks inside the daily cleanup window (default: 00:00-00:05 UTC)
the retention cleanup runs as well. The two tasks fail independently: an error
in one is logged and never prevents the other or the next tick.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.config import settings
from app.database import SessionLocal
from app.services.crowdmonitor_client import scrape_snapshot
from app.services.occupancy_store import append_records, cleanup_old_data
from app.utils.logger import get_logger

logger = get_logger(__name__)

TICK_JOB_ID = "pool_occupancy_tick"


@dataclass
class TickResult:
    tick_time: datetime
    scraped: Optional[int] = None
    deleted: Optional[int] = None
    scrape_error: Optional[str] = None
    cleanup_error: Optional[str] = None
    cleanup_ran: bool = False

    @property
    def ok(self) -> bool:
        return self.scrape_error is None and self.cleanup_error is None


async def scrape_and_store(session_factory=SessionLocal) -> int:
    """Fetch one snapshot and append it. Errors propagate to the caller."""
    readings = await scrape_snapshot()
    if not readings:
        logger.info("No pool data received")
        return 0

    db = session_factory()
    try:
        stored = append_records(db, readings)
    finally:
        db.close()
    logger.info(f"💾 Stored {stored} pool records at {readings[0].timestamp.isoformat()}")
    return stored


def run_cleanup(session_factory=SessionLocal, now: Optional[datetime] = None) -> int:
    db = session_factory()
    try:
        return cleanup_old_data(db, now=now)
    finally:
        db.close()


def should_run_cleanup(tick_time: datetime) -> bool:
    """True only inside the daily cleanup window (UTC)."""
    if tick_time.tzinfo is not None:
        tick_time = tick_time.astimezone(timezone.utc)
    return (
        tick_time.hour == settings.CLEANUP_HOUR_UTC
        and tick_time.minute < settings.CLEANUP_WINDOW_MINUTES
    )


async def run_tick(tick_time: Optional[datetime] = None, session_factory=SessionLocal) -> TickResult:
    """
    One scheduled tick: scrape task, then (inside the window) cleanup task.
    Each task has its own error boundary; this coroutine never raises.
    """
    tick_time = tick_time or datetime.now(timezone.utc)
    result = TickResult(tick_time=tick_time)

    try:
        result.scraped = await scrape_and_store(session_factory)
    except Exception as e:
        result.scrape_error = str(e) or type(e).__name__
        logger.error(f"❌ Scrape failed: {type(e).__name__}: {e}", exc_info=True)

    if should_run_cleanup(tick_time):
        result.cleanup_ran = True
        try:
            result.deleted = run_cleanup(session_factory)
        except Exception as e:
            result.cleanup_error = str(e) or type(e).__name__
            logger.error(f"❌ Cleanup failed: {type(e).__name__}: {e}", exc_info=True)

    return result


class PoolScheduler:
    """
    Runs run_tick() on a fixed interval inside the application's event loop.
    Started and stopped from the FastAPI startup/shutdown hooks.
    """

    def __init__(
        self,
        interval_minutes: int | None = None,
        run_on_start: bool | None = None,
    ):
        self.interval_minutes = interval_minutes or settings.SCRAPE_INTERVAL_MINUTES
        self.run_on_start = run_on_start if run_on_start is not None else settings.SCHEDULER_RUN_ON_START

        self._scheduler = AsyncIOScheduler(timezone=timezone.utc)
        self._scheduler.add_listener(self._on_job_executed, EVENT_JOB_EXECUTED)
        self._scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def _on_job_executed(self, event: JobExecutionEvent) -> None:
        result = event.retval
        if isinstance(result, TickResult) and not result.ok:
            logger.warning(f"Tick {event.job_id} completed with errors: {result}")
        else:
            logger.debug(f"Job {event.job_id} executed at {datetime.now(timezone.utc)}")

    def _on_job_error(self, event: JobExecutionEvent) -> None:
        logger.error(f"Job {event.job_id} failed with exception: {event.exception}")

    async def _tick(self) -> TickResult:
        return await run_tick(datetime.now(timezone.utc))

    def start(self) -> None:
        trigger = IntervalTrigger(minutes=self.interval_minutes, timezone=timezone.utc)
        job_kwargs = {}
        if self.run_on_start:
            job_kwargs["next_run_time"] = datetime.now(timezone.utc)

        self._scheduler.add_job(
            self._tick,
            trigger=trigger,
            id=TICK_JOB_ID,
            name="Pool occupancy scrape + retention",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **job_kwargs,
        )
        self._scheduler.start()
        logger.info(
            f"⏱  Scheduler started — scrape every {self.interval_minutes} min, "
            f"cleanup at {settings.CLEANUP_HOUR_UTC:02d}:00-"
            f"{settings.CLEANUP_HOUR_UTC:02d}:{settings.CLEANUP_WINDOW_MINUTES:02d} UTC"
        )

    def stop(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
