import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from aimrank.config import settings
from aimrank.services.leaderboard import LeaderboardService

logger = logging.getLogger(__name__)

# APScheduler logs every run at INFO
logging.getLogger("apscheduler").setLevel(logging.WARNING)
logging.getLogger("apscheduler.executors.default").setLevel(logging.WARNING)

LEADERBOARD_DRIFT_JOB_ID = "leaderboard_drift"

_scheduler: AsyncIOScheduler | None = None


async def job_leaderboard_drift(service: LeaderboardService):
    """
    Simulate bots playing between refreshes.
    Runs every LEADERBOARD_REFRESH_SECONDS.
    """
    try:
        await service.refresh()
    except Exception as e:
        logger.error(f"Leaderboard drift tick failed: {e}", exc_info=True)


async def setup_scheduler(service: LeaderboardService, interval_seconds: int | None = None) -> AsyncIOScheduler:
    """Start the scheduler with the drift job; repeated calls reuse it."""
    global _scheduler
    if _scheduler:
        return _scheduler
    interval_seconds = interval_seconds or settings.leaderboard_refresh_seconds
    _scheduler = AsyncIOScheduler(timezone="UTC")
    # a tick never overlaps itself; missed ticks collapse into one
    _scheduler.add_job(
        job_leaderboard_drift,
        IntervalTrigger(seconds=interval_seconds),
        args=[service],
        id=LEADERBOARD_DRIFT_JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    _scheduler.start()
    logger.info(f"Scheduler started: leaderboard drift every {interval_seconds}s")
    return _scheduler


def shutdown_scheduler() -> None:
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
    _scheduler = None
