"""Background jobs: hourly conflict sweep, 5-minute alert sweep, cache cleanup."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from weatherguard.config import settings
from weatherguard.services.suggestion_cache import SuggestionCache, suggestion_cache
from weatherguard.services.weather_monitor import WeatherMonitor, weather_monitor

logger = logging.getLogger(__name__)

# A run still in progress when its trigger fires again is skipped, not queued.
JOB_DEFAULTS = {"max_instances": 1, "coalesce": True, "misfire_grace_time": 60}


def create_scheduler(
    monitor: WeatherMonitor | None = None,
    cache: SuggestionCache | None = None,
) -> AsyncIOScheduler:
    monitor = monitor if monitor is not None else weather_monitor
    cache = cache if cache is not None else suggestion_cache
    scheduler = AsyncIOScheduler(timezone="UTC", job_defaults=JOB_DEFAULTS)

    async def _run_conflict_sweep():
        logger.info("Running hourly weather check...")
        try:
            await monitor.check_all_flights()
        except Exception as e:
            logger.error(f"Weather check failed: {e}")

    async def _run_alert_sweep():
        logger.info("Running 5-minute weather alert check...")
        try:
            count = await monitor.generate_weather_alerts()
            logger.info(f"Generated {count} weather alerts")
        except Exception as e:
            logger.error(f"Weather alert generation failed: {e}")

    async def _cleanup_suggestions():
        await cache.clear_expired()

    scheduler.add_job(_run_conflict_sweep, CronTrigger(minute=0), id="conflict_sweep")
    scheduler.add_job(_run_alert_sweep, CronTrigger(minute="*/5"), id="alert_sweep")
    scheduler.add_job(
        _cleanup_suggestions,
        IntervalTrigger(minutes=settings.suggestion_cache_sweep_minutes),
        id="suggestion_cache_cleanup",
    )
    return scheduler
