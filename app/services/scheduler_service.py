import logging
from datetime import datetime
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.services.upstream_cache import UpstreamDataService


logger = logging.getLogger(__name__)

JOB_ID = "cache_warm"


class CacheWarmScheduler:
    """Scheduler that keeps the upstream cache warm in the background"""

    def __init__(self):
        self.scheduler: AsyncIOScheduler | None = None
        self._service: UpstreamDataService | None = None

    async def _warm_job(self) -> None:
        """Background job that refreshes every upstream source"""
        if self._service is None:
            return
        logger.info("Scheduled cache warm triggered")
        try:
            cards = await self._service.refresh_all()
            logger.info(
                "Cache warm finished: %s",
                ", ".join(f"{kind.value}={len(card.items)} items" for kind, card in cards.items()),
            )
        except Exception as e:
            logger.error(f"Exception in scheduled cache warm: {e}", exc_info=True)

    def start(self, service: UpstreamDataService, cron_expression: str) -> None:
        """Start the scheduler with the cache warm job"""
        if self.scheduler and self.scheduler.running:
            logger.warning("Scheduler already running")
            return

        try:
            trigger = CronTrigger.from_crontab(cron_expression)
        except (ValueError, KeyError) as exc:
            logger.error("Invalid cron expression '%s': %s", cron_expression, exc)
            raise

        self._service = service
        self.scheduler = AsyncIOScheduler(timezone='UTC')
        self.scheduler.add_job(
            self._warm_job,
            trigger=trigger,
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
        )

        self.scheduler.start()
        next_time = self.get_next_run_time()
        logger.info(
            "Scheduler started. Next cache warm: %s",
            next_time.isoformat() if next_time else "unknown"
        )

    def shutdown(self) -> None:
        """Shutdown the scheduler"""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")
        self.scheduler = None
        self._service = None

    def get_next_run_time(self) -> datetime | None:
        """Get next scheduled warm time"""
        if not self.scheduler:
            return None
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None


cache_warm_scheduler = CacheWarmScheduler()
