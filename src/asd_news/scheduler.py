"""Daily scheduler for the update cycle."""

import asyncio
import signal

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from .config.settings import Settings
from .pipeline.update import UpdatePipeline

logger = structlog.get_logger()


class UpdateScheduler:
    """Runs the update cycle on a cron schedule (09:00 daily by default)."""

    def __init__(self, settings: Settings, pipeline: UpdatePipeline = None):
        self.settings = settings
        self.pipeline = pipeline or UpdatePipeline(settings)
        self.scheduler = AsyncIOScheduler()
        self._stopped = asyncio.Event()

    def setup_jobs(self):
        self.scheduler.add_job(
            self.run_update,
            CronTrigger.from_crontab(self.settings.schedule_cron),
            id="update_news",
            name="Fetch and summarize ASD news",
            replace_existing=True,
            misfire_grace_time=3600,
        )
        logger.info("jobs_configured", cron=self.settings.schedule_cron)

    async def run_update(self):
        logger.info("scheduled_update_started")
        result = await self.pipeline.run_update_cycle()
        logger.info("scheduled_update_finished", success=result.success, message=result.message)
        return result

    def start(self):
        self.setup_jobs()
        self.scheduler.start()
        logger.info("scheduler_started", jobs=len(self.scheduler.get_jobs()))

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self._stopped.set()
        logger.info("scheduler_stopped")

    async def wait(self):
        await self._stopped.wait()


async def run_scheduler(settings: Settings, run_now: bool = False) -> int:
    """Run until interrupted, or once and return when run_now is set."""
    worker = UpdateScheduler(settings)

    if run_now:
        result = await worker.run_update()
        return 0 if result.success else 1

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, worker.stop)

    worker.start()
    await worker.wait()
    return 0
