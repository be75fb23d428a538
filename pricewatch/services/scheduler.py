"""
PriceWatch Scheduler Service
Periodic price checks for every owner with APScheduler
"""
import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from pricewatch.config import settings
from pricewatch.database import get_db_context
from pricewatch.services.price_check import PriceCheckService, price_check_service

logger = logging.getLogger(__name__)


class SchedulerService:
    """Background job scheduler for price checking"""

    def __init__(self, checker: Optional[PriceCheckService] = None):
        self.checker = checker or price_check_service
        self.scheduler = AsyncIOScheduler()
        self._is_running = False
        self._stats = {
            "runs": 0,
            "last_check": None,
            "last_outcomes": {},
        }

    def start(self):
        """Start the scheduler"""
        if self._is_running:
            return

        self.scheduler.add_job(
            self.check_all_prices,
            IntervalTrigger(seconds=settings.CHECK_INTERVAL_SECONDS),
            id="price_check",
            name="Price Check",
            replace_existing=True,
            max_instances=1,
        )

        self.scheduler.start()
        self._is_running = True
        logger.info(f"Scheduler started with {settings.CHECK_INTERVAL_SECONDS}s interval")

    def stop(self):
        """Stop the scheduler"""
        if not self._is_running:
            return

        self.scheduler.shutdown(wait=False)
        self._is_running = False
        logger.info("Scheduler stopped")

    def is_running(self) -> bool:
        return self._is_running

    def get_stats(self) -> dict:
        return {
            **self._stats,
            "is_running": self._is_running,
        }

    async def check_all_prices(self):
        """Run one price check pass across all owners"""
        logger.info("Starting scheduled price check")
        start_time = datetime.utcnow()

        try:
            with get_db_context() as db:
                outcomes = await self.checker.run_check(db)
        except Exception:
            logger.exception("Scheduled price check aborted")
            return

        summary = {}
        for outcome in outcomes:
            summary[outcome.status] = summary.get(outcome.status, 0) + 1

        self._stats["runs"] += 1
        self._stats["last_check"] = datetime.utcnow()
        self._stats["last_outcomes"] = summary

        duration = (datetime.utcnow() - start_time).total_seconds()
        logger.info(f"Scheduled price check completed in {duration:.2f}s: {summary}")


scheduler_service = SchedulerService()
