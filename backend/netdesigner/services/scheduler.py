"""
Background scheduler
====================
Periodic jobs started from the application lifespan:
- Paystack plan sync every PLAN_SYNC_INTERVAL_MINUTES
- Purge of payment analytics older than ANALYTICS_RETENTION_DAYS
"""
import asyncio
from datetime import datetime, timedelta
from typing import Optional, List

from sqlalchemy import delete

from netdesigner.core.config import settings
from netdesigner.core.database import get_session_local
from netdesigner.core.logging_config import logger
from netdesigner.models.subscription import PaymentAnalytics
from netdesigner.services.plan_sync import sync_plans


ANALYTICS_PURGE_INTERVAL = timedelta(hours=24)


async def run_plan_sync() -> dict:
    async with get_session_local()() as db:
        return await sync_plans(db)


async def purge_old_analytics(retention_days: Optional[int] = None) -> int:
    """Delete payment analytics older than the retention window"""
    cutoff = datetime.utcnow() - timedelta(days=retention_days or settings.ANALYTICS_RETENTION_DAYS)
    async with get_session_local()() as db:
        result = await db.execute(delete(PaymentAnalytics).where(PaymentAnalytics.created_at < cutoff))
        await db.commit()
    purged = result.rowcount or 0
    if purged:
        logger.info(f"[Scheduler] Purged {purged} payment analytics records older than {cutoff:%Y-%m-%d}")
    return purged


class Scheduler:
    """Runs periodic jobs as asyncio tasks"""

    def __init__(self):
        self.running = False
        self._tasks: List[asyncio.Task] = []

    async def start(self):
        if self.running:
            logger.warning("[Scheduler] Already running")
            return

        self.running = True
        if settings.PLAN_SYNC_ENABLED and settings.PAYSTACK_SECRET_KEY:
            self._tasks.append(asyncio.create_task(
                self._loop("plan sync", run_plan_sync, timedelta(minutes=settings.PLAN_SYNC_INTERVAL_MINUTES))
            ))
        else:
            logger.info("[Scheduler] Plan sync disabled")
        self._tasks.append(asyncio.create_task(
            self._loop("analytics purge", purge_old_analytics, ANALYTICS_PURGE_INTERVAL)
        ))
        logger.info(f"[Scheduler] Started {len(self._tasks)} job(s)")

    async def stop(self):
        self.running = False
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        logger.info("[Scheduler] Stopped")

    async def _loop(self, name: str, job, interval: timedelta):
        while self.running:
            try:
                await job()
            except Exception as e:
                logger.error(f"[Scheduler] Error in {name}: {e}", exc_info=True)
            await asyncio.sleep(interval.total_seconds())


scheduler = Scheduler()
