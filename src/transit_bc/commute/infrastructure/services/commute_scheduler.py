"""Commute monitor scheduler.

This module provides a background scheduler that checks the commute routes
of every user at regular intervals while the API is running.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from core.config import settings
from core.database import SessionLocal, init_db
from src.transit_bc.commute.infrastructure.services.commute_monitor import CommuteMonitor
from src.transit_bc.shared.domain.time_utils import utcnow

logger = logging.getLogger(__name__)


class CommuteMonitorScheduler:
    """Background scheduler for commute route checks."""

    # Check interval in seconds
    CHECK_INTERVAL = 60
    # Maximum time allowed for a single pass over all routes
    CHECK_TIMEOUT = 45

    def __init__(self, monitor_factory=None):
        self._monitor_factory = monitor_factory
        self._monitor: Optional[CommuteMonitor] = None
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._last_check: Optional[datetime] = None
        self._check_count = 0
        self._error_count = 0
        self._last_stats: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def monitor(self) -> CommuteMonitor:
        if self._monitor is None:
            if self._monitor_factory is None:
                from core.containers import container

                self._monitor_factory = container.commute_monitor
            self._monitor = self._monitor_factory()
        return self._monitor

    @property
    def status(self) -> dict:
        """Get scheduler status."""
        return {
            "running": self._running,
            "last_check": self._last_check.isoformat() if self._last_check else None,
            "check_count": self._check_count,
            "error_count": self._error_count,
            "interval_seconds": self.CHECK_INTERVAL,
            "last_stats": self._last_stats,
        }

    async def start(self):
        """Start the background check task."""
        if self._running:
            logger.warning("Commute monitor scheduler already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._check_loop())
        logger.info(f"Commute monitor scheduler started (interval: {self.CHECK_INTERVAL}s)")

    async def stop(self):
        """Stop the background check task."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Commute monitor scheduler stopped")

    async def _check_loop(self):
        """Main check loop that runs in background."""
        # Initial delay to let the app fully start
        await asyncio.sleep(5)

        while self._running:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                logger.info("Commute monitor scheduler task cancelled")
                raise
            except asyncio.TimeoutError:
                self._error_count += 1
                logger.error(f"Commute check timeout after {self.CHECK_TIMEOUT}s - will retry in {self.CHECK_INTERVAL}s")
            except Exception as e:
                self._error_count += 1
                logger.error(f"Commute check error: {e} - will retry in {self.CHECK_INTERVAL}s")

            await asyncio.sleep(self.CHECK_INTERVAL)

    async def run_once(self) -> dict:
        """Perform a single pass over today's commute routes with timeout."""
        db = SessionLocal()
        try:
            stats = await asyncio.wait_for(
                self.monitor.check_commute_routes(db),
                timeout=self.CHECK_TIMEOUT,
            )
        finally:
            db.close()

        self._last_check = utcnow()
        self._check_count += 1
        self._last_stats = stats
        if stats.get("alerts"):
            logger.info(
                f"Commute check #{self._check_count}: "
                f"{stats['checked']}/{stats['routes']} routes, {stats['alerts']} alerts"
            )
        return stats


# Global scheduler instance
commute_scheduler = CommuteMonitorScheduler()


@asynccontextmanager
async def lifespan_with_scheduler(app):
    """FastAPI lifespan context manager that starts/stops the commute monitor.

    Tables are created on startup outside production; production runs Alembic.
    """
    if not settings.is_production:
        init_db()

    if settings.COMMUTE_MONITOR_ENABLED:
        await commute_scheduler.start()
    else:
        logger.info("Commute monitor disabled")

    yield

    await commute_scheduler.stop()
