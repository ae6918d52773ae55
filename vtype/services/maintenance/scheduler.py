"""
Periodic token store maintenance.

Three sweeps run as background asyncio tasks aligned to UTC boundaries of
their interval:

- access tokens: top of every hour
- refresh tokens: midnight
- sessions: every sixth hour (00, 06, 12, 18)

An operator can also run all of them at once through
``trigger_manual_cleanup``.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

from vtype.core.config import Settings, settings as default_settings
from vtype.core.logging import logger
from vtype.schemas.admin import CleanupReport
from vtype.services.maintenance.token_cleanup import TokenCleanupService


def seconds_until_next_run(interval: int, now: Optional[float] = None) -> float:
    """Seconds from ``now`` to the next epoch-aligned multiple of ``interval``."""
    now = time.time() if now is None else now
    remaining = interval - (now % interval)
    return remaining if remaining > 0 else float(interval)


@dataclass(frozen=True)
class ScheduledSweep:
    name: str
    interval: int
    run: Callable[[], Awaitable[int]]
    log_stats: bool = True


class CleanupScheduler:
    def __init__(self, cleanup: TokenCleanupService, settings: Settings = default_settings):
        self.cleanup = cleanup
        self.sweeps: List[ScheduledSweep] = [
            ScheduledSweep(
                "access_tokens",
                settings.ACCESS_TOKEN_SWEEP_INTERVAL_SECONDS,
                cleanup.cleanup_expired_access_tokens
            ),
            ScheduledSweep(
                "refresh_tokens",
                settings.REFRESH_TOKEN_SWEEP_INTERVAL_SECONDS,
                cleanup.cleanup_expired_refresh_tokens
            ),
            ScheduledSweep(
                "sessions",
                settings.SESSION_SWEEP_INTERVAL_SECONDS,
                cleanup.cleanup_inactive_sessions,
                log_stats=False
            ),
        ]
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks.values())

    async def run_sweep(self, sweep: ScheduledSweep) -> int:
        """Run one sweep, logging store statistics around it."""
        logger.info("Running scheduled cleanup", extra={"sweep": sweep.name})
        if sweep.log_stats:
            stats = await self.cleanup.get_store_stats()
            if stats is not None:
                logger.info("Before cleanup", extra={"sweep": sweep.name, "stats": stats.to_wire()})

        cleaned = await sweep.run()

        if sweep.log_stats:
            stats = await self.cleanup.get_store_stats()
            if stats is not None:
                logger.info("After cleanup", extra={"sweep": sweep.name, "stats": stats.to_wire()})
        return cleaned

    async def _loop(self, sweep: ScheduledSweep) -> None:
        try:
            while True:
                await asyncio.sleep(seconds_until_next_run(sweep.interval))
                try:
                    await self.run_sweep(sweep)
                except Exception as e:
                    logger.error(
                        "Scheduled cleanup failed",
                        extra={"sweep": sweep.name, "error": str(e), "error_type": type(e).__name__}
                    )
        except asyncio.CancelledError:
            logger.debug("Cleanup task cancelled", extra={"sweep": sweep.name})
            raise

    def start(self) -> None:
        """Start one background task per sweep."""
        if self.running:
            logger.warning("Cleanup schedulers already running")
            return
        logger.info("Initializing token cleanup schedulers")
        for sweep in self.sweeps:
            self._tasks[sweep.name] = asyncio.create_task(
                self._loop(sweep), name=f"cleanup:{sweep.name}"
            )
        logger.info(
            "Token cleanup schedulers initialized",
            extra={"intervals": {sweep.name: sweep.interval for sweep in self.sweeps}}
        )

    async def stop(self) -> None:
        if not self._tasks:
            return
        logger.info("Stopping cleanup schedulers")
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    async def trigger_manual_cleanup(self) -> CleanupReport:
        """Run every sweep concurrently and report store size before and after."""
        logger.info("Starting manual cleanup")
        before = await self.cleanup.get_store_stats()

        access_cleaned, refresh_cleaned, sessions_cleaned = await asyncio.gather(
            self.cleanup.cleanup_expired_access_tokens(),
            self.cleanup.cleanup_expired_refresh_tokens(),
            self.cleanup.cleanup_inactive_sessions(),
        )

        after = await self.cleanup.get_store_stats()
        report = CleanupReport(
            access_tokens_cleaned=access_cleaned,
            refresh_tokens_cleaned=refresh_cleaned,
            sessions_cleaned=sessions_cleaned,
            before_stats=before,
            after_stats=after,
        )
        logger.info("Manual cleanup completed", extra={"report": report.to_wire()})
        return report
