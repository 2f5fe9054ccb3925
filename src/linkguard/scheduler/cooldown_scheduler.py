"""Periodic eviction of expired cooldown ledger entries.

Keeps the ledger bounded when many distinct users trip the link filter over
the life of the process. Runs independently of message handling; a decision
made right after an eviction pass sees exactly the cooldowns that were still
active.
"""

from __future__ import annotations

import asyncio
from typing import Callable

from linkguard.moderation.cooldown_ledger import CooldownLedger
from linkguard.util.logger import get_logger

logger = get_logger("cooldown_scheduler")


class CooldownSweepScheduler:
    """
    Background task calling ``ledger.sweep(now)`` on a fixed interval.

    Args:
        ledger: Ledger to prune.
        interval_seconds: Pause between passes.
        clock: Returns the current time in milliseconds, same clock as the policy engine.
    """

    def __init__(
        self,
        ledger: CooldownLedger,
        interval_seconds: float,
        clock: Callable[[], int],
    ) -> None:
        self._ledger = ledger
        self._interval = interval_seconds
        self._clock = clock
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> int:
        return self._ledger.sweep(self._clock())

    async def _run_loop(self) -> None:
        """Infinite loop: sleep, evict, repeat."""
        logger.info("Starting cooldown eviction (interval=%.1fs)", self._interval)
        try:
            while True:
                await asyncio.sleep(self._interval)
                try:
                    self.sweep_once()
                except Exception as exc:
                    logger.error("Unexpected error during cooldown eviction: %s", exc)
        except asyncio.CancelledError:
            logger.info("Cooldown eviction cancelled")
            raise

    def start(self) -> None:
        """Start the background task if not already running."""
        if self.running:
            logger.warning("Cooldown eviction task already running")
            return
        self._task = asyncio.create_task(self._run_loop(), name="linkguard-cooldown-eviction")

    async def shutdown(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Cooldown scheduler shutdown complete")
