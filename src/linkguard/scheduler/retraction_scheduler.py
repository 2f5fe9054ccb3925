"""retraction_scheduler.py
=========================

Deletes transient bot replies (link warnings, usage and permission notices)
once their lifetime elapses. Scheduling never blocks the caller, and a failed
retraction is logged and dropped so it can never reach the event loop. On
shutdown, pending retractions are cancelled and simply lapse.
"""
import asyncio
import heapq
from typing import Dict

from linkguard.gateway.errors import AlreadyGone, PlatformError
from linkguard.gateway.interface import MessageHandle, ModerationGateway
from linkguard.util.logger import get_logger

logger = get_logger("retraction_scheduler")


class RetractionScheduler:
    """Min-heap of pending message deletions served by a single runner task."""

    def __init__(self, gateway: ModerationGateway) -> None:
        self.gateway = gateway
        self.heap: list[tuple[float, int, MessageHandle]] = []
        self.pending_keys: Dict[MessageHandle, int] = {}
        self.cancelled_ids: set[int] = set()
        self.counter: int = 0
        self.runner_task: asyncio.Task[None] | None = None
        self.condition: asyncio.Condition = asyncio.Condition()

    def ensure_runner(self) -> None:
        """Create the background runner task if it is not already active."""
        loop = asyncio.get_running_loop()
        if self.runner_task is None or self.runner_task.done():
            self.runner_task = loop.create_task(self.run(), name="linkguard-retraction-scheduler")

    async def schedule(self, handle: MessageHandle, delay_seconds: float) -> None:
        """Delete ``handle`` after ``delay_seconds``; non-positive delays delete right away.

        Rescheduling a handle that is already pending replaces the earlier job.
        """
        if delay_seconds <= 0:
            await self.execute(handle)
            return

        loop = asyncio.get_running_loop()
        run_at = loop.time() + delay_seconds

        async with self.condition:
            self.ensure_runner()
            if handle in self.pending_keys:
                self.cancelled_ids.add(self.pending_keys[handle])

            self.counter += 1
            job_id = self.counter
            heapq.heappush(self.heap, (run_at, job_id, handle))
            self.pending_keys[handle] = job_id
            self.condition.notify_all()

    async def cancel(self, handle: MessageHandle) -> bool:
        """Cancel a pending retraction. Returns ``True`` if one was pending."""
        async with self.condition:
            job_id = self.pending_keys.pop(handle, None)
            if job_id is None:
                return False

            self.cancelled_ids.add(job_id)
            self.condition.notify_all()
            return True

    async def shutdown(self) -> None:
        """Stop the runner and drop every pending retraction without executing it."""
        async with self.condition:
            if self.runner_task:
                self.runner_task.cancel()
            dropped = len(self.pending_keys)
            self.heap.clear()
            self.pending_keys.clear()
            self.cancelled_ids.clear()
            self.condition.notify_all()

        if self.runner_task:
            try:
                await self.runner_task
            except asyncio.CancelledError:
                pass
            finally:
                self.runner_task = None

        if dropped:
            logger.info("Dropped %d pending retraction(s) on shutdown", dropped)

    async def run(self) -> None:
        """Background loop that releases retractions when their timers elapse."""
        loop = asyncio.get_running_loop()
        while True:
            async with self.condition:
                while True:
                    if not self.heap:
                        await self.condition.wait()
                        continue

                    run_at, job_id, handle = self.heap[0]

                    if job_id in self.cancelled_ids:
                        heapq.heappop(self.heap)
                        self.cancelled_ids.remove(job_id)
                        continue

                    delay = run_at - loop.time()
                    if delay > 0:
                        try:
                            await asyncio.wait_for(self.condition.wait(), timeout=delay)
                        except asyncio.TimeoutError:
                            pass
                        continue

                    heapq.heappop(self.heap)
                    self.pending_keys.pop(handle, None)
                    due = handle
                    break

            await self.execute(due)

    async def execute(self, handle: MessageHandle) -> None:
        """Delete the message behind ``handle``, treating an already-deleted message as done."""
        try:
            await self.gateway.delete_message(handle.channel_id, handle.message_id)
            logger.debug("Retracted message %s in channel %s", handle.message_id, handle.channel_id)
        except AlreadyGone:
            pass
        except PlatformError as exc:
            logger.warning("Could not retract message %s: %s", handle.message_id, exc)
        except Exception as exc:
            logger.error("Unexpected error retracting message %s: %s", handle.message_id, exc, exc_info=True)
