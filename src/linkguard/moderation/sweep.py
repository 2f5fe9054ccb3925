"""
Retroactive link sweep over recent channel history.

A sweep is a clean-slate pass: every non-bot, non-administrator message with a
link in the fetched batch is deleted, whatever the cooldown ledger says.
Deletions run one at a time with a pause in between to stay under the
platform's rate limits, and sweeps of the same channel are serialized so two
requests never race to delete the same messages.
"""

from __future__ import annotations

import asyncio
import re
from typing import Awaitable, Callable, Dict

from linkguard.configuration.app_configuration import ModerationConfig
from linkguard.gateway.errors import AlreadyGone, PlatformError, PlatformTransient
from linkguard.gateway.interface import ModerationGateway
from linkguard.moderation.datatypes import (
    DecisionReason,
    MessageEvent,
    ModerationDecision,
    SweepResult,
    SweepStatus,
)
from linkguard.moderation.link_detector import contains_link
from linkguard.moderation.roles import is_moderation_exempt, is_sweep_authorized
from linkguard.util.logger import get_logger

logger = get_logger("sweep")

MIN_SWEEP_COUNT = 1
MAX_SWEEP_COUNT = 100

SWEEP_COMMAND = ".check"
_SWEEP_COMMAND_PATTERN = re.compile(r"^\.check(?:\s+(?P<arg>\S.*?))?\s*$", re.IGNORECASE)


class InvalidSweepArgument(ValueError):
    """Raised when ``.check`` is given a missing or non-integer count."""


def parse_sweep_command(content: str) -> int | None:
    """Parse a ``.check <N>`` text command.

    Returns
    -------
    int | None
        The requested count, or ``None`` if ``content`` is not a sweep command.
        Range checking is left to :meth:`SweepCoordinator.sweep`.

    Raises
    ------
    InvalidSweepArgument
        The command is present but ``N`` is missing or not an integer.
    """
    match = _SWEEP_COMMAND_PATTERN.match((content or "").strip())
    if match is None:
        return None

    arg = match.group("arg")
    if arg is None:
        raise InvalidSweepArgument("missing message count")
    try:
        return int(arg)
    except ValueError:
        raise InvalidSweepArgument(f"not a number: {arg!r}") from None


def classify_for_sweep(event: MessageEvent) -> ModerationDecision:
    """Decide whether a historical message is removed by a sweep.

    Unlike live moderation there is no channel or cooldown check: the channel
    was chosen by the requester and every match is deleted.
    """
    if event.is_bot_author:
        return ModerationDecision.ignore(DecisionReason.BOT_AUTHOR)
    if not contains_link(event.body):
        return ModerationDecision.ignore(DecisionReason.NO_LINK_FOUND)
    if is_moderation_exempt(event.actor_role):
        return ModerationDecision.ignore(DecisionReason.PRIVILEGED_ACTOR)
    return ModerationDecision(should_delete=True, should_warn=False, reason=DecisionReason.DELETED)


class SweepCoordinator:
    """Runs authorized sweeps against a moderation gateway."""

    def __init__(
        self,
        gateway: ModerationGateway,
        config: ModerationConfig,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.gateway = gateway
        self.config = config
        self._sleep = sleep
        # Locks live only while a sweep of the channel is running or queued.
        self._channel_locks: Dict[int, asyncio.Lock] = {}
        self._lock_users: Dict[int, int] = {}

    def is_running(self, channel_id: int) -> bool:
        lock = self._channel_locks.get(channel_id)
        return lock is not None and lock.locked()

    async def sweep(
        self,
        channel_id: int,
        count: int,
        requester_id: int,
        *,
        before_message_id: int | None = None,
    ) -> SweepResult:
        """Delete link messages among the last ``count`` messages of a channel.

        Parameters
        ----------
        channel_id:
            Channel whose history is scanned.
        count:
            Number of recent messages to scan, between 1 and 100.
        requester_id:
            User asking for the sweep; must be on the bot admin allow-list.
        before_message_id:
            Only scan messages older than this one. The ``.check`` text command
            passes its own id so the command is not counted among the ``count``.

        Returns
        -------
        SweepResult
            ``UNAUTHORIZED`` or ``INVALID_ARGUMENT`` without touching the
            platform, ``FAILED`` if history could not be read, otherwise
            ``COMPLETED`` with the number of deleted messages.
        """
        if not is_sweep_authorized(requester_id, self.config):
            logger.info("Rejected sweep of channel %s by unauthorized user %s", channel_id, requester_id)
            return SweepResult(status=SweepStatus.UNAUTHORIZED)

        if not MIN_SWEEP_COUNT <= count <= MAX_SWEEP_COUNT:
            return SweepResult(status=SweepStatus.INVALID_ARGUMENT)

        lock = self._channel_locks.setdefault(channel_id, asyncio.Lock())
        self._lock_users[channel_id] = self._lock_users.get(channel_id, 0) + 1
        try:
            async with lock:
                return await self._run(channel_id, count, requester_id, before_message_id)
        finally:
            self._lock_users[channel_id] -= 1
            if not self._lock_users[channel_id]:
                del self._lock_users[channel_id]
                del self._channel_locks[channel_id]

    async def _run(
        self, channel_id: int, count: int, requester_id: int, before_message_id: int | None
    ) -> SweepResult:
        try:
            messages = await self.gateway.fetch_recent_messages(
                channel_id, count, before_message_id=before_message_id
            )
        except PlatformError as exc:
            logger.warning("Sweep of channel %s could not fetch history: %s", channel_id, exc)
            return SweepResult(status=SweepStatus.FAILED, scanned=count)

        candidates = [event for event in messages if classify_for_sweep(event).should_delete]
        deleted = 0

        for index, event in enumerate(candidates):
            if index:
                await self._sleep(self.config.sweep_delete_delay_seconds)
            try:
                await self.gateway.delete_message(event.channel_id, event.id)
                deleted += 1
            except AlreadyGone:
                logger.debug("Message %s vanished before the sweep reached it", event.id)
            except PlatformTransient as exc:
                logger.warning("Sweep skipped message %s: %s", event.id, exc)

        logger.info(
            "Sweep of channel %s by %s scanned %d message(s), deleted %d",
            channel_id,
            requester_id,
            len(messages),
            deleted,
        )
        return SweepResult(status=SweepStatus.COMPLETED, deleted_count=deleted, scanned=count)
