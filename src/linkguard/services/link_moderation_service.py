"""
Link moderation service.

Runs the policy engine for each message event and carries out what it decided:
delete the offending message, post a warning when one is due, and schedule
that warning to delete itself. Every platform failure is caught and logged
here; nothing raised by the gateway reaches the event dispatcher.

Ledger updates and platform actions are independent. If the deletion fails
after a warning was recorded, the warning still goes out and the cooldown
stays recorded.
"""

from __future__ import annotations

import time
from typing import Callable

from linkguard.configuration.app_configuration import ModerationConfig
from linkguard.gateway.errors import AlreadyGone, PlatformError
from linkguard.gateway.interface import MessageHandle, ModerationGateway
from linkguard.moderation.cooldown_ledger import CooldownLedger
from linkguard.moderation.datatypes import MessageEvent, ModerationDecision
from linkguard.moderation.policy_engine import decide
from linkguard.scheduler.retraction_scheduler import RetractionScheduler
from linkguard.util.logger import get_logger

logger = get_logger("link_moderation_service")

WARNING_TEMPLATE = "<@{author_id}>, links are not allowed here."


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class LinkModerationService:
    """Applies moderation decisions through a gateway."""

    def __init__(
        self,
        gateway: ModerationGateway,
        config: ModerationConfig,
        ledger: CooldownLedger,
        retractions: RetractionScheduler,
        *,
        clock: Callable[[], int] = monotonic_ms,
    ) -> None:
        self.gateway = gateway
        self.config = config
        self.ledger = ledger
        self.retractions = retractions
        self.clock = clock

    @property
    def warning_lifetime_seconds(self) -> float:
        return self.config.warning_lifetime_ms / 1000

    async def handle_event(self, event: MessageEvent) -> ModerationDecision:
        """Decide on a created or edited message and perform the resulting actions.

        Parameters
        ----------
        event:
            Snapshot of the message content to judge.

        Returns
        -------
        ModerationDecision
            The decision that was acted on.
        """
        decision = decide(event, self.config, self.ledger, self.clock())

        if decision.should_delete:
            await self._delete_offending(event)
            if decision.should_warn:
                await self.send_transient(event.channel_id, WARNING_TEMPLATE.format(author_id=event.author_id))
            logger.debug("Message %s in channel %s: %s", event.id, event.channel_id, decision.reason.value)

        return decision

    async def _delete_offending(self, event: MessageEvent) -> bool:
        try:
            await self.gateway.delete_message(event.channel_id, event.id)
        except AlreadyGone:
            return True
        except PlatformError as exc:
            logger.warning("Failed to delete link message %s from %s: %s", event.id, event.author_id, exc)
            return False
        logger.info("Deleted link message %s from user %s in channel %s", event.id, event.author_id, event.channel_id)
        return True

    async def send_transient(self, channel_id: int, text: str) -> MessageHandle | None:
        """Post a message that deletes itself after the warning lifetime.

        Returns
        -------
        MessageHandle | None
            Handle of the posted message, or ``None`` if it could not be sent.
        """
        try:
            handle = await self.gateway.send_message(channel_id, text)
        except PlatformError as exc:
            logger.warning("Failed to send transient message to channel %s: %s", channel_id, exc)
            return None

        await self.retractions.schedule(handle, self.warning_lifetime_seconds)
        return handle
