from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from linkguard.moderation.datatypes import MessageEvent


@dataclass(frozen=True, slots=True)
class MessageHandle:
    """Reference to a message the bot posted, enough to delete it later."""

    channel_id: int
    message_id: int


class ModerationGateway(Protocol):
    """Capabilities the moderation core needs from the messaging platform.

    Implementations raise :class:`~linkguard.gateway.errors.AlreadyGone` when
    the target message does not exist and
    :class:`~linkguard.gateway.errors.PlatformTransient` for every other
    platform failure.
    """

    async def delete_message(self, channel_id: int, message_id: int) -> None: ...

    async def send_message(self, channel_id: int, text: str) -> MessageHandle: ...

    async def fetch_recent_messages(
        self, channel_id: int, limit: int, *, before_message_id: int | None = None
    ) -> Sequence[MessageEvent]:
        """Return up to ``limit`` messages newest first, older than ``before_message_id`` if given.

        Each event's ``actor_role`` must reflect the author's guild permissions.
        """
        ...
