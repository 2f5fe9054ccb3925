"""
discord_gateway.py
==================

py-cord implementation of :class:`~linkguard.gateway.interface.ModerationGateway`.

The adapter holds no state beyond the bot reference. Messages are addressed
through partial messageables so deleting or replying never needs a cached
channel object. Every ``discord.NotFound`` (except for a departed member)
becomes :class:`AlreadyGone`; any other ``discord.HTTPException``
(``Forbidden`` included) becomes :class:`PlatformTransient`.
"""

from __future__ import annotations

import discord

from linkguard.gateway.errors import AlreadyGone, PlatformTransient
from linkguard.gateway.interface import MessageHandle
from linkguard.moderation.datatypes import MessageEvent
from linkguard.moderation.roles import actor_role_for
from linkguard.util.logger import get_logger

logger = get_logger("discord_gateway")


def message_event_from_discord(
    message: discord.Message,
    author: discord.User | discord.Member | None = None,
) -> MessageEvent:
    """Snapshot a py-cord message into a platform-neutral MessageEvent.

    ``author`` overrides ``message.author``, for history messages whose
    author had to be resolved to a guild member separately.
    """
    author = author or message.author
    return MessageEvent(
        id=message.id,
        channel_id=message.channel.id,
        author_id=author.id,
        is_bot_author=bool(author.bot),
        body=message.content or "",
        actor_role=actor_role_for(author),
    )


class DiscordGateway:
    """Moderation gateway backed by a live :class:`discord.Bot`."""

    def __init__(self, bot: discord.Client) -> None:
        self.bot = bot

    async def delete_message(self, channel_id: int, message_id: int) -> None:
        """Delete a message by id.

        Raises
        ------
        AlreadyGone
            The message was already deleted.
        PlatformTransient
            Any other failure, including missing permissions.
        """
        partial = self.bot.get_partial_messageable(channel_id).get_partial_message(message_id)
        try:
            await partial.delete()
        except discord.NotFound as exc:
            raise AlreadyGone(f"Message {message_id} no longer exists") from exc
        except discord.Forbidden as exc:
            raise PlatformTransient(f"No permission to delete message {message_id}") from exc
        except discord.HTTPException as exc:
            raise PlatformTransient(f"Failed to delete message {message_id}: {exc}") from exc

    async def send_message(self, channel_id: int, text: str) -> MessageHandle:
        """Post ``text`` to a channel and return a handle for later deletion."""
        channel = self.bot.get_partial_messageable(channel_id)
        try:
            sent = await channel.send(text)
        except discord.HTTPException as exc:
            raise PlatformTransient(f"Failed to send message to channel {channel_id}: {exc}") from exc
        return MessageHandle(channel_id=channel_id, message_id=sent.id)

    async def fetch_recent_messages(
        self, channel_id: int, limit: int, *, before_message_id: int | None = None
    ) -> list[MessageEvent]:
        """Return up to ``limit`` of the newest messages in a channel, newest first.

        History payloads carry a bare user rather than a member, and without the
        members intent the member cache is empty, so each distinct author is
        resolved through the guild once per batch to learn their permissions.

        Raises
        ------
        AlreadyGone
            The channel no longer exists.
        PlatformTransient
            History could not be read or an author's membership could not be checked.
        """
        channel = self.bot.get_channel(channel_id)
        before = discord.Object(id=before_message_id) if before_message_id is not None else None
        try:
            if channel is None:
                channel = await self.bot.fetch_channel(channel_id)
            messages = [message async for message in channel.history(limit=limit, before=before)]
        except discord.NotFound as exc:
            raise AlreadyGone(f"Channel {channel_id} no longer exists") from exc
        except discord.HTTPException as exc:
            raise PlatformTransient(f"Failed to read history of channel {channel_id}: {exc}") from exc

        guild = getattr(channel, "guild", None)
        members: dict[int, discord.Member | None] = {}
        events = []
        for message in messages:
            author = message.author
            if guild is not None and _needs_member_lookup(message):
                if author.id not in members:
                    members[author.id] = await self._resolve_member(guild, author.id)
                author = members[author.id] or author
            events.append(message_event_from_discord(message, author))
        return events

    async def _resolve_member(self, guild: discord.Guild, user_id: int) -> discord.Member | None:
        """Find a guild member by id; ``None`` if the user has left the guild."""
        member = guild.get_member(user_id)
        if member is not None:
            return member
        try:
            return await guild.fetch_member(user_id)
        except discord.NotFound:
            return None
        except discord.HTTPException as exc:
            raise PlatformTransient(f"Failed to look up member {user_id}: {exc}") from exc


def _needs_member_lookup(message: discord.Message) -> bool:
    author = message.author
    if isinstance(author, discord.Member) or author.bot:
        return False
    return getattr(message, "webhook_id", None) is None
