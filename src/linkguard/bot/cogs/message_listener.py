"""Message listener Cog for LinkGuard.

This cog handles message-related Discord events (on_message, on_message_edit),
passes guild messages through link moderation, and serves the DM ``!ping``
and the ``.check <N>`` text command.
"""

import discord
from discord.ext import commands

from linkguard.bot.runtime import BotRuntime
from linkguard.gateway.discord_gateway import message_event_from_discord
from linkguard.moderation.datatypes import SweepResult, SweepStatus
from linkguard.moderation.roles import is_sweep_authorized
from linkguard.moderation.sweep import InvalidSweepArgument, parse_sweep_command
from linkguard.util.logger import get_logger

logger = get_logger("message_listener_cog")

PING_COMMAND = "!ping"


class MessageListenerCog(commands.Cog):
    """Cog responsible for handling message creation and editing events."""

    def __init__(self, discord_bot_instance, runtime: BotRuntime):
        """
        Initialize the message listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        runtime:
            Shared moderation services.
        """
        self.bot = discord_bot_instance
        self.runtime = runtime
        logger.info("Message listener cog loaded")

    async def _reply_pong(self, message: discord.Message) -> None:
        try:
            await message.reply("🏓 Pong!")
        except discord.HTTPException as exc:
            logger.warning(f"Failed to answer ping from {message.author}: {exc}")

    async def _handle_sweep_command(self, message: discord.Message, count: int | None) -> None:
        """Run a ``.check`` sweep, or report why it cannot run, as a transient reply.

        ``count`` is ``None`` when the argument was missing or not a number.
        The command message itself is excluded from the scanned history.
        """
        if count is None:
            if is_sweep_authorized(message.author.id, self.runtime.config):
                result = SweepResult(status=SweepStatus.INVALID_ARGUMENT)
            else:
                result = SweepResult(status=SweepStatus.UNAUTHORIZED)
        else:
            result = await self.runtime.sweeper.sweep(
                message.channel.id, count, message.author.id, before_message_id=message.id
            )

        await self.runtime.moderation.send_transient(message.channel.id, result.summary())

    @commands.Cog.listener(name='on_message')
    async def on_message(self, message: discord.Message):
        """
        Handle new messages.

        1. Ignores bot authors
        2. Answers ``!ping`` in DMs
        3. Passes every guild message through link moderation
        4. Runs ``.check <N>`` sweeps in guild channels

        A ``.check`` message is moderated like any other, so a link tucked
        into the command is still removed.
        """
        if message.author.bot:
            return

        content = message.content or ""

        if message.guild is None:
            if content.strip().lower() == PING_COMMAND:
                await self._reply_pong(message)
            return

        await self.runtime.moderation.handle_event(message_event_from_discord(message))

        try:
            count = parse_sweep_command(content)
        except InvalidSweepArgument as exc:
            logger.debug(f"Invalid sweep command from {message.author}: {exc}")
            await self._handle_sweep_command(message, None)
            return

        if count is not None:
            await self._handle_sweep_command(message, count)

    @commands.Cog.listener(name='on_message_edit')
    async def on_message_edit(self, before: discord.Message, after: discord.Message):
        """
        Re-run link moderation on edited guild messages.

        An edit that adds a link is judged like a new message with that link;
        an edit that removes one is left alone. Edits that do not change the
        text (embeds resolving, pins) are ignored.
        """
        if after.guild is None or after.author.bot:
            return

        if (before.content or "") == (after.content or ""):
            return

        await self.runtime.moderation.handle_event(message_event_from_discord(after))


def setup(discord_bot_instance, runtime: BotRuntime):
    """
    Register the MessageListenerCog with the bot.

    Parameters
    ----------
    discord_bot_instance:
        The Discord bot instance to add this cog to.
    runtime:
        Shared moderation services.
    """
    discord_bot_instance.add_cog(MessageListenerCog(discord_bot_instance, runtime))
