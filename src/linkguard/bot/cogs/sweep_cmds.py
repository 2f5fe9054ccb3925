"""
Sweep slash command for LinkGuard.

``/check count`` is the structured twin of the ``.check <N>`` text command:
it deletes link messages among the channel's last ``count`` messages.
Only users on the bot admin allow-list may run it, and the reply is ephemeral.
"""

import discord
from discord import Option
from discord.ext import commands

from linkguard.bot.runtime import BotRuntime
from linkguard.moderation.sweep import MAX_SWEEP_COUNT, MIN_SWEEP_COUNT
from linkguard.util.logger import get_logger

logger = get_logger("sweep_commands")


class SweepCog(commands.Cog):
    """Cog providing the ``/check`` command."""

    def __init__(self, discord_bot_instance, runtime: BotRuntime):
        self.discord_bot_instance = discord_bot_instance
        self.runtime = runtime
        logger.info("Sweep cog loaded")

    @discord.slash_command(name="check", description="Delete messages with links among the last N messages")
    async def check(
        self,
        application_context: discord.ApplicationContext,
        count: Option(
            int,
            description="How many recent messages to scan",
            min_value=MIN_SWEEP_COUNT,
            max_value=MAX_SWEEP_COUNT,
        ),  # type: ignore[valid-type]
    ) -> None:
        await application_context.defer(ephemeral=True)

        channel = application_context.channel
        if channel is None or application_context.guild is None:
            await application_context.send_followup("❌ This command must be used in a server channel.", ephemeral=True)
            return

        result = await self.runtime.sweeper.sweep(channel.id, count, application_context.author.id)
        await application_context.send_followup(result.summary(), ephemeral=True)


def setup(discord_bot_instance, runtime: BotRuntime) -> None:
    discord_bot_instance.add_cog(SweepCog(discord_bot_instance, runtime))
