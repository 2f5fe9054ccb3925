"""Event listener Cog for LinkGuard.

This cog handles bot lifecycle events (on_ready) and command error handling.
Message-related events are handled by the MessageListenerCog.
"""

import discord
from discord.ext import commands

from linkguard.bot.runtime import BotRuntime
from linkguard.util.logger import get_logger

logger = get_logger("events_listener_cog")


class EventsListenerCog(commands.Cog):
    """Cog containing bot lifecycle and command error handlers."""

    def __init__(self, discord_bot_instance, runtime: BotRuntime):
        self.bot = discord_bot_instance
        self.runtime = runtime
        self._announced = False
        logger.info("Events listener cog loaded")

    @commands.Cog.listener(name='on_ready')
    async def on_ready(self):
        """Log the connection and start the cooldown eviction task.

        on_ready fires again after every gateway reconnect, so the startup
        summary is only logged once.
        """
        if self.bot.user:
            logger.info(f"Logged in as {self.bot.user} (ID: {self.bot.user.id})")
        else:
            logger.warning("Bot partially connected, but user information not yet available.")

        if not self._announced:
            self._announced = True
            restricted = self.runtime.config.restricted_channel_ids
            if restricted:
                channels = ", ".join(str(channel_id) for channel_id in sorted(restricted))
                logger.info(f"Link deletion active in channels: {channels}")
            else:
                logger.warning("No restricted channels configured (DISALLOWED_CHANNEL_IDS); link moderation is idle.")

        if not self.runtime.cooldown_scheduler.running:
            self.runtime.cooldown_scheduler.start()

    @commands.Cog.listener(name='on_application_command_error')
    async def on_application_command_error(self, application_context: discord.ApplicationContext, error: Exception):
        """Log command errors and tell the invoker something went wrong."""
        if isinstance(error, commands.CommandNotFound):
            return

        command_name = getattr(application_context.command, 'name', '<unknown>')
        logger.error(f"Error in command '{command_name}': {error}", exc_info=True)

        error_message = "Something went wrong while running this command."
        try:
            await application_context.respond(error_message, ephemeral=True)
        except discord.InteractionResponded:
            await application_context.followup.send(error_message, ephemeral=True)


def setup(discord_bot_instance, runtime: BotRuntime):
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance, runtime))
