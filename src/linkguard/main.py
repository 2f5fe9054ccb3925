"""
LinkGuard Discord Bot
=====================

Removes links posted in restricted channels by anyone but administrators,
warns the poster (at most once per cooldown window), lets bot admins sweep
recent history with ``.check <N>`` or ``/check``, and serves a keep-alive
HTTP endpoint for the hosting platform.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. LINKGUARD_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("LINKGUARD_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()

import asyncio
import signal

import discord
from dotenv import load_dotenv

from linkguard.bot.runtime import BotRuntime
from linkguard.configuration.app_configuration import AppConfig, load_moderation_config, parse_port
from linkguard.gateway.discord_gateway import DiscordGateway
from linkguard.util.logger import get_logger, handle_exception
from linkguard.web.keep_alive import KeepAliveServer


logger = get_logger("main")

CONFIG_RELATIVE_PATH = Path("config") / "app_config.yml"


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Returns
    -------
    str
        Discord bot token extracted from the loaded environment.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_TOKEN")
    if not token:
        logger.critical("'DISCORD_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Intents for guild and DM messages, including message content."""
    intents = discord.Intents.default()
    intents.guilds = True
    intents.messages = True
    intents.message_content = True
    intents.dm_messages = True
    return intents


def load_cogs(discord_bot_instance: discord.Bot, runtime: BotRuntime) -> None:
    """Register all cogs with the provided Discord bot instance."""
    from linkguard.bot.cogs import events_listener, message_listener, sweep_cmds

    events_listener.setup(discord_bot_instance, runtime)
    message_listener.setup(discord_bot_instance, runtime)
    sweep_cmds.setup(discord_bot_instance, runtime)

    logger.info("All cogs loaded successfully.")


def create_bot(app_config: AppConfig) -> tuple[discord.Bot, BotRuntime]:
    """Instantiate the Discord bot, wire the moderation runtime, and register cogs."""
    config = load_moderation_config(app_config)
    bot = discord.Bot(intents=build_intents())
    runtime = BotRuntime.build(DiscordGateway(bot), config)
    load_cogs(bot, runtime)
    return bot, runtime


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Connect to Discord and block until the client closes."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(
    bot: discord.Bot | None,
    runtime: BotRuntime | None = None,
    server: KeepAliveServer | None = None,
) -> None:
    """Stop schedulers, the keep-alive server, and the Discord connection.

    Each step is attempted even if an earlier one fails.
    """
    if runtime is not None:
        try:
            await runtime.shutdown()
        except Exception as exc:
            logger.exception("Error during scheduler shutdown: %s", exc)

    if server is not None:
        try:
            await server.stop()
        except Exception as exc:
            logger.exception("Error stopping keep-alive server: %s", exc)

    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error closing Discord client: %s", exc)

    logger.info("Shutdown complete.")


async def run_bot_session(bot: discord.Bot, token: str) -> int:
    """Run the bot until it stops on its own or SIGINT/SIGTERM arrives."""
    loop = asyncio.get_running_loop()
    stop_requested = asyncio.Event()
    handled_signals = (signal.SIGINT, signal.SIGTERM)
    for sig in handled_signals:
        loop.add_signal_handler(sig, stop_requested.set)

    bot_task = asyncio.create_task(start_bot(bot, token), name="linkguard-discord")
    stop_task = asyncio.create_task(stop_requested.wait(), name="linkguard-stop")
    exit_code = 0

    try:
        done, _ = await asyncio.wait({bot_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        if stop_task in done:
            logger.info("Bot shutting down...")
            await bot.close()
        try:
            await bot_task
        except discord.LoginFailure as exc:
            logger.critical("Discord rejected the bot token: %s", exc)
            exit_code = 1
        except Exception as exc:
            logger.critical("Discord bot runtime error: %s", exc)
            exit_code = 1
    finally:
        stop_task.cancel()
        for sig in handled_signals:
            loop.remove_signal_handler(sig)

    return exit_code


async def async_main() -> int:
    """Bootstrap configuration, the keep-alive server, and the bot; return an exit code."""
    token = load_environment()
    app_config = AppConfig(BASE_DIR / CONFIG_RELATIVE_PATH)

    try:
        bot, runtime = create_bot(app_config)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        return 1

    server = KeepAliveServer(parse_port(os.getenv("PORT")))
    try:
        await server.start()
    except OSError as exc:
        logger.error("Keep-alive server could not start: %s", exc)
        server = None

    try:
        return await run_bot_session(bot, token)
    finally:
        await shutdown_runtime(bot, runtime, server)


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code."""
    logger.info("Starting LinkGuard…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
