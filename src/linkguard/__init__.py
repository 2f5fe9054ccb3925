"""
LinkGuard - Link Moderation Discord Bot

LinkGuard watches restricted channels and removes any message carrying a link
unless the author is a server administrator.

Core Components:

- **Policy Engine**: Decides per message event whether to delete, whether to
  warn, and whether the warning is held back by a per channel+author cooldown
- **Sweep**: On-demand retroactive cleanup of recent channel history for
  allow-listed bot admins
- **Gateway**: Thin py-cord adapter that turns platform failures into
  ``AlreadyGone`` / ``PlatformTransient`` errors
- **Keep-alive**: Tiny aiohttp server so hosting platforms keep the process up

Usage:
    from linkguard.main import main
    main()  # Starts the bot and the keep-alive server
"""
