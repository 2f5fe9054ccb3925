"""
Privilege checks for link moderation.

There are two unrelated notions of privilege and they are kept apart:

- Channel administrators are exempt from link removal, but gain no sweep rights.
- Bot admins listed in ``BOT_ADMIN_IDS`` may run a sweep, but their own links
  are still removed unless they are also administrators.
"""

from typing import Union

import discord

from linkguard.configuration.app_configuration import ModerationConfig
from linkguard.moderation.datatypes import ActorRole


def is_moderation_exempt(actor_role: ActorRole) -> bool:
    """Return True if the author's links are never removed (administrators only)."""
    return actor_role.is_administrator


def is_sweep_authorized(actor_id: int, config: ModerationConfig) -> bool:
    """Return True if ``actor_id`` is on the bot admin allow-list."""
    return actor_id in config.privileged_user_ids


def actor_role_for(author: Union[discord.User, discord.Member, None]) -> ActorRole:
    """
    Build an ActorRole from a py-cord author.

    Only guild members can hold the administrator permission; users seen in
    DMs or webhooks never do.
    """
    if not isinstance(author, discord.Member):
        return ActorRole(is_administrator=False)
    return ActorRole(is_administrator=bool(getattr(author.guild_permissions, "administrator", False)))
