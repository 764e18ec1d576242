"""
cozy.bot.checks — Permission checks for settings commands
==========================================================

Administrator permission in the *main* guild is the key that unlocks
global settings and other servers' settings.  The member lookup goes
through the bot's cache first and falls back to the API.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands

from cozy.database.engine import run_db
from cozy.database.models import QuiltServerType
from cozy.services.settings_service import get_server_settings

if TYPE_CHECKING:
    from cozy.bot.core import CozyBot

logger = logging.getLogger(__name__)


async def has_main_guild_permission(
    bot: CozyBot,
    user: discord.abc.User,
    permission: str = "administrator",
) -> bool:
    """True if *user* holds *permission* as a member of the main guild."""
    guild = bot.get_guild(bot.cfg.main_guild_id)
    if guild is None:
        logger.warning("Main guild %d not found — denying", bot.cfg.main_guild_id)
        return False

    member = guild.get_member(user.id)
    if member is None:
        try:
            member = await guild.fetch_member(user.id)
        except discord.NotFound:
            return False
        except discord.HTTPException as exc:
            logger.warning(
                "Main guild member lookup failed for %d (%s) — denying", user.id, exc.status,
            )
            return False
    return bool(getattr(member.guild_permissions, permission, False))


def has_local_permission(
    interaction: discord.Interaction,
    permission: str = "administrator",
) -> bool:
    """True if the invoking member holds *permission* in the current guild."""
    user = interaction.user
    if interaction.guild is None or not isinstance(user, discord.Member):
        return False
    return bool(getattr(user.guild_permissions, permission, False))


def main_guild_admin():
    """Decorator: caller must be an administrator of the main guild."""
    async def predicate(interaction: discord.Interaction) -> bool:
        bot: CozyBot = interaction.client  # type: ignore[assignment]
        return await has_main_guild_permission(bot, interaction.user)
    return app_commands.check(predicate)


def main_or_local_admin():
    """Decorator: caller administers the main guild or the current guild."""
    async def predicate(interaction: discord.Interaction) -> bool:
        if interaction.guild is None:
            return False
        bot: CozyBot = interaction.client  # type: ignore[assignment]
        if await has_main_guild_permission(bot, interaction.user):
            return True
        return has_local_permission(interaction)
    return app_commands.check(predicate)


def in_toolchain():
    """Decorator: command must be run in the server flagged as Toolchain."""
    async def predicate(interaction: discord.Interaction) -> bool:
        if interaction.guild_id is None:
            return False
        bot: CozyBot = interaction.client  # type: ignore[assignment]
        settings = await run_db(get_server_settings, bot.engine, interaction.guild_id)
        return settings is not None and settings.server_type is QuiltServerType.TOOLCHAIN
    return app_commands.check(predicate)
