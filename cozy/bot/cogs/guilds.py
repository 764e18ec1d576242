"""
cozy.bot.cogs.guilds — Guild Join Handling
===========================================

Reacts to the bot joining (or re-seeing) a guild:

- No settings row yet → create one with defaults.
- Row flagged ``leave_server`` → wait for the join handshake to settle,
  then leave.  One attempt only; a failed leave is logged.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from cozy.constants import LEAVE_DELAY_SECONDS
from cozy.database.engine import run_db
from cozy.services.settings_service import create_server_settings, get_server_settings

if TYPE_CHECKING:
    from cozy.bot.core import CozyBot

logger = logging.getLogger(__name__)


class Guilds(commands.Cog, name="Guilds"):
    """Creates settings rows for new guilds and enforces auto-leave."""

    def __init__(self, bot: CozyBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_guild_join(self, guild: discord.Guild) -> None:
        await self.handle_guild(guild)

    @commands.Cog.listener()
    async def on_guild_available(self, guild: discord.Guild) -> None:
        await self.handle_guild(guild)

    async def handle_guild(self, guild: discord.Guild) -> None:
        """Create a default settings row, or leave if configured to."""
        try:
            settings = await run_db(get_server_settings, self.bot.engine, guild.id)
        except Exception:
            logger.exception("Error loading settings for guild %s", guild.id)
            return

        if settings is None:
            logger.info("Creating settings entry for guild: %s (%d)", guild.name, guild.id)
            try:
                await run_db(
                    create_server_settings,
                    self.bot.engine,
                    guild.id,
                    command_prefix=self.bot.cfg.bot_prefix,
                )
            except Exception:
                logger.exception("Error creating settings for guild %s", guild.id)
            return

        if not settings.leave_server:
            return

        logger.info("Leaving guild, as configured: %s (%d)", guild.name, guild.id)
        await asyncio.sleep(LEAVE_DELAY_SECONDS)
        try:
            await guild.leave()
        except discord.HTTPException:
            logger.exception("Failed to leave guild %s (%d)", guild.name, guild.id)


async def setup(bot: CozyBot) -> None:
    await bot.add_cog(Guilds(bot))
