"""
cozy.bot.core — Bot Instance & Cog Loader
==========================================

Defines :class:`CozyBot`, a ``commands.Bot`` subclass that:

1. Stores the shared config (``bot.cfg``) and DB engine (``bot.engine``)
   so every Cog can reach them via ``self.bot``.
2. Owns the message-log :class:`RotationNotifier` (``bot.rotation``).
3. Loads every Cog listed in :data:`EXTENSIONS`.
4. Syncs the slash-command tree on startup (guild-scoped when
   ``DEV_GUILD_ID`` is set, global otherwise).
"""

from __future__ import annotations

import asyncio
import logging
import os

import discord
from discord.ext import commands
from sqlalchemy import Engine

from cozy.config import CozyConfig
from cozy.database.engine import run_db
from cozy.services.rotation_queue import RotationNotifier
from cozy.services.settings_service import get_server_settings

logger = logging.getLogger(__name__)

# Cog modules to load on startup.
EXTENSIONS: list[str] = [
    "cozy.bot.cogs.guilds",
    "cozy.bot.cogs.settings",
]


async def _resolve_prefix(bot: CozyBot, message: discord.Message) -> list[str]:
    """Per-guild prefix from ``server_settings``, falling back to the config.

    Each guild is read from the database once; later lookups hit
    ``bot.prefixes``, which the command-prefix command keeps current.
    """
    prefix = bot.cfg.bot_prefix
    if message.guild is not None:
        cached = bot.prefixes.get(message.guild.id)
        if cached is None:
            settings = await run_db(get_server_settings, bot.engine, message.guild.id)
            if settings is not None and settings.command_prefix:
                cached = settings.command_prefix
                bot.prefixes[message.guild.id] = cached
        prefix = cached or prefix
    return commands.when_mentioned_or(prefix)(bot, message)


class CozyBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state.

    Parameters
    ----------
    cfg:
        The parsed :class:`CozyConfig` from ``config.yaml``.
    engine:
        A SQLAlchemy :class:`Engine` connected to PostgreSQL.
    """

    def __init__(self, cfg: CozyConfig, engine: Engine) -> None:
        intents = discord.Intents.default()
        intents.members = True  # Privileged: main-guild permission lookups

        super().__init__(
            command_prefix=_resolve_prefix,
            intents=intents,
            description=f"{cfg.bot_name} — community moderation",
        )

        self.cfg = cfg
        self.engine = engine
        self.rotation = RotationNotifier()
        # guild id → command prefix, filled on first message per guild
        self.prefixes: dict[int, str] = {}

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load Cog extensions and start the rotation drain task.

        A Cog that fails to load is logged and skipped.
        """
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

        self.rotation.start(asyncio.get_running_loop())

    async def on_ready(self) -> None:
        """Fired when the bot has connected and the cache is populated."""
        assert self.user is not None  # guaranteed after on_ready
        logger.info("Logged in as %s (ID: %s)", self.user.name, self.user.id)

        dev_guild_id = os.getenv("DEV_GUILD_ID")
        if dev_guild_id:
            guild = discord.Object(id=int(dev_guild_id))
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info("Synced %d commands to dev guild %s", len(synced), dev_guild_id)
        else:
            synced = await self.tree.sync()
            logger.info("Synced %d commands globally", len(synced))

    async def close(self) -> None:
        """Graceful shutdown — stop the rotation drain task."""
        logger.info("Bot shutting down…")
        self.rotation.stop()
        await super().close()
