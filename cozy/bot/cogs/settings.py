"""
cozy.bot.cogs.settings — Settings Slash Commands
=================================================

Two command groups:
- /global-config — bot-wide settings, main-guild administrators only
- /server-config — per-server settings, for main-guild administrators or
  administrators of the current server

Every /server-config subcommand takes an optional ``server`` id.  Addressing
a server other than the current one needs administrator in the main guild.

The cog only resolves the target and formats replies; validation and the
audited write live in :mod:`cozy.services.config_service`.  All replies are
ephemeral.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import discord
from discord import app_commands
from discord.ext import commands

from cozy.bot.checks import (
    has_main_guild_permission,
    in_toolchain,
    main_guild_admin,
    main_or_local_admin,
)
from cozy.bot.converters import Snowflake
from cozy.constants import (
    DENIED_CHECK,
    DENIED_OTHER_SERVER,
    INVITE_URL_BASE,
    channel_mention,
    unknown_guild,
)
from cozy.database.engine import run_db
from cozy.database.models import QuiltServerType
from cozy.services import config_service
from cozy.services.access import needs_main_guild_admin, resolve_target
from cozy.services.embeds import build_global_settings_embed, build_server_settings_embed
from cozy.services.settings_service import get_global_settings, get_server_settings

if TYPE_CHECKING:
    from cozy.bot.core import CozyBot

logger = logging.getLogger(__name__)

GLOBAL_MISSING = "❌ Global settings have not been initialised yet."


class Settings(commands.Cog, name="Settings"):
    """Global and per-server configuration commands."""

    global_config = app_commands.Group(
        name="global-config",
        description="Global Cozy configuration commands",
    )
    server_config = app_commands.Group(
        name="server-config",
        description="Server-specific Cozy configuration commands",
        guild_only=True,
    )

    def __init__(self, bot: CozyBot) -> None:
        self.bot = bot

    # -------------------------------------------------------------------
    # Shared helpers
    # -------------------------------------------------------------------
    @staticmethod
    async def _reply(
        interaction: discord.Interaction,
        content: str | None = None,
        *,
        embed: discord.Embed | None = None,
    ) -> None:
        if embed is not None:
            await interaction.response.send_message(content, embed=embed, ephemeral=True)
        else:
            await interaction.response.send_message(content, ephemeral=True)

    async def _resolve_target(
        self, interaction: discord.Interaction, server: int | None,
    ) -> int | None:
        """Pick the target server, replying with a denial if not allowed.

        Returns ``None`` when the caller was denied (and already answered).
        """
        target = resolve_target(interaction.guild_id, server)
        if needs_main_guild_admin(interaction.guild_id, target):
            if not await has_main_guild_permission(self.bot, interaction.user):
                await self._reply(interaction, DENIED_OTHER_SERVER)
                return None
        return target

    # ===================================================================
    # /global-config
    # ===================================================================
    @global_config.command(name="get", description="Retrieve Cozy's global configuration")
    @main_guild_admin()
    async def global_get(self, interaction: discord.Interaction) -> None:
        settings = await run_db(get_global_settings, self.bot.engine)
        if settings is None:
            await self._reply(interaction, GLOBAL_MISSING)
            return
        await self._reply(interaction, embed=build_global_settings_embed(settings))

    @global_config.command(
        name="appeals-invite",
        description="Set or get the invite code used to invite banned users to the appeals server",
    )
    @app_commands.rename(invite_code="invite-code")
    @app_commands.describe(invite_code="Invite code to use")
    @main_guild_admin()
    async def appeals_invite(
        self, interaction: discord.Interaction, invite_code: str | None = None,
    ) -> None:
        if invite_code is None:
            settings = await run_db(get_global_settings, self.bot.engine)
            if settings is None:
                await self._reply(interaction, GLOBAL_MISSING)
                return
            current = (
                f"{INVITE_URL_BASE}{settings.appeals_invite}"
                if settings.appeals_invite else "*not set*"
            )
            await self._reply(interaction, f"**Current invite:** {current}")
            return

        result = await run_db(
            config_service.set_appeals_invite,
            self.bot.engine,
            invite_code,
            actor_id=interaction.user.id,
        )
        await self._reply(interaction, result.message)

    @global_config.command(
        name="github-token",
        description="Set the GitHub login token used by the GitHub commands",
    )
    @app_commands.rename(login_token="login-token")
    @app_commands.describe(login_token="Login token to use")
    @main_guild_admin()
    async def github_token(self, interaction: discord.Interaction, login_token: str) -> None:
        result = await run_db(
            config_service.set_github_token,
            self.bot.engine,
            login_token,
            actor_id=interaction.user.id,
        )
        await self._reply(interaction, result.message)

    @global_config.command(
        name="github-log-channel",
        description="Set or get the channel used for logging GitHub command actions",
    )
    @app_commands.describe(channel="Channel to use")
    @main_guild_admin()
    @in_toolchain()
    async def github_log_channel(
        self, interaction: discord.Interaction, channel: discord.TextChannel | None = None,
    ) -> None:
        if channel is None:
            settings = await run_db(get_global_settings, self.bot.engine)
            if settings is None:
                await self._reply(interaction, GLOBAL_MISSING)
                return
            await self._reply(
                interaction,
                f"**Current GitHub log channel:** {channel_mention(settings.github_log_channel)}",
            )
            return

        result = await run_db(
            config_service.set_github_log_channel,
            self.bot.engine,
            channel.id,
            actor_id=interaction.user.id,
        )
        await self._reply(interaction, result.message)

    @global_config.command(name="add-guild", description="Mark a server as an official Quilt server")
    @app_commands.describe(server="Server ID to use")
    @main_guild_admin()
    async def add_guild(self, interaction: discord.Interaction, server: Snowflake) -> None:
        guild = self.bot.get_guild(server)
        if guild is None:
            await self._reply(interaction, f"❌ I'm not in a server with ID: `{server}`")
            return

        result = await run_db(
            config_service.add_quilt_guild,
            self.bot.engine,
            guild.id,
            guild.name,
            actor_id=interaction.user.id,
        )
        await self._reply(interaction, result.message)

    @global_config.command(
        name="remove-guild", description="Unmark a server as an official Quilt server",
    )
    @app_commands.describe(server="Server ID to use")
    @main_guild_admin()
    async def remove_guild(self, interaction: discord.Interaction, server: Snowflake) -> None:
        result = await run_db(
            config_service.remove_quilt_guild,
            self.bot.engine,
            server,
            actor_id=interaction.user.id,
        )
        await self._reply(interaction, result.message)

    # ===================================================================
    # /server-config
    # ===================================================================
    @server_config.command(name="get", description="Retrieve Cozy's server configuration")
    @app_commands.describe(server="Server ID, if not the current one")
    @main_or_local_admin()
    async def server_get(
        self, interaction: discord.Interaction, server: Optional[Snowflake] = None,
    ) -> None:
        target = await self._resolve_target(interaction, server)
        if target is None:
            return

        settings = await run_db(get_server_settings, self.bot.engine, target)
        if settings is None:
            await self._reply(interaction, unknown_guild(target))
            return

        show_quilt = (
            server is not None
            or settings.quilt_server_type is not None
            or interaction.guild_id == self.bot.cfg.main_guild_id
        )
        await self._reply(
            interaction,
            embed=build_server_settings_embed(settings, show_quilt_settings=show_quilt),
        )

    @server_config.command(name="command-prefix", description="Configure Cozy's command prefix")
    @app_commands.describe(
        prefix="Command prefix to set",
        server="Server ID, if not the current one",
    )
    @main_or_local_admin()
    async def command_prefix(
        self,
        interaction: discord.Interaction,
        prefix: str,
        server: Optional[Snowflake] = None,
    ) -> None:
        target = await self._resolve_target(interaction, server)
        if target is None:
            return

        result = await run_db(
            config_service.set_command_prefix,
            self.bot.engine,
            target,
            prefix,
            actor_id=interaction.user.id,
        )
        await self._reply(interaction, result.message)

        if result.ok:
            self.bot.prefixes[target] = result.settings.command_prefix

    @server_config.command(
        name="add-moderator-role",
        description="Add a role that should be given moderator permissions",
    )
    @app_commands.describe(role="Role to add", server="Server ID, if not the current one")
    @main_or_local_admin()
    async def add_moderator_role(
        self,
        interaction: discord.Interaction,
        role: discord.Role,
        server: Optional[Snowflake] = None,
    ) -> None:
        target = await self._resolve_target(interaction, server)
        if target is None:
            return

        result = await run_db(
            config_service.add_moderator_role,
            self.bot.engine,
            target,
            role.id,
            role.guild.id,
            actor_id=interaction.user.id,
        )
        await self._reply(interaction, result.message)

    @server_config.command(
        name="remove-moderator-role", description="Remove a configured moderator role",
    )
    @app_commands.describe(role="Role to remove", server="Server ID, if not the current one")
    @main_or_local_admin()
    async def remove_moderator_role(
        self,
        interaction: discord.Interaction,
        role: discord.Role,
        server: Optional[Snowflake] = None,
    ) -> None:
        target = await self._resolve_target(interaction, server)
        if target is None:
            return

        result = await run_db(
            config_service.remove_moderator_role,
            self.bot.engine,
            target,
            role.id,
            role.guild.id,
            actor_id=interaction.user.id,
        )
        await self._reply(interaction, result.message)

    @server_config.command(
        name="cozy-log-channel",
        description="Configure the channel Cozy should send log messages to",
    )
    @app_commands.describe(channel="Channel to use", server="Server ID, if not the current one")
    @main_or_local_admin()
    async def cozy_log_channel(
        self,
        interaction: discord.Interaction,
        channel: discord.TextChannel | None = None,
        server: Optional[Snowflake] = None,
    ) -> None:
        target = await self._resolve_target(interaction, server)
        if target is None:
            return

        if channel is None:
            settings = await run_db(get_server_settings, self.bot.engine, target)
            if settings is None:
                await self._reply(interaction, unknown_guild(target))
                return
            await self._reply(
                interaction,
                f"**Current Cozy logging channel:** {channel_mention(settings.cozy_log_channel)}",
            )
            return

        result = await run_db(
            config_service.set_cozy_log_channel,
            self.bot.engine,
            target,
            channel.id,
            channel.guild.id,
            actor_id=interaction.user.id,
        )
        await self._reply(interaction, result.message)

    @server_config.command(
        name="message-log-category",
        description="Configure the category Cozy should use for message logs",
    )
    @app_commands.describe(category="Category to use", server="Server ID, if not the current one")
    @main_or_local_admin()
    async def message_log_category(
        self,
        interaction: discord.Interaction,
        category: discord.CategoryChannel | None = None,
        server: Optional[Snowflake] = None,
    ) -> None:
        target = await self._resolve_target(interaction, server)
        if target is None:
            return

        if category is None:
            settings = await run_db(get_server_settings, self.bot.engine, target)
            if settings is None:
                await self._reply(interaction, unknown_guild(target))
                return
            await self._reply(
                interaction,
                "**Current message log category:** "
                f"{channel_mention(settings.message_log_category)}",
            )
            return

        result = await run_db(
            config_service.set_message_log_category,
            self.bot.engine,
            target,
            category.id,
            category.guild.id,
            actor_id=interaction.user.id,
        )
        await self._reply(interaction, result.message)

        if result.ok:
            self.bot.rotation.notify(target)

    @server_config.command(
        name="quilt-server-type",
        description="For Quilt servers: Set or remove the Quilt server type flag for a server",
    )
    @app_commands.rename(server_type="type")
    @app_commands.describe(server_type="Quilt server type", server="Server ID, if not the current one")
    @main_or_local_admin()
    @main_guild_admin()
    async def quilt_server_type(
        self,
        interaction: discord.Interaction,
        server_type: Optional[QuiltServerType] = None,
        server: Optional[Snowflake] = None,
    ) -> None:
        target = await self._resolve_target(interaction, server)
        if target is None:
            return

        result = await run_db(
            config_service.set_quilt_server_type,
            self.bot.engine,
            target,
            server_type,
            actor_id=interaction.user.id,
        )
        await self._reply(interaction, result.message)

    @server_config.command(
        name="set-leave-server",
        description="For Quilt servers: Set whether Cozy should automatically leave a server",
    )
    @app_commands.rename(should_leave="should-leave")
    @app_commands.describe(
        should_leave="Whether Cozy should leave the server automatically",
        server="Server ID, if not the current one",
    )
    @main_or_local_admin()
    @main_guild_admin()
    async def set_leave_server(
        self,
        interaction: discord.Interaction,
        should_leave: bool,
        server: Optional[Snowflake] = None,
    ) -> None:
        target = await self._resolve_target(interaction, server)
        if target is None:
            return

        result = await run_db(
            config_service.set_leave_server,
            self.bot.engine,
            target,
            should_leave,
            actor_id=interaction.user.id,
            command_prefix=self.bot.cfg.bot_prefix,
        )
        await self._reply(interaction, result.message)

        if result.ok and should_leave:
            await self._leave_guild(target)

    async def _leave_guild(self, guild_id: int) -> None:
        """Best-effort leave; the saved flag stands whatever happens here."""
        guild = self.bot.get_guild(guild_id)
        if guild is None:
            return
        try:
            await guild.leave()
            logger.info("Left guild, as configured: %s (%d)", guild.name, guild.id)
        except discord.HTTPException:
            logger.exception("Failed to leave guild %d", guild_id)

    # -------------------------------------------------------------------
    # Error handler for failed checks / bad arguments
    # -------------------------------------------------------------------
    async def cog_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        if isinstance(error, app_commands.CheckFailure):
            await self._reply(interaction, DENIED_CHECK)
        elif isinstance(error, app_commands.TransformerError):
            cause = error.__cause__ or error
            await self._reply(interaction, f"❌ {cause}")
        else:
            raise error


async def setup(bot: CozyBot) -> None:
    await bot.add_cog(Settings(bot))
