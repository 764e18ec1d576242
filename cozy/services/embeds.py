"""
cozy.services.embeds — Discord embed builders for settings
===========================================================

All embed construction lives here so the settings cog only needs to supply
rows — no layout concerns.
"""

from __future__ import annotations

import discord

from cozy.constants import INVITE_URL_BASE, channel_mention
from cozy.database.models import GlobalSettings, ServerSettings


def build_global_settings_embed(settings: GlobalSettings) -> discord.Embed:
    """Summarize the global configuration.  The GitHub token is never shown."""
    embed = discord.Embed(
        title="Global Settings",
        color=discord.Color.blurple(),
    )
    invite = (
        f"{INVITE_URL_BASE}{settings.appeals_invite}"
        if settings.appeals_invite else "*not set*"
    )
    embed.add_field(name="Appeals Invite", value=invite, inline=False)
    embed.add_field(
        name="GitHub Token",
        value="Configured" if settings.github_token else "*not set*",
        inline=True,
    )
    embed.add_field(
        name="GitHub Log Channel",
        value=channel_mention(settings.github_log_channel),
        inline=True,
    )

    guilds = settings.quilt_guilds or []
    embed.add_field(
        name="Quilt Servers",
        value="\n".join(f"`{g}`" for g in guilds) if guilds else "*none*",
        inline=False,
    )
    return embed


def build_server_settings_embed(
    settings: ServerSettings,
    *,
    show_quilt_settings: bool = False,
) -> discord.Embed:
    """Summarize one server's configuration.

    Quilt-only fields (server type, auto-leave) are included when
    *show_quilt_settings* is set.
    """
    embed = discord.Embed(
        title="Server Settings",
        description=f"Guild ID: `{settings.guild_id}`",
        color=discord.Color.blurple(),
    )
    embed.add_field(name="Command Prefix", value=f"`{settings.command_prefix}`", inline=True)
    embed.add_field(
        name="Cozy Log Channel",
        value=channel_mention(settings.cozy_log_channel),
        inline=True,
    )
    embed.add_field(
        name="Message Log Category",
        value=channel_mention(settings.message_log_category),
        inline=True,
    )

    roles = settings.moderator_roles or []
    embed.add_field(
        name="Moderator Roles",
        value="\n".join(f"<@&{r}>" for r in roles) if roles else "*none*",
        inline=False,
    )

    if show_quilt_settings:
        server_type = settings.server_type
        embed.add_field(
            name="Quilt Server Type",
            value=server_type.readable_name if server_type else "*none*",
            inline=True,
        )
        embed.add_field(
            name="Leave Server",
            value="Yes" if settings.leave_server else "No",
            inline=True,
        )
    return embed
