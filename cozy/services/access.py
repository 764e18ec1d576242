"""
cozy.services.access — Settings Target Resolution
==================================================

Framework-independent half of the authorization rule.  A caller may always
address the server they are in; addressing any other server needs
administrator in the main guild, which the bot layer checks
(:mod:`cozy.bot.checks`).
"""

from __future__ import annotations


def resolve_target(caller_guild_id: int | None, explicit_id: int | None) -> int | None:
    """Pick the server a settings command operates on.

    An explicit server id wins; otherwise the server the command was invoked
    in.  Returns ``None`` only for a DM invocation without an explicit id.
    """
    if explicit_id is not None:
        return explicit_id
    return caller_guild_id


def needs_main_guild_admin(caller_guild_id: int | None, target_id: int | None) -> bool:
    """True when *target_id* is not the server the caller is in."""
    return target_id is not None and target_id != caller_guild_id
