"""
cozy.services.config_service — Audited Settings Mutations
==========================================================

One function per settings command.  Every write follows the pattern:
  1. Begin transaction, load the target row
  2. Report "unknown guild" if it's missing
  3. Validate; on rejection return without touching the row
  4. Apply change and write a settings_log row with before/after snapshots
  5. Commit

Functions never raise for user errors.  They return a :class:`CommandResult`
whose ``message`` is shown to the caller as-is.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from cozy.constants import INVITE_URL_BASE, unknown_guild
from cozy.database.engine import get_session
from cozy.database.models import (
    GLOBAL_SETTINGS_ID,
    GlobalSettings,
    QuiltServerType,
    ServerSettings,
    SettingsLog,
)
from cozy.services.settings_service import (
    merge_settings,
    new_server_settings,
    servers_by_type,
)

logger = logging.getLogger(__name__)

MAX_PREFIX_LENGTH = 32

# Columns whose values never reach the audit log
_REDACTED_COLUMNS = {"github_token"}
_SKIPPED_COLUMNS = {"updated_at"}


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of a settings command: success flag + response text."""
    ok: bool
    message: str
    settings: GlobalSettings | ServerSettings | None = None


def _reject(message: str) -> CommandResult:
    return CommandResult(False, f"❌ {message}")


# ---------------------------------------------------------------------------
# Generic audit helpers
# ---------------------------------------------------------------------------

def _row_to_dict(obj: Any) -> dict | None:
    """Snapshot a settings row as a JSON-serializable dict (secrets masked)."""
    if obj is None:
        return None
    result = {}
    for col in obj.__table__.columns:
        if col.key in _SKIPPED_COLUMNS:
            continue
        val = getattr(obj, col.key, None)
        if col.key in _REDACTED_COLUMNS and val is not None:
            val = "<redacted>"
        elif isinstance(val, datetime):
            val = val.isoformat()
        elif isinstance(val, list):
            val = list(val)
        result[col.name] = val
    return result


def _audited_update(
    engine,
    model: type[GlobalSettings] | type[ServerSettings],
    key: int,
    mutate: Callable[[Session, Any], CommandResult],
    *,
    actor_id: int,
    create_missing: Callable[[], Any] | None = None,
) -> CommandResult:
    """Load → validate/mutate → audit → commit, shared by every command.

    *mutate* receives the open session and the row.  It must return a
    failed :class:`CommandResult` **before** changing anything when the
    request is invalid.
    """
    table = model.__tablename__
    with get_session(engine) as session:
        row = session.get(model, key)
        before: dict | None = None
        if row is None:
            if create_missing is None:
                if model is GlobalSettings:
                    return _reject("Global settings have not been initialised yet.")
                return CommandResult(False, unknown_guild(key))
            row = merge_settings(session, create_missing())
        else:
            before = _row_to_dict(row)

        result = mutate(session, row)
        if not result.ok:
            session.rollback()
            return result

        after = _row_to_dict(row)
        if before != after:
            session.add(SettingsLog(
                actor_id=actor_id,
                target_table=table,
                target_id=str(key),
                before_snapshot=before,
                after_snapshot=after,
            ))
            logger.info(
                "Settings changed: %s[%s] by %d", table, key, actor_id,
                extra={"before": before, "after": after},
            )

        # Load onupdate columns so the returned row is readable once detached
        session.flush()
        session.refresh(row)

    return CommandResult(result.ok, result.message, row)


def _update_global(engine, mutate, *, actor_id: int) -> CommandResult:
    return _audited_update(
        engine, GlobalSettings, GLOBAL_SETTINGS_ID, mutate, actor_id=actor_id,
    )


def _update_server(engine, guild_id: int, mutate, *, actor_id: int, **kwargs) -> CommandResult:
    return _audited_update(
        engine, ServerSettings, guild_id, mutate, actor_id=actor_id, **kwargs,
    )


# ---------------------------------------------------------------------------
# Global settings
# ---------------------------------------------------------------------------

def normalize_invite_code(code: str) -> str:
    """Reduce an invite link to its code.

    ``"https://discord.gg/abc123"`` and ``"abc123"`` both give ``"abc123"``.
    """
    code = code.strip()
    if "/" in code:
        code = code.rsplit("/", 1)[-1]
    return code


def set_appeals_invite(engine, code: str, *, actor_id: int) -> CommandResult:
    """Store the invite used to send banned users to the appeals server."""
    normalized = normalize_invite_code(code)

    def mutate(session: Session, settings: GlobalSettings) -> CommandResult:
        if not normalized:
            return _reject("That doesn't look like an invite code.")
        settings.appeals_invite = normalized
        return CommandResult(True, f"**New invite set:** {INVITE_URL_BASE}{normalized}")

    return _update_global(engine, mutate, actor_id=actor_id)


def set_github_token(engine, token: str, *, actor_id: int) -> CommandResult:
    def mutate(session: Session, settings: GlobalSettings) -> CommandResult:
        settings.github_token = token
        return CommandResult(True, "**GitHub login token set successfully**")

    return _update_global(engine, mutate, actor_id=actor_id)


def set_github_log_channel(engine, channel_id: int, *, actor_id: int) -> CommandResult:
    def mutate(session: Session, settings: GlobalSettings) -> CommandResult:
        settings.github_log_channel = channel_id
        return CommandResult(True, f"**New GitHub log channel set:** <#{channel_id}>")

    return _update_global(engine, mutate, actor_id=actor_id)


def add_quilt_guild(engine, guild_id: int, guild_name: str, *, actor_id: int) -> CommandResult:
    """Mark *guild_id* as an official Quilt server."""

    def mutate(session: Session, settings: GlobalSettings) -> CommandResult:
        guilds = list(settings.quilt_guilds or [])
        if guild_id in guilds:
            return _reject(f"**{guild_name}** is already marked as an official Quilt guild.")
        settings.quilt_guilds = sorted([*guilds, guild_id])
        return CommandResult(True, f"**{guild_name}** marked as an official Quilt guild.")

    return _update_global(engine, mutate, actor_id=actor_id)


def remove_quilt_guild(engine, guild_id: int, *, actor_id: int) -> CommandResult:
    def mutate(session: Session, settings: GlobalSettings) -> CommandResult:
        guilds = list(settings.quilt_guilds or [])
        if guild_id not in guilds:
            return _reject(f"`{guild_id}` is not marked as an official Quilt guild.")
        settings.quilt_guilds = [g for g in guilds if g != guild_id]
        return CommandResult(True, f"`{guild_id}` is no longer marked as an official Quilt guild.")

    return _update_global(engine, mutate, actor_id=actor_id)


# ---------------------------------------------------------------------------
# Server settings
# ---------------------------------------------------------------------------

def set_command_prefix(engine, guild_id: int, prefix: str, *, actor_id: int) -> CommandResult:
    def mutate(session: Session, settings: ServerSettings) -> CommandResult:
        if not prefix.strip():
            return _reject("The command prefix can't be empty.")
        if len(prefix) > MAX_PREFIX_LENGTH:
            return _reject(f"The command prefix can be at most {MAX_PREFIX_LENGTH} characters.")
        settings.command_prefix = prefix
        return CommandResult(True, f"**Command prefix set:** `{prefix}`")

    return _update_server(engine, guild_id, mutate, actor_id=actor_id)


def add_moderator_role(
    engine, guild_id: int, role_id: int, role_guild_id: int, *, actor_id: int,
) -> CommandResult:
    """Give *role_id* moderator permissions on *guild_id*."""

    def mutate(session: Session, settings: ServerSettings) -> CommandResult:
        if role_guild_id != settings.guild_id:
            return _reject(f"That role doesn't belong to the guild with ID: `{settings.guild_id}`")
        roles = list(settings.moderator_roles or [])
        if role_id in roles:
            return _reject("That role is already marked as a moderator role")
        settings.moderator_roles = [*roles, role_id]
        return CommandResult(True, f"Moderator role added: <@&{role_id}>")

    return _update_server(engine, guild_id, mutate, actor_id=actor_id)


def remove_moderator_role(
    engine, guild_id: int, role_id: int, role_guild_id: int, *, actor_id: int,
) -> CommandResult:
    def mutate(session: Session, settings: ServerSettings) -> CommandResult:
        if role_guild_id != settings.guild_id:
            return _reject(f"That role doesn't belong to the guild with ID: `{settings.guild_id}`")
        roles = list(settings.moderator_roles or [])
        if role_id not in roles:
            return _reject("That role is not marked as a moderator role")
        settings.moderator_roles = [r for r in roles if r != role_id]
        return CommandResult(True, f"Moderator role removed: <@&{role_id}>")

    return _update_server(engine, guild_id, mutate, actor_id=actor_id)


def set_cozy_log_channel(
    engine, guild_id: int, channel_id: int, channel_guild_id: int, *, actor_id: int,
) -> CommandResult:
    def mutate(session: Session, settings: ServerSettings) -> CommandResult:
        if channel_guild_id != settings.guild_id:
            return _reject(
                f"That channel doesn't belong to the guild with ID: `{settings.guild_id}`"
            )
        settings.cozy_log_channel = channel_id
        return CommandResult(True, f"**Cozy logging channel set:** <#{channel_id}>")

    return _update_server(engine, guild_id, mutate, actor_id=actor_id)


def set_message_log_category(
    engine, guild_id: int, category_id: int, category_guild_id: int, *, actor_id: int,
) -> CommandResult:
    """Point message logs for *guild_id* at a category.

    The caller is expected to request a log rotation after a success.
    """

    def mutate(session: Session, settings: ServerSettings) -> CommandResult:
        if category_guild_id != settings.guild_id:
            return _reject(
                f"That category doesn't belong to the guild with ID: `{settings.guild_id}`"
            )
        settings.message_log_category = category_id
        return CommandResult(True, f"**Message log category set:** <#{category_id}>")

    return _update_server(engine, guild_id, mutate, actor_id=actor_id)


def set_quilt_server_type(
    engine, guild_id: int, server_type: QuiltServerType | None, *, actor_id: int,
) -> CommandResult:
    """Flag *guild_id* as the server of *server_type*, or clear the flag.

    Uniqueness is check-then-act: the scan and the write share a transaction
    but take no lock, so two concurrent writers can both pass the check.
    """

    def mutate(session: Session, settings: ServerSettings) -> CommandResult:
        if server_type is not None:
            existing = servers_by_type(session, server_type, exclude=settings.guild_id)
            if existing:
                listing = "\n".join(f"`{s.guild_id}`" for s in existing)
                return _reject(
                    "The following servers are already flagged as the "
                    f"{server_type.readable_name} server: \n\n{listing}"
                )

        settings.quilt_server_type = server_type.value if server_type else None
        if server_type is None:
            return CommandResult(
                True, f"**Server no longer flagged as a Quilt server:** `{settings.guild_id}`"
            )
        return CommandResult(
            True,
            f"**Server flagged as the {server_type.readable_name} server:** "
            f"`{settings.guild_id}`",
        )

    return _update_server(engine, guild_id, mutate, actor_id=actor_id)


def set_leave_server(
    engine, guild_id: int, should_leave: bool, *, actor_id: int,
    command_prefix: str = "?",
) -> CommandResult:
    """Set the auto-leave flag, creating the server's record if needed.

    Leaving the guild itself is up to the caller.
    """

    def mutate(session: Session, settings: ServerSettings) -> CommandResult:
        settings.leave_server = should_leave
        if should_leave:
            return CommandResult(
                True, f"**Server will now be left automatically:** `{settings.guild_id}`"
            )
        return CommandResult(
            True, f"**Server will not be left automatically:** `{settings.guild_id}`"
        )

    return _update_server(
        engine, guild_id, mutate, actor_id=actor_id,
        create_missing=lambda: new_server_settings(guild_id, command_prefix=command_prefix),
    )
