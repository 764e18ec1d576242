"""
cozy.services.settings_service — Settings Store
================================================

Typed read/write access to the ``global_settings`` and ``server_settings``
tables.  Every function is synchronous; call it from a cog through
:func:`~cozy.database.engine.run_db`.

Returned rows are detached from their session, so callers may read them
freely and hand them back to :func:`save_settings`.
"""

from __future__ import annotations

import logging
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from cozy.database.engine import get_session
from cozy.database.models import (
    GLOBAL_SETTINGS_ID,
    GlobalSettings,
    QuiltServerType,
    ServerSettings,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", GlobalSettings, ServerSettings)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def get_global_settings(engine) -> GlobalSettings | None:
    """Fetch the global settings row, or ``None`` before startup created it."""
    with Session(engine) as session:
        row = session.get(GlobalSettings, GLOBAL_SETTINGS_ID)
        if row is not None:
            session.expunge(row)
        return row


def get_server_settings(engine, guild_id: int) -> ServerSettings | None:
    """Fetch the settings row for *guild_id*."""
    with Session(engine) as session:
        row = session.get(ServerSettings, guild_id)
        if row is not None:
            session.expunge(row)
        return row


def servers_by_type(
    session: Session,
    server_type: QuiltServerType,
    *,
    exclude: int | None = None,
) -> list[ServerSettings]:
    """Servers flagged with *server_type* inside an open session, by id.

    *exclude* drops one guild from the result (the server being edited).
    """
    stmt = select(ServerSettings).where(
        ServerSettings.quilt_server_type == server_type.value
    )
    if exclude is not None:
        stmt = stmt.where(ServerSettings.guild_id != exclude)
    return list(session.scalars(stmt.order_by(ServerSettings.guild_id)).all())


def get_servers_by_type(engine, server_type: QuiltServerType) -> list[ServerSettings]:
    """Every server currently flagged with *server_type*, ordered by id."""
    with Session(engine) as session:
        rows = servers_by_type(session, server_type)
        for r in rows:
            session.expunge(r)
        return rows


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def ensure_global_settings(engine) -> bool:
    """Create the global settings singleton if it is missing.

    Returns ``True`` when a row was created.
    """
    with get_session(engine) as session:
        if session.get(GlobalSettings, GLOBAL_SETTINGS_ID) is not None:
            return False
        session.add(GlobalSettings(id=GLOBAL_SETTINGS_ID, quilt_guilds=[]))
    logger.info("Created initial global settings entry.")
    return True


def new_server_settings(guild_id: int, *, command_prefix: str = "?") -> ServerSettings:
    """Build (but don't persist) a default settings row for *guild_id*."""
    return ServerSettings(
        guild_id=guild_id,
        command_prefix=command_prefix,
        moderator_roles=[],
        leave_server=False,
    )


def create_server_settings(engine, guild_id: int, *, command_prefix: str = "?") -> bool:
    """Insert a default settings row for *guild_id* unless one exists.

    Returns ``True`` when a row was created.
    """
    with get_session(engine) as session:
        if session.get(ServerSettings, guild_id) is not None:
            return False
        merge_settings(session, new_server_settings(guild_id, command_prefix=command_prefix))
    logger.info("Created settings entry for guild %d.", guild_id)
    return True


def merge_settings(session: Session, record: R) -> R:
    """Upsert *record* inside an open session.

    The merged row is flushed and refreshed so server-generated columns
    (``updated_at``) are loaded before the session closes.
    """
    merged = session.merge(record)
    session.flush()
    session.refresh(merged)
    return merged


def save_settings(engine, record: R) -> R:
    """Upsert *record* by primary key and return the persisted copy."""
    with get_session(engine) as session:
        return merge_settings(session, record)
