"""
cozy.database.models — SQLAlchemy 2.0 Data Models
==================================================

Tables:
- global_settings  — Singleton row with bot-wide configuration
- server_settings  — One row per Discord guild the bot has seen
- settings_log     — Append-only audit trail of settings mutations

Snowflake sets (``quilt_guilds``, ``moderator_roles``) are stored as JSON
arrays.  Always assign a new list instead of mutating in place so the ORM
sees the change.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Primary key of the single global_settings row
GLOBAL_SETTINGS_ID = 1


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Cozy ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class QuiltServerType(enum.StrEnum):
    """Special role a server plays in the Quilt community.

    At most one server may hold each value.
    """
    COMMUNITY = "COMMUNITY"
    TOOLCHAIN = "TOOLCHAIN"
    COLLAB = "COLLAB"

    @property
    def readable_name(self) -> str:
        return self.value.title()


# ---------------------------------------------------------------------------
# GlobalSettings — singleton
# ---------------------------------------------------------------------------
class GlobalSettings(Base):
    __tablename__ = "global_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=GLOBAL_SETTINGS_ID)
    appeals_invite: Mapped[str | None] = mapped_column(String(100), default=None)
    github_token: Mapped[str | None] = mapped_column(Text, default=None)
    github_log_channel: Mapped[int | None] = mapped_column(BigInteger, default=None)
    quilt_guilds: Mapped[list[int]] = mapped_column(JSONB, default=list)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<GlobalSettings guilds={len(self.quilt_guilds or [])}>"


# ---------------------------------------------------------------------------
# ServerSettings — one row per guild
# ---------------------------------------------------------------------------
class ServerSettings(Base):
    """Per-guild configuration.

    Created when the bot first sees a guild.  Rows are never deleted, so a
    guild the bot rejoins keeps its old configuration.
    """
    __tablename__ = "server_settings"

    guild_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    command_prefix: Mapped[str] = mapped_column(String(32), nullable=False, default="?")
    moderator_roles: Mapped[list[int]] = mapped_column(JSONB, default=list)
    cozy_log_channel: Mapped[int | None] = mapped_column(BigInteger, default=None)
    message_log_category: Mapped[int | None] = mapped_column(BigInteger, default=None)
    quilt_server_type: Mapped[str | None] = mapped_column(String(20), default=None)
    leave_server: Mapped[bool] = mapped_column(Boolean, default=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        # Not unique: one-per-type is checked when the flag is written.
        Index("ix_server_settings_quilt_type", "quilt_server_type"),
    )

    @property
    def server_type(self) -> QuiltServerType | None:
        if self.quilt_server_type is None:
            return None
        return QuiltServerType(self.quilt_server_type)

    def __repr__(self) -> str:
        return f"<ServerSettings guild={self.guild_id} type={self.quilt_server_type}>"


# ---------------------------------------------------------------------------
# SettingsLog — append-only audit trail
# ---------------------------------------------------------------------------
class SettingsLog(Base):
    __tablename__ = "settings_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    target_table: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    before_snapshot: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    after_snapshot: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_settings_log_target", "target_table", "target_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<SettingsLog id={self.id} actor={self.actor_id} target={self.target_table}>"
