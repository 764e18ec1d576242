"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
from sqlalchemy import Engine, create_engine

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# SQLite doesn't support JSONB natively, but SQLAlchemy's JSON type works.
# We register a custom type compiler so SQLite renders JSONB as TEXT.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB

from cozy.config import CozyConfig
from cozy.database.models import Base
from cozy.services.rotation_queue import RotationNotifier

MAIN_GUILD_ID = 817576132726620200
GUILD_ID = 111222333
OTHER_GUILD_ID = 444555666

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent).

    Also maps BigInteger → INTEGER so autoincrement works on SQLite.
    """
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy import BigInteger
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    @compiles(BigInteger, "sqlite")
    def _compile_bigint_as_integer(type_, compiler, **kw):
        return "INTEGER"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


def run_async(coro):
    """Run an async coroutine in a new event loop (no pytest-asyncio)."""
    return asyncio.get_event_loop_policy().new_event_loop().run_until_complete(coro)


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all Cozy tables.

    Uses StaticPool so every thread shares the same in-memory database
    (``run_db`` hops onto a worker thread).
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


# ---------------------------------------------------------------------------
# Discord doubles
# ---------------------------------------------------------------------------

def make_member(user_id: int, *, administrator: bool = False) -> SimpleNamespace:
    return SimpleNamespace(
        id=user_id,
        guild_permissions=SimpleNamespace(administrator=administrator),
    )


def make_guild(guild_id: int, *, name: str = "Test Server", members=()) -> MagicMock:
    guild = MagicMock()
    guild.id = guild_id
    guild.name = name
    by_id = {m.id: m for m in members}
    guild.get_member = lambda uid: by_id.get(uid)
    async def fetch_member(uid):
        if uid not in by_id:
            raise discord.NotFound(SimpleNamespace(status=404, reason="Not Found"), "Unknown Member")
        return by_id[uid]

    guild.fetch_member = AsyncMock(side_effect=fetch_member)
    guild.leave = AsyncMock()
    return guild


def make_bot(engine, *, guilds=(), main_admins=()) -> MagicMock:
    """Lightweight CozyBot double.

    *main_admins* are user ids holding administrator in the main guild.
    """
    main = make_guild(
        MAIN_GUILD_ID,
        name="Main",
        members=[make_member(uid, administrator=True) for uid in main_admins],
    )
    by_id = {g.id: g for g in guilds}
    by_id.setdefault(MAIN_GUILD_ID, main)

    bot = MagicMock()
    bot.engine = engine
    bot.cfg = CozyConfig(bot_name="Cozy", bot_prefix="?", main_guild_id=MAIN_GUILD_ID)
    bot.get_guild = lambda gid: by_id.get(gid)
    bot.rotation = RotationNotifier()
    bot.prefixes = {}
    return bot


def make_interaction(bot, *, guild_id: int | None = GUILD_ID, user_id: int = 42,
                     local_admin: bool = False) -> MagicMock:
    interaction = MagicMock()
    interaction.client = bot
    interaction.guild_id = guild_id
    interaction.guild = None if guild_id is None else SimpleNamespace(id=guild_id)
    interaction.user = make_member(user_id, administrator=local_admin)
    interaction.response.send_message = AsyncMock()
    return interaction


def sent_text(interaction) -> str:
    """Content of the single reply sent on *interaction*."""
    interaction.response.send_message.assert_awaited_once()
    args, kwargs = interaction.response.send_message.call_args
    return args[0] if args else kwargs.get("content")
