"""
tests/test_settings_service.py — Settings Store Tests
======================================================
Tests for the get/create/save helpers over ``global_settings`` and
``server_settings``.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from conftest import GUILD_ID, OTHER_GUILD_ID
from cozy.database.engine import init_db
from cozy.database.models import GlobalSettings, QuiltServerType, ServerSettings
from cozy.services.settings_service import (
    create_server_settings,
    ensure_global_settings,
    get_global_settings,
    get_server_settings,
    get_servers_by_type,
    new_server_settings,
    save_settings,
    servers_by_type,
)


def _count(engine, model) -> int:
    with Session(engine) as s:
        return s.scalar(select(func.count()).select_from(model))


class TestGlobalSettings:
    def test_missing_before_startup(self, db_engine):
        assert get_global_settings(db_engine) is None

    def test_ensure_creates_singleton_once(self, db_engine):
        assert ensure_global_settings(db_engine) is True
        assert ensure_global_settings(db_engine) is False
        assert _count(db_engine, GlobalSettings) == 1

        settings = get_global_settings(db_engine)
        assert settings.quilt_guilds == []
        assert settings.appeals_invite is None

    def test_init_db_seeds_global_settings(self, db_engine):
        init_db(db_engine)
        assert get_global_settings(db_engine) is not None


class TestServerSettings:
    def test_create_default_record(self, db_engine):
        assert create_server_settings(db_engine, GUILD_ID, command_prefix="!") is True

        settings = get_server_settings(db_engine, GUILD_ID)
        assert settings.guild_id == GUILD_ID
        assert settings.command_prefix == "!"
        assert settings.moderator_roles == []
        assert settings.leave_server is False
        assert settings.quilt_server_type is None

    def test_create_is_noop_when_present(self, db_engine):
        create_server_settings(db_engine, GUILD_ID)
        assert create_server_settings(db_engine, GUILD_ID, command_prefix="$") is False

        assert _count(db_engine, ServerSettings) == 1
        assert get_server_settings(db_engine, GUILD_ID).command_prefix == "?"

    def test_unknown_guild_is_none(self, db_engine):
        assert get_server_settings(db_engine, 999) is None

    def test_save_inserts_then_updates(self, db_engine):
        record = new_server_settings(GUILD_ID)
        save_settings(db_engine, record)

        record = get_server_settings(db_engine, GUILD_ID)
        record.command_prefix = "%"
        record.moderator_roles = [5, 6]
        save_settings(db_engine, record)

        stored = get_server_settings(db_engine, GUILD_ID)
        assert stored.command_prefix == "%"
        assert stored.moderator_roles == [5, 6]
        assert _count(db_engine, ServerSettings) == 1

    def test_get_servers_by_type(self, db_engine):
        for gid, server_type in [
            (GUILD_ID, QuiltServerType.COMMUNITY),
            (OTHER_GUILD_ID, QuiltServerType.TOOLCHAIN),
            (777, None),
        ]:
            record = new_server_settings(gid)
            record.quilt_server_type = server_type.value if server_type else None
            save_settings(db_engine, record)

        community = get_servers_by_type(db_engine, QuiltServerType.COMMUNITY)
        assert [s.guild_id for s in community] == [GUILD_ID]
        assert community[0].server_type is QuiltServerType.COMMUNITY
        assert get_servers_by_type(db_engine, QuiltServerType.COLLAB) == []

    def test_save_returns_readable_copy(self, db_engine):
        merged = save_settings(db_engine, new_server_settings(GUILD_ID, command_prefix="!"))

        # Server-generated columns are loaded before the session closes
        assert merged.updated_at is not None
        assert merged.command_prefix == "!"

    def test_servers_by_type_can_exclude_a_guild(self, db_engine):
        for gid in (GUILD_ID, OTHER_GUILD_ID):
            record = new_server_settings(gid)
            record.quilt_server_type = QuiltServerType.COLLAB.value
            save_settings(db_engine, record)

        with Session(db_engine) as session:
            everyone = servers_by_type(session, QuiltServerType.COLLAB)
            others = servers_by_type(session, QuiltServerType.COLLAB, exclude=GUILD_ID)

        assert [s.guild_id for s in everyone] == sorted([GUILD_ID, OTHER_GUILD_ID])
        assert [s.guild_id for s in others] == [OTHER_GUILD_ID]
