"""
tests/test_access.py — Target Resolution & Permission Check Tests
==================================================================
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import discord
import pytest

from conftest import (
    GUILD_ID,
    MAIN_GUILD_ID,
    OTHER_GUILD_ID,
    make_bot,
    make_guild,
    make_member,
    run_async,
)
from cozy.bot.checks import has_main_guild_permission
from cozy.bot.converters import SnowflakeTransformer, parse_snowflake
from cozy.services.access import needs_main_guild_admin, resolve_target


class TestResolveTarget:
    def test_defaults_to_current_guild(self):
        assert resolve_target(GUILD_ID, None) == GUILD_ID

    def test_explicit_id_wins(self):
        assert resolve_target(GUILD_ID, OTHER_GUILD_ID) == OTHER_GUILD_ID

    def test_dm_without_id(self):
        assert resolve_target(None, None) is None


class TestNeedsMainGuildAdmin:
    def test_own_guild(self):
        assert needs_main_guild_admin(GUILD_ID, GUILD_ID) is False

    def test_other_guild(self):
        assert needs_main_guild_admin(GUILD_ID, OTHER_GUILD_ID) is True

    def test_from_dm(self):
        assert needs_main_guild_admin(None, OTHER_GUILD_ID) is True


class TestParseSnowflake:
    def test_valid(self):
        assert parse_snowflake(" 817576132726620200 ") == 817576132726620200

    @pytest.mark.parametrize("raw", ["", "abc", "-5", "12.5", "0"])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_snowflake(raw)

    def test_transformer(self):
        value = run_async(SnowflakeTransformer().transform(None, "123"))
        assert value == 123


class TestMainGuildPermission:
    def test_cached_admin(self, db_engine):
        bot = make_bot(db_engine, main_admins=[42])
        assert run_async(has_main_guild_permission(bot, make_member(42))) is True

    def test_non_member(self, db_engine):
        bot = make_bot(db_engine)
        main = bot.get_guild(MAIN_GUILD_ID)
        response = type("Resp", (), {"status": 404, "reason": "Not Found"})()
        main.fetch_member = AsyncMock(side_effect=discord.NotFound(response, "Unknown Member"))
        assert run_async(has_main_guild_permission(bot, make_member(42))) is False

    def test_member_without_permission(self, db_engine):
        main = make_guild(MAIN_GUILD_ID, members=[make_member(42, administrator=False)])
        bot = make_bot(db_engine, guilds=[main])
        assert run_async(has_main_guild_permission(bot, make_member(42))) is False

    def test_main_guild_unavailable(self, db_engine):
        bot = make_bot(db_engine, main_admins=[42])
        bot.get_guild = lambda gid: None
        assert run_async(has_main_guild_permission(bot, make_member(42))) is False

    def test_lookup_http_error_denies(self, db_engine):
        bot = make_bot(db_engine)
        main = bot.get_guild(MAIN_GUILD_ID)
        response = type("Resp", (), {"status": 403, "reason": "Forbidden"})()
        main.fetch_member = AsyncMock(side_effect=discord.Forbidden(response, "Missing Access"))
        assert run_async(has_main_guild_permission(bot, make_member(42))) is False
