"""
cozy.bot.converters — Slash-command argument transformers
==========================================================

Discord integer options can't hold a 64-bit snowflake, so server ids are
taken as strings and parsed here.
"""

from __future__ import annotations

import discord
from discord import app_commands


def parse_snowflake(value: str) -> int:
    """Parse a Discord id, tolerating surrounding whitespace.

    Raises
    ------
    ValueError
        If *value* is not a positive integer.
    """
    value = value.strip()
    if not value.isdigit() or int(value) == 0:
        raise ValueError(f"`{value}` is not a valid ID")
    return int(value)


class SnowflakeTransformer(app_commands.Transformer):
    """String option → ``int`` snowflake."""

    async def transform(self, interaction: discord.Interaction, value: str) -> int:
        return parse_snowflake(value)


Snowflake = app_commands.Transform[int, SnowflakeTransformer]
