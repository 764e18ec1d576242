"""
cozy.config — YAML Configuration Loader
========================================

Reads ``config.yaml`` for **infrastructure-only** settings (bot identity,
default prefix, the main guild).  Everything an admin can change at runtime
lives in the ``global_settings`` / ``server_settings`` tables instead.

Usage::

    from cozy.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.main_guild_id)     # 817576132726620200
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml


@dataclass(frozen=True, slots=True)
class CozyConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    bot_name: str

    # Discord
    bot_prefix: str     # Default prefix for newly created server records
    main_guild_id: int  # Administrators here may configure every server


def load_config(path: str | Path = "config.yaml") -> CozyConfig:
    """Read *path* and return a :class:`CozyConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If ``main_guild_id`` is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return CozyConfig(
        bot_name=raw.get("bot_name", "Cozy"),
        bot_prefix=raw.get("bot_prefix", "?"),
        main_guild_id=int(raw["main_guild_id"]),
    )
