"""
Cozy — Settings Layer for a Discord Moderation Bot
===================================================
Stores the bot's global configuration and one settings record per server,
and exposes them through the ``/global-config`` and ``/server-config`` slash
command groups.

Package layout::

    cozy/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Shared response strings + timing constants
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # GlobalSettings, ServerSettings, SettingsLog
    ├── bot/
    │   ├── core.py        # Bot subclass, cog loader
    │   ├── checks.py      # Main-guild permission checks
    │   ├── converters.py  # Snowflake argument transformer
    │   └── cogs/
    │       ├── settings.py  # /global-config, /server-config
    │       └── guilds.py    # Guild join → default record / auto-leave
    └── services/
        ├── settings_service.py  # Settings store (get / save)
        ├── config_service.py    # Audited settings mutations
        ├── access.py            # Target resolution rules
        ├── embeds.py            # Settings embeds
        └── rotation_queue.py    # Message-log rotation notifications
"""

__version__ = "0.1.0"
