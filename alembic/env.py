"""
Alembic environment for the Cozy settings schema.

The database URL comes from ``DATABASE_URL`` (``.env`` is honoured), the
same variable the bot reads, so migrations and the bot always target one
database.  ``sqlalchemy.url`` in an ini file is only a fallback.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from sqlalchemy import create_engine, pool

from alembic import context
from cozy.database.models import Base

load_dotenv()

config = context.config
if config.config_file_name is not None:
    from logging.config import fileConfig

    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env.cozy")

target_metadata = Base.metadata


def _database_url() -> str:
    url = os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError("Set DATABASE_URL before running Cozy migrations.")
    return url


def _configure(**kwargs) -> None:
    # Autogenerate must see column type changes (e.g. String(32) to String(64)).
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        **kwargs,
    )


if context.is_offline_mode():
    _configure(
        url=_database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()
else:
    # NullPool: a migration run is one connection, then the process exits.
    engine = create_engine(_database_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            logger.info("Migrating %s", engine.url.render_as_string(hide_password=True))
            context.run_migrations()
