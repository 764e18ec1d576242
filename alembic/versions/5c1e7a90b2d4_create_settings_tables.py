"""Create global_settings, server_settings and settings_log tables

Revision ID: 5c1e7a90b2d4
Revises:
Create Date: 2026-10-17 12:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c1e7a90b2d4"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the settings tables and seed the global settings row."""
    global_settings = op.create_table(
        "global_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("appeals_invite", sa.String(100), nullable=True),
        sa.Column("github_token", sa.Text(), nullable=True),
        sa.Column("github_log_channel", sa.BigInteger(), nullable=True),
        sa.Column(
            "quilt_guilds",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.bulk_insert(global_settings, [{"id": 1}])

    op.create_table(
        "server_settings",
        sa.Column("guild_id", sa.BigInteger(), primary_key=True),
        sa.Column("command_prefix", sa.String(32), nullable=False, server_default="?"),
        sa.Column(
            "moderator_roles",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("cozy_log_channel", sa.BigInteger(), nullable=True),
        sa.Column("message_log_category", sa.BigInteger(), nullable=True),
        sa.Column("quilt_server_type", sa.String(20), nullable=True),
        sa.Column("leave_server", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_server_settings_quilt_type", "server_settings", ["quilt_server_type"],
    )

    op.create_table(
        "settings_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("actor_id", sa.BigInteger(), nullable=False),
        sa.Column("target_table", sa.String(50), nullable=False),
        sa.Column("target_id", sa.String(100), nullable=True),
        sa.Column("before_snapshot", postgresql.JSONB(), nullable=True),
        sa.Column("after_snapshot", postgresql.JSONB(), nullable=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_settings_log_target",
        "settings_log",
        ["target_table", "target_id", "timestamp"],
    )


def downgrade() -> None:
    """Drop the settings tables."""
    op.drop_index("ix_settings_log_target", table_name="settings_log")
    op.drop_table("settings_log")

    op.drop_index("ix_server_settings_quilt_type", table_name="server_settings")
    op.drop_table("server_settings")

    op.drop_table("global_settings")
