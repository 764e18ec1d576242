"""
cozy.constants — Shared Constants
==================================

Single source of truth for timings and user-facing strings that more than
one module needs.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------
# Pause before auto-leaving a guild on join so the gateway handshake finishes.
LEAVE_DELAY_SECONDS: float = 2.0

# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------
INVITE_URL_BASE = "https://discord.gg/"

DENIED_OTHER_SERVER = (
    "❌ Only Quilt community managers can modify settings for other servers."
)
DENIED_CHECK = "🔒 You don't have permission to use this command."


def unknown_guild(guild_id: int | None) -> str:
    """Response for a settings lookup that found no record."""
    return f"❌ Unknown guild ID: `{guild_id}`"


def channel_mention(channel_id: int | None) -> str:
    """Render a channel id as a mention, or a placeholder when unset."""
    return f"<#{channel_id}>" if channel_id else "*not set*"
