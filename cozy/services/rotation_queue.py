"""
cozy.services.rotation_queue — Message-log rotation notifications
==================================================================

Changing a server's message-log category should make the message-log
subsystem repopulate its channels.  The settings cog must not wait for that,
so requests go onto an :class:`asyncio.Queue` that a background task drains
into whatever rotator the message-log subsystem registered.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

Rotator = Callable[[int], Awaitable[None]]


class RotationNotifier:
    """Fire-and-forget "populate" requests, keyed by guild id."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[int] = asyncio.Queue()
        self._rotator: Rotator | None = None
        self._drain_task: asyncio.Task | None = None

    def register(self, rotator: Rotator | None) -> None:
        """Install the callback that rotates one guild's message logs."""
        self._rotator = rotator

    def notify(self, guild_id: int) -> None:
        """Request a rotation for *guild_id*.  Never blocks."""
        self._queue.put_nowait(guild_id)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def _rotate(self, guild_id: int) -> bool:
        if self._rotator is None:
            logger.debug("No message-log rotator registered; dropping %d", guild_id)
            return False
        try:
            await self._rotator(guild_id)
        except Exception:
            logger.exception("Message-log rotation failed for guild %d", guild_id)
            return False
        return True

    async def drain_once(self) -> int:
        """Hand every queued request to the rotator.  Returns how many ran."""
        handled = 0
        while not self._queue.empty():
            if await self._rotate(self._queue.get_nowait()):
                handled += 1
        return handled

    def start(self, loop: asyncio.AbstractEventLoop) -> None:
        """Start the background drain task."""
        if self._drain_task is not None:
            return

        async def _drain_loop() -> None:
            while True:
                guild_id = await self._queue.get()
                await self._rotate(guild_id)

        self._drain_task = loop.create_task(_drain_loop(), name="rotation-drain")

    def stop(self) -> None:
        """Cancel the drain task."""
        if self._drain_task:
            self._drain_task.cancel()
            self._drain_task = None
