"""Session registry - the table of live push channels.

One registry exists per application instance. Every method is synchronous,
so each mutation is a single step of the event loop and a lookup never
observes a half-removed entry.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from typing import TYPE_CHECKING

from .errors import UnknownSession

if TYPE_CHECKING:
    from .transport.channel import Channel

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Maps session id to the channel that carries the session.

    An id is present if and only if its channel is open.

    Example:
        registry = SessionRegistry()
        session_id = registry.register(channel)
        channel = registry.lookup(session_id)
        registry.remove(session_id)
    """

    def __init__(self) -> None:
        self._channels: dict[str, Channel] = {}

    def register(self, channel: Channel) -> str:
        """Store a channel under a freshly generated id.

        Returns:
            The new session id
        """
        session_id = str(uuid.uuid4())
        while session_id in self._channels:
            session_id = str(uuid.uuid4())
        self._channels[session_id] = channel
        logger.debug(f"Registered session {session_id} ({len(self._channels)} active)")
        return session_id

    def lookup(self, session_id: str) -> Channel:
        """Resolve a session id.

        Raises:
            UnknownSession: If the id is not registered (never was, or closed)
        """
        channel = self._channels.get(session_id)
        if channel is None:
            raise UnknownSession(session_id)
        return channel

    def get(self, session_id: str) -> Channel | None:
        """Resolve a session id, returning None if absent."""
        return self._channels.get(session_id)

    def remove(self, session_id: str) -> bool:
        """Remove a session. Removing an absent id is a no-op.

        Returns:
            True if an entry was removed
        """
        removed = self._channels.pop(session_id, None) is not None
        if removed:
            logger.debug(f"Removed session {session_id} ({len(self._channels)} active)")
        return removed

    def ids(self) -> list[str]:
        """Snapshot of the registered ids."""
        return list(self._channels)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._channels

    def __len__(self) -> int:
        return len(self._channels)

    def __iter__(self) -> Iterator[str]:
        return iter(self.ids())
