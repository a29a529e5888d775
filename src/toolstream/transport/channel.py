"""Server-Sent Events push channel.

A channel is the long-lived, one-way outbound half of a session. It owns
the stream headers, the handshake, the heartbeat task and the session's
registry entry; closing the channel releases all three in one step.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from starlette.requests import ClientDisconnect
from starlette.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from ..errors import ChannelClosed
from .frames import Frame, FrameKind
from .heartbeat import DEFAULT_HEARTBEAT_INTERVAL, HeartbeatScheduler

if TYPE_CHECKING:
    from ..registry import SessionRegistry
    from ..tools import ToolCatalog
    from .responder import MessageHandler

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


class SessionState(str, Enum):
    """Lifecycle of a session's channel. CLOSED is terminal."""

    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class Channel:
    """One client's push stream.

    Frames are queued by ``write_frame`` and drained in order by
    ``frames()``, which is what the streaming response iterates.

    Usage:
        channel = await Channel.open(registry, endpoint="/messages", catalog=catalog)
        return channel.response()
    """

    def __init__(
        self,
        registry: SessionRegistry,
        *,
        handler: MessageHandler | None = None,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL,
    ) -> None:
        self._registry = registry
        self.handler = handler
        self.session_id: str | None = None
        self.state = SessionState.OPEN
        self.created_at = datetime.now(UTC)
        self.last_heartbeat_at: datetime | None = None
        self.closed_at: datetime | None = None
        self._queue: asyncio.Queue[Frame | None] = asyncio.Queue()
        self._heartbeat = HeartbeatScheduler(self, heartbeat_interval)

    @classmethod
    async def open(
        cls,
        registry: SessionRegistry,
        *,
        endpoint: str,
        catalog: ToolCatalog | None = None,
        handler: MessageHandler | None = None,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL,
    ) -> Channel:
        """Register a new session and queue its handshake.

        The handshake frame goes out first, followed by the tool catalog
        snapshot when a catalog is given, so clients can post calls as soon
        as they see the endpoint.

        Args:
            registry: Registry the session is added to
            endpoint: Path of the inbound-call endpoint
            catalog: Tool catalog announced in the capabilities frame
            handler: Message handler for calls addressed to this session
            heartbeat_interval: Seconds between heartbeat frames
        """
        channel = cls(registry, handler=handler, heartbeat_interval=heartbeat_interval)
        channel.session_id = registry.register(channel)
        channel.write_frame(Frame.handshake(endpoint, channel.session_id))
        if catalog is not None:
            channel.write_frame(Frame.capabilities([tool.to_dict() for tool in catalog.list()]))
        channel._heartbeat.start()
        logger.info(f"SSE connection established with session ID: {channel.session_id}")
        return channel

    @property
    def is_open(self) -> bool:
        """True until close begins."""
        return self.state is SessionState.OPEN

    @property
    def heartbeat_running(self) -> bool:
        """True while the heartbeat task is scheduled."""
        return self._heartbeat.running

    def write_frame(self, frame: Frame) -> None:
        """Queue a frame for delivery.

        Raises:
            ChannelClosed: If the channel is no longer open
        """
        if not self.is_open:
            raise ChannelClosed(self.session_id)
        if frame.kind is FrameKind.HEARTBEAT:
            self.last_heartbeat_at = datetime.now(UTC)
        self._queue.put_nowait(frame)
        logger.debug(f"Queued {frame.kind.value} frame for session {self.session_id}")

    def push(self, payload: Any) -> None:
        """Queue an application message frame."""
        self.write_frame(Frame.message(payload))

    def close(self) -> None:
        """Tear the channel down.

        Cancels the heartbeat and removes the registry entry in the same
        step, then wakes the frame iterator so the stream ends. Calling it
        again has no effect.
        """
        if self.state is not SessionState.OPEN:
            return
        self.state = SessionState.CLOSING
        self._heartbeat.cancel()
        if self.session_id is not None:
            self._registry.remove(self.session_id)
        self.state = SessionState.CLOSED
        self.closed_at = datetime.now(UTC)
        self._queue.put_nowait(None)
        logger.info(f"SSE connection closed for session ID: {self.session_id}")

    async def frames(self) -> AsyncIterator[str]:
        """Yield encoded frames in issuance order until the channel closes."""
        try:
            while True:
                frame = await self._queue.get()
                if frame is None:
                    break
                yield frame.encode()
        finally:
            self.close()

    def response(self) -> ChannelResponse:
        """Build the streaming HTTP response carrying this channel."""
        return ChannelResponse(self)


class ChannelResponse(StreamingResponse):
    """Streaming response bound to a channel's lifetime.

    Whatever ends the response (client disconnect, a failed send, or the
    channel closing) leaves the channel closed.
    """

    def __init__(self, channel: Channel) -> None:
        super().__init__(
            channel.frames(),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )
        self.channel = channel

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        except (OSError, ClientDisconnect) as e:
            logger.info(f"Write failed for session {self.channel.session_id}: {e!r}")
        finally:
            self.channel.close()
