"""Unit tests for the push channel and its heartbeat.

Tests cover:
- Handshake and capabilities ordering
- Heartbeat scheduling and cancellation on close
- Close idempotency and registry removal
- Streaming response lifecycle
"""

from __future__ import annotations

import asyncio
import json
import re
from unittest.mock import AsyncMock

import pytest

from helpers import UUID_PATTERN, frame_data, frame_event, next_frame
from toolstream.errors import ChannelClosed
from toolstream.registry import SessionRegistry
from toolstream.transport.channel import SSE_HEADERS, Channel, ChannelResponse, SessionState
from toolstream.transport.frames import Frame
from toolstream.transport.heartbeat import HeartbeatScheduler

# =============================================================================
# Open / Handshake
# =============================================================================


class TestChannelOpen:
    """Tests for Channel.open."""

    @pytest.mark.asyncio
    async def test_open_registers_session(self) -> None:
        registry = SessionRegistry()
        channel = await Channel.open(registry, endpoint="/messages")

        assert channel.state is SessionState.OPEN
        assert re.fullmatch(UUID_PATTERN, channel.session_id)
        assert registry.lookup(channel.session_id) is channel
        channel.close()

    @pytest.mark.asyncio
    async def test_handshake_is_first_frame(self, catalog) -> None:
        """Endpoint frame comes first, then the tool catalog."""
        registry = SessionRegistry()
        channel = await Channel.open(registry, endpoint="/messages", catalog=catalog)
        frames = channel.frames()

        first = await next_frame(frames)
        assert frame_event(first) == "endpoint"
        assert frame_data(first) == f"/messages?sessionId={channel.session_id}"

        second = await next_frame(frames)
        assert frame_event(second) == "tools"
        tools = json.loads(frame_data(second))
        assert [tool["name"] for tool in tools] == ["word_count"]
        assert set(tools[0]) == {"name", "description", "parameters"}

        channel.close()

    @pytest.mark.asyncio
    async def test_frames_keep_issuance_order(self) -> None:
        registry = SessionRegistry()
        channel = await Channel.open(registry, endpoint="/messages")
        for i in range(5):
            channel.push({"n": i})
        channel.close()

        received = [frame async for frame in channel.frames()]

        assert frame_event(received[0]) == "endpoint"
        assert [json.loads(frame_data(f))["n"] for f in received[1:]] == [0, 1, 2, 3, 4]


# =============================================================================
# Heartbeat
# =============================================================================


class TestHeartbeat:
    """Tests for the heartbeat owned by a channel."""

    @pytest.mark.asyncio
    async def test_heartbeat_frame_is_written(self) -> None:
        registry = SessionRegistry()
        channel = await Channel.open(registry, endpoint="/messages", heartbeat_interval=0.05)
        frames = channel.frames()

        await next_frame(frames)  # endpoint
        ping = await next_frame(frames)

        assert frame_event(ping) == "ping"
        assert int(frame_data(ping)) > 0
        assert channel.last_heartbeat_at is not None
        channel.close()

    @pytest.mark.asyncio
    async def test_no_heartbeat_after_close(self) -> None:
        """The last heartbeat write never follows the close."""
        registry = SessionRegistry()
        channel = await Channel.open(registry, endpoint="/messages", heartbeat_interval=0.01)

        for _ in range(100):
            if channel.last_heartbeat_at is not None:
                break
            await asyncio.sleep(0.01)
        channel.close()
        last_before_close = channel.last_heartbeat_at
        assert last_before_close is not None

        await asyncio.sleep(0.05)

        assert channel.last_heartbeat_at == last_before_close
        assert channel.last_heartbeat_at <= channel.closed_at
        assert not channel.heartbeat_running

    @pytest.mark.asyncio
    async def test_close_cancels_heartbeat_in_same_step(self) -> None:
        registry = SessionRegistry()
        channel = await Channel.open(registry, endpoint="/messages")
        assert channel.heartbeat_running

        channel.close()
        await asyncio.sleep(0)

        assert not channel.heartbeat_running

    @pytest.mark.asyncio
    async def test_heartbeat_stops_when_channel_not_open(self) -> None:
        """The task exits instead of writing to a closed channel."""
        registry = SessionRegistry()
        channel = Channel(registry)
        channel.session_id = "s1"
        channel.state = SessionState.CLOSED

        scheduler = HeartbeatScheduler(channel, interval=0.01)
        scheduler.start()
        await asyncio.sleep(0.05)

        assert not scheduler.running
        assert channel.last_heartbeat_at is None

    def test_interval_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            HeartbeatScheduler(Channel(SessionRegistry()), interval=0)


# =============================================================================
# Close
# =============================================================================


class TestChannelClose:
    """Tests for close and writes after close."""

    @pytest.mark.asyncio
    async def test_close_removes_session(self) -> None:
        registry = SessionRegistry()
        channel = await Channel.open(registry, endpoint="/messages")
        session_id = channel.session_id

        channel.close()

        assert channel.state is SessionState.CLOSED
        assert session_id not in registry
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self) -> None:
        registry = SessionRegistry()
        channel = await Channel.open(registry, endpoint="/messages")

        channel.close()
        closed_at = channel.closed_at
        channel.close()

        assert channel.state is SessionState.CLOSED
        assert channel.closed_at == closed_at

    @pytest.mark.asyncio
    async def test_write_after_close_raises(self) -> None:
        registry = SessionRegistry()
        channel = await Channel.open(registry, endpoint="/messages")
        channel.close()

        with pytest.raises(ChannelClosed):
            channel.write_frame(Frame.heartbeat())
        with pytest.raises(ChannelClosed):
            channel.push({"x": 1})

    @pytest.mark.asyncio
    async def test_close_ends_frame_iterator(self) -> None:
        registry = SessionRegistry()
        channel = await Channel.open(registry, endpoint="/messages")
        frames = channel.frames()
        await next_frame(frames)

        channel.close()

        with pytest.raises(StopAsyncIteration):
            await next_frame(frames)

    @pytest.mark.asyncio
    async def test_cancelled_iterator_closes_channel(self) -> None:
        """A disconnect cancels the stream, which closes the channel."""
        registry = SessionRegistry()
        channel = await Channel.open(registry, endpoint="/messages")

        async def consume() -> None:
            async for _ in channel.frames():
                pass

        task = asyncio.create_task(consume())
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert channel.state is SessionState.CLOSED
        assert len(registry) == 0


# =============================================================================
# Streaming response
# =============================================================================


class TestChannelResponse:
    """Tests for the HTTP response bound to a channel."""

    @pytest.mark.asyncio
    async def test_response_headers(self) -> None:
        registry = SessionRegistry()
        channel = await Channel.open(registry, endpoint="/messages")
        response = channel.response()

        assert isinstance(response, ChannelResponse)
        assert response.media_type == "text/event-stream"
        for key, value in SSE_HEADERS.items():
            assert response.headers[key.lower()] == value
        channel.close()

    @pytest.mark.asyncio
    async def test_write_failure_closes_channel(self) -> None:
        """A failed send tears the channel down without raising."""
        registry = SessionRegistry()
        channel = await Channel.open(registry, endpoint="/messages")
        response = channel.response()

        send = AsyncMock(side_effect=OSError("connection reset"))

        async def receive() -> dict:
            await asyncio.sleep(10)
            return {"type": "http.disconnect"}

        scope = {"type": "http", "method": "GET", "path": "/sse", "headers": []}
        await asyncio.wait_for(response(scope, receive, send), timeout=2)

        assert channel.state is SessionState.CLOSED
        assert channel.session_id not in registry
