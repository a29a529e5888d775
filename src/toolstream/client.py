"""Client for a toolstream server.

Opens the push stream, waits for the endpoint frame and then sends
JSON-RPC requests as inbound calls, matching results that come back over
the stream by request id.

Usage:
    async with ToolstreamClient("http://localhost:3000") as client:
        tools = await client.list_tools()
        result = await client.call_tool("word_count", {"text": "a b c"})
"""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import json
import logging
from collections.abc import AsyncIterator, Iterable, Iterator
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)


@dataclass
class ServerFrame:
    """One event received on the stream."""

    event: str
    data: str

    def json(self) -> Any:
        return json.loads(self.data)


class ToolstreamClientError(Exception):
    """Error result or transport failure seen by the client."""

    def __init__(self, message: str, code: int | None = None, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.data = data


class _SSEParser:
    """Incremental parser for the event-stream line format."""

    def __init__(self) -> None:
        self._event = "message"
        self._data: list[str] = []

    def feed(self, line: str) -> ServerFrame | None:
        line = line.rstrip("\r\n")
        if not line:
            if not self._data:
                self._event = "message"
                return None
            frame = ServerFrame(event=self._event, data="\n".join(self._data))
            self._event = "message"
            self._data = []
            return frame
        if line.startswith(":"):
            return None

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        return None


def parse_sse(lines: Iterable[str]) -> Iterator[ServerFrame]:
    """Parse SSE lines into frames."""
    parser = _SSEParser()
    for line in lines:
        frame = parser.feed(line)
        if frame is not None:
            yield frame


async def aparse_sse(lines: AsyncIterator[str]) -> AsyncIterator[ServerFrame]:
    """Parse an async stream of SSE lines into frames."""
    parser = _SSEParser()
    async for line in lines:
        frame = parser.feed(line)
        if frame is not None:
            yield frame


class ToolstreamClient:
    """Client side of one session."""

    def __init__(
        self,
        base_url: str,
        *,
        stream_path: str = "/sse",
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url
        self.stream_path = stream_path
        self.timeout = timeout
        self.endpoint: str | None = None
        self.session_id: str | None = None
        self.tools: list[dict[str, Any]] = []
        self.last_ping: int | None = None
        self._client: httpx.AsyncClient | None = None
        self._response: httpx.Response | None = None
        self._reader: asyncio.Task[None] | None = None
        self._ready: asyncio.Event | None = None
        self._pending: dict[int, asyncio.Future[dict[str, Any]]] = {}
        self._ids = itertools.count(1)

    async def __aenter__(self) -> ToolstreamClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def connect(self) -> None:
        """Open the stream and wait for the endpoint frame."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, read=None),  # No read timeout for SSE
        )
        self._ready = asyncio.Event()
        self._response = await self._client.send(
            self._client.build_request("GET", self.stream_path),
            stream=True,
        )
        self._response.raise_for_status()
        self._reader = asyncio.create_task(self._read_loop(self._response))
        try:
            await asyncio.wait_for(self._ready.wait(), timeout=self.timeout)
        except TimeoutError as e:
            await self.close()
            raise ToolstreamClientError("No endpoint frame received") from e

    async def close(self) -> None:
        """Close the stream and fail outstanding requests."""
        if self._reader is not None:
            self._reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reader
            self._reader = None
        if self._response is not None:
            await self._response.aclose()
            self._response = None
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._fail_pending(ToolstreamClientError("Client closed"))

    async def send(self, message: dict[str, Any]) -> dict[str, Any]:
        """Post one message to the session and return the acknowledgment."""
        if self._client is None or self.endpoint is None:
            raise ToolstreamClientError("Not connected")
        response = await self._client.post(self.endpoint, json=message)
        if response.status_code != 200:
            raise ToolstreamClientError(
                f"Server returned {response.status_code}: {response.text}",
                code=response.status_code,
            )
        return response.json()

    async def request(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Send a JSON-RPC request and wait for its result on the stream."""
        request_id = next(self._ids)
        future: asyncio.Future[dict[str, Any]] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        message: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            message["params"] = params

        try:
            await self.send(message)
            reply = await asyncio.wait_for(future, timeout=self.timeout)
        finally:
            self._pending.pop(request_id, None)

        if "error" in reply:
            error = reply["error"]
            raise ToolstreamClientError(error.get("message", ""), error.get("code"), error.get("data"))
        return reply.get("result")

    async def ping(self) -> None:
        await self.request("ping")

    async def initialize(self) -> dict[str, Any]:
        return await self.request("initialize")

    async def list_tools(self) -> list[dict[str, Any]]:
        result = await self.request("tools/list")
        return result["tools"]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request("tools/call", {"name": name, "arguments": arguments or {}})

    async def _read_loop(self, response: httpx.Response) -> None:
        try:
            async for frame in aparse_sse(response.aiter_lines()):
                self._on_frame(frame)
        except httpx.HTTPError as e:
            logger.warning(f"Stream for session {self.session_id} failed: {e}")
        finally:
            self._fail_pending(ToolstreamClientError("Stream closed"))

    def _on_frame(self, frame: ServerFrame) -> None:
        match frame.event:
            case "endpoint":
                self.endpoint = frame.data
                self.session_id = httpx.URL(frame.data).params.get("sessionId")
                if self._ready is not None:
                    self._ready.set()
            case "tools":
                self.tools = frame.json()
            case "ping":
                self.last_ping = int(frame.data)
            case "message":
                payload = frame.json()
                future = self._pending.get(payload.get("id")) if isinstance(payload, dict) else None
                if future is not None and not future.done():
                    future.set_result(payload)
                else:
                    logger.debug(f"Unmatched message frame: {frame.data}")
            case _:
                logger.debug(f"Ignoring {frame.event} frame")

    def _fail_pending(self, error: Exception) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
