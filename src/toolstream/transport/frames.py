"""Frames written to a push channel and their SSE wire encoding."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any


class FrameKind(str, Enum):
    """SSE event names, one per frame kind."""

    HANDSHAKE = "endpoint"
    CAPABILITIES = "tools"
    HEARTBEAT = "ping"
    MESSAGE = "message"


@dataclass(frozen=True)
class Frame:
    """One discrete unit written to a channel.

    ``data`` is the already-serialized SSE data field. Use the factory
    classmethods rather than building frames by hand.
    """

    kind: FrameKind
    data: str

    def encode(self) -> str:
        """Encode as an SSE event block.

        Multi-line data is split across several ``data:`` lines as the
        event-stream format requires.
        """
        lines = [f"event: {self.kind.value}"]
        lines.extend(f"data: {line}" for line in self.data.split("\n"))
        return "\n".join(lines) + "\n\n"

    @classmethod
    def handshake(cls, endpoint: str, session_id: str) -> Frame:
        """Announce the inbound-call URI for this session."""
        separator = "&" if "?" in endpoint else "?"
        return cls(FrameKind.HANDSHAKE, f"{endpoint}{separator}sessionId={session_id}")

    @classmethod
    def capabilities(cls, tools: list[dict[str, Any]]) -> Frame:
        """Snapshot of the tool catalog."""
        return cls(FrameKind.CAPABILITIES, json.dumps(tools))

    @classmethod
    def heartbeat(cls, timestamp_ms: int | None = None) -> Frame:
        """Keepalive carrying the current epoch milliseconds."""
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)
        return cls(FrameKind.HEARTBEAT, str(timestamp_ms))

    @classmethod
    def message(cls, payload: Any) -> Frame:
        """Application protocol payload."""
        return cls(FrameKind.MESSAGE, json.dumps(payload))
