"""Error taxonomy for the transport.

Each error carries the HTTP status it maps to at the inbound-call boundary
and a short machine-readable code for the JSON error body.
"""

from __future__ import annotations

from typing import Any


class ToolstreamError(Exception):
    """Base class for all transport errors."""

    status_code: int = 500
    code: str = "internal_error"

    def to_dict(self) -> dict[str, Any]:
        """Serialize for an HTTP error body."""
        return {"error": str(self), "code": self.code}


class MissingSessionId(ToolstreamError):
    """Inbound call without a sessionId query parameter."""

    status_code = 400
    code = "missing_session_id"

    def __init__(self) -> None:
        super().__init__("Missing sessionId parameter")


class MalformedMessage(ToolstreamError):
    """Inbound call body is not a JSON object."""

    status_code = 400
    code = "malformed_message"


class UnknownSession(ToolstreamError):
    """Session id was never registered or has already been closed."""

    status_code = 404
    code = "unknown_session"

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"No transport found for sessionId {session_id}")


class HandlerFailure(ToolstreamError):
    """The session's message handler raised while processing a call."""

    status_code = 500
    code = "handler_failure"

    def __init__(self, session_id: str, cause: BaseException) -> None:
        self.session_id = session_id
        self.cause = cause
        super().__init__(f"Error handling message: {cause}")


class ChannelClosed(ToolstreamError):
    """Write attempted on a channel that is no longer open."""

    status_code = 410
    code = "channel_closed"

    def __init__(self, session_id: str | None) -> None:
        self.session_id = session_id
        super().__init__(f"Channel for session {session_id} is closed")


class ToolNotFound(ToolstreamError):
    """Requested tool is not in the catalog."""

    status_code = 404
    code = "tool_not_found"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")
