"""Tool protocol handler - the message handler attached to each session.

Requests arrive as inbound calls; their results travel back over the
session's channel as ``message`` frames. The call itself is acknowledged
with the request id so the client can correlate.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from ..errors import ToolNotFound
from ..tools import ToolCatalog, ToolContext
from .messages import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    JsonRpcRequest,
    ProtocolError,
    ToolCallParams,
    error_message,
    result_message,
)

if TYPE_CHECKING:
    from ..transport.responder import Responder

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"


class ToolProtocolHandler:
    """Handles JSON-RPC requests addressed to a session.

    Supported methods:
    - initialize: Server info and capabilities
    - ping: Empty result
    - tools/list: Descriptors from the catalog
    - tools/call: Execute a tool

    Messages without a ``method`` are accepted and ignored.
    """

    def __init__(
        self,
        catalog: ToolCatalog,
        *,
        server_name: str,
        server_version: str,
    ) -> None:
        self._catalog = catalog
        self._server_name = server_name
        self._server_version = server_version

    async def __call__(self, message: dict[str, Any], responder: Responder) -> None:
        if "method" not in message:
            logger.debug(f"Ignoring non-request message on session {responder.session_id}")
            return

        try:
            request = JsonRpcRequest.model_validate(message)
        except ValidationError as e:
            request_id = message.get("id")
            if not isinstance(request_id, (str, int)) or isinstance(request_id, bool):
                request_id = None
            if request_id is not None:
                responder.acknowledge({"status": "rejected", "id": request_id})
            responder.push(error_message(request_id, INVALID_REQUEST, "Invalid request", str(e)))
            return

        if request.is_notification:
            logger.debug(f"Notification {request.method} on session {responder.session_id}")
            return

        responder.acknowledge({"status": "accepted", "id": request.id})
        logger.debug(f"Handling {request.method} (id={request.id}) on session {responder.session_id}")

        try:
            result = await self._handle(request, responder)
            responder.push(result_message(request.id, result))
        except ProtocolError as e:
            responder.push(error_message(request.id, e.code, e.message, e.data))
        except Exception as e:
            # Every acknowledged request gets a reply frame
            if not responder.channel_open:
                raise
            logger.exception(f"Internal error handling {request.method} (id={request.id})")
            responder.push(error_message(request.id, INTERNAL_ERROR, "Internal error", str(e)))

    async def _handle(self, request: JsonRpcRequest, responder: Responder) -> Any:
        match request.method:
            case "initialize":
                return {
                    "protocolVersion": PROTOCOL_VERSION,
                    "capabilities": {"tools": {}},
                    "serverInfo": {
                        "name": self._server_name,
                        "version": self._server_version,
                    },
                }
            case "ping":
                return {}
            case "tools/list":
                return {"tools": [tool.to_dict() for tool in self._catalog.list()]}
            case "tools/call":
                return await self._call_tool(request, responder)
            case _:
                raise ProtocolError(METHOD_NOT_FOUND, f"Method not found: {request.method}")

    async def _call_tool(self, request: JsonRpcRequest, responder: Responder) -> dict[str, Any]:
        try:
            params = ToolCallParams.model_validate(request.params or {})
        except ValidationError as e:
            raise ProtocolError(INVALID_PARAMS, "Invalid tool call params", str(e)) from e

        context = ToolContext(session_id=responder.session_id)
        try:
            result = await self._catalog.execute(params.name, params.arguments, context)
        except ToolNotFound as e:
            raise ProtocolError(INVALID_PARAMS, str(e)) from e

        if result.success:
            text = result.output if isinstance(result.output, str) else json.dumps(result.output)
        else:
            text = result.error or "Tool execution failed"
        return {
            "content": [{"type": "text", "text": text}],
            "isError": not result.success,
        }
