"""JSON-RPC tool protocol spoken over a session."""

from .handler import ToolProtocolHandler
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

__all__ = [
    "ToolProtocolHandler",
    "JsonRpcRequest",
    "ToolCallParams",
    "ProtocolError",
    "error_message",
    "result_message",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
]
