"""Inbound message endpoint."""

import logging

from starlette.requests import Request
from starlette.responses import JSONResponse

from ..dispatch import InboundCall
from ..errors import ToolstreamError

logger = logging.getLogger(__name__)


async def post_message(request: Request) -> JSONResponse:
    """Deliver one message to a session.

    Query: ``sessionId`` from the channel's endpoint frame.
    Body: one JSON protocol message.

    Returns 200 with the handler's acknowledgment (``{"status": "ok"}`` by
    default), 400 for a missing session id or malformed body, 404 for an
    unknown session and 500 when the handler fails.
    """
    call = InboundCall(
        session_id=request.query_params.get("sessionId"),
        body=await request.body(),
    )
    try:
        acknowledgment = await request.app.state.dispatcher.dispatch(call)
    except ToolstreamError as e:
        logger.debug(f"Inbound call rejected ({e.status_code}): {e}")
        return JSONResponse(e.to_dict(), status_code=e.status_code)

    return JSONResponse(acknowledgment.body, status_code=acknowledgment.status_code)
