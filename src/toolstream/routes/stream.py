"""SSE stream endpoint - opens a session's push channel."""

from starlette.requests import Request

from ..transport.channel import Channel, ChannelResponse


async def stream_endpoint(request: Request) -> ChannelResponse:
    """Open a channel and stream its frames until either side disconnects.

    The first frame announces the inbound-call endpoint with the new
    session id; the tool catalog follows when enabled.
    """
    state = request.app.state
    config = state.config

    endpoint = request.scope.get("root_path", "") + config.messages_path
    channel = await Channel.open(
        state.registry,
        endpoint=endpoint,
        catalog=state.catalog if config.send_capabilities else None,
        handler=state.handler,
        heartbeat_interval=config.heartbeat_interval,
    )
    return channel.response()
