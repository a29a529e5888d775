"""toolstream server application.

Creates the Starlette ASGI application with all routes.

Route organization:
- /health - Health check (GET / redirects here)
- /sse - Push channel, one session per connection
- /messages?sessionId=... - Inbound calls for a session

Each application owns its session registry; two apps never share sessions.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.routing import Route

from .config import ServerConfig
from .dispatch import IngressDispatcher
from .protocol import ToolProtocolHandler
from .registry import SessionRegistry
from .routes import health_routes, options_routes, post_message, stream_endpoint
from .tools import ToolCatalog, default_catalog, load_tools_file, load_tools_module
from .transport.responder import MessageHandler

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: Starlette) -> AsyncIterator[None]:
    """Close every open channel on shutdown so their streams end."""
    yield
    registry: SessionRegistry = app.state.registry
    for session_id in registry.ids():
        channel = registry.get(session_id)
        if channel is not None:
            channel.close()
    logger.info("All sessions closed")


def create_app(
    config: ServerConfig | None = None,
    *,
    catalog: ToolCatalog | None = None,
    handler: MessageHandler | None = None,
) -> Starlette:
    """Create the toolstream application.

    Args:
        config: Server settings; read from the environment when omitted
        catalog: Tools offered to sessions; ``default_catalog`` when omitted
        handler: Message handler for every session; defaults to the
                 JSON-RPC tool protocol over ``catalog``

    Returns:
        Configured Starlette application
    """
    if config is None:
        config = ServerConfig.from_env()
    if catalog is None:
        catalog = default_catalog

    if config.tools_module:
        load_tools_module(catalog, config.tools_module)
    if config.tools_file:
        load_tools_file(catalog, config.tools_file)

    if handler is None:
        handler = ToolProtocolHandler(
            catalog,
            server_name=config.server_name,
            server_version=config.server_version,
        )

    registry = SessionRegistry()

    routes: list[Route] = []
    routes.extend(health_routes)
    routes.append(Route(config.stream_path, stream_endpoint, methods=["GET"]))
    routes.append(Route(config.messages_path, post_message, methods=["POST"]))
    routes.extend(options_routes)

    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization"],
        ),
    ]

    app = Starlette(routes=routes, middleware=middleware, lifespan=lifespan)
    app.state.config = config
    app.state.catalog = catalog
    app.state.handler = handler
    app.state.registry = registry
    app.state.dispatcher = IngressDispatcher(registry)
    return app
