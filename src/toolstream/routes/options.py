"""Catch-all OPTIONS handler.

Preflight requests carrying ``Origin`` and ``Access-Control-Request-Method``
are answered by the CORS middleware before they reach the router. Any other
OPTIONS request lands here.
"""

from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route


async def options_ok(request: Request) -> PlainTextResponse:
    return PlainTextResponse("OK")


options_routes = [
    Route("/{path:path}", options_ok, methods=["OPTIONS"]),
]
