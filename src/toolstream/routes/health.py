"""Health check endpoints."""

from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse
from starlette.routing import Route


async def health_check(request: Request) -> JSONResponse:
    """Health check with the number of open sessions."""
    state = request.app.state
    return JSONResponse(
        {
            "status": "ok",
            "server": state.config.server_name,
            "version": state.config.server_version,
            "connections": len(state.registry),
        }
    )


async def root(request: Request) -> RedirectResponse:
    return RedirectResponse(url=request.url_for("health"))


health_routes = [
    Route("/health", health_check, methods=["GET"], name="health"),
    Route("/", root, methods=["GET"]),
]
