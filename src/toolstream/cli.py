"""toolstream CLI.

Usage:
    toolstream                              # Serve on 127.0.0.1:3000 (or $PORT)
    toolstream --port 8080                  # Custom port
    toolstream --tools-module myapp.tools   # Load tools from a module
    toolstream --tools-file tools.yaml      # Load tools from a YAML file
    toolstream --health                     # Check a running server and exit
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys

import click
import httpx

from .config import ENV_PREFIX

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@click.command()
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", type=int, default=None, help="Port to bind to (default: $PORT or 3000)")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.option(
    "--heartbeat-interval",
    type=float,
    default=None,
    help="Seconds between ping frames on each stream",
)
@click.option("--tools-module", default=None, help="Python module defining tools (e.g. myapp.tools)")
@click.option(
    "--tools-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML file defining tools",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    help="Logging level",
)
@click.option("--health", "health_check", is_flag=True, help="Check server health and exit")
@click.option("--health-url", default="http://localhost:3000", help="Server URL for health check")
def main(
    host: str | None,
    port: int | None,
    reload: bool,
    heartbeat_interval: float | None,
    tools_module: str | None,
    tools_file: str | None,
    log_level: str,
    health_check: bool,
    health_url: str,
) -> None:
    """toolstream - tool invocation server over SSE."""
    if health_check:
        _do_health_check(health_url)
        return

    if heartbeat_interval is not None and heartbeat_interval <= 0:
        raise click.BadParameter("must be positive", param_hint="--heartbeat-interval")

    _configure_logging(log_level)

    # The app factory reads its settings from the environment, which also
    # carries them into reloader subprocesses.
    overrides = {
        "HOST": host,
        "PORT": port,
        "HEARTBEAT_INTERVAL": heartbeat_interval,
        "TOOLS_MODULE": tools_module,
        "TOOLS_FILE": tools_file,
    }
    for key, value in overrides.items():
        if value is not None:
            os.environ[f"{ENV_PREFIX}{key}"] = str(value)

    _run_http_server(reload)


def _configure_logging(level: str) -> None:
    """Send all log records to stderr with a uniform format."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(stderr_handler)
    root_logger.setLevel(level.upper())


def _run_http_server(reload: bool) -> None:
    """Run the server with uvicorn."""
    import uvicorn

    from .config import ServerConfig

    config = ServerConfig.from_env()
    click.echo(f"toolstream running on http://{config.host}:{config.port}", err=True)
    click.echo(f"Connect to {config.stream_path} for the event stream", err=True)
    click.echo("Press Ctrl+C to stop", err=True)

    uvicorn.run(
        "toolstream.app:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=reload,
        timeout_keep_alive=config.keep_alive_timeout,
        log_config=None,
    )


def _do_health_check(url: str) -> None:
    """Check server health."""

    async def check() -> None:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(f"{url}/health")
                if response.status_code == 200:
                    data = response.json()
                    click.echo(f"Server is healthy: {data}")
                else:
                    click.echo(f"Server returned {response.status_code}", err=True)
                    sys.exit(1)
        except httpx.ConnectError:
            click.echo(f"Cannot connect to server at {url}", err=True)
            sys.exit(1)

    asyncio.run(check())


if __name__ == "__main__":
    main()
