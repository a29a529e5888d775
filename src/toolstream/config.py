"""Server configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from . import __version__
from .transport.heartbeat import DEFAULT_HEARTBEAT_INTERVAL

ENV_PREFIX = "TOOLSTREAM_"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ServerConfig:
    """Settings for one server instance."""

    # Listening socket
    host: str = "127.0.0.1"
    port: int = 3000
    keep_alive_timeout: int = 120

    # Endpoint paths
    stream_path: str = "/sse"
    messages_path: str = "/messages"

    # Channel behavior
    heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL
    send_capabilities: bool = True

    # Identity reported by /health and the initialize result
    server_name: str = "toolstream"
    server_version: str = __version__

    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Tool sources loaded at startup
    tools_module: str | None = None
    tools_file: str | None = None

    def __post_init__(self) -> None:
        if self.heartbeat_interval <= 0:
            raise ValueError("heartbeat_interval must be positive")
        for name in ("stream_path", "messages_path"):
            if not getattr(self, name).startswith("/"):
                raise ValueError(f"{name} must start with '/'")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServerConfig:
        """Build a config from environment variables.

        ``PORT`` is honored for platform compatibility; ``TOOLSTREAM_PORT``
        takes precedence over it.
        """
        env = os.environ if environ is None else environ
        kwargs: dict = {}

        port = env.get(f"{ENV_PREFIX}PORT") or env.get("PORT")
        if port:
            kwargs["port"] = int(port)
        if host := env.get(f"{ENV_PREFIX}HOST"):
            kwargs["host"] = host
        if interval := env.get(f"{ENV_PREFIX}HEARTBEAT_INTERVAL"):
            kwargs["heartbeat_interval"] = float(interval)
        if stream_path := env.get(f"{ENV_PREFIX}STREAM_PATH"):
            kwargs["stream_path"] = stream_path
        if messages_path := env.get(f"{ENV_PREFIX}MESSAGES_PATH"):
            kwargs["messages_path"] = messages_path
        if name := env.get(f"{ENV_PREFIX}SERVER_NAME"):
            kwargs["server_name"] = name
        if send_capabilities := env.get(f"{ENV_PREFIX}SEND_CAPABILITIES"):
            kwargs["send_capabilities"] = _parse_bool(send_capabilities)
        if origins := env.get(f"{ENV_PREFIX}CORS_ORIGINS"):
            kwargs["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]
        if tools_module := env.get(f"{ENV_PREFIX}TOOLS_MODULE"):
            kwargs["tools_module"] = tools_module
        if tools_file := env.get(f"{ENV_PREFIX}TOOLS_FILE"):
            kwargs["tools_file"] = tools_file

        return cls(**kwargs)
