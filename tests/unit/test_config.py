"""Tests for server configuration."""

from __future__ import annotations

import pytest

from toolstream import __version__
from toolstream.config import ServerConfig


class TestServerConfig:
    """Tests for defaults and validation."""

    def test_defaults(self) -> None:
        config = ServerConfig()

        assert config.port == 3000
        assert config.stream_path == "/sse"
        assert config.messages_path == "/messages"
        assert config.heartbeat_interval == 30.0
        assert config.send_capabilities is True
        assert config.server_version == __version__
        assert config.cors_origins == ["*"]
        assert config.keep_alive_timeout == 120

    def test_rejects_non_positive_heartbeat(self) -> None:
        with pytest.raises(ValueError):
            ServerConfig(heartbeat_interval=0)

    def test_rejects_relative_paths(self) -> None:
        with pytest.raises(ValueError, match="messages_path"):
            ServerConfig(messages_path="messages")


class TestFromEnv:
    """Tests for ServerConfig.from_env."""

    def test_empty_environment_gives_defaults(self) -> None:
        assert ServerConfig.from_env({}) == ServerConfig()

    def test_platform_port(self) -> None:
        assert ServerConfig.from_env({"PORT": "8080"}).port == 8080

    def test_prefixed_port_wins(self) -> None:
        config = ServerConfig.from_env({"PORT": "8080", "TOOLSTREAM_PORT": "9090"})
        assert config.port == 9090

    def test_all_settings(self) -> None:
        config = ServerConfig.from_env(
            {
                "TOOLSTREAM_HOST": "0.0.0.0",
                "TOOLSTREAM_HEARTBEAT_INTERVAL": "2.5",
                "TOOLSTREAM_STREAM_PATH": "/stream",
                "TOOLSTREAM_MESSAGES_PATH": "/calls",
                "TOOLSTREAM_SERVER_NAME": "seo-tools",
                "TOOLSTREAM_SEND_CAPABILITIES": "no",
                "TOOLSTREAM_CORS_ORIGINS": "http://a.test, http://b.test",
                "TOOLSTREAM_TOOLS_MODULE": "myapp.tools",
                "TOOLSTREAM_TOOLS_FILE": "/etc/tools.yaml",
            }
        )

        assert config.host == "0.0.0.0"
        assert config.heartbeat_interval == 2.5
        assert config.stream_path == "/stream"
        assert config.messages_path == "/calls"
        assert config.server_name == "seo-tools"
        assert config.send_capabilities is False
        assert config.cors_origins == ["http://a.test", "http://b.test"]
        assert config.tools_module == "myapp.tools"
        assert config.tools_file == "/etc/tools.yaml"

    def test_invalid_number(self) -> None:
        with pytest.raises(ValueError):
            ServerConfig.from_env({"PORT": "not-a-port"})
