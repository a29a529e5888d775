"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from toolstream.config import ServerConfig
from toolstream.tools import ToolCatalog, ToolContext, ToolDefinition, ToolResult


async def word_count(arguments: dict[str, Any], context: ToolContext) -> ToolResult:
    return ToolResult(output=len(arguments["text"].split()))


@pytest.fixture
def catalog() -> ToolCatalog:
    """Catalog with a single word_count tool."""
    return ToolCatalog(
        [
            ToolDefinition(
                name="word_count",
                description="Count words in a text",
                parameters={
                    "type": "object",
                    "properties": {"text": {"type": "string"}},
                    "required": ["text"],
                },
                handler=word_count,
            )
        ]
    )


@pytest.fixture
def config() -> ServerConfig:
    """Config with a short heartbeat so tests observe pings quickly."""
    return ServerConfig(heartbeat_interval=0.05, server_name="test-server", server_version="9.9.9")
