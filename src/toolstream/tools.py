"""Tool catalog - the invocable operations exposed to sessions.

Architecture:
- ToolDescriptor: What a client sees (name, description, parameters)
- ToolDefinition: Descriptor plus the handler that implements it
- ToolCatalog: Registry of definitions, queried at handshake and on calls
- ToolContext: Session context passed to tool handlers

Usage:
    from toolstream.tools import ToolContext, ToolResult, tool

    @tool(
        name="word_count",
        description="Count words in a text",
        parameters={
            "type": "object",
            "properties": {"text": {"type": "string"}},
            "required": ["text"],
        },
    )
    async def word_count(arguments: dict, context: ToolContext) -> ToolResult:
        return ToolResult(output=len(arguments["text"].split()))
"""

from __future__ import annotations

import asyncio
import importlib
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ToolNotFound

logger = logging.getLogger(__name__)


@dataclass
class ToolContext:
    """Context passed to tool handlers."""

    session_id: str | None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolResult:
    """Result from a tool execution.

    Attributes:
        success: Whether the tool executed successfully
        output: The tool's output (any JSON-serializable value)
        error: Error message if success is False
        metadata: Additional metadata about the execution
    """

    success: bool = True
    output: Any = None
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


# The actual signature is:
#   Callable[[dict[str, Any], ToolContext], Awaitable[ToolResult | Any] | ToolResult | Any]
ToolHandler = Any


@dataclass
class ToolDescriptor:
    """Public description of a tool, as announced to clients."""

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=lambda: {"type": "object"})

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


@dataclass
class ToolDefinition(ToolDescriptor):
    """A tool descriptor together with its implementation.

    Attributes:
        handler: Function called with (arguments, context)
        timeout: Optional timeout in seconds for execution
    """

    handler: ToolHandler = None
    timeout: float | None = None

    def __post_init__(self) -> None:
        """Validate the tool definition."""
        if not self.name:
            raise ValueError("Tool name cannot be empty")
        if not self.description:
            raise ValueError("Tool description cannot be empty")
        if not callable(self.handler):
            raise ValueError("Tool handler must be callable")

    def describe(self) -> ToolDescriptor:
        return ToolDescriptor(self.name, self.description, self.parameters)


class ToolCatalog:
    """Registry of tool definitions.

    The transport only reads it: ``list()`` at handshake time and
    ``execute()`` when a session calls a tool.
    """

    def __init__(self, tools: list[ToolDefinition] | None = None) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        for definition in tools or []:
            self.register(definition)

    def register(self, tool: ToolDefinition) -> None:
        """Register a tool.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' already registered")
        self._tools[tool.name] = tool
        logger.info(f"Registered tool: {tool.name}")

    def register_or_replace(self, tool: ToolDefinition) -> bool:
        """Register a tool, replacing any existing tool with the same name.

        Returns:
            True if an existing tool was replaced, False otherwise
        """
        replaced = tool.name in self._tools
        self._tools[tool.name] = tool
        action = "Replaced" if replaced else "Registered"
        logger.info(f"{action} tool: {tool.name}")
        return replaced

    def unregister(self, name: str) -> bool:
        """Unregister a tool by name. Returns False if it was not registered."""
        if name in self._tools:
            del self._tools[name]
            logger.info(f"Unregistered tool: {name}")
            return True
        return False

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def list(self) -> list[ToolDescriptor]:
        """Descriptors of all registered tools, in registration order."""
        return [definition.describe() for definition in self._tools.values()]

    def names(self) -> list[str]:
        return list(self._tools)

    @property
    def count(self) -> int:
        """Number of registered tools."""
        return len(self._tools)

    def clear(self) -> int:
        """Unregister all tools and return how many there were."""
        count = len(self._tools)
        self._tools.clear()
        logger.info(f"Cleared {count} tools")
        return count

    async def execute(
        self,
        name: str,
        arguments: dict[str, Any],
        context: ToolContext,
    ) -> ToolResult:
        """Run a tool.

        Handler failures and timeouts are returned as unsuccessful results;
        only an unknown tool name raises.

        Raises:
            ToolNotFound: If no tool with this name is registered
        """
        definition = self._tools.get(name)
        if definition is None:
            raise ToolNotFound(name)

        try:
            result = definition.handler(arguments, context)
            if inspect.isawaitable(result):
                if definition.timeout:
                    result = await asyncio.wait_for(result, timeout=definition.timeout)
                else:
                    result = await result
        except TimeoutError:
            return ToolResult(
                success=False,
                error=f"Tool execution timed out after {definition.timeout}s",
            )
        except Exception as e:
            logger.error(f"Tool '{name}' execution error: {e}")
            return ToolResult(success=False, error=str(e))

        if isinstance(result, ToolResult):
            return result
        return ToolResult(output=result)


# Catalog used when the application is created without an explicit one
default_catalog = ToolCatalog()


def tool(
    name: str,
    description: str,
    parameters: dict[str, Any] | None = None,
    *,
    timeout: float | None = None,
    catalog: ToolCatalog | None = None,
) -> Callable[[Any], Any]:
    """Decorator registering a function as a tool.

    Registers on ``default_catalog`` unless a catalog is given.
    """

    def decorator(func: Any) -> Any:
        definition = ToolDefinition(
            name=name,
            description=description,
            parameters=parameters or {"type": "object"},
            handler=func,
            timeout=timeout,
        )
        (catalog or default_catalog).register_or_replace(definition)
        return func

    return decorator


def load_tools_module(catalog: ToolCatalog, module_name: str) -> int:
    """Import a module of tool definitions.

    Tools decorated with ``@tool`` register themselves on import. A module
    level ``TOOLS`` list of ToolDefinition objects is registered on
    ``catalog`` as well.

    Returns:
        Number of tools registered from the TOOLS list
    """
    module = importlib.import_module(module_name)
    definitions = getattr(module, "TOOLS", [])
    for definition in definitions:
        catalog.register_or_replace(definition)
    logger.info(f"Loaded tools module {module_name}")
    return len(definitions)


def load_tools_file(catalog: ToolCatalog, path: str | Path) -> int:
    """Register tools described by a YAML file.

    Format:
        tools:
          - name: word_count
            description: Count words
            parameters: {type: object}
            module: mytools.text
            function: word_count
            timeout: 5

    Incomplete entries, and entries whose handler cannot be imported or
    whose definition is invalid, are skipped with a warning.

    Returns:
        Number of tools registered
    """
    with open(path) as f:
        config = yaml.safe_load(f) or {}

    loaded = 0
    for entry in config.get("tools", []):
        name = entry.get("name")
        module_path = entry.get("module")
        function_name = entry.get("function")

        if not all([name, module_path, function_name]):
            logger.warning(f"Skipping incomplete tool definition: {entry}")
            continue

        try:
            module = importlib.import_module(module_path)
            catalog.register_or_replace(
                ToolDefinition(
                    name=name,
                    description=entry.get("description", ""),
                    parameters=entry.get("parameters", {"type": "object"}),
                    handler=getattr(module, function_name),
                    timeout=entry.get("timeout"),
                )
            )
            loaded += 1
        except Exception as e:
            logger.warning(f"Failed to load {name}: {e}")

    logger.info(f"Loaded {loaded} tools from {path}")
    return loaded
