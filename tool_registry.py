"""
Tool registry and dispatcher for the MCP server.

A ToolRegistry maps tool names to their definitions. dispatch() validates
arguments against the tool's input schema, runs the handler and wraps the
result into a list of TextContent. Handler failures are reported as text;
only unknown tools and invalid arguments are raised to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from mcp.types import TextContent, Tool

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Awaitable[str]]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ToolError(Exception):
    """Base class for protocol-level tool errors."""

    code = "tool_error"


class ToolNotFoundError(ToolError):
    code = "tool_not_found"

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class InvalidArgumentsError(ToolError):
    code = "invalid_arguments"

    def __init__(self, fields: List[str], message: Optional[str] = None) -> None:
        if message is None:
            message = f"Invalid arguments: {', '.join(fields)}"
        super().__init__(message)
        self.fields = fields


class DuplicateToolError(ToolError):
    code = "duplicate_tool"

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool already registered: {name}")
        self.name = name


# ---------------------------------------------------------------------------
# Definitions and registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    input_schema: Dict[str, Any]
    handler: Handler
    # Builds the "<subject> for <context>" part of the failure text.
    failure_subject: Callable[[Dict[str, Any]], str]

    def to_tool(self) -> Tool:
        return Tool(name=self.name, description=self.description, inputSchema=self.input_schema)


class ToolRegistry:
    """Tools in registration order. Names are unique; duplicates are rejected."""

    def __init__(self) -> None:
        self._tools: Dict[str, ToolDefinition] = {}

    def register(self, definition: ToolDefinition) -> ToolDefinition:
        if definition.name in self._tools:
            raise DuplicateToolError(definition.name)
        self._tools[definition.name] = definition
        return definition

    def get(self, name: str) -> ToolDefinition:
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def list(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _matches_type(expected: Optional[str], value: Any) -> bool:
    if expected == "string":
        return isinstance(value, str) and bool(value.strip())
    if expected == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if expected == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected == "boolean":
        return isinstance(value, bool)
    return True


def validate_arguments(schema: Dict[str, Any], arguments: Any) -> Dict[str, Any]:
    """
    Check arguments against a JSON-Schema style object schema.

    Only "properties" (with a primitive "type") and "required" are honoured.
    Returns the declared properties that were supplied; anything else is dropped.
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise InvalidArgumentsError([], "Invalid arguments. Expected an object.")

    properties: Dict[str, Any] = schema.get("properties", {})
    required = set(schema.get("required", []))

    bad: List[str] = []
    validated: Dict[str, Any] = {}
    for field, prop in properties.items():
        if field not in arguments or arguments[field] is None:
            if field in required:
                bad.append(field)
            continue
        value = arguments[field]
        if not _matches_type(prop.get("type"), value):
            bad.append(field)
            continue
        validated[field] = value.strip() if isinstance(value, str) else value

    # Required names with no declared property still have to be present.
    bad.extend(f for f in schema.get("required", []) if f not in properties and f not in arguments)

    if bad:
        raise InvalidArgumentsError(bad)
    return validated


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def text_response(text: str) -> List[TextContent]:
    return [TextContent(type="text", text=text)]


async def dispatch(registry: ToolRegistry, name: str, arguments: Any) -> List[TextContent]:
    """
    Run one tool invocation.

    Raises ToolNotFoundError or InvalidArgumentsError; every other failure is
    returned as "Failed to retrieve <subject>. Error: <message>".
    """
    definition = registry.get(name)
    validated = validate_arguments(definition.input_schema, arguments)

    try:
        text = await definition.handler(validated)
    except Exception as exc:  # noqa: BLE001
        logger.error("Tool %s failed: %s", name, exc)
        return text_response(
            f"Failed to retrieve {definition.failure_subject(validated)}. Error: {exc}"
        )
    return text_response(text)
