"""Shared utilities for all tool modules."""

import json
from typing import Any, Optional, Sequence

from mcp.types import CallToolResult, TextContent, Tool, ToolAnnotations

DEFAULT_PER_PAGE = 30
MAX_PER_PAGE = 100

PAGINATION_PROPERTIES = {
    "page": {"type": "number", "description": "Page number for pagination (min 1)", "minimum": 1},
    "perPage": {
        "type": "number",
        "description": "Results per page for pagination (min 1, max 100)",
        "minimum": 1,
        "maximum": MAX_PER_PAGE,
    },
}

OWNER_REPO_PROPERTIES = {
    "owner": {"type": "string", "description": "Repository owner (username or organization)"},
    "repo": {"type": "string", "description": "Repository name"},
}


class ParameterError(ValueError):
    """A tool argument is missing or has the wrong type."""


# =============================================================================
# Tool definitions
# =============================================================================

def _schema(properties: dict, required: Sequence[str]) -> dict:
    return {"type": "object", "properties": properties, "required": list(required)}


def read_tool(name: str, title: str, description: str, properties: Optional[dict] = None,
              required: Sequence[str] = ()) -> Tool:
    """Tool definition annotated as read-only."""
    return Tool(
        name=name,
        description=description,
        inputSchema=_schema(properties or {}, required),
        annotations=ToolAnnotations(title=title, readOnlyHint=True),
    )


def write_tool(name: str, title: str, description: str, properties: Optional[dict] = None,
               required: Sequence[str] = (), destructive: bool = False) -> Tool:
    """Tool definition for an operation that changes state on the forge."""
    return Tool(
        name=name,
        description=description,
        inputSchema=_schema(properties or {}, required),
        annotations=ToolAnnotations(title=title, readOnlyHint=False, destructiveHint=destructive),
    )


# =============================================================================
# Argument parsing
# =============================================================================

def _type_name(expected) -> str:
    if isinstance(expected, tuple):
        return "/".join(t.__name__ for t in expected)
    return expected.__name__


def _check_type(name: str, value: Any, expected) -> Any:
    if expected is int:
        # JSON numbers arrive as float when the client sends 1.0
        if isinstance(value, bool):
            raise ParameterError(f"parameter {name} is not of type int, is bool")
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if not isinstance(value, int):
            raise ParameterError(f"parameter {name} is not of type int, is {type(value).__name__}")
        return value
    if not isinstance(value, expected):
        raise ParameterError(
            f"parameter {name} is not of type {_type_name(expected)}, is {type(value).__name__}"
        )
    return value


def required_param(arguments: dict, name: str, expected=str) -> Any:
    """Return a required argument, rejecting missing, empty or mistyped values."""
    if name not in arguments or arguments[name] is None:
        raise ParameterError(f"missing required parameter: {name}")
    value = _check_type(name, arguments[name], expected)
    if expected is str and value == "":
        raise ParameterError(f"missing required parameter: {name}")
    if expected is int and value == 0:
        raise ParameterError(f"missing required parameter: {name}")
    return value


def optional_param(arguments: dict, name: str, expected=str, default: Any = None) -> Any:
    if name not in arguments or arguments[name] is None:
        return default
    return _check_type(name, arguments[name], expected)


def optional_string_list(arguments: dict, name: str) -> Optional[list[str]]:
    value = optional_param(arguments, name, list)
    if value is None:
        return None
    for item in value:
        if not isinstance(item, str):
            raise ParameterError(f"parameter {name} must contain only strings")
    return value


def pagination_params(arguments: dict) -> tuple[int, int]:
    """(page, per_page) with defaults 1 and 30; per_page is capped at 100."""
    page = optional_param(arguments, "page", int, 1)
    per_page = optional_param(arguments, "perPage", int, DEFAULT_PER_PAGE)
    if page < 1:
        raise ParameterError("page must be >= 1")
    if per_page < 1:
        raise ParameterError("perPage must be >= 1")
    return page, min(per_page, MAX_PER_PAGE)


def owner_repo(arguments: dict) -> tuple[str, str]:
    return required_param(arguments, "owner"), required_param(arguments, "repo")


# =============================================================================
# Results
# =============================================================================

def json_result(data: Any) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(data, indent=2))]


def text_result(text: str) -> list[TextContent]:
    return [TextContent(type="text", text=text)]


def error_result(message: str) -> CallToolResult:
    """A tool-level failure the calling agent can read and react to."""
    return CallToolResult(content=[TextContent(type="text", text=message)], isError=True)


def pick(data: dict, *keys: str) -> dict:
    """Subset of a forge object, dropping keys that are absent or null."""
    return {k: data[k] for k in keys if data.get(k) is not None}


def login_of(user: Optional[dict]) -> Optional[str]:
    return user.get("login") if user else None
