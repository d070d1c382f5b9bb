"""Dynamic toolset discovery: list toolsets, preview their tools, enable them.

These tools operate on the ToolsetGroup itself. Enabling a toolset adds its
tools to the live ToolSurface and notifies the client that the tool list
changed, all while holding the group's activation lock so that concurrent
requests for the same toolset register it once.
"""

import logging

from ..surface import ToolSurface
from ..toolsets import ServerTool, Toolset, ToolsetGroup
from .helpers import error_result, json_result, read_tool, required_param, text_result

logger = logging.getLogger("forge-mcp")

DYNAMIC_TOOLSET = "dynamic"
DYNAMIC_DESCRIPTION = (
    "Discover GitHub MCP tools that can help achieve tasks by enabling additional sets of tools, "
    "you can control the enablement of any toolset to access its tools when this toolset is enabled."
)

_TOOLSET_PROPERTY = {
    "toolset": {
        "type": "string",
        "description": "The name of the toolset (as returned by list_available_toolsets)",
    },
}


def _not_found(group: ToolsetGroup, name: str):
    available = ", ".join(group.toolset_names()) or "(none)"
    return error_result(f"Toolset {name} not found. Available toolsets: {available}")


def register(group: ToolsetGroup, surface: ToolSurface) -> Toolset:
    """Build the always-enabled dynamic toolset bound to ``group`` and ``surface``.

    The dynamic toolset is not added to the group: it is never listed, never
    counted and can never be the target of enable_toolset.
    """

    async def list_available_toolsets(arguments: dict):
        payload = []
        for summary in group.list_toolsets():
            payload.append({
                "name": summary.name,
                "description": summary.description,
                "can_enable": True,
                "currently_enabled": summary.enabled,
                "read_tools": summary.read_tools,
                "write_tools": summary.write_tools,
            })
        return json_result(payload)

    async def get_toolset_tools(arguments: dict):
        name = required_param(arguments, "toolset")
        toolset = group.find_toolset(name)
        if toolset is None:
            return _not_found(group, name)
        payload = [
            {
                "name": tool.name,
                "description": tool.description,
                "read_only": tool.read_only,
                "can_enable": True,
                "toolset": name,
            }
            for tool in toolset.get_available_tools(group.read_only)
        ]
        return json_result(payload)

    async def enable_toolset(arguments: dict):
        name = required_param(arguments, "toolset")
        if name == DYNAMIC_TOOLSET:
            return error_result(
                f"Toolset {DYNAMIC_TOOLSET} is always enabled and cannot be enabled"
            )
        toolset = group.find_toolset(name)
        if toolset is None:
            return _not_found(group, name)

        async with group.activation_lock:
            if toolset.enabled:
                return text_result(f"Toolset {name} is already enabled")
            tools = toolset.get_available_tools(group.read_only)
            for tool in tools:
                surface.register_tool(tool)
            # Flip last: a failed notification leaves the toolset retryable
            await surface.notify_tool_list_changed()
            toolset.set_enabled(True)

        names = [t.name for t in tools]
        logger.info(f"Toolset {name} enabled ({len(names)} tools)")
        if not names:
            return text_result(f"Toolset {name} enabled. It provides no tools in the current mode.")
        return text_result(f"Toolset {name} enabled. Newly available tools: {', '.join(names)}")

    toolset = Toolset(DYNAMIC_TOOLSET, DYNAMIC_DESCRIPTION, enabled=True)
    toolset.add_read_tools(
        ServerTool(
            read_tool(
                "list_available_toolsets",
                "List available toolsets",
                "List all available toolsets this GitHub MCP server can offer, providing the enabled "
                "status of each. Use this when a task could be achieved with a GitHub tool and the "
                "currently available tools aren't enough. Call get_toolset_tools with these toolset "
                "names to discover specific tools you can call",
            ),
            list_available_toolsets,
        ),
        ServerTool(
            read_tool(
                "get_toolset_tools",
                "List all tools in a toolset",
                "Lists all the capabilities that are enabled with the specified toolset. Use this to "
                "get clarity on whether enabling a toolset would help you to complete a task",
                _TOOLSET_PROPERTY,
                required=["toolset"],
            ),
            get_toolset_tools,
        ),
        ServerTool(
            read_tool(
                "enable_toolset",
                "Enable a toolset",
                "Enable one of the sets of tools the GitHub MCP server provides, use get_toolset_tools "
                "and list_available_toolsets first to see what this will enable",
                _TOOLSET_PROPERTY,
                required=["toolset"],
            ),
            enable_toolset,
        ),
    )
    return toolset
