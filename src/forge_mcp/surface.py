"""Live tool surface of a running MCP server.

The ToolSurface is what the connected client sees: ``tools/list`` is answered
from it and ``tools/call`` is dispatched through it. Toolset activation adds
tools here and then tells the client that the list changed.
"""

import logging
from typing import Optional

from mcp.server import Server
from mcp.types import Tool

from .toolsets import ServerTool

logger = logging.getLogger("forge-mcp")


class ToolSurface:
    """Name-to-tool map backing one MCP server's tools/list and tools/call."""

    def __init__(self, server: Optional[Server] = None):
        self.server = server
        self._tools: dict[str, ServerTool] = {}

    def register_tool(self, tool: ServerTool) -> None:
        if tool.name in self._tools:
            logger.debug(f"Replacing registered tool: {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Optional[ServerTool]:
        return self._tools.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def names(self) -> list[str]:
        return list(self._tools)

    def list_tools(self) -> list[Tool]:
        return [t.tool for t in self._tools.values()]

    async def notify_tool_list_changed(self) -> None:
        """Send notifications/tools/list_changed on the current request's session."""
        if self.server is None:
            return
        try:
            ctx = self.server.request_context
        except LookupError:
            logger.info("Tool list changed outside a request; no session to notify")
            return
        await ctx.session.send_tool_list_changed()
        logger.info("Sent tools/list_changed notification")
