"""
Forge MCP Server

A Model Context Protocol server exposing a code forge's REST API (GitHub or
GitHub Enterprise Server) as toolsets that can be enabled up front or
discovered and enabled at runtime.

Error Handling Strategy:
- Configuration errors (bad env values, unknown toolsets or tools, duplicate
  registrations) are fatal: they are logged and re-raised from create_server
- Errors are logged to stderr; stdout is reserved for the stdio transport
- Tool execution errors return error results instead of crashing
"""

import logging
import sys
import traceback
from typing import Any, Optional

# Configure logging FIRST, before any other imports that might log
# Log to stderr so messages appear in the MCP client's server logs
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger("forge-mcp")

from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, Tool

from . import forge_client
from .config import ConfigError, ServerConfig, load_config
from .forge_client import ForgeAPIError
from .instructions import generate_instructions
from .surface import ToolSurface
from .toolsets import ToolsetConfigError, ToolsetGroup, ToolResult
from .tools import default_toolset_group, dynamic, resolve_toolsets
from .tools.helpers import ParameterError, error_result

SERVER_NAME = "forge-mcp"


def _forge_error_hint(status_code: int) -> str:
    if status_code == 401:
        return " (Check that GITHUB_PERSONAL_ACCESS_TOKEN is set and valid)"
    if status_code == 403:
        return " (The token lacks permission for this operation, or the rate limit was exceeded)"
    if status_code == 404:
        return " (Check the owner, repository and number; private resources also return 404)"
    if status_code == 422:
        return " (The forge rejected the request parameters)"
    return ""


def _unavailable_tool_result(group: ToolsetGroup, name: str, dynamic_enabled: bool) -> CallToolResult:
    """Explain why ``name`` cannot be called right now."""
    found = group.find_tool(name)
    if found is None:
        return error_result(f"Unknown tool: {name}")
    toolset, tool = found
    if not tool.read_only and group.read_only:
        return error_result(
            f"Tool {name} modifies data and the server is running in read-only mode"
        )
    if not toolset.enabled:
        hint = f" Call enable_toolset with toolset={toolset.name} first." if dynamic_enabled else ""
        return error_result(f"Tool {name} belongs to toolset {toolset.name}, which is not enabled.{hint}")
    return error_result(f"Tool {name} is not enabled on this server")


def create_server(config: Optional[ServerConfig] = None, group: Optional[ToolsetGroup] = None) -> Server:
    """Create and configure the MCP server.

    Args:
        config: Server configuration. Loaded from the environment if None.
        group: Toolset group to serve. Defaults to every forge toolset.

    Returns:
        Configured MCP Server instance.

    Raises:
        ConfigError, ToolsetConfigError: If configuration is invalid.
    """
    logger.info("Creating MCP server...")

    # Phase 1: Configuration and forge client
    if config is None:
        config = load_config()
    forge_client.configure(config.api_url, config.token, config.timeout)

    # Phase 2: Toolsets
    try:
        if group is None:
            group = default_toolset_group(config.read_only, config.content_window_size)
        enabled = resolve_toolsets(config.toolsets)
        if config.tools:
            # An explicit tool list replaces toolset selection
            group.check_toolsets(enabled)
            group.enable_covered_toolsets(config.tools)
        else:
            group.enable_toolsets(enabled)
    except ToolsetConfigError as e:
        logger.critical(f"Invalid toolset configuration: {e}")
        raise
    logger.info(
        f"Toolsets enabled: {', '.join(group.enabled_toolset_ids()) or '(none)'}"
        f"{' [read-only]' if group.read_only else ''}"
    )

    # Phase 3: Server instance and tool surface
    instructions = generate_instructions(group.enabled_toolset_ids(), disabled=config.disable_instructions)
    server = Server(SERVER_NAME, instructions=instructions or None)
    surface = ToolSurface(server)

    try:
        group.register_tools(surface, only=config.tools or None)
        if config.dynamic_toolsets:
            for tool in dynamic.register(group, surface).get_available_tools(read_only=True):
                surface.register_tool(tool)
            logger.info("Dynamic toolset discovery enabled")
    except ToolsetConfigError as e:
        logger.critical(f"Invalid tool configuration: {e}")
        raise
    logger.info(f"Total tools registered: {len(surface)}")

    # Phase 4: Register server handlers
    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """Return the tools currently on the surface."""
        tools = surface.list_tools()
        logger.debug(f"list_tools called, returning {len(tools)} tools")
        return tools

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> ToolResult:
        """Dispatch a tool call through the surface.

        Wraps all tool execution in try/except to prevent server crashes.
        Errors are logged and returned as error results rather than exceptions.
        """
        logger.info(f"Tool call: {name}")
        tool = surface.get(name)
        if tool is None:
            logger.warning(f"Unavailable tool requested: {name}")
            return _unavailable_tool_result(group, name, config.dynamic_toolsets)
        try:
            result = await tool.handler(arguments or {})
            logger.info(f"Tool {name} completed")
            return result
        except ParameterError as e:
            logger.info(f"Tool {name} rejected arguments: {e}")
            return error_result(str(e))
        except ForgeAPIError as e:
            logger.warning(f"Tool {name} forge error: {e}")
            return error_result(
                f"failed to {e.context}: {e.status_code} {e.message}{_forge_error_hint(e.status_code)}"
            )
        except Exception as e:
            # Log the full traceback for debugging
            logger.error(f"Tool '{name}' failed with error: {e}")
            logger.error(f"Arguments: {arguments}")
            logger.error(f"Traceback:\n{traceback.format_exc()}")

            error_type = type(e).__name__
            error_msg = str(e)

            hint = ""
            if "Connect" in error_type or "timeout" in error_msg.lower() or "Timeout" in error_type:
                hint = " (Check network connectivity to the forge API)"
            elif "JSONDecodeError" in error_type:
                hint = " (The forge returned an unexpected response)"

            return error_result(
                f"Error in {name}: {error_type}: {error_msg}{hint}\n\n"
                f"The server is still running. You can try again or check the logs for details."
            )

    logger.info("Server handlers registered")
    return server


def initialization_options(server: Server) -> InitializationOptions:
    """Initialization options advertising tools/list_changed support."""
    return server.create_initialization_options(
        notification_options=NotificationOptions(tools_changed=True),
    )


# =============================================================================
# Main Entry Point (stdio transport)
# =============================================================================

async def run():
    """Run the MCP server via stdio transport."""
    logger.info("=" * 60)
    logger.info("Starting Forge MCP Server (stdio)...")
    logger.info("=" * 60)

    server = create_server()

    try:
        logger.info("Opening stdio transport...")
        async with stdio_server() as (read_stream, write_stream):
            logger.info("Transport ready, starting server loop...")
            await server.run(read_stream, write_stream, initialization_options(server))
    except KeyboardInterrupt:
        logger.info("Server stopped by user (Ctrl+C)")
    finally:
        logger.info("Server shutdown complete")


def main():
    """Main entry point. Configuration errors exit with status 1."""
    import asyncio

    try:
        logger.info(f"Python version: {sys.version}")
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)
    except (ConfigError, ToolsetConfigError) as e:
        logger.critical(f"Configuration error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.critical(f"FATAL ERROR: {type(e).__name__}: {e}")
        logger.critical(f"Full traceback:\n{traceback.format_exc()}")
        sys.exit(1)


if __name__ == "__main__":
    main()
