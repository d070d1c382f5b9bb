"""
Forge MCP Server

Exposes a code forge's REST API to MCP clients as toolsets that can be
enabled at startup or discovered and enabled at runtime.
"""

from .server import main, run, create_server

__version__ = "0.1.0"
__all__ = ["main", "run", "create_server"]
