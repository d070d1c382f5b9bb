"""
Forge MCP HTTP Server

Streamable HTTP transport for remote access to the Forge MCP server.
Requires an API key unless the server runs read-only.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route

from mcp.server.streamable_http_manager import StreamableHTTPSessionManager

from . import forge_client
from .auth import AuthMiddleware, UserInfo
from .config import ServerConfig, load_config
from .server import create_server
from .tools import default_toolset_group

logger = logging.getLogger("forge-mcp")


def _check_forge_health() -> dict:
    """Report forge client configuration without calling the API."""
    cfg = forge_client.get_forge_config()
    if not cfg.token:
        return {"status": "not_configured", "api_url": cfg.api_url, "message": "GITHUB_PERSONAL_ACCESS_TOKEN not set"}
    return {"status": "ok", "api_url": cfg.api_url}


def create_app(config: Optional[ServerConfig] = None,
               valid_keys: Optional[dict[str, UserInfo]] = None) -> Starlette:
    """Create the Starlette ASGI application."""
    if config is None:
        config = load_config()
    group = default_toolset_group(config.read_only, config.content_window_size)
    server = create_server(config, group=group)
    session_manager = StreamableHTTPSessionManager(app=server, stateless=True)

    @asynccontextmanager
    async def lifespan(app):
        """Application lifespan: startup and shutdown."""
        logger.info("Forge MCP HTTP Server starting...")
        async with session_manager.run():
            yield
        logger.info("Forge MCP HTTP Server shut down.")

    async def health(request: Request) -> JSONResponse:
        """Health endpoint with forge configuration and toolset state."""
        checks = {
            "forge": _check_forge_health(),
            "toolsets": {
                "status": "ok",
                "registered": len(group.toolsets),
                "enabled": group.enabled_toolset_ids(),
                "read_only": group.read_only,
            },
        }
        overall_status = "healthy" if checks["forge"]["status"] == "ok" else "degraded"
        return JSONResponse({
            "status": overall_status,
            "server": "forge-mcp",
            "checks": checks,
        })

    routes = [
        Route("/health", health, methods=["GET"]),
        Mount("/mcp", app=session_manager.handle_request),
    ]

    middleware = [
        Middleware(AuthMiddleware, valid_keys=valid_keys, allow_anonymous=config.read_only),
    ]

    return Starlette(
        routes=routes,
        middleware=middleware,
        lifespan=lifespan,
    )


def main():
    """Main entry point for HTTP server."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    app = create_app()
    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
