"""Authentication middleware for the Forge MCP HTTP server.

Supports:
- API key authentication via X-API-Key header
- Anonymous access, only when the server runs in read-only mode
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = logging.getLogger("forge-mcp")

PUBLIC_PATHS = ("/health",)


@dataclass
class UserInfo:
    name: str
    api_key: str


def load_api_keys(environ: Optional[Mapping[str, str]] = None) -> dict[str, UserInfo]:
    """Load API keys from FORGE_MCP_API_KEYS, a comma list of ``name:key`` pairs."""
    if environ is None:
        environ = os.environ
    keys: dict[str, UserInfo] = {}
    for entry in (environ.get("FORGE_MCP_API_KEYS") or "").split(","):
        entry = entry.strip()
        if not entry:
            continue
        name, sep, key = entry.partition(":")
        if not sep or not name.strip() or not key.strip():
            logger.warning("Ignoring malformed FORGE_MCP_API_KEYS entry (expected name:key)")
            continue
        keys[key.strip()] = UserInfo(name=name.strip(), api_key=key.strip())

    logger.info(f"Loaded {len(keys)} API key(s)")
    return keys


class AuthMiddleware(BaseHTTPMiddleware):
    """Starlette middleware that validates API keys.

    - Valid API key in X-API-Key header → access
    - No key or invalid key → anonymous access if allowed (read-only servers)
    - Otherwise → 401 Unauthorized
    """

    def __init__(self, app, valid_keys: Optional[dict[str, UserInfo]] = None, allow_anonymous: bool = False):
        super().__init__(app)
        self.valid_keys = valid_keys if valid_keys is not None else load_api_keys()
        self.allow_anonymous = allow_anonymous

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        api_key = request.headers.get("x-api-key", "")

        if api_key and api_key in self.valid_keys:
            user = self.valid_keys[api_key]
            request.state.user = user
            logger.info(f"Authenticated user: {user.name}")
        elif self.allow_anonymous:
            request.state.user = None
            logger.info("Anonymous read-only access")
        else:
            return JSONResponse(
                {"error": "Authentication required. Provide a valid X-API-Key header."},
                status_code=401,
            )

        return await call_next(request)
