"""Async REST client for the code forge (GitHub or GitHub Enterprise Server).

Configured once at server startup via ``configure()``; falls back to the
environment on first use. Every call opens a short-lived httpx.AsyncClient.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .config import DEFAULT_TIMEOUT, load_config

logger = logging.getLogger("forge-mcp")

API_VERSION = "2022-11-28"
USER_AGENT = "forge-mcp-server"


@dataclass
class ForgeConfig:
    api_url: str
    token: Optional[str] = None
    timeout: int = DEFAULT_TIMEOUT
    transport: Optional[httpx.AsyncBaseTransport] = None


# Global config, initialized by server startup
_forge_config: Optional[ForgeConfig] = None


class ForgeAPIError(Exception):
    """A forge API request failed with a non-success status."""

    def __init__(self, status_code: int, message: str, context: str = ""):
        self.status_code = status_code
        self.message = message
        self.context = context
        prefix = f"{context}: " if context else ""
        super().__init__(f"{prefix}{status_code} {message}")


def configure(
    api_url: str,
    token: Optional[str] = None,
    timeout: int = DEFAULT_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ForgeConfig:
    """Set the API endpoint and credentials used by every request."""
    global _forge_config
    _forge_config = ForgeConfig(api_url=api_url.rstrip("/"), token=token, timeout=timeout, transport=transport)
    logger.info(f"Forge client configured for {_forge_config.api_url}")
    return _forge_config


def get_forge_config() -> ForgeConfig:
    """Current client config, loading it from the environment if not configured."""
    global _forge_config
    if _forge_config is None:
        config = load_config()
        _forge_config = ForgeConfig(api_url=config.api_url, token=config.token, timeout=config.timeout)
        logger.info("Forge client auto-configured from environment")
    return _forge_config


def reset_forge_config() -> None:
    global _forge_config
    _forge_config = None


def is_forge_configured() -> bool:
    return bool(get_forge_config().token)


def _get_headers(accept: str = "application/vnd.github+json") -> dict:
    cfg = get_forge_config()
    headers = {
        "Accept": accept,
        "User-Agent": USER_AGENT,
        "X-GitHub-Api-Version": API_VERSION,
    }
    if cfg.token:
        headers["Authorization"] = f"Bearer {cfg.token}"
    return headers


def _client(follow_redirects: bool = True) -> httpx.AsyncClient:
    cfg = get_forge_config()
    return httpx.AsyncClient(
        base_url=cfg.api_url,
        timeout=cfg.timeout,
        follow_redirects=follow_redirects,
        transport=cfg.transport,
    )


def _raise_for_forge_error(resp: httpx.Response, context: str = "") -> None:
    """Raise ForgeAPIError for any non-2xx response, using the API's message if present."""
    if resp.is_success:
        return
    message = resp.reason_phrase or "request failed"
    try:
        body = resp.json()
        if isinstance(body, dict) and body.get("message"):
            message = body["message"]
    except ValueError:
        if resp.text:
            message = resp.text[:200]
    raise ForgeAPIError(resp.status_code, message, context)


def _clean_params(params: Optional[dict]) -> Optional[dict]:
    if not params:
        return None
    return {k: v for k, v in params.items() if v is not None and v != ""}


# =============================================================================
# Async API functions
# =============================================================================

async def request_json(
    method: str,
    path: str,
    context: str,
    params: Optional[dict] = None,
    json: Optional[Any] = None,
) -> Any:
    """Send a request and return the decoded JSON body (None for empty bodies)."""
    async with _client() as client:
        resp = await client.request(
            method,
            path,
            headers=_get_headers(),
            params=_clean_params(params),
            json=json,
        )
        _raise_for_forge_error(resp, context)
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()


async def get_json(path: str, context: str, params: Optional[dict] = None) -> Any:
    return await request_json("GET", path, context, params=params)


async def post_json(path: str, context: str, json: Optional[Any] = None) -> Any:
    return await request_json("POST", path, context, json=json)


async def patch_json(path: str, context: str, json: Optional[Any] = None) -> Any:
    return await request_json("PATCH", path, context, json=json)


async def put_json(path: str, context: str, json: Optional[Any] = None) -> Any:
    return await request_json("PUT", path, context, json=json)


async def get_text(path: str, context: str, accept: str = "application/vnd.github.raw") -> str:
    """GET a non-JSON representation (diffs, raw files) as text."""
    async with _client() as client:
        resp = await client.get(path, headers=_get_headers(accept=accept))
        _raise_for_forge_error(resp, context)
        return resp.text


async def get_redirect_location(path: str, context: str) -> str:
    """GET an endpoint that answers with a redirect and return the target URL.

    Used for log and artifact downloads, which the API serves as 302 redirects
    to short-lived storage URLs.
    """
    async with _client(follow_redirects=False) as client:
        resp = await client.get(path, headers=_get_headers())
        if resp.is_redirect:
            return resp.headers["location"]
        _raise_for_forge_error(resp, context)
        raise ForgeAPIError(resp.status_code, "expected a redirect to the download URL", context)


async def download_text(url: str, context: str) -> str:
    """Fetch a pre-signed download URL. No auth headers are sent off-host."""
    cfg = get_forge_config()
    async with httpx.AsyncClient(timeout=cfg.timeout, follow_redirects=True, transport=cfg.transport) as client:
        resp = await client.get(url)
        _raise_for_forge_error(resp, context)
        return resp.text


async def get_default_branch(owner: str, repo: str) -> str:
    data = await get_json(f"/repos/{owner}/{repo}", "get repository")
    return data["default_branch"]
