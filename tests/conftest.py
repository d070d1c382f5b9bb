"""Shared fixtures for the Forge MCP Server tests."""

import json
import sys
from pathlib import Path

import httpx
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from forge_mcp import forge_client
from forge_mcp.toolsets import ServerTool
from forge_mcp.tools.helpers import read_tool, text_result, write_tool

API_URL = "https://api.github.com"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_forge_client():
    """Every test starts with an unconfigured forge client."""
    forge_client.reset_forge_config()
    yield
    forge_client.reset_forge_config()


class FakeForge:
    """In-memory forge API served through httpx.MockTransport.

    Routes are keyed by (method, path); a route value is either an
    httpx.Response or a callable taking the request and returning one.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method: str, path: str, json_body=None, status_code: int = 200,
            text=None, headers=None):
        if text is not None:
            response = httpx.Response(status_code, text=text, headers=headers)
        elif json_body is not None:
            response = httpx.Response(status_code, json=json_body, headers=headers)
        else:
            response = httpx.Response(status_code, headers=headers)
        self.routes[(method, path)] = response
        return self

    def redirect(self, path: str, location: str):
        return self.add("GET", path, status_code=302, headers={"location": location})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if callable(route):
            return route(request)
        return route

    def install(self):
        """Point the forge client at this fake."""
        forge_client.configure(API_URL, token="test-token", transport=httpx.MockTransport(self.handler))
        return self

    def last_json(self):
        return json.loads(self.requests[-1].content)


@pytest.fixture
def forge():
    return FakeForge().install()


@pytest.fixture
def make_tool():
    """Factory for stub ServerTools whose handler echoes the tool name."""

    def factory(name: str, read_only: bool = True) -> ServerTool:
        async def handler(arguments: dict):
            return text_result(f"{name} called")

        definition = read_tool if read_only else write_tool
        return ServerTool(definition(name, name.replace("_", " "), f"Stub tool {name}"), handler)

    return factory
