"""Context tools: who the authenticated user is."""

from .. import forge_client
from ..toolsets import ServerTool, Toolset
from .helpers import json_result, pick, read_tool

TOOLSET = "context"
DESCRIPTION = "Tools that provide context about the current user and GitHub context you are operating in"


async def get_me(arguments: dict):
    user = await forge_client.get_json("/user", "get authenticated user")
    details = pick(
        user, "name", "company", "blog", "location", "email", "bio",
        "public_repos", "followers", "following", "created_at",
    )
    return json_result({
        "login": user.get("login"),
        "id": user.get("id"),
        "profile_url": user.get("html_url"),
        "avatar_url": user.get("avatar_url"),
        "details": details,
    })


def register() -> Toolset:
    return Toolset(TOOLSET, DESCRIPTION).add_read_tools(
        ServerTool(
            read_tool(
                "get_me",
                "Get my user profile",
                "Get details of the authenticated GitHub user. Use this when a request is about "
                "the user's own profile for GitHub. Or when information is missing to build other tool calls.",
            ),
            get_me,
        ),
    )
