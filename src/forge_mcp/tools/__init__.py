"""Toolset definitions for the Forge MCP Server."""

from typing import Iterable

from ..config import DEFAULT_CONTENT_WINDOW_SIZE
from ..toolsets import ToolsetGroup
from . import actions, context, git, issues, notifications, pull_requests, repos

DEFAULT_TOOLSETS = [context.TOOLSET, repos.TOOLSET, issues.TOOLSET, pull_requests.TOOLSET]


def resolve_toolsets(names: Iterable[str]) -> list[str]:
    """Expand the ``default`` keyword and drop duplicates, keeping order."""
    resolved = []
    for name in names:
        expanded = DEFAULT_TOOLSETS if name == "default" else [name]
        for item in expanded:
            if item not in resolved:
                resolved.append(item)
    return resolved


def default_toolset_group(read_only: bool = False,
                          content_window_size: int = DEFAULT_CONTENT_WINDOW_SIZE) -> ToolsetGroup:
    """Build the group of every forge toolset, all disabled."""
    group = ToolsetGroup(read_only=read_only)
    group.add_toolset(context.register())
    group.add_toolset(repos.register())
    group.add_toolset(git.register())
    group.add_toolset(issues.register())
    group.add_toolset(pull_requests.register(content_window_size))
    group.add_toolset(actions.register(content_window_size))
    group.add_toolset(notifications.register())
    return group
