"""Toolset registry for the Forge MCP Server.

A ServerTool pairs an MCP Tool definition with the coroutine that executes it.
Toolsets bundle related ServerTools into read and write partitions that can be
enabled independently, and a ToolsetGroup is the single registry of every
toolset a server instance knows about.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, Optional, Union

from mcp.types import CallToolResult, Prompt, ResourceTemplate, TextContent, Tool

logger = logging.getLogger("forge-mcp")

ToolResult = Union[list[TextContent], CallToolResult]
ToolHandler = Callable[[dict], Awaitable[ToolResult]]


class ToolsetConfigError(Exception):
    """Raised at bootstrap when toolsets are wired together incorrectly."""


class ToolsetDoesNotExistError(ToolsetConfigError):
    """Raised when configuration names a toolset the group does not have."""

    def __init__(self, name: str):
        super().__init__(f"toolset {name} does not exist")
        self.name = name


@dataclass(frozen=True)
class ServerTool:
    """An MCP tool definition and the handler that serves it."""
    tool: Tool
    handler: ToolHandler

    @property
    def name(self) -> str:
        return self.tool.name

    @property
    def description(self) -> str:
        return self.tool.description or ""

    @property
    def read_only(self) -> bool:
        annotations = self.tool.annotations
        return bool(annotations and annotations.readOnlyHint)


@dataclass
class Toolset:
    """A named bundle of related tools that is enabled as a unit."""
    name: str
    description: str
    enabled: bool = False
    read_tools: list[ServerTool] = field(default_factory=list)
    write_tools: list[ServerTool] = field(default_factory=list)
    resource_templates: list[ResourceTemplate] = field(default_factory=list)
    prompts: list[Prompt] = field(default_factory=list)

    def tool_names(self) -> list[str]:
        return [t.name for t in self.read_tools + self.write_tools]

    def _check_new(self, tool: ServerTool) -> None:
        if tool.name in self.tool_names():
            raise ToolsetConfigError(
                f"tool {tool.name} is registered twice in toolset {self.name}"
            )

    def add_read_tools(self, *tools: ServerTool) -> "Toolset":
        for tool in tools:
            if not tool.read_only:
                raise ToolsetConfigError(
                    f"tool {tool.name} is not annotated as read-only but was added as a read tool"
                )
            self._check_new(tool)
            self.read_tools.append(tool)
        return self

    def add_write_tools(self, *tools: ServerTool) -> "Toolset":
        for tool in tools:
            if tool.read_only:
                raise ToolsetConfigError(
                    f"tool {tool.name} is incorrectly annotated as read-only"
                )
            self._check_new(tool)
            self.write_tools.append(tool)
        return self

    def add_resource_templates(self, *templates: ResourceTemplate) -> "Toolset":
        self.resource_templates.extend(templates)
        return self

    def add_prompts(self, *prompts: Prompt) -> "Toolset":
        self.prompts.extend(prompts)
        return self

    def get_available_tools(self, read_only: bool) -> list[ServerTool]:
        """Tools this toolset exposes under the given read-only policy.

        Insertion order is preserved; callers wanting alphabetical order sort.
        """
        if read_only:
            return list(self.read_tools)
        return self.read_tools + self.write_tools

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled


@dataclass(frozen=True)
class ToolsetSummary:
    """Live snapshot of one toolset, as reported by ToolsetGroup.list_toolsets()."""
    name: str
    description: str
    enabled: bool
    read_tools: int
    write_tools: int


class ToolsetGroup:
    """Registry of every toolset known to one server instance.

    Mutation of toolset state after bootstrap goes through ``activation_lock``;
    readers never take it.
    """

    def __init__(self, read_only: bool = False):
        self.read_only = read_only
        self.toolsets: dict[str, Toolset] = {}
        self.activation_lock = asyncio.Lock()
        self._tool_owner: dict[str, str] = {}

    def add_toolset(self, toolset: Toolset) -> None:
        if toolset.name in self.toolsets:
            raise ToolsetConfigError(f"toolset {toolset.name} is already registered")
        for tool_name in toolset.tool_names():
            owner = self._tool_owner.get(tool_name)
            if owner is not None:
                raise ToolsetConfigError(
                    f"tool {tool_name} in toolset {toolset.name} is already registered by toolset {owner}"
                )
        for tool_name in toolset.tool_names():
            self._tool_owner[tool_name] = toolset.name
        self.toolsets[toolset.name] = toolset
        logger.debug(f"Toolset registered: {toolset.name} ({len(toolset.tool_names())} tools)")

    def find_toolset(self, name: str) -> Optional[Toolset]:
        return self.toolsets.get(name)

    def find_tool(self, tool_name: str) -> Optional[tuple[Toolset, ServerTool]]:
        """The toolset owning ``tool_name`` and the tool itself, enabled or not."""
        owner = self._tool_owner.get(tool_name)
        if owner is None:
            return None
        toolset = self.toolsets[owner]
        for tool in toolset.read_tools + toolset.write_tools:
            if tool.name == tool_name:
                return toolset, tool
        return None

    def is_enabled(self, name: str) -> bool:
        toolset = self.toolsets.get(name)
        return toolset is not None and toolset.enabled

    def toolset_names(self) -> list[str]:
        return sorted(self.toolsets)

    def list_toolsets(self) -> list[ToolsetSummary]:
        """Every toolset sorted by name, with its current enabled state."""
        summaries = []
        for name in self.toolset_names():
            toolset = self.toolsets[name]
            summaries.append(ToolsetSummary(
                name=name,
                description=toolset.description,
                enabled=toolset.enabled,
                read_tools=len(toolset.read_tools),
                write_tools=0 if self.read_only else len(toolset.write_tools),
            ))
        return summaries

    def enabled_toolset_ids(self) -> list[str]:
        return [name for name in self.toolset_names() if self.toolsets[name].enabled]

    def enable_toolsets(self, names: Iterable[str]) -> None:
        """Enable toolsets named by configuration. ``all`` enables every toolset."""
        names = list(names)
        if "all" in names:
            for toolset in self.toolsets.values():
                toolset.set_enabled(True)
            return
        for name in names:
            toolset = self.toolsets.get(name)
            if toolset is None:
                raise ToolsetDoesNotExistError(name)
            toolset.set_enabled(True)

    def check_toolsets(self, names: Iterable[str]) -> None:
        for name in names:
            if name != "all" and name not in self.toolsets:
                raise ToolsetDoesNotExistError(name)

    def enable_covered_toolsets(self, tool_names: Iterable[str]) -> list[str]:
        """Enable the toolsets whose whole effective surface is in ``tool_names``.

        Used with a tool allow-list: a toolset counts as enabled only when every
        tool it would expose is on the surface, so enabling it later at runtime
        still registers the rest.
        """
        wanted = set(tool_names)
        enabled = []
        for name in self.toolset_names():
            tools = self.toolsets[name].get_available_tools(self.read_only)
            if tools and all(t.name in wanted for t in tools):
                self.toolsets[name].set_enabled(True)
                enabled.append(name)
        return enabled

    def available_tools(self, name: str) -> list[ServerTool]:
        """Tools of one toolset under the group's read-only policy, enabled or not."""
        toolset = self.toolsets.get(name)
        if toolset is None:
            raise ToolsetDoesNotExistError(name)
        return toolset.get_available_tools(self.read_only)

    def active_tools(self) -> list[ServerTool]:
        tools = []
        for name in self.enabled_toolset_ids():
            tools.extend(self.toolsets[name].get_available_tools(self.read_only))
        return tools

    def register_tools(self, surface, only: Optional[Iterable[str]] = None) -> list[ServerTool]:
        """Push the effective tool surface into ``surface`` at bootstrap.

        Args:
            surface: Object with a ``register_tool(ServerTool)`` method.
            only: Optional allow-list of tool names. When given, exactly these
                tools are registered, taken from any toolset, still honouring
                the read-only policy.

        Returns:
            The ServerTools that were registered.
        """
        if only is None:
            tools = self.active_tools()
        else:
            wanted = list(dict.fromkeys(only))
            unknown = [n for n in wanted if n not in self._tool_owner]
            if unknown:
                raise ToolsetConfigError(f"unknown tools: {', '.join(unknown)}")
            by_name = {}
            for name in self.toolset_names():
                for tool in self.toolsets[name].get_available_tools(self.read_only):
                    by_name[tool.name] = tool
            tools = [by_name[n] for n in wanted if n in by_name]
            skipped = [n for n in wanted if n not in by_name]
            if skipped:
                logger.warning(f"Write tools skipped in read-only mode: {', '.join(skipped)}")
        for tool in tools:
            surface.register_tool(tool)
        return tools
