"""Tool catalogue: every tool the server can offer, with token cost estimates.

Walks all toolsets, enabled or not, so operators can decide which toolsets or
individual tools to configure and how much of a model's context the tool
definitions will take.
"""

import sys
from dataclasses import dataclass, field
from typing import Optional, TextIO

from mcp.types import Tool

from .governor import count_tokens
from .toolsets import ToolsetGroup
from .tools import default_toolset_group


@dataclass
class ToolInfo:
    name: str
    description: str
    toolset: str
    read_only: bool
    token_count: int = 0


@dataclass
class ToolsetInfo:
    name: str
    description: str
    tools: list[ToolInfo] = field(default_factory=list)

    @property
    def token_count(self) -> int:
        return sum(t.token_count for t in self.tools)


def estimate_tool_tokens(tool: Tool) -> int:
    """Tokens in the tool definition as sent in a tools/list response."""
    return count_tokens(tool.model_dump_json(exclude_none=True))


def format_token_count(count: int) -> str:
    if count >= 1000:
        return f"{count / 1000:.1f}K"
    return str(count)


def first_sentence(description: str) -> str:
    idx = description.find(". ")
    if idx != -1:
        return description[:idx + 1]
    return description


def available_toolsets(group: ToolsetGroup, with_tokens: bool = True) -> list[ToolsetInfo]:
    """All toolsets sorted by name, each with its tools sorted by name.

    Write tools are included regardless of the group's read-only policy.
    """
    result = []
    for name in group.toolset_names():
        toolset = group.toolsets[name]
        info = ToolsetInfo(name=name, description=toolset.description)
        for tool in toolset.get_available_tools(read_only=False):
            info.tools.append(ToolInfo(
                name=tool.name,
                description=tool.description,
                toolset=name,
                read_only=tool.read_only,
                token_count=estimate_tool_tokens(tool.tool) if with_tokens else 0,
            ))
        info.tools.sort(key=lambda t: t.name)
        result.append(info)
    return result


def render_catalogue(toolsets: list[ToolsetInfo]) -> str:
    lines = []
    total_tools = 0
    total_tokens = 0
    for ts in toolsets:
        lines.append(f"{ts.name}: {ts.description}")
        for tool in ts.tools:
            kind = "read" if tool.read_only else "write"
            tokens = f" ~{format_token_count(tool.token_count)} tokens" if tool.token_count else ""
            lines.append(f"  [{kind}] {tool.name}{tokens}: {first_sentence(tool.description)}")
        lines.append("")
        total_tools += len(ts.tools)
        total_tokens += ts.token_count
    summary = f"{total_tools} tools in {len(toolsets)} toolsets"
    if total_tokens:
        summary += f", ~{format_token_count(total_tokens)} tokens of tool definitions (approximate)"
    lines.append(summary)
    return "\n".join(lines)


def main(out: Optional[TextIO] = None) -> None:
    """Print the tool catalogue."""
    out = out or sys.stdout
    group = default_toolset_group(read_only=False)
    out.write(render_catalogue(available_toolsets(group)) + "\n")


if __name__ == "__main__":
    main()
