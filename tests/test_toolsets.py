"""
Tests for the toolset registry
"""

import pytest

from forge_mcp.surface import ToolSurface
from forge_mcp.toolsets import (
    Toolset,
    ToolsetConfigError,
    ToolsetDoesNotExistError,
    ToolsetGroup,
)


def build_scenario_group(make_tool, read_only=False):
    """issues: 3 read + 2 write, enabled. repos: 2 read + 1 write, disabled."""
    issues = Toolset("issues", "Issue tools", enabled=True)
    issues.add_read_tools(make_tool("get_issue"), make_tool("list_issues"), make_tool("search_issues"))
    issues.add_write_tools(make_tool("create_issue", False), make_tool("update_issue", False))
    repos = Toolset("repos", "Repository tools")
    repos.add_read_tools(make_tool("list_commits"), make_tool("list_branches"))
    repos.add_write_tools(make_tool("create_branch", False))
    group = ToolsetGroup(read_only=read_only)
    group.add_toolset(issues)
    group.add_toolset(repos)
    return group


class TestToolset:
    """Test read/write partitions of a single toolset."""

    def test_read_only_projection(self, make_tool):
        """Test read-only policy returns exactly the read tools, otherwise all."""
        ts = Toolset("issues", "Issue tools")
        ts.add_read_tools(make_tool("a"), make_tool("b"), make_tool("c"))
        ts.add_write_tools(make_tool("d", False), make_tool("e", False))
        assert [t.name for t in ts.get_available_tools(read_only=True)] == ["a", "b", "c"]
        assert [t.name for t in ts.get_available_tools(read_only=False)] == ["a", "b", "c", "d", "e"]

    def test_empty_toolset(self):
        """Test a toolset with no tools yields nothing under either policy."""
        ts = Toolset("empty", "Nothing here")
        assert ts.get_available_tools(read_only=True) == []
        assert ts.get_available_tools(read_only=False) == []

    def test_write_tool_annotated_read_only_rejected(self, make_tool):
        """Test a read-only tool cannot be added as a write tool."""
        ts = Toolset("issues", "Issue tools")
        with pytest.raises(ToolsetConfigError, match="incorrectly annotated as read-only"):
            ts.add_write_tools(make_tool("get_issue"))

    def test_read_tool_must_be_read_only(self, make_tool):
        """Test a write tool cannot be added as a read tool."""
        ts = Toolset("issues", "Issue tools")
        with pytest.raises(ToolsetConfigError, match="not annotated as read-only"):
            ts.add_read_tools(make_tool("create_issue", False))

    def test_duplicate_within_toolset_rejected(self, make_tool):
        """Test the same tool name cannot appear twice in one toolset."""
        ts = Toolset("issues", "Issue tools")
        ts.add_read_tools(make_tool("get_issue"))
        with pytest.raises(ToolsetConfigError, match="registered twice"):
            ts.add_read_tools(make_tool("get_issue"))

    def test_set_enabled(self):
        """Test enabling toggles the flag."""
        ts = Toolset("issues", "Issue tools")
        assert ts.enabled is False
        ts.set_enabled(True)
        assert ts.enabled is True


class TestToolsetGroup:
    """Test the group registry."""

    def test_list_toolsets_scenario(self, make_tool):
        """Test list_toolsets reports enabled flags and read/write counts."""
        group = build_scenario_group(make_tool)
        summaries = {s.name: s for s in group.list_toolsets()}
        assert summaries["issues"].enabled is True
        assert (summaries["issues"].read_tools, summaries["issues"].write_tools) == (3, 2)
        assert summaries["repos"].enabled is False
        assert (summaries["repos"].read_tools, summaries["repos"].write_tools) == (2, 1)

    def test_list_toolsets_sorted(self, make_tool):
        """Test toolsets are listed in name order regardless of registration order."""
        group = ToolsetGroup()
        group.add_toolset(Toolset("repos", "r"))
        group.add_toolset(Toolset("actions", "a"))
        group.add_toolset(Toolset("issues", "i"))
        assert [s.name for s in group.list_toolsets()] == ["actions", "issues", "repos"]

    def test_read_only_group_hides_write_counts(self, make_tool):
        """Test a read-only group reports no write tools."""
        group = build_scenario_group(make_tool, read_only=True)
        summaries = {s.name: s for s in group.list_toolsets()}
        assert summaries["issues"].write_tools == 0
        assert summaries["repos"].write_tools == 0

    def test_duplicate_tool_across_toolsets_rejected(self, make_tool):
        """Test a tool name owned by one toolset cannot be registered by another."""
        group = ToolsetGroup()
        group.add_toolset(Toolset("issues", "i").add_read_tools(make_tool("get_me")))
        with pytest.raises(ToolsetConfigError, match="already registered by toolset issues"):
            group.add_toolset(Toolset("context", "c").add_read_tools(make_tool("get_me")))
        assert group.find_toolset("context") is None

    def test_duplicate_toolset_rejected(self):
        """Test the same toolset id cannot be registered twice."""
        group = ToolsetGroup()
        group.add_toolset(Toolset("issues", "i"))
        with pytest.raises(ToolsetConfigError):
            group.add_toolset(Toolset("issues", "again"))

    def test_is_enabled_unknown(self, make_tool):
        """Test is_enabled is False for unknown toolsets."""
        group = build_scenario_group(make_tool)
        assert group.is_enabled("issues") is True
        assert group.is_enabled("repos") is False
        assert group.is_enabled("nonexistent") is False

    def test_enable_toolsets(self, make_tool):
        """Test enabling configured toolsets by name."""
        group = build_scenario_group(make_tool)
        group.enable_toolsets(["repos"])
        assert group.enabled_toolset_ids() == ["issues", "repos"]

    def test_enable_all(self):
        """Test the 'all' keyword enables every toolset."""
        group = ToolsetGroup()
        for name in ("a", "b", "c"):
            group.add_toolset(Toolset(name, name))
        group.enable_toolsets(["all"])
        assert group.enabled_toolset_ids() == ["a", "b", "c"]

    def test_enable_unknown_raises(self, make_tool):
        """Test configuration naming an unknown toolset fails."""
        group = build_scenario_group(make_tool)
        with pytest.raises(ToolsetDoesNotExistError, match="toolset nope does not exist"):
            group.enable_toolsets(["nope"])

    def test_available_tools_ignores_enabled_state(self, make_tool):
        """Test a disabled toolset's tools can be listed."""
        group = build_scenario_group(make_tool)
        assert [t.name for t in group.available_tools("repos")] == [
            "list_commits", "list_branches", "create_branch",
        ]
        with pytest.raises(ToolsetDoesNotExistError):
            group.available_tools("nonexistent")

    def test_find_tool(self, make_tool):
        """Test tool lookup reports the owning toolset."""
        group = build_scenario_group(make_tool)
        toolset, tool = group.find_tool("create_branch")
        assert toolset.name == "repos"
        assert tool.read_only is False
        assert group.find_tool("missing") is None


class TestRegisterTools:
    """Test pushing the effective tool surface at bootstrap."""

    def test_registers_enabled_toolsets_only(self, make_tool):
        """Test only enabled toolsets reach the surface."""
        group = build_scenario_group(make_tool)
        surface = ToolSurface()
        group.register_tools(surface)
        assert sorted(surface.names()) == [
            "create_issue", "get_issue", "list_issues", "search_issues", "update_issue",
        ]

    def test_read_only_registers_read_tools(self, make_tool):
        """Test read-only mode keeps write tools off the surface."""
        group = build_scenario_group(make_tool, read_only=True)
        surface = ToolSurface()
        group.register_tools(surface)
        assert "create_issue" not in surface
        assert len(surface) == 3

    def test_allow_list(self, make_tool):
        """Test an explicit tool list picks tools from any toolset."""
        group = build_scenario_group(make_tool)
        surface = ToolSurface()
        group.register_tools(surface, only=["get_issue", "create_branch"])
        assert sorted(surface.names()) == ["create_branch", "get_issue"]

    def test_allow_list_unknown_tool(self, make_tool):
        """Test an unknown tool in the allow-list is a configuration error."""
        group = build_scenario_group(make_tool)
        with pytest.raises(ToolsetConfigError, match="unknown tools: bogus"):
            group.register_tools(ToolSurface(), only=["get_issue", "bogus"])

    def test_allow_list_read_only(self, make_tool):
        """Test write tools in the allow-list are skipped in read-only mode."""
        group = build_scenario_group(make_tool, read_only=True)
        surface = ToolSurface()
        group.register_tools(surface, only=["get_issue", "create_branch"])
        assert surface.names() == ["get_issue"]

    def test_allow_list_enables_covered_toolsets(self, make_tool):
        """Test only toolsets fully inside the allow-list count as enabled."""
        group = build_scenario_group(make_tool)
        group.toolsets["issues"].set_enabled(False)
        enabled = group.enable_covered_toolsets(
            ["get_issue", "list_commits", "list_branches", "create_branch"])
        assert enabled == ["repos"]
        assert not group.is_enabled("issues")

    def test_allow_list_covered_in_read_only(self, make_tool):
        """Test coverage is judged on the read-only surface."""
        group = build_scenario_group(make_tool, read_only=True)
        group.toolsets["issues"].set_enabled(False)
        assert group.enable_covered_toolsets(["list_commits", "list_branches"]) == ["repos"]

    def test_check_toolsets(self, make_tool):
        """Test toolset names are validated without enabling anything."""
        group = build_scenario_group(make_tool)
        group.check_toolsets(["repos", "all"])
        assert not group.is_enabled("repos")
        with pytest.raises(ToolsetDoesNotExistError):
            group.check_toolsets(["bogus"])


class TestToolSurface:
    """Test the live tool surface."""

    def test_register_replaces_by_name(self, make_tool):
        """Test re-registering a name keeps a single entry."""
        surface = ToolSurface()
        surface.register_tool(make_tool("get_issue"))
        surface.register_tool(make_tool("get_issue"))
        assert len(surface) == 1
        assert [t.name for t in surface.list_tools()] == ["get_issue"]

    @pytest.mark.anyio
    async def test_notify_without_server(self):
        """Test notifying with no server attached is a no-op."""
        await ToolSurface().notify_tool_list_changed()

    @pytest.mark.anyio
    async def test_notify_outside_request(self):
        """Test notifying outside a request context logs and returns."""
        from mcp.server import Server
        await ToolSurface(Server("test")).notify_tool_list_changed()
