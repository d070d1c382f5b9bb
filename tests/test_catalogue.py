"""
Tests for the tool catalogue
"""

import io

import pytest

from forge_mcp import catalogue, governor
from forge_mcp.tools import default_toolset_group


class WordEncoding:
    def encode(self, text):
        return text.split()


@pytest.fixture(autouse=True)
def word_tokens(monkeypatch):
    monkeypatch.setattr(governor, "_encoding", WordEncoding())


class TestAvailableToolsets:
    """Test the catalogue built from a toolset group."""

    def test_every_toolset_sorted(self):
        """Test all toolsets appear in name order, enabled or not."""
        infos = catalogue.available_toolsets(default_toolset_group())
        assert [i.name for i in infos] == [
            "actions", "context", "git", "issues", "notifications", "pull_requests", "repos",
        ]

    def test_includes_write_tools_in_read_only_group(self):
        """Test write tools are catalogued regardless of read-only mode."""
        infos = {i.name: i for i in catalogue.available_toolsets(default_toolset_group(read_only=True))}
        issues = {t.name: t for t in infos["issues"].tools}
        assert issues["create_issue"].read_only is False
        assert issues["get_issue"].read_only is True
        assert [t.name for t in infos["issues"].tools] == sorted(issues)

    def test_token_counts(self):
        """Test each tool carries a positive token estimate."""
        infos = catalogue.available_toolsets(default_toolset_group())
        for info in infos:
            assert info.token_count == sum(t.token_count for t in info.tools)
            assert all(t.token_count > 0 for t in info.tools)

    def test_without_tokens(self):
        """Test token counting can be skipped."""
        infos = catalogue.available_toolsets(default_toolset_group(), with_tokens=False)
        assert all(t.token_count == 0 for i in infos for t in i.tools)


class TestFormatting:
    """Test catalogue formatting helpers."""

    def test_format_token_count(self):
        """Test small counts are exact and large ones abbreviated."""
        assert catalogue.format_token_count(950) == "950"
        assert catalogue.format_token_count(1200) == "1.2K"

    def test_first_sentence(self):
        """Test descriptions are cut at the first sentence."""
        assert catalogue.first_sentence("Get an issue. Returns details.") == "Get an issue."
        assert catalogue.first_sentence("No period here") == "No period here"

    def test_main(self):
        """Test the catalogue command prints tools grouped by toolset."""
        out = io.StringIO()
        catalogue.main(out)
        text = out.getvalue()
        assert "issues: " in text
        assert "[write] create_issue" in text
        assert "[read] get_me" in text
        assert "tools in 7 toolsets" in text
