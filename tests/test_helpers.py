"""
Tests for tool argument helpers
"""

import pytest

from forge_mcp.tools.helpers import (
    MAX_PER_PAGE,
    ParameterError,
    error_result,
    optional_param,
    optional_string_list,
    pagination_params,
    read_tool,
    required_param,
    write_tool,
)


class TestRequiredParam:
    """Test required argument parsing."""

    def test_present(self):
        """Test a present value is returned."""
        assert required_param({"owner": "octo"}, "owner") == "octo"

    def test_missing_or_empty(self):
        """Test missing, null and zero values are rejected."""
        for arguments in ({}, {"owner": None}, {"owner": ""}):
            with pytest.raises(ParameterError, match="missing required parameter: owner"):
                required_param(arguments, "owner")
        with pytest.raises(ParameterError):
            required_param({"issue_number": 0}, "issue_number", int)

    def test_wrong_type(self):
        """Test mistyped values are rejected with the actual type."""
        with pytest.raises(ParameterError, match="is not of type str, is int"):
            required_param({"owner": 5}, "owner")

    def test_integral_float(self):
        """Test JSON numbers like 3.0 are accepted as integers."""
        assert required_param({"n": 3.0}, "n", int) == 3
        with pytest.raises(ParameterError):
            required_param({"n": 3.5}, "n", int)
        with pytest.raises(ParameterError):
            required_param({"n": True}, "n", int)


class TestOptionalParams:
    """Test optional argument parsing."""

    def test_default(self):
        """Test the default is used when absent."""
        assert optional_param({}, "state", str, "open") == "open"

    def test_string_list(self):
        """Test string lists are validated."""
        assert optional_string_list({"labels": ["bug"]}, "labels") == ["bug"]
        assert optional_string_list({}, "labels") is None
        with pytest.raises(ParameterError):
            optional_string_list({"labels": ["bug", 1]}, "labels")

    def test_pagination(self):
        """Test pagination defaults and the per-page cap."""
        assert pagination_params({}) == (1, 30)
        assert pagination_params({"page": 2, "perPage": 500}) == (2, MAX_PER_PAGE)
        with pytest.raises(ParameterError):
            pagination_params({"page": 0})


class TestDefinitions:
    """Test tool definition builders."""

    def test_annotations(self):
        """Test read and write tools carry the right hints."""
        read = read_tool("get_x", "Get X", "Gets X", {"id": {"type": "string"}}, required=["id"])
        write = write_tool("delete_x", "Delete X", "Deletes X", destructive=True)
        assert read.annotations.readOnlyHint is True
        assert read.inputSchema["required"] == ["id"]
        assert write.annotations.readOnlyHint is False
        assert write.annotations.destructiveHint is True

    def test_error_result(self):
        """Test error results are flagged."""
        result = error_result("boom")
        assert result.isError is True
        assert result.content[0].text == "boom"
