"""
Tests for Actions job log retrieval
"""

import json

import pytest

from forge_mcp.tools import actions

LOG_URL = "https://logs.example.com/jobs/7.txt"


@pytest.fixture
def get_job_logs():
    def factory(content_window_size=5000):
        toolset = actions.register(content_window_size)
        return {t.name: t.handler for t in toolset.read_tools}["get_job_logs"]

    return factory


def _payload(result):
    return json.loads(result[0].text)


class TestSingleJob:
    """Test logs for one job."""

    @pytest.mark.anyio
    async def test_returns_url_by_default(self, forge, get_job_logs):
        """Test the download URL is returned without fetching content."""
        forge.redirect("/repos/o/r/actions/jobs/7/logs", LOG_URL)
        payload = _payload(await get_job_logs()({"owner": "o", "repo": "r", "job_id": 7}))
        assert payload["job_id"] == 7
        assert payload["logs_url"] == LOG_URL
        assert len(forge.requests) == 1

    @pytest.mark.anyio
    async def test_content_within_tail(self, forge, get_job_logs):
        """Test short logs are returned whole."""
        forge.redirect("/repos/o/r/actions/jobs/7/logs", LOG_URL)
        forge.add("GET", "/jobs/7.txt", text="step 1\nstep 2\n")
        payload = _payload(await get_job_logs()(
            {"owner": "o", "repo": "r", "job_id": 7, "return_content": True}))
        assert payload["logs_content"] == "step 1\nstep 2\n"
        assert payload["truncated"] is False
        assert payload["original_length"] == 2
        assert "authorization" not in forge.requests[-1].headers

    @pytest.mark.anyio
    async def test_tail_lines(self, forge, get_job_logs):
        """Test long logs keep their last lines with a marker."""
        forge.redirect("/repos/o/r/actions/jobs/7/logs", LOG_URL)
        forge.add("GET", "/jobs/7.txt", text="a\nb\nc\nd\n")
        payload = _payload(await get_job_logs()(
            {"owner": "o", "repo": "r", "job_id": 7, "return_content": True, "tail_lines": 2}))
        lines = payload["logs_content"].splitlines()
        assert lines[:2] == ["c", "d"]
        assert lines[2].startswith("[truncated: showing last 2 of 4 lines]")
        assert payload["truncated"] is True
        assert payload["original_length"] == 4

    @pytest.mark.anyio
    async def test_content_window_caps_tail(self, forge, get_job_logs):
        """Test the content window bounds the tail even for large tail_lines."""
        forge.redirect("/repos/o/r/actions/jobs/7/logs", LOG_URL)
        forge.add("GET", "/jobs/7.txt", text="\n".join(str(i) for i in range(10)))
        payload = _payload(await get_job_logs(content_window_size=3)(
            {"owner": "o", "repo": "r", "job_id": 7, "return_content": True}))
        assert payload["logs_content"].splitlines()[:3] == ["7", "8", "9"]
        assert payload["truncated"] is True

    @pytest.mark.anyio
    async def test_job_id_required(self, forge, get_job_logs):
        """Test job_id is required unless failed_only is set."""
        result = await get_job_logs()({"owner": "o", "repo": "r"})
        assert result.isError
        assert result.content[0].text == "job_id is required when failed_only is false"


class TestFailedOnly:
    """Test logs for every failed job of a run."""

    @pytest.mark.anyio
    async def test_failed_jobs(self, forge, get_job_logs):
        """Test only failed jobs are fetched and named."""
        forge.add("GET", "/repos/o/r/actions/runs/9/jobs", {"total_count": 2, "jobs": [
            {"id": 1, "name": "build", "conclusion": "success"},
            {"id": 7, "name": "test", "conclusion": "failure"},
        ]})
        forge.redirect("/repos/o/r/actions/jobs/7/logs", LOG_URL)
        payload = _payload(await get_job_logs()(
            {"owner": "o", "repo": "r", "run_id": 9, "failed_only": True}))
        assert payload["message"] == "Retrieved logs for 1 failed jobs"
        assert payload["total_jobs"] == 2
        assert payload["failed_jobs"] == 1
        assert payload["logs"][0]["job_name"] == "test"
        assert payload["logs"][0]["logs_url"] == LOG_URL
        assert payload["return_format"] == {"content": False, "urls": True}

    @pytest.mark.anyio
    async def test_no_failures(self, forge, get_job_logs):
        """Test a run without failures says so."""
        forge.add("GET", "/repos/o/r/actions/runs/9/jobs", {"jobs": [
            {"id": 1, "name": "build", "conclusion": "success"},
        ]})
        payload = _payload(await get_job_logs()(
            {"owner": "o", "repo": "r", "run_id": 9, "failed_only": True}))
        assert payload["message"] == "No failed jobs found in this workflow run"
        assert payload["failed_jobs"] == 0

    @pytest.mark.anyio
    async def test_missing_logs_reported_per_job(self, forge, get_job_logs):
        """Test a job whose logs cannot be fetched is reported, not fatal."""
        forge.add("GET", "/repos/o/r/actions/runs/9/jobs", {"jobs": [
            {"id": 7, "name": "test", "conclusion": "failure"},
        ]})
        payload = _payload(await get_job_logs()(
            {"owner": "o", "repo": "r", "run_id": 9, "failed_only": True}))
        assert payload["logs"][0]["job_id"] == 7
        assert "404" in payload["logs"][0]["error"]

    @pytest.mark.anyio
    async def test_run_id_required(self, forge, get_job_logs):
        """Test failed_only needs a run id."""
        result = await get_job_logs()({"owner": "o", "repo": "r", "failed_only": True})
        assert result.isError
        assert result.content[0].text == "run_id is required when failed_only is true"
