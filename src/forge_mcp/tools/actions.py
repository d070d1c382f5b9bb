"""Actions tools: workflows, runs, jobs and job logs.

Job logs are the canonical unbounded output in this server. ``get_job_logs``
returns the log download URL by default; when asked for content it keeps the
tail of each log through the output governor.
"""

import logging

from .. import forge_client
from ..config import DEFAULT_CONTENT_WINDOW_SIZE
from ..governor import WINDOW_TAIL, govern_text
from ..toolsets import ServerTool, Toolset
from .helpers import (
    OWNER_REPO_PROPERTIES,
    PAGINATION_PROPERTIES,
    ParameterError,
    error_result,
    json_result,
    optional_param,
    owner_repo,
    pagination_params,
    pick,
    read_tool,
    required_param,
    write_tool,
)

logger = logging.getLogger("forge-mcp")

TOOLSET = "actions"
DESCRIPTION = "GitHub Actions workflows and CI/CD operations"

DEFAULT_TAIL_LINES = 500


def _minimal_run(run: dict) -> dict:
    return pick(run, "id", "name", "display_title", "status", "conclusion", "event",
                "head_branch", "head_sha", "run_number", "run_attempt", "html_url",
                "created_at", "updated_at")


def _minimal_job(job: dict) -> dict:
    data = pick(job, "id", "run_id", "name", "status", "conclusion", "started_at",
                "completed_at", "html_url")
    data["steps"] = [
        pick(s, "number", "name", "status", "conclusion") for s in job.get("steps") or []
    ]
    return data


async def list_workflows(arguments: dict):
    owner, repo = owner_repo(arguments)
    page, per_page = pagination_params(arguments)
    data = await forge_client.get_json(
        f"/repos/{owner}/{repo}/actions/workflows", "list workflows",
        params={"page": page, "per_page": per_page},
    )
    return json_result({
        "total_count": data.get("total_count", 0),
        "workflows": [pick(w, "id", "name", "path", "state", "html_url") for w in data.get("workflows", [])],
    })


async def list_workflow_runs(arguments: dict):
    owner, repo = owner_repo(arguments)
    workflow_id = optional_param(arguments, "workflow_id", (str, int))
    page, per_page = pagination_params(arguments)
    if workflow_id:
        path = f"/repos/{owner}/{repo}/actions/workflows/{workflow_id}/runs"
    else:
        path = f"/repos/{owner}/{repo}/actions/runs"
    data = await forge_client.get_json(
        path, "list workflow runs",
        params={
            "actor": optional_param(arguments, "actor"),
            "branch": optional_param(arguments, "branch"),
            "event": optional_param(arguments, "event"),
            "status": optional_param(arguments, "status"),
            "page": page,
            "per_page": per_page,
        },
    )
    return json_result({
        "total_count": data.get("total_count", 0),
        "workflow_runs": [_minimal_run(r) for r in data.get("workflow_runs", [])],
    })


async def list_workflow_jobs(arguments: dict):
    owner, repo = owner_repo(arguments)
    run_id = required_param(arguments, "run_id", int)
    job_filter = optional_param(arguments, "filter", str, "latest")
    if job_filter not in ("latest", "all"):
        raise ParameterError(f"invalid filter: {job_filter}. Must be latest or all")
    page, per_page = pagination_params(arguments)
    data = await forge_client.get_json(
        f"/repos/{owner}/{repo}/actions/runs/{run_id}/jobs", "list workflow jobs",
        params={"filter": job_filter, "page": page, "per_page": per_page},
    )
    return json_result({
        "total_count": data.get("total_count", 0),
        "jobs": [_minimal_job(j) for j in data.get("jobs", [])],
    })


async def run_workflow(arguments: dict):
    owner, repo = owner_repo(arguments)
    workflow_id = required_param(arguments, "workflow_id", (str, int))
    ref = required_param(arguments, "ref")
    inputs = optional_param(arguments, "inputs", dict, {})
    await forge_client.post_json(
        f"/repos/{owner}/{repo}/actions/workflows/{workflow_id}/dispatches", "run workflow",
        json={"ref": ref, "inputs": inputs},
    )
    return json_result({
        "message": "Workflow run has been queued",
        "workflow_id": workflow_id,
        "ref": ref,
        "inputs": inputs,
    })


async def rerun_workflow_run(arguments: dict):
    owner, repo = owner_repo(arguments)
    run_id = required_param(arguments, "run_id", int)
    await forge_client.post_json(f"/repos/{owner}/{repo}/actions/runs/{run_id}/rerun", "rerun workflow run")
    return json_result({"message": "Workflow run has been queued for re-run", "run_id": run_id})


async def cancel_workflow_run(arguments: dict):
    owner, repo = owner_repo(arguments)
    run_id = required_param(arguments, "run_id", int)
    await forge_client.post_json(f"/repos/{owner}/{repo}/actions/runs/{run_id}/cancel", "cancel workflow run")
    return json_result({"message": "Workflow run has been cancelled", "run_id": run_id})


def register(content_window_size: int = DEFAULT_CONTENT_WINDOW_SIZE) -> Toolset:
    """Register Actions tools. Log content is capped at ``content_window_size`` lines."""

    async def _job_logs(owner: str, repo: str, job_id: int, return_content: bool, tail_lines: int) -> dict:
        url = await forge_client.get_redirect_location(
            f"/repos/{owner}/{repo}/actions/jobs/{job_id}/logs", "get job logs",
        )
        if not return_content:
            return {
                "job_id": job_id,
                "logs_url": url,
                "message": "Job logs are available for download",
                "note": "The logs_url provides a download link for the individual job logs in plain text format. "
                        "The URL is temporary and expires after a short time.",
            }
        content = await forge_client.download_text(url, "download job logs")
        budget = min(tail_lines, content_window_size)
        governed = govern_text(
            content, budget, window=WINDOW_TAIL,
            hint="Lower tail_lines, or use failed_only with run_id to fetch only failed jobs.",
        )
        if governed.truncated:
            logger.info(f"Job {job_id} logs truncated to {governed.kept_records} of {governed.total_records} lines")
        return {
            "job_id": job_id,
            "logs_content": governed.text(),
            "message": "Job logs content retrieved successfully",
            "original_length": governed.total_records,
            "truncated": governed.truncated,
        }

    async def get_job_logs(arguments: dict):
        owner, repo = owner_repo(arguments)
        job_id = optional_param(arguments, "job_id", int)
        run_id = optional_param(arguments, "run_id", int)
        failed_only = optional_param(arguments, "failed_only", bool, False)
        return_content = optional_param(arguments, "return_content", bool, False)
        tail_lines = optional_param(arguments, "tail_lines", int, DEFAULT_TAIL_LINES)
        if tail_lines < 1:
            raise ParameterError("tail_lines must be >= 1")

        if failed_only and not run_id:
            return error_result("run_id is required when failed_only is true")
        if not failed_only and not job_id:
            return error_result("job_id is required when failed_only is false")

        if not failed_only:
            return json_result(await _job_logs(owner, repo, job_id, return_content, tail_lines))

        data = await forge_client.get_json(
            f"/repos/{owner}/{repo}/actions/runs/{run_id}/jobs", "list workflow jobs",
            params={"filter": "latest", "per_page": 100},
        )
        jobs = data.get("jobs", [])
        failed = [j for j in jobs if j.get("conclusion") == "failure"]
        if not failed:
            return json_result({
                "message": "No failed jobs found in this workflow run",
                "run_id": run_id,
                "total_jobs": len(jobs),
                "failed_jobs": 0,
            })

        logs = []
        for job in failed:
            try:
                entry = await _job_logs(owner, repo, job["id"], return_content, tail_lines)
            except forge_client.ForgeAPIError as e:
                logger.warning(f"Failed to get logs for job {job['id']}: {e}")
                entry = {"job_id": job["id"], "error": str(e)}
            entry["job_name"] = job.get("name")
            logs.append(entry)

        return json_result({
            "message": f"Retrieved logs for {len(failed)} failed jobs",
            "run_id": run_id,
            "total_jobs": len(jobs),
            "failed_jobs": len(failed),
            "logs": logs,
            "return_format": {"content": return_content, "urls": not return_content},
        })

    run_id_property = {"run_id": {"type": "number", "description": "The unique identifier of the workflow run"}}

    return Toolset(TOOLSET, DESCRIPTION).add_read_tools(
        ServerTool(
            read_tool(
                "list_workflows",
                "List workflows",
                "List workflows in a repository",
                {**OWNER_REPO_PROPERTIES, **PAGINATION_PROPERTIES},
                required=["owner", "repo"],
            ),
            list_workflows,
        ),
        ServerTool(
            read_tool(
                "list_workflow_runs",
                "List workflow runs",
                "List workflow runs for a repository, or for a specific workflow when workflow_id is given",
                {
                    **OWNER_REPO_PROPERTIES,
                    "workflow_id": {"type": "string", "description": "The workflow ID or workflow file name (optional)"},
                    "actor": {"type": "string", "description": "Returns someone's workflow runs"},
                    "branch": {"type": "string", "description": "Returns workflow runs associated with a branch"},
                    "event": {"type": "string", "description": "Returns workflow runs for a specific event type"},
                    "status": {"type": "string", "description": "Returns workflow runs with the check run status",
                               "enum": ["queued", "in_progress", "completed", "requested", "waiting"]},
                    **PAGINATION_PROPERTIES,
                },
                required=["owner", "repo"],
            ),
            list_workflow_runs,
        ),
        ServerTool(
            read_tool(
                "list_workflow_jobs",
                "List workflow jobs",
                "List jobs for a specific workflow run",
                {
                    **OWNER_REPO_PROPERTIES,
                    **run_id_property,
                    "filter": {"type": "string", "description": "Filters jobs by their completed_at timestamp",
                               "enum": ["latest", "all"]},
                    **PAGINATION_PROPERTIES,
                },
                required=["owner", "repo", "run_id"],
            ),
            list_workflow_jobs,
        ),
        ServerTool(
            read_tool(
                "get_job_logs",
                "Get job logs",
                "Download logs for a specific workflow job or efficiently get all failed job logs for a workflow run",
                {
                    **OWNER_REPO_PROPERTIES,
                    "job_id": {"type": "number", "description": "The unique identifier of the workflow job (required for single job logs)"},
                    "run_id": {"type": "number", "description": "Workflow run ID (required when using failed_only)"},
                    "failed_only": {"type": "boolean", "description": "When true, gets logs for all failed jobs in run_id"},
                    "return_content": {"type": "boolean", "description": "Returns actual log content instead of URLs"},
                    "tail_lines": {"type": "number", "description": "Number of lines to return from the end of the log",
                                   "default": DEFAULT_TAIL_LINES},
                },
                required=["owner", "repo"],
            ),
            get_job_logs,
        ),
    ).add_write_tools(
        ServerTool(
            write_tool(
                "run_workflow",
                "Run workflow",
                "Run an Actions workflow by workflow ID or filename",
                {
                    **OWNER_REPO_PROPERTIES,
                    "workflow_id": {"type": "string", "description": "The workflow ID (numeric) or workflow file name (e.g., main.yml, ci.yaml)"},
                    "ref": {"type": "string", "description": "The git reference for the workflow. The reference can be a branch or tag name."},
                    "inputs": {"type": "object", "description": "Inputs the workflow accepts"},
                },
                required=["owner", "repo", "workflow_id", "ref"],
            ),
            run_workflow,
        ),
        ServerTool(
            write_tool(
                "rerun_workflow_run",
                "Rerun workflow run",
                "Re-run an entire workflow run",
                {**OWNER_REPO_PROPERTIES, **run_id_property},
                required=["owner", "repo", "run_id"],
            ),
            rerun_workflow_run,
        ),
        ServerTool(
            write_tool(
                "cancel_workflow_run",
                "Cancel workflow run",
                "Cancel a workflow run",
                {**OWNER_REPO_PROPERTIES, **run_id_property},
                required=["owner", "repo", "run_id"],
            ),
            cancel_workflow_run,
        ),
    )
