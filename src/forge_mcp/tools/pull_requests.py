"""Pull request tools: read, list, diff, create and merge pull requests."""

from .. import forge_client
from ..config import DEFAULT_CONTENT_WINDOW_SIZE
from ..governor import WINDOW_HEAD, govern_text
from ..toolsets import ServerTool, Toolset
from .helpers import (
    OWNER_REPO_PROPERTIES,
    PAGINATION_PROPERTIES,
    ParameterError,
    json_result,
    login_of,
    optional_param,
    owner_repo,
    pagination_params,
    pick,
    read_tool,
    required_param,
    text_result,
    write_tool,
)

TOOLSET = "pull_requests"
DESCRIPTION = "GitHub Pull Request related tools"

MERGE_METHODS = ("merge", "squash", "rebase")


def _minimal_pull_request(pr: dict) -> dict:
    data = pick(pr, "number", "title", "body", "state", "draft", "merged", "mergeable",
                "html_url", "created_at", "updated_at", "closed_at", "merged_at",
                "comments", "commits", "additions", "deletions", "changed_files")
    data["user"] = login_of(pr.get("user"))
    data["head"] = (pr.get("head") or {}).get("ref")
    data["base"] = (pr.get("base") or {}).get("ref")
    return data


def _pull_number(arguments: dict) -> int:
    return required_param(arguments, "pullNumber", int)


async def get_pull_request(arguments: dict):
    owner, repo = owner_repo(arguments)
    number = _pull_number(arguments)
    pr = await forge_client.get_json(f"/repos/{owner}/{repo}/pulls/{number}", "get pull request")
    return json_result(_minimal_pull_request(pr))


async def list_pull_requests(arguments: dict):
    owner, repo = owner_repo(arguments)
    page, per_page = pagination_params(arguments)
    prs = await forge_client.get_json(
        f"/repos/{owner}/{repo}/pulls", "list pull requests",
        params={
            "state": optional_param(arguments, "state"),
            "head": optional_param(arguments, "head"),
            "base": optional_param(arguments, "base"),
            "sort": optional_param(arguments, "sort"),
            "direction": optional_param(arguments, "direction"),
            "page": page,
            "per_page": per_page,
        },
    )
    return json_result([_minimal_pull_request(pr) for pr in prs])


async def get_pull_request_files(arguments: dict):
    owner, repo = owner_repo(arguments)
    number = _pull_number(arguments)
    page, per_page = pagination_params(arguments)
    files = await forge_client.get_json(
        f"/repos/{owner}/{repo}/pulls/{number}/files", "get pull request files",
        params={"page": page, "per_page": per_page},
    )
    return json_result([
        pick(f, "filename", "status", "additions", "deletions", "changes", "previous_filename")
        for f in files
    ])


async def create_pull_request(arguments: dict):
    owner, repo = owner_repo(arguments)
    body = {
        "title": required_param(arguments, "title"),
        "head": required_param(arguments, "head"),
        "base": required_param(arguments, "base"),
        "draft": optional_param(arguments, "draft", bool, False),
        "maintainer_can_modify": optional_param(arguments, "maintainer_can_modify", bool, True),
    }
    text = optional_param(arguments, "body")
    if text:
        body["body"] = text
    pr = await forge_client.post_json(f"/repos/{owner}/{repo}/pulls", "create pull request", json=body)
    return json_result({"number": pr.get("number"), "url": pr.get("html_url")})


async def merge_pull_request(arguments: dict):
    owner, repo = owner_repo(arguments)
    number = _pull_number(arguments)
    method = optional_param(arguments, "merge_method", str, "merge")
    if method not in MERGE_METHODS:
        raise ParameterError(f"invalid merge_method: {method}. Must be merge, squash or rebase")
    body = {"merge_method": method}
    for key in ("commit_title", "commit_message"):
        value = optional_param(arguments, key)
        if value:
            body[key] = value
    result = await forge_client.put_json(
        f"/repos/{owner}/{repo}/pulls/{number}/merge", "merge pull request", json=body,
    )
    return json_result(pick(result or {}, "sha", "merged", "message"))


_PULL_NUMBER = {"pullNumber": {"type": "number", "description": "Pull request number"}}


def register(content_window_size: int = DEFAULT_CONTENT_WINDOW_SIZE) -> Toolset:
    """Register pull request tools. Diffs are limited to ``content_window_size`` lines."""

    async def get_pull_request_diff(arguments: dict):
        owner, repo = owner_repo(arguments)
        number = _pull_number(arguments)
        diff = await forge_client.get_text(
            f"/repos/{owner}/{repo}/pulls/{number}", "get pull request diff",
            accept="application/vnd.github.v3.diff",
        )
        governed = govern_text(
            diff, content_window_size, window=WINDOW_HEAD,
            hint="Use get_pull_request_files to list changed files and get_commit for per-commit diffs.",
        )
        return text_result(governed.text())

    return Toolset(TOOLSET, DESCRIPTION).add_read_tools(
        ServerTool(
            read_tool(
                "get_pull_request",
                "Get pull request details",
                "Get details of a specific pull request in a GitHub repository.",
                {**OWNER_REPO_PROPERTIES, **_PULL_NUMBER},
                required=["owner", "repo", "pullNumber"],
            ),
            get_pull_request,
        ),
        ServerTool(
            read_tool(
                "list_pull_requests",
                "List pull requests",
                "List pull requests in a GitHub repository. For pagination, use the 'page' and 'perPage' parameters.",
                {
                    **OWNER_REPO_PROPERTIES,
                    "state": {"type": "string", "description": "Filter by state", "enum": ["open", "closed", "all"]},
                    "head": {"type": "string", "description": "Filter by head user/org and branch"},
                    "base": {"type": "string", "description": "Filter by base branch"},
                    "sort": {"type": "string", "description": "Sort by", "enum": ["created", "updated", "popularity", "long-running"]},
                    "direction": {"type": "string", "description": "Sort direction", "enum": ["asc", "desc"]},
                    **PAGINATION_PROPERTIES,
                },
                required=["owner", "repo"],
            ),
            list_pull_requests,
        ),
        ServerTool(
            read_tool(
                "get_pull_request_files",
                "Get pull request files",
                "Get the files changed in a specific pull request.",
                {**OWNER_REPO_PROPERTIES, **_PULL_NUMBER, **PAGINATION_PROPERTIES},
                required=["owner", "repo", "pullNumber"],
            ),
            get_pull_request_files,
        ),
        ServerTool(
            read_tool(
                "get_pull_request_diff",
                "Get pull request diff",
                "Get the diff of a pull request. Very large diffs are truncated to their first lines.",
                {**OWNER_REPO_PROPERTIES, **_PULL_NUMBER},
                required=["owner", "repo", "pullNumber"],
            ),
            get_pull_request_diff,
        ),
    ).add_write_tools(
        ServerTool(
            write_tool(
                "create_pull_request",
                "Open new pull request",
                "Create a new pull request in a GitHub repository.",
                {
                    **OWNER_REPO_PROPERTIES,
                    "title": {"type": "string", "description": "PR title"},
                    "body": {"type": "string", "description": "PR description"},
                    "head": {"type": "string", "description": "Branch containing changes"},
                    "base": {"type": "string", "description": "Branch to merge into"},
                    "draft": {"type": "boolean", "description": "Create as draft PR"},
                    "maintainer_can_modify": {"type": "boolean", "description": "Allow maintainer edits"},
                },
                required=["owner", "repo", "title", "head", "base"],
            ),
            create_pull_request,
        ),
        ServerTool(
            write_tool(
                "merge_pull_request",
                "Merge pull request",
                "Merge a pull request in a GitHub repository.",
                {
                    **OWNER_REPO_PROPERTIES,
                    **_PULL_NUMBER,
                    "commit_title": {"type": "string", "description": "Title for merge commit"},
                    "commit_message": {"type": "string", "description": "Extra detail for merge commit"},
                    "merge_method": {"type": "string", "description": "Merge method", "enum": list(MERGE_METHODS)},
                },
                required=["owner", "repo", "pullNumber"],
            ),
            merge_pull_request,
        ),
    )
