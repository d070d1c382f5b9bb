"""Issue tools: read, search, comment, create and update issues."""

from .. import forge_client
from ..toolsets import ServerTool, Toolset
from .helpers import (
    OWNER_REPO_PROPERTIES,
    PAGINATION_PROPERTIES,
    ParameterError,
    json_result,
    login_of,
    optional_param,
    optional_string_list,
    owner_repo,
    pagination_params,
    pick,
    read_tool,
    required_param,
    write_tool,
)

TOOLSET = "issues"
DESCRIPTION = "GitHub Issues related tools"

ISSUE_STATES = ("open", "closed")
STATE_REASONS = ("completed", "not_planned", "duplicate")


def _minimal_issue(issue: dict) -> dict:
    data = pick(issue, "number", "title", "body", "state", "state_reason", "html_url",
                "comments", "created_at", "updated_at", "closed_at")
    data["user"] = login_of(issue.get("user"))
    data["labels"] = [label.get("name") for label in issue.get("labels") or [] if isinstance(label, dict)]
    data["assignees"] = [login_of(a) for a in issue.get("assignees") or []]
    if issue.get("pull_request"):
        data["is_pull_request"] = True
    return data


def _minimal_comment(comment: dict) -> dict:
    data = pick(comment, "id", "body", "html_url", "created_at", "updated_at")
    data["user"] = login_of(comment.get("user"))
    return data


def _issue_number(arguments: dict) -> int:
    return required_param(arguments, "issue_number", int)


async def get_issue(arguments: dict):
    owner, repo = owner_repo(arguments)
    number = _issue_number(arguments)
    issue = await forge_client.get_json(f"/repos/{owner}/{repo}/issues/{number}", "get issue")
    return json_result(_minimal_issue(issue))


async def list_issues(arguments: dict):
    owner, repo = owner_repo(arguments)
    state = optional_param(arguments, "state", str, "open")
    if state not in ISSUE_STATES + ("all",):
        raise ParameterError(f"invalid state: {state}. Must be open, closed or all")
    labels = optional_string_list(arguments, "labels")
    page, per_page = pagination_params(arguments)
    issues = await forge_client.get_json(
        f"/repos/{owner}/{repo}/issues", "list issues",
        params={
            "state": state,
            "labels": ",".join(labels) if labels else None,
            "sort": optional_param(arguments, "sort"),
            "direction": optional_param(arguments, "direction"),
            "since": optional_param(arguments, "since"),
            "page": page,
            "per_page": per_page,
        },
    )
    return json_result([_minimal_issue(i) for i in issues])


async def search_issues(arguments: dict):
    query = required_param(arguments, "query")
    if "is:issue" not in query:
        query = f"is:issue {query}"
    owner = optional_param(arguments, "owner")
    repo = optional_param(arguments, "repo")
    if owner and repo:
        query = f"repo:{owner}/{repo} {query}"
    page, per_page = pagination_params(arguments)
    data = await forge_client.get_json(
        "/search/issues", "search issues",
        params={
            "q": query,
            "sort": optional_param(arguments, "sort"),
            "order": optional_param(arguments, "order"),
            "page": page,
            "per_page": per_page,
        },
    )
    return json_result({
        "total_count": data.get("total_count", 0),
        "incomplete_results": data.get("incomplete_results", False),
        "items": [_minimal_issue(i) for i in data.get("items", [])],
    })


async def get_issue_comments(arguments: dict):
    owner, repo = owner_repo(arguments)
    number = _issue_number(arguments)
    page, per_page = pagination_params(arguments)
    comments = await forge_client.get_json(
        f"/repos/{owner}/{repo}/issues/{number}/comments", "get issue comments",
        params={"page": page, "per_page": per_page},
    )
    return json_result([_minimal_comment(c) for c in comments])


async def create_issue(arguments: dict):
    owner, repo = owner_repo(arguments)
    body = {"title": required_param(arguments, "title")}
    text = optional_param(arguments, "body")
    if text:
        body["body"] = text
    for key in ("assignees", "labels"):
        values = optional_string_list(arguments, key)
        if values:
            body[key] = values
    milestone = optional_param(arguments, "milestone", int)
    if milestone:
        body["milestone"] = milestone
    issue = await forge_client.post_json(f"/repos/{owner}/{repo}/issues", "create issue", json=body)
    return json_result({"number": issue.get("number"), "url": issue.get("html_url")})


async def add_issue_comment(arguments: dict):
    owner, repo = owner_repo(arguments)
    number = _issue_number(arguments)
    text = required_param(arguments, "body")
    comment = await forge_client.post_json(
        f"/repos/{owner}/{repo}/issues/{number}/comments", "add issue comment", json={"body": text},
    )
    return json_result(_minimal_comment(comment))


async def update_issue(arguments: dict):
    owner, repo = owner_repo(arguments)
    number = _issue_number(arguments)
    body = {}
    for key in ("title", "body"):
        value = optional_param(arguments, key)
        if value is not None:
            body[key] = value
    state = optional_param(arguments, "state")
    if state is not None:
        if state not in ISSUE_STATES:
            raise ParameterError(f"invalid state: {state}. Must be open or closed")
        body["state"] = state
    state_reason = optional_param(arguments, "state_reason")
    if state_reason is not None:
        if state_reason not in STATE_REASONS:
            raise ParameterError(f"invalid state_reason: {state_reason}")
        if state != "closed":
            raise ParameterError("state_reason can only be set when closing an issue (state=closed)")
        body["state_reason"] = state_reason
    for key in ("assignees", "labels"):
        values = optional_string_list(arguments, key)
        if values is not None:
            body[key] = values
    if not body:
        raise ParameterError(f"no updates provided for issue {number}")
    issue = await forge_client.patch_json(f"/repos/{owner}/{repo}/issues/{number}", "update issue", json=body)
    return json_result({"number": issue.get("number"), "url": issue.get("html_url"), "state": issue.get("state")})


_ISSUE_NUMBER = {"issue_number": {"type": "number", "description": "The number of the issue"}}
_STRING_ARRAY = {"type": "array", "items": {"type": "string"}}


def register() -> Toolset:
    return Toolset(TOOLSET, DESCRIPTION).add_read_tools(
        ServerTool(
            read_tool(
                "get_issue",
                "Get issue details",
                "Get details of a specific issue in a GitHub repository.",
                {**OWNER_REPO_PROPERTIES, **_ISSUE_NUMBER},
                required=["owner", "repo", "issue_number"],
            ),
            get_issue,
        ),
        ServerTool(
            read_tool(
                "list_issues",
                "List issues",
                "List issues in a GitHub repository. For pagination, use the 'page' and 'perPage' parameters.",
                {
                    **OWNER_REPO_PROPERTIES,
                    "state": {"type": "string", "description": "Filter by state", "enum": ["open", "closed", "all"]},
                    "labels": {**_STRING_ARRAY, "description": "Filter by labels"},
                    "sort": {"type": "string", "description": "Sort order", "enum": ["created", "updated", "comments"]},
                    "direction": {"type": "string", "description": "Sort direction", "enum": ["asc", "desc"]},
                    "since": {"type": "string", "description": "Filter by date (ISO 8601 timestamp)"},
                    **PAGINATION_PROPERTIES,
                },
                required=["owner", "repo"],
            ),
            list_issues,
        ),
        ServerTool(
            read_tool(
                "search_issues",
                "Search issues",
                "Search for issues in GitHub repositories using issues search syntax already scoped to is:issue",
                {
                    "query": {"type": "string", "description": "Search query using GitHub issues search syntax"},
                    "owner": {"type": "string", "description": "Optional repository owner. If provided with repo, only issues for this repository are listed."},
                    "repo": {"type": "string", "description": "Optional repository name. If provided with owner, only issues for this repository are listed."},
                    "sort": {"type": "string", "description": "Sort field by number of matches of categories, defaults to best match"},
                    "order": {"type": "string", "description": "Sort order", "enum": ["asc", "desc"]},
                    **PAGINATION_PROPERTIES,
                },
                required=["query"],
            ),
            search_issues,
        ),
        ServerTool(
            read_tool(
                "get_issue_comments",
                "Get issue comments",
                "Get comments for a specific issue in a GitHub repository.",
                {**OWNER_REPO_PROPERTIES, **_ISSUE_NUMBER, **PAGINATION_PROPERTIES},
                required=["owner", "repo", "issue_number"],
            ),
            get_issue_comments,
        ),
    ).add_write_tools(
        ServerTool(
            write_tool(
                "create_issue",
                "Open new issue",
                "Create a new issue in a GitHub repository.",
                {
                    **OWNER_REPO_PROPERTIES,
                    "title": {"type": "string", "description": "Issue title"},
                    "body": {"type": "string", "description": "Issue body content"},
                    "assignees": {**_STRING_ARRAY, "description": "Usernames to assign to this issue"},
                    "labels": {**_STRING_ARRAY, "description": "Labels to apply to this issue"},
                    "milestone": {"type": "number", "description": "Milestone number"},
                },
                required=["owner", "repo", "title"],
            ),
            create_issue,
        ),
        ServerTool(
            write_tool(
                "add_issue_comment",
                "Add comment to issue",
                "Add a comment to a specific issue in a GitHub repository. Use this tool to add comments "
                "to pull requests as well (in this case pass pull request number as issue_number).",
                {**OWNER_REPO_PROPERTIES, **_ISSUE_NUMBER, "body": {"type": "string", "description": "Comment content"}},
                required=["owner", "repo", "issue_number", "body"],
            ),
            add_issue_comment,
        ),
        ServerTool(
            write_tool(
                "update_issue",
                "Edit issue",
                "Update an existing issue in a GitHub repository.",
                {
                    **OWNER_REPO_PROPERTIES,
                    **_ISSUE_NUMBER,
                    "title": {"type": "string", "description": "New title"},
                    "body": {"type": "string", "description": "New description"},
                    "state": {"type": "string", "description": "New state", "enum": list(ISSUE_STATES)},
                    "state_reason": {"type": "string", "description": "Reason for the state change. Ignored unless state is changed.", "enum": list(STATE_REASONS)},
                    "assignees": {**_STRING_ARRAY, "description": "New assignees"},
                    "labels": {**_STRING_ARRAY, "description": "New labels"},
                },
                required=["owner", "repo", "issue_number"],
            ),
            update_issue,
        ),
    )
