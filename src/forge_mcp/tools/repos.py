"""Repository tools: search, commits, branches, create, fork."""

from .. import forge_client
from ..toolsets import ServerTool, Toolset
from .helpers import (
    OWNER_REPO_PROPERTIES,
    PAGINATION_PROPERTIES,
    json_result,
    login_of,
    optional_param,
    owner_repo,
    pagination_params,
    pick,
    read_tool,
    required_param,
    write_tool,
)

TOOLSET = "repos"
DESCRIPTION = "GitHub Repository management"


def _minimal_repo(repo: dict) -> dict:
    data = pick(
        repo, "id", "name", "full_name", "description", "html_url", "language",
        "stargazers_count", "forks_count", "open_issues_count", "updated_at",
        "created_at", "default_branch", "private", "archived", "topics",
    )
    owner = login_of(repo.get("owner"))
    if owner:
        data["owner"] = owner
    return data


def _minimal_commit(commit: dict, include_diff: bool = False) -> dict:
    info = commit.get("commit") or {}
    author = info.get("author") or {}
    data = {
        "sha": commit.get("sha"),
        "html_url": commit.get("html_url"),
        "message": info.get("message"),
        "author": {
            "name": author.get("name"),
            "email": author.get("email"),
            "date": author.get("date"),
            "login": login_of(commit.get("author")),
        },
    }
    if include_diff:
        if commit.get("stats"):
            data["stats"] = commit["stats"]
        data["files"] = [
            pick(f, "filename", "status", "additions", "deletions", "changes", "patch")
            for f in commit.get("files") or []
        ]
    return data


def _minimal_branch(branch: dict) -> dict:
    return {
        "name": branch.get("name"),
        "sha": (branch.get("commit") or {}).get("sha"),
        "protected": branch.get("protected", False),
    }


async def search_repositories(arguments: dict):
    query = required_param(arguments, "query")
    page, per_page = pagination_params(arguments)
    data = await forge_client.get_json(
        "/search/repositories", "search repositories",
        params={"q": query, "page": page, "per_page": per_page},
    )
    return json_result({
        "total_count": data.get("total_count", 0),
        "incomplete_results": data.get("incomplete_results", False),
        "items": [_minimal_repo(r) for r in data.get("items", [])],
    })


async def list_commits(arguments: dict):
    owner, repo = owner_repo(arguments)
    page, per_page = pagination_params(arguments)
    commits = await forge_client.get_json(
        f"/repos/{owner}/{repo}/commits", "list commits",
        params={
            "sha": optional_param(arguments, "sha"),
            "author": optional_param(arguments, "author"),
            "page": page,
            "per_page": per_page,
        },
    )
    return json_result([_minimal_commit(c) for c in commits])


async def get_commit(arguments: dict):
    owner, repo = owner_repo(arguments)
    sha = required_param(arguments, "sha")
    include_diff = optional_param(arguments, "include_diff", bool, True)
    commit = await forge_client.get_json(f"/repos/{owner}/{repo}/commits/{sha}", "get commit")
    return json_result(_minimal_commit(commit, include_diff=include_diff))


async def list_branches(arguments: dict):
    owner, repo = owner_repo(arguments)
    page, per_page = pagination_params(arguments)
    branches = await forge_client.get_json(
        f"/repos/{owner}/{repo}/branches", "list branches",
        params={"page": page, "per_page": per_page},
    )
    return json_result([_minimal_branch(b) for b in branches])


async def create_branch(arguments: dict):
    owner, repo = owner_repo(arguments)
    branch = required_param(arguments, "branch")
    from_branch = optional_param(arguments, "from_branch")
    if not from_branch:
        from_branch = await forge_client.get_default_branch(owner, repo)
    ref = await forge_client.get_json(
        f"/repos/{owner}/{repo}/git/ref/heads/{from_branch}", "get reference",
    )
    created = await forge_client.post_json(
        f"/repos/{owner}/{repo}/git/refs", "create branch",
        json={"ref": f"refs/heads/{branch}", "sha": ref["object"]["sha"]},
    )
    return json_result({"ref": created.get("ref"), "sha": (created.get("object") or {}).get("sha")})


async def fork_repository(arguments: dict):
    owner, repo = owner_repo(arguments)
    organization = optional_param(arguments, "organization")
    body = {"organization": organization} if organization else {}
    fork = await forge_client.post_json(f"/repos/{owner}/{repo}/forks", "fork repository", json=body)
    return json_result({"url": fork.get("html_url"), "full_name": fork.get("full_name")})


async def create_repository(arguments: dict):
    name = required_param(arguments, "name")
    body = {
        "name": name,
        "description": optional_param(arguments, "description", str, ""),
        "private": optional_param(arguments, "private", bool, False),
        "auto_init": optional_param(arguments, "autoInit", bool, False),
    }
    organization = optional_param(arguments, "organization")
    path = f"/orgs/{organization}/repos" if organization else "/user/repos"
    created = await forge_client.post_json(path, "create repository", json=body)
    return json_result({"id": created.get("id"), "url": created.get("html_url")})


def register() -> Toolset:
    return Toolset(TOOLSET, DESCRIPTION).add_read_tools(
        ServerTool(
            read_tool(
                "search_repositories",
                "Search repositories",
                "Find GitHub repositories by name, description, readme, topics, or other metadata. "
                "Perfect for discovering projects, finding examples, or locating specific repositories across GitHub.",
                {
                    "query": {"type": "string", "description": "Repository search query. Examples: 'machine learning in:name stars:>1000 language:python', 'topic:react', 'user:facebook'."},
                    **PAGINATION_PROPERTIES,
                },
                required=["query"],
            ),
            search_repositories,
        ),
        ServerTool(
            read_tool(
                "list_commits",
                "List commits",
                "Get list of commits of a branch in a GitHub repository. Returns at least 30 results per page by default, "
                "but can return more if specified using the perPage parameter (up to 100).",
                {
                    **OWNER_REPO_PROPERTIES,
                    "sha": {"type": "string", "description": "Commit SHA, branch or tag name to list commits of. If not provided, uses the default branch of the repository."},
                    "author": {"type": "string", "description": "Author username or email address to filter commits by"},
                    **PAGINATION_PROPERTIES,
                },
                required=["owner", "repo"],
            ),
            list_commits,
        ),
        ServerTool(
            read_tool(
                "get_commit",
                "Get commit details",
                "Get details for a commit from a GitHub repository",
                {
                    **OWNER_REPO_PROPERTIES,
                    "sha": {"type": "string", "description": "Commit SHA, branch name, or tag name"},
                    "include_diff": {"type": "boolean", "description": "Whether to include file diffs and stats in the response. Default is true.", "default": True},
                },
                required=["owner", "repo", "sha"],
            ),
            get_commit,
        ),
        ServerTool(
            read_tool(
                "list_branches",
                "List branches",
                "List branches in a GitHub repository",
                {**OWNER_REPO_PROPERTIES, **PAGINATION_PROPERTIES},
                required=["owner", "repo"],
            ),
            list_branches,
        ),
    ).add_write_tools(
        ServerTool(
            write_tool(
                "create_branch",
                "Create branch",
                "Create a new branch in a GitHub repository",
                {
                    **OWNER_REPO_PROPERTIES,
                    "branch": {"type": "string", "description": "Name for new branch"},
                    "from_branch": {"type": "string", "description": "Source branch (defaults to repo default)"},
                },
                required=["owner", "repo", "branch"],
            ),
            create_branch,
        ),
        ServerTool(
            write_tool(
                "fork_repository",
                "Fork repository",
                "Fork a GitHub repository to your account or specified organization",
                {
                    **OWNER_REPO_PROPERTIES,
                    "organization": {"type": "string", "description": "Organization to fork to"},
                },
                required=["owner", "repo"],
            ),
            fork_repository,
        ),
        ServerTool(
            write_tool(
                "create_repository",
                "Create repository",
                "Create a new GitHub repository in your account or specified organization",
                {
                    "name": {"type": "string", "description": "Repository name"},
                    "description": {"type": "string", "description": "Repository description"},
                    "organization": {"type": "string", "description": "Organization to create the repository in (omit to create in your personal account)"},
                    "private": {"type": "boolean", "description": "Whether repo should be private"},
                    "autoInit": {"type": "boolean", "description": "Initialize with README"},
                },
                required=["name"],
            ),
            create_repository,
        ),
    )
