"""Git tools: low-level access to repository trees."""

from .. import forge_client
from ..toolsets import ServerTool, Toolset
from .helpers import OWNER_REPO_PROPERTIES, json_result, optional_param, owner_repo, read_tool

TOOLSET = "git"
DESCRIPTION = "GitHub Git API related tools for low-level Git operations"


async def get_repository_tree(arguments: dict):
    owner, repo = owner_repo(arguments)
    tree_sha = optional_param(arguments, "tree_sha")
    recursive = optional_param(arguments, "recursive", bool, False)
    path_filter = optional_param(arguments, "path_filter")

    if not tree_sha:
        tree_sha = await forge_client.get_default_branch(owner, repo)

    tree = await forge_client.get_json(
        f"/repos/{owner}/{repo}/git/trees/{tree_sha}", "get repository tree",
        params={"recursive": "1" if recursive else None},
    )

    entries = tree.get("tree", [])
    if path_filter:
        entries = [e for e in entries if e.get("path", "").startswith(path_filter)]

    tree_entries = []
    for entry in entries:
        item = {
            "path": entry.get("path"),
            "type": entry.get("type"),
            "mode": entry.get("mode"),
            "sha": entry.get("sha"),
            "url": entry.get("url"),
        }
        if entry.get("size") is not None:
            item["size"] = entry["size"]
        tree_entries.append(item)

    return json_result({
        "sha": tree.get("sha"),
        "truncated": tree.get("truncated", False),
        "tree": tree_entries,
        "tree_sha": tree_sha,
        "owner": owner,
        "repo": repo,
        "recursive": recursive,
        "count": len(tree_entries),
    })


def register() -> Toolset:
    return Toolset(TOOLSET, DESCRIPTION).add_read_tools(
        ServerTool(
            read_tool(
                "get_repository_tree",
                "Get repository tree",
                "Get the tree structure (files and directories) of a GitHub repository at a specific ref or SHA",
                {
                    **OWNER_REPO_PROPERTIES,
                    "tree_sha": {"type": "string", "description": "The SHA1 value or ref (branch or tag) name of the tree. Defaults to the repository's default branch"},
                    "recursive": {"type": "boolean", "description": "Setting this parameter to true returns the objects or subtrees referenced by the tree. Default is false", "default": False},
                    "path_filter": {"type": "string", "description": "Optional path prefix to filter the tree results (e.g., 'src/' to only show files in the src directory)"},
                },
                required=["owner", "repo"],
            ),
            get_repository_tree,
        ),
    )
