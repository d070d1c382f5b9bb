"""Server instructions generated from the set of enabled toolsets."""

from typing import Iterable

BASE_INSTRUCTIONS = (
    "The Forge MCP Server provides GitHub API tools. "
    "Tool selection guidance:\n"
    "1. Use 'list_*' tools for broad, simple retrieval and pagination of all items of a type "
    "(e.g., all issues, all branches) with basic filtering.\n"
    "2. Use 'search_*' tools for targeted queries with specific criteria, keywords, or complex filters.\n"
    "\n"
    "Context management: GitHub API responses can overflow context windows. "
    "Process large datasets in batches of 5-10 items, request small pages with 'perPage' "
    "before fetching more, and for summarization tasks fetch minimal data first, then drill "
    "down into specifics. Results that would be too large are truncated with a marker that "
    "explains how to request the rest."
)

CONTEXT_INSTRUCTIONS = (
    "Always call 'get_me' first to understand current user permissions and context."
)

TOOLSET_INSTRUCTIONS = {
    "actions": (
        "## Actions\n\n"
        "To investigate a failed run, call 'list_workflow_jobs' for the run, then 'get_job_logs' "
        "with 'failed_only' and 'return_content' set. Logs are tail-truncated; lower 'tail_lines' "
        "to keep only the end of each log."
    ),
    "issues": (
        "## Issues\n\n"
        "Use 'search_issues' before creating new issues to avoid duplicates. "
        "Always set 'state_reason' when closing issues."
    ),
    "notifications": (
        "## Notifications\n\n"
        "Filter by 'participating' for issues/PRs you're involved in. "
        "Use 'mark_all_notifications_read' with repository filters to avoid marking unrelated notifications."
    ),
    "pull_requests": (
        "## Pull Requests\n\n"
        "Use 'get_pull_request_files' to see which files changed before requesting the full diff. "
        "Large diffs are truncated to their first lines. Check for an existing pull request with "
        "'list_pull_requests' before creating one for a branch."
    ),
    "repos": (
        "## Repositories\n\n"
        "Use 'search_repositories' to locate a repository when the owner is unknown. "
        "'list_commits' and 'list_branches' are paginated; start with a small 'perPage'."
    ),
}

# Guidance that only makes sense when every listed toolset is enabled.
# Evaluated in declaration order.
COMBINATION_INSTRUCTIONS = (
    (
        ("issues", "pull_requests"),
        "Link pull requests to the issues they resolve by referencing the issue number "
        "(e.g. 'Fixes #123') in the pull request body.",
    ),
    (
        ("actions", "pull_requests"),
        "Before merging a pull request, check the latest workflow runs for its head branch "
        "with 'list_workflow_runs'.",
    ),
    (
        ("git", "repos"),
        "Use 'get_repository_tree' to explore a repository's layout instead of listing commits "
        "or branches repeatedly.",
    ),
)


def get_toolset_instructions(toolset: str) -> str:
    """Supplemental guidance for one toolset, or an empty string."""
    if toolset == "context":
        return CONTEXT_INSTRUCTIONS
    return TOOLSET_INSTRUCTIONS.get(toolset, "")


def generate_instructions(enabled_toolsets: Iterable[str], disabled: bool = False) -> str:
    """Build the server instructions for a set of enabled toolset ids.

    Order: base guidance, the context block, the other toolset blocks in
    alphabetical id order, then combination rules in declaration order.
    Blocks are separated by a blank line. Returns "" when ``disabled``.
    """
    if disabled:
        return ""

    enabled = set(enabled_toolsets)
    blocks = [BASE_INSTRUCTIONS]

    if "context" in enabled:
        blocks.append(CONTEXT_INSTRUCTIONS)

    for toolset in sorted(enabled - {"context"}):
        block = TOOLSET_INSTRUCTIONS.get(toolset)
        if block:
            blocks.append(block)

    for required, text in COMBINATION_INSTRUCTIONS:
        if all(t in enabled for t in required):
            blocks.append(text)

    return "\n\n".join(blocks)
