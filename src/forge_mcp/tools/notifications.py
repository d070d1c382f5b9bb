"""Notification tools: list notifications and mark them read."""

from datetime import datetime, timezone

from .. import forge_client
from ..toolsets import ServerTool, Toolset
from .helpers import (
    PAGINATION_PROPERTIES,
    ParameterError,
    json_result,
    optional_param,
    pagination_params,
    pick,
    read_tool,
    write_tool,
)

TOOLSET = "notifications"
DESCRIPTION = "GitHub Notifications related tools"

FILTERS = ("default", "include_read_notifications", "only_participating")


def _repo_path(owner, repo) -> str:
    if owner and repo:
        return f"/repos/{owner}/{repo}/notifications"
    if owner or repo:
        raise ParameterError("owner and repo must be given together")
    return "/notifications"


async def list_notifications(arguments: dict):
    owner = optional_param(arguments, "owner")
    repo = optional_param(arguments, "repo")
    notification_filter = optional_param(arguments, "filter", str, "default")
    if notification_filter not in FILTERS:
        raise ParameterError(f"invalid filter: {notification_filter}")
    page, per_page = pagination_params(arguments)
    notifications = await forge_client.get_json(
        _repo_path(owner, repo), "list notifications",
        params={
            "all": "true" if notification_filter == "include_read_notifications" else None,
            "participating": "true" if notification_filter == "only_participating" else None,
            "since": optional_param(arguments, "since"),
            "before": optional_param(arguments, "before"),
            "page": page,
            "per_page": per_page,
        },
    )
    payload = []
    for n in notifications:
        item = pick(n, "id", "reason", "unread", "updated_at")
        item["subject"] = pick(n.get("subject") or {}, "title", "type", "url")
        item["repository"] = (n.get("repository") or {}).get("full_name")
        payload.append(item)
    return json_result(payload)


async def mark_all_notifications_read(arguments: dict):
    owner = optional_param(arguments, "owner")
    repo = optional_param(arguments, "repo")
    last_read_at = optional_param(arguments, "lastReadAt")
    if not last_read_at:
        last_read_at = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    await forge_client.put_json(
        _repo_path(owner, repo), "mark notifications read", json={"last_read_at": last_read_at},
    )
    scope = f"{owner}/{repo}" if owner and repo else "all repositories"
    return json_result({"message": f"Notifications marked as read for {scope}", "last_read_at": last_read_at})


_SCOPE = {
    "owner": {"type": "string", "description": "Optional repository owner. If provided with repo, only notifications for this repository are listed."},
    "repo": {"type": "string", "description": "Optional repository name. If provided with owner, only notifications for this repository are listed."},
}


def register() -> Toolset:
    return Toolset(TOOLSET, DESCRIPTION).add_read_tools(
        ServerTool(
            read_tool(
                "list_notifications",
                "List notifications",
                "Lists all GitHub notifications for the authenticated user, including unread notifications, "
                "mentions, review requests, assignments, and updates on issues or pull requests.",
                {
                    "filter": {"type": "string", "description": "Filter notifications to, use default unless specified. "
                               "Read notifications are ones that have already been acknowledged by the user. "
                               "Participating notifications are those that the user is directly involved in.",
                               "enum": list(FILTERS)},
                    "since": {"type": "string", "description": "Only show notifications updated after the given time (ISO 8601 format)"},
                    "before": {"type": "string", "description": "Only show notifications updated before the given time (ISO 8601 format)"},
                    **_SCOPE,
                    **PAGINATION_PROPERTIES,
                },
            ),
            list_notifications,
        ),
    ).add_write_tools(
        ServerTool(
            write_tool(
                "mark_all_notifications_read",
                "Mark all notifications as read",
                "Mark all notifications as read",
                {
                    "lastReadAt": {"type": "string", "description": "Describes the last point that notifications were checked (optional). Default: Now"},
                    **_SCOPE,
                },
            ),
            mark_all_notifications_read,
        ),
    )
