"""Issue service."""

from __future__ import annotations

import logging
from typing import Any

from ..models.issues import Issue, IssueComment
from ._helpers import Service, project_path, unwrap

logger = logging.getLogger(__name__)

ISSUE_LIST_KEY = "issueModelList"
COMMENT_LIST_KEY = "issueNoteModelList"
ISSUE_STATES = ("open", "closed", "all")


class IssueService(Service):
    async def list(
        self,
        owner: str,
        project: str,
        state: str = "open",
        page: int = 0,
        per_page: int = 100,
    ) -> list[Issue]:
        """List issues in *state*.

        The server filter is a best guess; when the first returned issue
        contradicts *state* the listing is filtered locally.
        """
        if state not in ISSUE_STATES:
            msg = f"invalid state {state!r} (expected one of: {', '.join(ISSUE_STATES)})"
            raise ValueError(msg)

        params: dict[str, Any] = {"page": page, "size": per_page}
        if state != "all":
            params["status"] = state.upper()
        data = await self._client.get(project_path(owner, project, "issue"), params=params)
        issues = [Issue.from_api(i) for i in unwrap(data, ISSUE_LIST_KEY)]

        if state != "all" and issues and issues[0].state != state:
            logger.debug("Server ignored status=%s filter; filtering locally", state.upper())
            issues = [i for i in issues if i.state == state]
        return issues

    async def get(self, owner: str, project: str, local_id: int) -> Issue:
        data = await self._client.get(project_path(owner, project, "issue", local_id))
        return Issue.from_api(data or {})

    async def create(
        self,
        owner: str,
        project: str,
        title: str,
        description: str = "",
        assigned_users: list[str] | None = None,
    ) -> Issue:
        body = {
            "title": title,
            "description": description,
            "assignedUsers": assigned_users or [],
        }
        data = await self._client.post(project_path(owner, project, "issue"), json_data=body)
        return Issue.from_api(data or {})

    async def update(
        self,
        owner: str,
        project: str,
        local_id: int,
        title: str | None = None,
        description: str | None = None,
    ) -> Issue:
        body: dict[str, Any] = {}
        if title:
            body["title"] = title
        if description:
            body["description"] = description
        data = await self._client.put(project_path(owner, project, "issue", local_id), json_data=body)
        return Issue.from_api(data or {})

    async def close(self, owner: str, project: str, local_id: int) -> None:
        await self._client.post(project_path(owner, project, "issue", local_id, "close"))

    async def reopen(self, owner: str, project: str, local_id: int) -> None:
        await self._client.post(project_path(owner, project, "issue", local_id, "reopen"))

    async def delete(self, owner: str, project: str, local_id: int) -> None:
        """Delete an issue. Servers that forbid it answer 405 (MethodNotAllowedError)."""
        await self._client.delete(project_path(owner, project, "issue", local_id))

    async def comments(self, owner: str, project: str, local_id: int) -> list[IssueComment]:
        data = await self._client.get(project_path(owner, project, "issue-discussion", local_id))
        return [IssueComment.from_api(c) for c in unwrap(data, COMMENT_LIST_KEY)]

    async def comment(self, owner: str, project: str, local_id: int, note: str) -> IssueComment:
        data = await self._client.post(
            project_path(owner, project, "issue-discussion", local_id, "create"),
            json_data={"note": note},
        )
        return IssueComment.from_api(data or {})
