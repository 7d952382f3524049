"""Merge request service."""

from __future__ import annotations

from typing import Any

from ..models.merge_requests import CreateMergeRequest, MergeRequest
from ._helpers import Service, project_path, unwrap

MR_LIST_KEY = "mergeRequestModelList"
MR_STATES = ("open", "merged", "closed", "all")

# Statuses the server can filter on; it has no OPEN filter.
_SERVER_FILTERS = {"merged": "MERGED", "closed": "CANCELED"}
_NOT_OPEN = frozenset({"MERGED", "CANCELED", "CLOSED"})


class MergeRequestService(Service):
    async def list(
        self,
        owner: str,
        project: str,
        state: str = "open",
        limit: int = 0,
    ) -> list[MergeRequest]:
        """List merge requests in *state* (``open``, ``merged``, ``closed`` or ``all``).

        ``open`` is filtered client-side from the unfiltered listing.
        """
        if state not in MR_STATES:
            msg = f"invalid state {state!r} (expected one of: {', '.join(MR_STATES)})"
            raise ValueError(msg)

        params: dict[str, Any] = {}
        if state in _SERVER_FILTERS:
            params["status"] = _SERVER_FILTERS[state]
        data = await self._client.get(
            project_path(owner, project, "merge-request", "list"),
            params=params or None,
        )
        mrs = [MergeRequest.from_api(m) for m in unwrap(data, MR_LIST_KEY)]

        if state == "open":
            mrs = [mr for mr in mrs if mr.raw_status.upper() not in _NOT_OPEN]
        if limit > 0:
            mrs = mrs[:limit]
        return mrs

    async def get(self, owner: str, project: str, local_id: int) -> MergeRequest:
        data = await self._client.get(project_path(owner, project, "merge-request", local_id))
        return MergeRequest.from_api(data or {})

    async def create(self, owner: str, project: str, request: CreateMergeRequest) -> MergeRequest:
        data = await self._client.post(
            project_path(owner, project, "merge-request"),
            json_data=request.to_payload(),
        )
        return MergeRequest.from_api(data or {})

    async def merge(
        self,
        owner: str,
        project: str,
        local_id: int,
        squash: bool = False,
        remove_source_branch: bool = False,
        message: str = "",
    ) -> None:
        body: dict[str, Any] = {}
        if squash:
            body["squashCommit"] = True
        if remove_source_branch:
            body["removeSourceBranch"] = True
        if message:
            body["mergeCommitMessage"] = message
        await self._client.post(
            project_path(owner, project, "merge-request", local_id, "merge"),
            json_data=body,
        )

    async def approve(self, owner: str, project: str, local_id: int) -> None:
        await self._client.post(project_path(owner, project, "merge-request", local_id, "approve"))

    async def close(self, owner: str, project: str, local_id: int) -> None:
        await self._client.post(project_path(owner, project, "merge-request", local_id, "close"))
