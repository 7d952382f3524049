"""Commit service."""

from __future__ import annotations

from typing import Any

from ..models.repositories import Commit, CommitDiff
from ._helpers import Service, page_params, project_path, unwrap

COMMIT_LIST_KEY = "commitList"


class CommitService(Service):
    async def list(
        self,
        owner: str,
        project: str,
        ref: str = "",
        page: int = 0,
        per_page: int = 0,
    ) -> list[Commit]:
        params: dict[str, Any] = page_params(page, per_page)
        if ref:
            params["branch"] = ref
        data = await self._client.get(project_path(owner, project, "commits"), params=params or None)
        return [Commit.from_api(c) for c in unwrap(data, COMMIT_LIST_KEY)]

    async def get(self, owner: str, project: str, sha: str) -> Commit:
        data = await self._client.get(project_path(owner, project, "commit", sha))
        return Commit.from_api(data or {})

    async def diff(self, owner: str, project: str, sha: str) -> list[CommitDiff]:
        data = await self._client.get(project_path(owner, project, "commit", sha, "diff"))
        if not isinstance(data, dict):
            return []
        return [CommitDiff.from_api(d) for d in data.get("diffs") or []]
