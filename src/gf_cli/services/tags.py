"""Tag service."""

from __future__ import annotations

from typing import Any

from ..models.repositories import Tag
from ._helpers import Service, project_path, unwrap

TAG_LIST_KEY = "tagList"


class TagService(Service):
    async def list(self, owner: str, project: str) -> list[Tag]:
        data = await self._client.get(project_path(owner, project, "tag"))
        return [Tag.from_api(t) for t in unwrap(data, TAG_LIST_KEY)]

    async def get(self, owner: str, project: str, name: str) -> Tag:
        data = await self._client.get(project_path(owner, project, "tag", name))
        return Tag.from_api(data or {})

    async def create(
        self,
        owner: str,
        project: str,
        name: str,
        branch: str = "",
        commit: str = "",
        message: str = "",
    ) -> Tag:
        """Create *name* on a branch head or a specific commit (exactly one of them)."""
        if bool(branch) == bool(commit):
            msg = "exactly one of branch or commit is required"
            raise ValueError(msg)
        body: dict[str, Any] = {"tagName": name}
        if branch:
            body["branchName"] = branch
        if commit:
            body["commitId"] = commit
        if message:
            body["message"] = message
        data = await self._client.post(project_path(owner, project, "tag", "create"), json_data=body)
        return Tag.from_api(data or {"name": name})

    async def delete(self, owner: str, project: str, name: str) -> None:
        await self._client.delete(project_path(owner, project, "tag", name))
