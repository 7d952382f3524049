"""Branch service."""

from __future__ import annotations

from ..models.repositories import Branch
from ._helpers import Service, project_path, unwrap

BRANCH_LIST_KEY = "branchList"


class BranchService(Service):
    async def list(self, owner: str, project: str) -> list[Branch]:
        data = await self._client.get(project_path(owner, project, "branch"))
        return [Branch.from_api(b) for b in unwrap(data, BRANCH_LIST_KEY)]

    async def get(self, owner: str, project: str, name: str) -> Branch:
        data = await self._client.get(project_path(owner, project, "branch"), params={"branchName": name})
        return Branch.from_api(data or {})

    async def default(self, owner: str, project: str) -> Branch:
        data = await self._client.get(project_path(owner, project, "branch", "default"))
        return Branch.from_api(data or {})

    async def create(self, owner: str, project: str, name: str, origin: str) -> Branch:
        data = await self._client.post(
            project_path(owner, project, "branch"),
            json_data={"newBranch": name, "originBranch": origin},
        )
        return Branch.from_api(data or {"name": name})

    async def delete(self, owner: str, project: str, name: str) -> None:
        await self._client.delete(project_path(owner, project, "branch"), params={"branchName": name})
