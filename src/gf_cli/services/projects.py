"""Project service."""

from __future__ import annotations

from ..models.projects import Project
from ._helpers import Service, project_path, unwrap


class ProjectService(Service):
    async def get(self, owner: str, project: str) -> Project:
        data = await self._client.get(project_path(owner, project))
        return Project.from_api(data or {})

    async def mine(self) -> list[Project]:
        """Projects of the authenticated user. The server answers with a bare array."""
        data = await self._client.get("/project/my")
        items = data if isinstance(data, list) else unwrap(data, "projectList")
        return [Project.from_api(p) for p in items]
