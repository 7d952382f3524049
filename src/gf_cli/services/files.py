"""Repository file service."""

from __future__ import annotations

from typing import Any

from ..models.repositories import FileEntry
from ..transfer import Download, safe_filename
from ._helpers import Service, project_path


class FileService(Service):
    async def list(self, owner: str, project: str, ref: str, path: str = "") -> list[FileEntry]:
        """Immediate children of *path* at *ref*. The server returns a bare array."""
        params: dict[str, Any] = {"commitHash": ref}
        if path and path != "/":
            params["directory"] = path
        params["depth"] = 1
        data = await self._client.get(project_path(owner, project, "blob", "recursive"), params=params)
        return [FileEntry.from_api(f) for f in data or []]

    async def download(self, owner: str, project: str, ref: str, path: str) -> Download:
        download = await self._client.download(
            project_path(owner, project, "blob", "download"),
            params={"commitHash": ref, "file": path},
        )
        if not download.filename:
            download.filename = safe_filename(path)
        return download

    async def get(self, owner: str, project: str, ref: str, path: str) -> str:
        async with await self.download(owner, project, ref, path) as download:
            content = await download.aread()
        return content.decode("utf-8", errors="replace")
