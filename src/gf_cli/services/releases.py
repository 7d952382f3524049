"""Release and release-asset service."""

from __future__ import annotations

from typing import IO, Any

from ..exceptions import NotFoundError
from ..models.releases import CreateRelease, Release, ReleaseAsset
from ..transfer import Download, safe_filename
from ._helpers import Service, page_params, project_path, total_elements, unwrap

RELEASE_LIST_KEY = "releaseTagModelList"
ASSET_LIST_KEY = "releaseAssetModelList"
UPLOAD_FIELD = "files"


class ReleaseService(Service):
    async def list(
        self,
        owner: str,
        project: str,
        page: int = 0,
        per_page: int = 0,
        with_total: bool = False,
    ) -> list[Release] | tuple[list[Release], int]:
        """List releases; with *with_total* also return the server's total count."""
        data = await self._client.get(
            project_path(owner, project, "release"),
            params=page_params(page, per_page) or None,
        )
        releases = [Release.from_api(r) for r in unwrap(data, RELEASE_LIST_KEY)]
        if with_total:
            return releases, total_elements(data)
        return releases

    async def get(self, owner: str, project: str, tag: str) -> Release:
        """Fetch a release by tag name through the filtered listing."""
        data = await self._client.get(project_path(owner, project, "release"), params={"tagName": tag})
        items = unwrap(data, RELEASE_LIST_KEY)
        if not items:
            raise NotFoundError(f"release {tag}")
        return Release.from_api(items[0])

    async def create(self, owner: str, project: str, request: CreateRelease) -> Release:
        body = {
            "title": request.title,
            "description": request.description,
            "tagName": request.tag_name,
        }
        if request.is_draft:
            body["isDraft"] = True
        if request.is_prerelease:
            body["isPrerelease"] = True
        data = await self._client.post(project_path(owner, project, "release"), json_data=body)
        return Release.from_api(data or {})

    async def update(
        self,
        owner: str,
        project: str,
        tag: str,
        title: str | None = None,
        description: str | None = None,
        prerelease: bool | None = None,
    ) -> Release:
        """Update a release.

        The server rejects partial PUTs, so the current release is fetched and
        the complete ``title``/``description``/``tagName``/``preRelease`` set
        is sent with the caller's values merged in.
        """
        existing = await self.get(owner, project, tag)
        body: dict[str, Any] = {
            "title": existing.title,
            "description": existing.description,
            "tagName": tag,
            "preRelease": existing.is_prerelease,
        }
        if title:
            body["title"] = title
        if description:
            body["description"] = description
        if prerelease is not None:
            body["preRelease"] = prerelease
        data = await self._client.put(project_path(owner, project, "release", existing.id), json_data=body)
        return Release.from_api(data or {})

    async def delete(self, owner: str, project: str, tag: str) -> None:
        existing = await self.get(owner, project, tag)
        await self._client.delete(project_path(owner, project, "release", existing.id))

    async def assets(self, owner: str, project: str, tag: str) -> list[ReleaseAsset]:
        data = await self._client.get(project_path(owner, project, "release", tag, "asset"))
        return [ReleaseAsset.from_api(a) for a in unwrap(data, ASSET_LIST_KEY)]

    async def upload(
        self,
        owner: str,
        project: str,
        tag: str,
        filename: str,
        data: IO[bytes] | bytes,
    ) -> ReleaseAsset:
        existing = await self.get(owner, project, tag)
        result = await self._client.upload(
            project_path(owner, project, "release", existing.id, "file"),
            UPLOAD_FIELD,
            filename,
            data,
        )
        if isinstance(result, list):
            result = result[0] if result else {}
        return ReleaseAsset.from_api(result or {"name": safe_filename(filename)})

    async def download_asset(self, owner: str, project: str, tag: str, name: str) -> Download:
        download = await self._client.download(
            project_path(owner, project, "release", tag, "asset", name, "download")
        )
        if not download.filename:
            download.filename = safe_filename(name)
        return download

    async def delete_asset(self, owner: str, project: str, tag: str, name: str) -> None:
        await self._client.delete(project_path(owner, project, "release", tag, "asset", name))
