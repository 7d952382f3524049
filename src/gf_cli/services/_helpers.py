"""Shared helpers for resource services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

if TYPE_CHECKING:
    from ..client import ForgeClient


def _seg(value: object) -> str:
    return quote(str(value), safe="")


def project_path(owner: str, project: str, *parts: object) -> str:
    """``/project/{owner}/{project}/...`` with every segment percent-encoded."""
    path = f"/project/{_seg(owner)}/{_seg(project)}"
    for part in parts:
        path += f"/{_seg(part)}"
    return path


def unwrap(data: Any, key: str) -> list[dict[str, Any]]:
    """Return the list under ``_embedded.<key>``; missing envelope means empty."""
    if not isinstance(data, dict):
        return []
    embedded = data.get("_embedded") or {}
    return list(embedded.get(key) or [])


def total_elements(data: Any) -> int:
    if not isinstance(data, dict):
        return 0
    page = data.get("page") or {}
    return int(page.get("totalElements") or 0)


def page_params(page: int | None = None, size: int | None = None) -> dict[str, int]:
    params: dict[str, int] = {}
    if page:
        params["page"] = page
    if size:
        params["size"] = size
    return params


class Service:
    """A resource façade holding only a back-reference to the client."""

    def __init__(self, client: ForgeClient) -> None:
        self._client = client
