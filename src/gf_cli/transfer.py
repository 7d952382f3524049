"""Streamed downloads and local filename hygiene."""

from __future__ import annotations

from collections.abc import AsyncIterator
from email.message import Message
from pathlib import PurePosixPath

import httpx


def safe_filename(name: str) -> str:
    """Reduce a server- or user-supplied name to its basename.

    ``../../etc/passwd`` -> ``passwd``; names that reduce to nothing give ``""``.
    """
    name = name.replace("\\", "/")
    base = PurePosixPath(name).name
    if base in ("", ".", ".."):
        return ""
    return base


def filename_from_disposition(header: str | None) -> str:
    if not header:
        return ""
    msg = Message()
    msg["content-disposition"] = header
    value = msg.get_filename()
    return safe_filename(value) if value else ""


class Download:
    """A streamed response body plus the filename the server suggested."""

    def __init__(self, response: httpx.Response, filename: str) -> None:
        self.response = response
        self.filename = filename

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        async for chunk in self.response.aiter_bytes():
            yield chunk

    async def aread(self) -> bytes:
        return await self.response.aread()

    async def aclose(self) -> None:
        await self.response.aclose()

    async def __aenter__(self) -> Download:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()
