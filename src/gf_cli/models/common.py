"""Common Forge models and status normalization."""

from __future__ import annotations

from .base import ForgeModel

MERGE_REQUEST_STATES = {
    "OPEN": "open",
    "OPENED": "open",
    "MERGED": "merged",
    "CANCELED": "closed",
    "CLOSED": "closed",
}

ISSUE_STATES = {
    "OPEN": "open",
    "OPENED": "open",
    "IN_PROGRESS": "open",
    "CLOSED": "closed",
    "RESOLVED": "closed",
    "DONE": "closed",
}

TERMINAL_STATUSES = frozenset({"success", "passed", "failed", "canceled"})


def normalize_status(raw: str, aliases: dict[str, str] | None = None) -> str:
    """Project a server status onto the lowercase client alphabet.

    Known aliases map through *aliases*; anything else is the server value,
    lowercased. ``normalize_status(normalize_status(s)) == normalize_status(s)``.
    """
    value = (raw or "").strip()
    if aliases:
        mapped = aliases.get(value.upper())
        if mapped is not None:
            return mapped
    return value.lower()


def is_terminal(status: str) -> bool:
    return normalize_status(status) in TERMINAL_STATUSES


class User(ForgeModel):
    id: str = ""
    username: str = ""
    email: str = ""
    name: str = ""
    surname: str = ""
    full_name: str = ""
    avatar: str = ""

    @property
    def display_name(self) -> str:
        if self.full_name:
            return self.full_name
        full = " ".join(p for p in (self.name, self.surname) if p)
        return full or self.username


class Status(ForgeModel):
    id: str = ""
    title: str = ""
    color: str = ""
    hex_color: str = ""


class BranchRef(ForgeModel):
    id: str = ""
    title: str = ""
    hash: str = ""
    is_deleted: bool = False


class Owner(ForgeModel):
    alias: str = ""
    type: str = ""


class ProjectRef(ForgeModel):
    """Write-side ``{"id": ...}`` reference to a project."""

    id: str = ""
