"""Repository models: branches, commits, tags and files."""

from __future__ import annotations

from ..flextime import ZERO_TIME, FlexTime
from .base import ForgeModel
from .common import User


class Ident(ForgeModel):
    name: str = ""
    email_address: str = ""
    when: FlexTime = ZERO_TIME


class Commit(ForgeModel):
    hash: str = ""
    short_hash: str = ""
    message: str = ""
    short_message: str = ""
    author: User | None = None
    author_name: str = ""
    author_email: str = ""
    committer_name: str = ""
    committer_email: str = ""
    created_at: FlexTime = ZERO_TIME
    parent_hashes: list[str] = []

    @property
    def short_sha(self) -> str:
        return self.short_hash or self.hash[:7]

    @property
    def title(self) -> str:
        return (self.short_message or self.message).split("\n", 1)[0]


class CommitDiff(ForgeModel):
    file_path: str = ""
    old_path: str = ""
    change_type: str = ""
    additions: int = 0
    deletions: int = 0
    diff_content: str = ""


class Branch(ForgeModel):
    name: str = ""
    full_name: str = ""
    hash: str = ""
    default: bool = False
    protected: bool = False
    merged: bool = False
    work: bool = False
    last_commit: Commit | None = None


class Tag(ForgeModel):
    name: str = ""
    full_name: str = ""
    object_id: str = ""
    commit_id: str = ""
    short_message: str = ""
    full_message: str = ""
    light_weight: bool = False
    person_ident: Ident | None = None
    created_at: FlexTime = ZERO_TIME


class FileEntry(ForgeModel):
    file_path: str = ""
    extension: str = ""
    size: int = 0
    lfs_oid: str | None = None
    locked_by: str | None = None

    @property
    def name(self) -> str:
        return self.file_path.rstrip("/").rsplit("/", 1)[-1]

    @property
    def is_dir(self) -> bool:
        return self.file_path.endswith("/")
