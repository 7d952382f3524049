"""Merge request models."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from ..flextime import ZERO_TIME, FlexTime
from .base import ForgeModel
from .common import MERGE_REQUEST_STATES, BranchRef, ProjectRef, Status, User, normalize_status


class MergeRequest(ForgeModel):
    id: str = ""
    local_id: int = 0
    title: str = ""
    description: str = ""
    source_branch: BranchRef = Field(default_factory=BranchRef)
    target_branch: BranchRef = Field(default_factory=BranchRef)
    status: Status = Field(default_factory=Status)
    author: User = Field(default_factory=User, alias="createdBy")
    created_at: FlexTime = ZERO_TIME
    updated_at: FlexTime = ZERO_TIME
    can_merge: bool = False
    has_conflicts: bool = False

    @property
    def raw_status(self) -> str:
        return self.status.id

    @property
    def state(self) -> str:
        """``open``, ``merged`` or ``closed``; unknown statuses pass through lowercased."""
        return normalize_status(self.status.id, MERGE_REQUEST_STATES)


class CreateMergeRequest(ForgeModel):
    title: str
    source_branch: str
    target_branch: str
    source_project: str
    target_project: str
    description: str = ""
    remove_source_branch: bool = False
    draft: bool = False
    squash_commit: bool = False

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "sourceBranch": {"id": self.source_branch},
            "targetBranch": {"id": self.target_branch},
            "sourceProject": ProjectRef(id=self.source_project).to_payload(),
            "targetProject": ProjectRef(id=self.target_project).to_payload(),
        }
        if self.remove_source_branch:
            payload["removeSourceBranch"] = True
        if self.draft:
            payload["workInProgress"] = True
        if self.squash_commit:
            payload["squashCommit"] = True
        return payload
