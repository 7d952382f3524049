"""Issue models."""

from __future__ import annotations

from pydantic import Field

from ..flextime import ZERO_TIME, FlexTime
from .base import ForgeModel
from .common import ISSUE_STATES, Status, User, normalize_status


class Issue(ForgeModel):
    id: str = ""
    local_id: int = 0
    title: str = ""
    description: str = ""
    status: Status = Field(default_factory=Status)
    # The Forge reports the author of an issue as its last updater.
    author: User = Field(default_factory=User, alias="updatedBy")
    created_at: FlexTime = ZERO_TIME
    updated_at: FlexTime = ZERO_TIME

    @property
    def state(self) -> str:
        return normalize_status(self.status.id, ISSUE_STATES)


class IssueComment(ForgeModel):
    id: str = ""
    note: str = ""
    author: User = Field(default_factory=User, alias="createdBy")
    created_at: FlexTime = ZERO_TIME
    updated_at: FlexTime = ZERO_TIME
