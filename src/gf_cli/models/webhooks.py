"""Webhook models and event-group translation."""

from __future__ import annotations

from pydantic import ConfigDict, Field

from ..flextime import ZERO_TIME, FlexTime
from .base import ForgeModel


class WebhookEvents(ForgeModel):
    """Server-side event flags. Each field serializes as its uppercase name."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=str.upper)

    push: bool = False
    merge_request_create: bool = False
    merge_request_update: bool = False
    merge: bool = False
    issue_create: bool = False
    issue_update: bool = False
    new_issue_note: bool = False
    release_create: bool = False
    release_update: bool = False
    release_delete: bool = False
    pipeline_new: bool = False
    pipeline_success: bool = False
    pipeline_fail: bool = False
    tag_create: bool = False
    tag_delete: bool = False
    branch_create: bool = False
    branch_update: bool = False
    branch_delete: bool = False
    collaborator_add: bool = False
    collaborator_delete: bool = False
    discussion_create: bool = False

    def to_payload(self) -> dict[str, bool]:
        return self.model_dump(by_alias=True)

    def groups(self) -> list[str]:
        """Compact group names for every group with at least one flag set."""
        return [
            group
            for group, flags in EVENT_GROUPS.items()
            if any(getattr(self, flag) for flag in flags)
        ]


EVENT_GROUPS: dict[str, tuple[str, ...]] = {
    "push": ("push",),
    "merge_request": ("merge_request_create", "merge_request_update", "merge"),
    "issue": ("issue_create", "issue_update", "new_issue_note"),
    "release": ("release_create", "release_update", "release_delete"),
    "pipeline": ("pipeline_new", "pipeline_success", "pipeline_fail"),
    "tag": ("tag_create", "tag_delete"),
    "branch": ("branch_create", "branch_update", "branch_delete"),
    "collaborator": ("collaborator_add", "collaborator_delete"),
    "discussion": ("discussion_create",),
}


def events_from_groups(groups: list[str]) -> WebhookEvents:
    """Expand group short names into the flag set. Unknown groups raise ValueError."""
    flags: dict[str, bool] = {}
    for raw in groups:
        group = raw.strip().lower()
        if group not in EVENT_GROUPS:
            valid = ", ".join(EVENT_GROUPS)
            msg = f"unknown webhook event {raw!r} (available: {valid})"
            raise ValueError(msg)
        for flag in EVENT_GROUPS[group]:
            flags[flag] = True
    return WebhookEvents(**flags)


class Webhook(ForgeModel):
    id: str = ""
    url: str = ""
    secret: str | None = Field(default=None, exclude=True)
    events: WebhookEvents = Field(default_factory=WebhookEvents)
    project_id: str = ""
    created_at: FlexTime = ZERO_TIME
    updated_at: FlexTime = ZERO_TIME
