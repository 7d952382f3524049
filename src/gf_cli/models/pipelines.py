"""Pipeline and job models."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from ..flextime import ZERO_TIME, FlexTime
from .base import ForgeModel
from .common import normalize_status


def _non_negative(value: Any) -> Any:
    if value is None:
        return 0
    if isinstance(value, int) and value < 0:
        return 0
    return value


class Pipeline(ForgeModel):
    id: str = ""
    local_id: int = 0
    status: str = ""
    ref: str = ""
    commit_id: str = ""
    source: str = ""
    created_at: FlexTime = ZERO_TIME
    started_at: FlexTime | None = None
    finished_at: FlexTime | None = None
    duration: int = 0

    @field_validator("duration", mode="before")
    @classmethod
    def _clamp_duration(cls, v: Any) -> Any:
        return _non_negative(v)

    @property
    def state(self) -> str:
        return normalize_status(self.status)

    @property
    def short_sha(self) -> str:
        return self.commit_id[:7]


class Job(ForgeModel):
    id: str = ""
    local_id: int = 0
    name: str = ""
    stage: str = Field(default="", alias="stageName")
    status: str = ""
    started_at: FlexTime | None = None
    finished_at: FlexTime | None = None
    duration: int = 0
    runner: str | None = None

    @field_validator("duration", mode="before")
    @classmethod
    def _clamp_duration(cls, v: Any) -> Any:
        return _non_negative(v)

    @property
    def state(self) -> str:
        return normalize_status(self.status)


class JobLog(ForgeModel):
    content: str = ""
