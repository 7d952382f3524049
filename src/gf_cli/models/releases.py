"""Release models."""

from __future__ import annotations

from pydantic import Field

from ..flextime import ZERO_TIME, FlexTime
from .base import ForgeModel
from .common import User


class Release(ForgeModel):
    id: str = ""
    title: str = ""
    description: str = ""
    tag_name: str = ""
    commit_id: str = ""
    is_draft: bool = False
    is_prerelease: bool = Field(default=False, alias="preRelease")
    created_at: FlexTime = ZERO_TIME
    updated_at: FlexTime = ZERO_TIME
    published_at: FlexTime = ZERO_TIME
    author: User = Field(default_factory=User, alias="createdBy")


class CreateRelease(ForgeModel):
    title: str
    tag_name: str
    description: str = ""
    is_draft: bool = False
    is_prerelease: bool = False


class ReleaseAsset(ForgeModel):
    id: str = ""
    name: str = ""
    size: int = 0
    content_type: str = ""
    download_url: str = ""
    created_at: FlexTime = ZERO_TIME
