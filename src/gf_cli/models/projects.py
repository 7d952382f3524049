"""Project models."""

from __future__ import annotations

from pydantic import Field

from .base import ForgeModel
from .common import Owner


class Project(ForgeModel):
    id: str = ""
    alias: str = ""
    title: str = ""
    description: str = ""
    private: bool = False
    language: str = ""
    owner: Owner = Field(default_factory=Owner)
    default_branch: str = ""
    http_transport_url: str = ""
    ssh_transport_url: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.owner.alias}/{self.alias}"
