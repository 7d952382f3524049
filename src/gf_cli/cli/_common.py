"""Shared CLI plumbing: application context, options and the async bridge."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import click

from ..auth import retry_with_reauth
from ..client import ForgeClient
from ..config import ConfigFile, ForgeConfig
from ..exceptions import NoTokenError
from ..git import Repository, resolve_repo

T = TypeVar("T")


class AppContext:
    """Per-invocation state carried on the click context."""

    def __init__(self, hostname: str | None = None, config_path: Path | None = None) -> None:
        self._hostname = hostname
        self.config_path = config_path

    def load_config(self) -> ConfigFile:
        return ConfigFile.load(self.config_path)

    @property
    def hostname(self) -> str:
        if self._hostname:
            return self._hostname
        return ForgeConfig.from_env(path=self.config_path).host

    def forge_config(self, hostname: str | None = None, require_token: bool = True) -> ForgeConfig:
        cfg = ForgeConfig.from_env(hostname or self._hostname, path=self.config_path)
        if require_token and not cfg.token:
            raise NoTokenError(cfg.host)
        return cfg

    def repo(self, repo_flag: str | None) -> Repository:
        return resolve_repo(repo_flag, self.hostname)

    def run(
        self,
        fn: Callable[[ForgeClient], Awaitable[T]],
        hostname: str | None = None,
        require_token: bool = True,
    ) -> T:
        """Run *fn* against a fresh client, offering re-authentication once."""
        host = hostname or self.hostname

        async def attempt() -> T:
            async with ForgeClient(self.forge_config(host, require_token)) as client:
                return await fn(client)

        return asyncio.run(retry_with_reauth(host, attempt, self.config_path))


pass_app = click.make_pass_decorator(AppContext, ensure=True)

repo_option = click.option(
    "-R",
    "--repo",
    "repo_flag",
    default=None,
    help="Repository as owner/name or host/owner/name.",
)

json_option = click.option("--json", "as_json", is_flag=True, help="Output JSON.")


def parse_number(value: str, what: str = "ID") -> int:
    """Accept ``42`` or ``#42``."""
    try:
        return int(value.removeprefix("#"))
    except ValueError:
        msg = f"invalid {what}: {value}"
        raise click.BadParameter(msg) from None


def web_url(repo: Repository, *parts: object) -> str:
    url = f"https://{repo.host}/project/{repo.owner}/{repo.name}"
    for part in parts:
        url += f"/{part}"
    return url
