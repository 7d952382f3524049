"""Inline re-authentication after a rejected token."""

from __future__ import annotations

import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import click

from .client import ForgeClient
from .config import ConfigFile, ForgeConfig, HostEntry
from .exceptions import ForgeError, TokenInvalidError
from .models.common import User

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReauthCancelled(ForgeError):
    def __init__(self) -> None:
        super().__init__("re-authentication cancelled")


def stdin_is_interactive() -> bool:
    isatty = getattr(sys.stdin, "isatty", None)
    return bool(isatty and isatty())


async def verify_token(hostname: str, token: str) -> User:
    """Return the account behind *token*; TokenInvalidError if it is rejected."""
    async with ForgeClient(ForgeConfig(host=hostname, token=token)) as client:
        await client.validate_token()
        return await client.users.me()


def save_token(
    hostname: str,
    token: str,
    user: User,
    path: Path | None = None,
    activate: bool = False,
) -> Path:
    cfg = ConfigFile.load(path)
    cfg.set_host(hostname, HostEntry(token=token, user=user.username))
    if activate or cfg.active_host not in cfg.hosts:
        cfg.active_host = hostname
    return cfg.save()


async def prompt_reauth(hostname: str, path: Path | None = None) -> str:
    """Ask for a new token on the terminal, verify it and persist it."""
    if not stdin_is_interactive():
        raise TokenInvalidError
    click.echo(f"\nToken expired or invalid for {hostname}", err=True)
    token = click.prompt(
        "Enter new token (or press Enter to cancel)",
        default="",
        show_default=False,
        hide_input=True,
        err=True,
    ).strip()
    if not token:
        raise ReauthCancelled

    user = await verify_token(hostname, token)
    save_token(hostname, token, user, path)
    click.echo(f"Logged in as {user.username}\n", err=True)
    return token


async def retry_with_reauth(
    hostname: str,
    fn: Callable[[], Awaitable[T]],
    path: Path | None = None,
) -> T:
    """Run *fn*; on TokenInvalidError offer re-authentication and run it once more.

    *fn* must build its client from the saved configuration on every call.
    When re-authentication is declined or fails the original error is raised.
    """
    try:
        return await fn()
    except TokenInvalidError:
        if not stdin_is_interactive() or not await _try_reauth(hostname, path):
            raise
    return await fn()


async def _try_reauth(hostname: str, path: Path | None) -> bool:
    try:
        await prompt_reauth(hostname, path)
    except ForgeError as e:
        logger.debug("Re-authentication failed: %s", e)
        click.echo(str(e), err=True)
        return False
    return True
