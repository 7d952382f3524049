"""``gf auth``: log in, log out and show authentication status."""

from __future__ import annotations

import asyncio
import sys

import click

from ..auth import save_token, verify_token
from ..config import DEFAULT_HOST
from ..exceptions import ForgeError, is_token_invalid
from ..git import validate_host
from ._common import AppContext, pass_app


def _mask(token: str) -> str:
    if len(token) <= 8:
        return "****"
    return f"{token[:4]}...{token[-4:]}"


@click.group()
def auth() -> None:
    """Authenticate gf with a Forge host."""


@auth.command()
@click.option("-h", "--hostname", default=DEFAULT_HOST, show_default=True, help="Forge hostname.")
@click.option("-t", "--token", default=None, help="Access token.")
@click.option("--stdin", "from_stdin", is_flag=True, help="Read the token from standard input.")
@pass_app
def login(app: AppContext, hostname: str, token: str | None, from_stdin: bool) -> None:
    """Store an access token for HOSTNAME."""
    validate_host(hostname)
    if from_stdin:
        token = sys.stdin.readline()
    elif not token:
        click.echo(f"Forge hostname: {hostname}")
        token = click.prompt("Paste your access token", hide_input=True)
    token = (token or "").strip()
    if not token:
        raise click.UsageError("token cannot be empty")

    user = asyncio.run(verify_token(hostname, token))
    save_token(hostname, token, user, app.config_path, activate=True)
    click.echo(f"✓ Logged in as {user.username} to {hostname}")


@auth.command()
@click.option("-H", "--hostname", default=None, help="Host to log out from (defaults to the active host).")
@click.option("--all", "all_hosts", is_flag=True, help="Log out from every host.")
@pass_app
def logout(app: AppContext, hostname: str | None, all_hosts: bool) -> None:
    """Remove stored credentials."""
    cfg = app.load_config()
    if all_hosts:
        count = len(cfg.hosts)
        if not count:
            click.echo("Not logged in to any hosts")
            return
        cfg.hosts.clear()
        cfg.save()
        click.echo(f"Logged out from {count} host(s)")
        return

    hostname = hostname or cfg.active_host
    if not cfg.remove_host(hostname):
        raise click.ClickException(f"not logged in to {hostname}")
    cfg.save()
    click.echo(f"Logged out of {hostname}")


@auth.command("status")
@click.option("-H", "--hostname", default=None, help="Check a specific host.")
@pass_app
def status_cmd(app: AppContext, hostname: str | None) -> None:
    """Verify stored tokens against their hosts."""
    cfg = app.load_config()
    if hostname:
        hosts = [hostname]
    else:
        hosts = list(cfg.hosts)
    if not hosts:
        click.echo("Not logged in to any Forge hosts.")
        click.echo("Run 'gf auth login' to authenticate.")
        return

    for host in hosts:
        click.echo(host)
        entry = cfg.host_entry(host)
        if entry is None or not entry.token:
            click.echo("  ✗ Not logged in")
            continue
        try:
            user = asyncio.run(verify_token(host, entry.token))
        except ForgeError as e:
            if is_token_invalid(e):
                click.echo("  ✗ Token expired or invalid")
            else:
                click.echo(f"  ✗ Could not verify: {e}")
            continue
        marker = " (active)" if host == cfg.active_host else ""
        click.echo(f"  ✓ Logged in as {user.username}{marker}")
        click.echo(f"  ✓ Token: {_mask(entry.token)}")

