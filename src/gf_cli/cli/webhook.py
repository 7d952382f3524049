"""``gf webhook``: project webhooks."""

from __future__ import annotations

import secrets
from urllib.parse import urlsplit

import click
from rich.markup import escape
from rich.table import Table

from ..client import ForgeClient
from ..config import is_internal_host
from ..exceptions import ForgeError, is_forbidden
from ..models.webhooks import EVENT_GROUPS, events_from_groups
from ..output import console, to_json
from ._common import AppContext, json_option, pass_app, repo_option

SECRET_BYTES = 32


def generate_secret() -> str:
    return secrets.token_hex(SECRET_BYTES)


def _split_events(values: tuple[str, ...]) -> list[str]:
    events = [e.strip() for v in values for e in v.split(",") if e.strip()]
    return events or ["push"]


@click.group()
def webhook() -> None:
    """Manage repository webhooks."""


@webhook.command("list")
@repo_option
@json_option
@pass_app
def list_cmd(app: AppContext, repo_flag: str | None, as_json: bool) -> None:
    """List webhooks."""
    r = app.repo(repo_flag)
    hooks = app.run(lambda c: c.webhooks.list(r.owner, r.name), hostname=r.host)
    if as_json:
        click.echo(to_json(hooks))
        return
    if not hooks:
        click.echo(f"No webhooks in {r.full_name}")
        return

    click.echo(f"\nShowing {len(hooks)} webhooks in {r.full_name}\n")
    table = Table()
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("URL", max_width=50)
    table.add_column("EVENTS", style="cyan")
    for h in hooks:
        table.add_row(escape(h.id), escape(h.url), ", ".join(h.events.groups()))
    console.print(table)


@webhook.command()
@repo_option
@click.argument("url")
@click.option(
    "-e",
    "--events",
    multiple=True,
    help=f"Event groups, comma-separated (default: push). One of: {', '.join(EVENT_GROUPS)}.",
)
@click.option("-s", "--secret", default="", help="Signing secret (generated when omitted).")
@pass_app
def create(app: AppContext, repo_flag: str | None, url: str, events: tuple[str, ...], secret: str) -> None:
    """Create a webhook that posts to URL."""
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise click.BadParameter("invalid URL: must be http or https", param_hint="'URL'")
    if is_internal_host(parts.netloc):
        click.echo(f"⚠ Warning: webhook URL points to an internal/private address ({parts.netloc})", err=True)

    groups = _split_events(events)
    try:
        events_from_groups(groups)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="'--events'") from e

    generated = not secret
    secret = secret or generate_secret()
    r = app.repo(repo_flag)

    async def run(client: ForgeClient):
        try:
            return await client.webhooks.create(r.owner, r.name, url, secret, groups)
        except ForgeError as e:
            if is_forbidden(e):
                msg = f"permission denied: you don't have access to create webhooks in {r.full_name}"
                raise click.ClickException(msg) from e
            raise

    hook = app.run(run, hostname=r.host)
    click.echo(f"✓ Created webhook {hook.id}")
    click.echo(f"  URL: {hook.url or url}")
    if generated:
        click.echo(f"  Secret: {secret}")
    click.echo(f"  Events: {', '.join(groups)}")


@webhook.command()
@repo_option
@click.argument("webhook_id")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation.")
@pass_app
def delete(app: AppContext, repo_flag: str | None, webhook_id: str, yes: bool) -> None:
    """Delete a webhook."""
    r = app.repo(repo_flag)
    if not yes:
        hook = app.run(lambda c: c.webhooks.get(r.owner, r.name, webhook_id), hostname=r.host)
        if not click.confirm(f"Delete webhook for {hook.url}?"):
            click.echo("Cancelled.")
            return
    app.run(lambda c: c.webhooks.delete(r.owner, r.name, webhook_id), hostname=r.host)
    click.echo(f"✓ Deleted webhook {webhook_id}")


@webhook.command()
@repo_option
@click.argument("webhook_id")
@pass_app
def test(app: AppContext, repo_flag: str | None, webhook_id: str) -> None:
    """Send a test payload to a webhook."""
    r = app.repo(repo_flag)

    async def run(client: ForgeClient) -> None:
        hook = await client.webhooks.get(r.owner, r.name, webhook_id)
        click.echo(f"Sending test payload to {hook.url}...")
        await client.webhooks.test(r.owner, r.name, webhook_id)

    app.run(run, hostname=r.host)
    click.echo("✓ Test payload sent to webhook")
