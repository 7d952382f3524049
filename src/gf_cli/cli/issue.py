"""``gf issue``: issues and their comments."""

from __future__ import annotations

import click
from rich.markup import escape
from rich.table import Table

from ..exceptions import ForgeError, is_method_not_allowed
from ..output import console, format_relative_time, state_badge, to_json
from ..services.issues import ISSUE_STATES
from ._common import AppContext, json_option, parse_number, pass_app, repo_option, web_url


@click.group()
def issue() -> None:
    """Work with issues."""


@issue.command("list")
@repo_option
@click.option("-s", "--state", type=click.Choice(ISSUE_STATES), default="open", show_default=True)
@click.option("-L", "--limit", default=30, show_default=True, help="Maximum number to list.")
@json_option
@pass_app
def list_cmd(app: AppContext, repo_flag: str | None, state: str, limit: int, as_json: bool) -> None:
    """List issues."""
    r = app.repo(repo_flag)
    issues = app.run(lambda c: c.issues.list(r.owner, r.name, state=state), hostname=r.host)
    issues = issues[:limit] if limit > 0 else issues
    if as_json:
        click.echo(to_json(issues))
        return
    if not issues:
        click.echo(f"No {state} issues in {r.full_name}")
        return

    click.echo(f"\nShowing {len(issues)} issues in {r.full_name}\n")
    table = Table()
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("TITLE", max_width=50)
    table.add_column("STATE", no_wrap=True)
    table.add_column("AUTHOR", no_wrap=True)
    table.add_column("UPDATED", no_wrap=True)
    for i in issues:
        table.add_row(
            f"#{i.local_id}",
            escape(i.title),
            state_badge(i.state),
            escape(f"@{i.author.username}"),
            format_relative_time(i.updated_at),
        )
    console.print(table)


@issue.command()
@repo_option
@click.argument("number")
@click.option("-c", "--comments", is_flag=True, help="Show comments.")
@click.option("-w", "--web", is_flag=True, help="Open in the browser.")
@json_option
@pass_app
def view(app: AppContext, repo_flag: str | None, number: str, comments: bool, web: bool, as_json: bool) -> None:
    """Show an issue."""
    r = app.repo(repo_flag)
    local_id = parse_number(number, "issue number")
    url = web_url(r, "issue", local_id)
    if web:
        click.echo(f"Opening {url} in browser...")
        click.launch(url)
        return

    async def fetch(client):
        found = await client.issues.get(r.owner, r.name, local_id)
        notes = await client.issues.comments(r.owner, r.name, local_id) if comments else []
        return found, notes

    i, notes = app.run(fetch, hostname=r.host)
    if as_json:
        click.echo(to_json(i))
        return

    console.print(f"\n[bold]{escape(i.title)}[/bold] #{i.local_id}")
    console.print(
        f"{state_badge(i.state)} • opened by @{escape(i.author.username)} {format_relative_time(i.created_at)}\n"
    )
    if i.description:
        click.echo(i.description)
        click.echo()
    if comments:
        click.echo("─" * 60)
        if not notes:
            click.echo("No comments")
        for note in notes:
            click.echo(f"\n@{note.author.username} • {format_relative_time(note.created_at)}")
            click.echo(note.note)
    click.echo(f"\nView in browser: {url}")


@issue.command()
@repo_option
@click.option("-t", "--title", default="", help="Title.")
@click.option("-b", "--body", default="", help="Description.")
@pass_app
def create(app: AppContext, repo_flag: str | None, title: str, body: str) -> None:
    """Create an issue."""
    r = app.repo(repo_flag)
    if not title:
        title = click.prompt("Title").strip()
        body = click.prompt("Description (optional)", default="", show_default=False).strip()
    if not title:
        raise click.UsageError("title is required")
    i = app.run(lambda c: c.issues.create(r.owner, r.name, title, body), hostname=r.host)
    click.echo(f"✓ Created issue #{i.local_id}")
    click.echo(web_url(r, "issue", i.local_id))


@issue.command()
@repo_option
@click.argument("number")
@click.option("-t", "--title", default=None, help="New title.")
@click.option("-b", "--body", default=None, help="New description.")
@pass_app
def edit(app: AppContext, repo_flag: str | None, number: str, title: str | None, body: str | None) -> None:
    """Edit an issue's title or description."""
    if not title and not body:
        raise click.UsageError("nothing to change: pass --title and/or --body")
    r = app.repo(repo_flag)
    local_id = parse_number(number, "issue number")
    app.run(lambda c: c.issues.update(r.owner, r.name, local_id, title=title, description=body), hostname=r.host)
    click.echo(f"✓ Updated issue #{local_id}")


@issue.command()
@repo_option
@click.argument("number")
@pass_app
def close(app: AppContext, repo_flag: str | None, number: str) -> None:
    """Close an issue."""
    r = app.repo(repo_flag)
    local_id = parse_number(number, "issue number")
    app.run(lambda c: c.issues.close(r.owner, r.name, local_id), hostname=r.host)
    click.echo(f"✓ Closed issue #{local_id}")


@issue.command()
@repo_option
@click.argument("number")
@pass_app
def reopen(app: AppContext, repo_flag: str | None, number: str) -> None:
    """Reopen a closed issue."""
    r = app.repo(repo_flag)
    local_id = parse_number(number, "issue number")
    app.run(lambda c: c.issues.reopen(r.owner, r.name, local_id), hostname=r.host)
    click.echo(f"✓ Reopened issue #{local_id}")


@issue.command()
@repo_option
@click.argument("number")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation.")
@pass_app
def delete(app: AppContext, repo_flag: str | None, number: str, yes: bool) -> None:
    """Delete an issue."""
    r = app.repo(repo_flag)
    local_id = parse_number(number, "issue number")
    if not yes and not click.confirm(f"Delete issue #{local_id}?"):
        click.echo("Cancelled.")
        return
    try:
        app.run(lambda c: c.issues.delete(r.owner, r.name, local_id), hostname=r.host)
    except ForgeError as e:
        if is_method_not_allowed(e):
            msg = "this server does not allow deleting issues; close it instead with 'gf issue close'"
            raise click.ClickException(msg) from e
        raise
    click.echo(f"✓ Deleted issue #{local_id}")


@issue.command()
@repo_option
@click.argument("number")
@click.option("-b", "--body", default="", help="Comment text.")
@pass_app
def comment(app: AppContext, repo_flag: str | None, number: str, body: str) -> None:
    """Add a comment to an issue."""
    r = app.repo(repo_flag)
    local_id = parse_number(number, "issue number")
    body = body or click.prompt("Comment").strip()
    if not body:
        raise click.UsageError("comment cannot be empty")
    app.run(lambda c: c.issues.comment(r.owner, r.name, local_id, body), hostname=r.host)
    click.echo(f"✓ Added comment to issue #{local_id}")
