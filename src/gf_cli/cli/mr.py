"""``gf mr``: merge requests."""

from __future__ import annotations

import click
from rich.markup import escape
from rich.table import Table

from ..client import ForgeClient
from ..git import GitError, current_branch, default_branch, run_git, stream_git, validate_ref
from ..models.merge_requests import CreateMergeRequest
from ..output import console, error_console, format_relative_time, state_badge, to_json
from ..services.merge_requests import MR_STATES
from ._common import AppContext, json_option, parse_number, pass_app, repo_option, web_url


@click.group()
def mr() -> None:
    """Work with merge requests."""


@mr.command("list")
@repo_option
@click.option("-s", "--state", type=click.Choice(MR_STATES), default="open", show_default=True)
@click.option("-L", "--limit", default=30, show_default=True, help="Maximum number to list.")
@json_option
@pass_app
def list_cmd(app: AppContext, repo_flag: str | None, state: str, limit: int, as_json: bool) -> None:
    """List merge requests."""
    r = app.repo(repo_flag)
    mrs = app.run(lambda c: c.merge_requests.list(r.owner, r.name, state=state, limit=limit), hostname=r.host)
    if as_json:
        click.echo(to_json(mrs))
        return
    if not mrs:
        click.echo(f"No {state} merge requests in {r.full_name}")
        return

    click.echo(f"\nShowing {len(mrs)} merge requests in {r.full_name}\n")
    table = Table()
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("TITLE", max_width=50)
    table.add_column("BRANCH", max_width=24)
    table.add_column("AUTHOR", no_wrap=True)
    table.add_column("UPDATED", no_wrap=True)
    for m in mrs:
        table.add_row(
            f"{state_badge(m.state, icon=True)} #{m.local_id}",
            escape(m.title),
            escape(m.source_branch.title),
            escape(f"@{m.author.username}"),
            format_relative_time(m.updated_at),
        )
    console.print(table)


@mr.command()
@repo_option
@click.argument("number")
@click.option("-w", "--web", is_flag=True, help="Open in the browser.")
@json_option
@pass_app
def view(app: AppContext, repo_flag: str | None, number: str, web: bool, as_json: bool) -> None:
    """Show a merge request."""
    r = app.repo(repo_flag)
    local_id = parse_number(number, "merge request number")
    m = app.run(lambda c: c.merge_requests.get(r.owner, r.name, local_id), hostname=r.host)
    if as_json:
        click.echo(to_json(m))
        return

    url = web_url(r, "merge-request", m.local_id)
    console.print(f"\n[bold]{escape(m.title)}[/bold] {state_badge(m.state, icon=True)} #{m.local_id}")
    console.print(
        f"{state_badge(m.state)} • @{escape(m.author.username)} wants to merge "
        f"{escape(m.source_branch.title)} into {escape(m.target_branch.title)}\n"
    )
    if m.description:
        click.echo(m.description)
        click.echo()
    click.echo("─" * 60)
    click.echo()
    if m.has_conflicts:
        click.echo("⚠ This merge request has conflicts")
    click.echo(f"Created:  {format_relative_time(m.created_at)}")
    click.echo(f"Updated:  {format_relative_time(m.updated_at)}")
    click.echo()
    if web:
        click.echo(f"Opening {url} in browser...")
        click.launch(url)
        return
    click.echo(f"View in browser: {url}")


@mr.command()
@repo_option
@click.option("-t", "--title", default="", help="Title.")
@click.option("-b", "--body", default="", help="Description.")
@click.option("-S", "--source", default="", help="Source branch (default: current branch).")
@click.option("-T", "--target", default="", help="Target branch (default: the default branch).")
@click.option("--draft", is_flag=True, help="Create as draft.")
@click.option("-d", "--delete-branch", is_flag=True, help="Delete the source branch after merge.")
@click.option("--squash", is_flag=True, help="Squash commits on merge.")
@click.option("-w", "--web", is_flag=True, help="Open in the browser after creating.")
@click.option("-q", "--quiet", is_flag=True, help="Print only the merge request number.")
@pass_app
def create(
    app: AppContext,
    repo_flag: str | None,
    title: str,
    body: str,
    source: str,
    target: str,
    draft: bool,
    delete_branch: bool,
    squash: bool,
    web: bool,
    quiet: bool,
) -> None:
    """Create a merge request."""
    r = app.repo(repo_flag)
    source = source or current_branch()
    target = target or default_branch()
    validate_ref(source)
    validate_ref(target)

    if not title:
        click.echo(f"Creating merge request for {source} into {target} in {r.full_name}\n")
        title = click.prompt("Title").strip()
        body = click.prompt("Description (optional)", default="", show_default=False).strip()
    if not title:
        raise click.UsageError("title is required")

    async def run(client: ForgeClient):
        project = await client.projects.get(r.owner, r.name)
        request = CreateMergeRequest(
            title=title,
            description=body,
            source_branch=source,
            target_branch=target,
            source_project=project.id,
            target_project=project.id,
            remove_source_branch=delete_branch,
            draft=draft,
            squash_commit=squash,
        )
        return await client.merge_requests.create(r.owner, r.name, request)

    m = app.run(run, hostname=r.host)
    if quiet:
        click.echo(m.local_id)
        return
    kind = "draft merge request" if draft else "merge request"
    click.echo(f"\n✓ Created {kind} #{m.local_id}")
    url = web_url(r, "merge-request", m.local_id)
    click.echo(url)
    if web:
        click.launch(url)


@mr.command()
@repo_option
@click.argument("number")
@click.option("-s", "--squash", is_flag=True, help="Squash commits.")
@click.option("-d", "--delete-branch", is_flag=True, help="Delete the source branch.")
@click.option("-m", "--message", default="", help="Merge commit message.")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation.")
@pass_app
def merge(
    app: AppContext,
    repo_flag: str | None,
    number: str,
    squash: bool,
    delete_branch: bool,
    message: str,
    yes: bool,
) -> None:
    """Merge a merge request."""
    r = app.repo(repo_flag)
    local_id = parse_number(number, "merge request number")
    m = app.run(lambda c: c.merge_requests.get(r.owner, r.name, local_id), hostname=r.host)
    if not yes:
        click.echo(f"Merge request #{m.local_id}: {m.title}")
        click.echo(f"  {m.source_branch.title} → {m.target_branch.title}\n")
        if not click.confirm("Merge this merge request?"):
            click.echo("Cancelled.")
            return

    app.run(
        lambda c: c.merge_requests.merge(
            r.owner,
            r.name,
            local_id,
            squash=squash,
            remove_source_branch=delete_branch,
            message=message,
        ),
        hostname=r.host,
    )
    click.echo(f"✓ Merged merge request #{m.local_id} ({m.source_branch.title} → {m.target_branch.title})")
    if delete_branch:
        click.echo(f"✓ Deleted branch {m.source_branch.title}")


@mr.command()
@repo_option
@click.argument("number")
@pass_app
def close(app: AppContext, repo_flag: str | None, number: str) -> None:
    """Close a merge request without merging."""
    r = app.repo(repo_flag)
    local_id = parse_number(number, "merge request number")
    app.run(lambda c: c.merge_requests.close(r.owner, r.name, local_id), hostname=r.host)
    click.echo(f"✓ Closed merge request #{local_id}")


@mr.command()
@repo_option
@click.argument("number")
@pass_app
def approve(app: AppContext, repo_flag: str | None, number: str) -> None:
    """Approve a merge request."""
    r = app.repo(repo_flag)
    local_id = parse_number(number, "merge request number")
    app.run(lambda c: c.merge_requests.approve(r.owner, r.name, local_id), hostname=r.host)
    click.echo(f"✓ Approved merge request #{local_id}")


@mr.command()
@repo_option
@click.argument("number")
@click.option("-b", "--branch", "local_branch", default="", help="Local branch name (default: the source branch).")
@click.option("-f", "--force", is_flag=True, help="Discard local changes when switching.")
@pass_app
def checkout(app: AppContext, repo_flag: str | None, number: str, local_branch: str, force: bool) -> None:
    """Check out the source branch of a merge request locally."""
    r = app.repo(repo_flag)
    local_id = parse_number(number, "merge request number")
    m = app.run(lambda c: c.merge_requests.get(r.owner, r.name, local_id), hostname=r.host)

    remote_branch = m.source_branch.title
    local_branch = local_branch or remote_branch
    validate_ref(remote_branch)
    validate_ref(local_branch)

    click.echo(f"Checking out merge request #{m.local_id}: {m.title}")
    click.echo(f"Source branch: {remote_branch}")
    stream_git("fetch", "origin", remote_branch)

    args = ["checkout", "-f"] if force else ["checkout"]
    try:
        run_git("rev-parse", "--verify", f"refs/heads/{local_branch}")
    except GitError:
        args += ["-b", local_branch, f"origin/{remote_branch}"]
    else:
        args.append(local_branch)
    stream_git(*args)
    click.echo(f"\n✓ Checked out merge request #{m.local_id} on branch '{local_branch}'")


@mr.command()
@repo_option
@click.argument("number")
@click.option("--stat", is_flag=True, help="Show a diffstat instead of the patch.")
@click.option("--name-only", is_flag=True, help="Show only the names of changed files.")
@click.option(
    "--color",
    type=click.Choice(["auto", "always", "never"]),
    default="auto",
    show_default=True,
    help="Colorize the diff.",
)
@pass_app
def diff(app: AppContext, repo_flag: str | None, number: str, stat: bool, name_only: bool, color: str) -> None:
    """Show the changes a merge request would merge, using local git."""
    r = app.repo(repo_flag)
    local_id = parse_number(number, "merge request number")
    m = app.run(lambda c: c.merge_requests.get(r.owner, r.name, local_id), hostname=r.host)

    source, target = m.source_branch.title, m.target_branch.title
    validate_ref(source)
    validate_ref(target)

    error_console.print("Fetching branches...")
    try:
        stream_git("fetch", "origin", source, target)
    except GitError as e:
        error_console.print(f"[yellow]! {escape(str(e))}; comparing the refs already fetched[/yellow]")

    args = ["diff", f"--color={color}"]
    if stat:
        args.append("--stat")
    elif name_only:
        args.append("--name-only")
    args.append(f"origin/{target}...origin/{source}")
    error_console.print(f"Showing diff: {escape(source)} → {escape(target)}\n")
    stream_git(*args)
