"""Repository commands: ``gf repo``, ``gf branch``, ``gf tag``, ``gf commit`` and ``gf file``."""

from __future__ import annotations

from pathlib import Path

import click
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from ..client import ForgeClient
from ..git import CLONE_TIMEOUT, parse_remote_url, parse_repo_flag, stream_git, validate_name, validate_ref
from ..output import console, format_relative_time, format_size, styled, to_json
from ..transfer import safe_filename
from ._common import AppContext, json_option, pass_app, repo_option, web_url

# ── repo ──────────────────────────────────────────────────────────


@click.group()
def repo() -> None:
    """Work with repositories."""


@repo.command()
@repo_option
@click.option("-w", "--web", is_flag=True, help="Open in the browser.")
@json_option
@pass_app
def view(app: AppContext, repo_flag: str | None, web: bool, as_json: bool) -> None:
    """Show repository details."""
    r = app.repo(repo_flag)
    url = web_url(r)
    if web:
        click.echo(f"Opening {url} in browser...")
        click.launch(url)
        return

    project = app.run(lambda c: c.projects.get(r.owner, r.name), hostname=r.host)
    if as_json:
        click.echo(to_json(project))
        return

    click.echo(f"\n{r.owner}/{project.alias or r.name}")
    if project.description:
        click.echo(project.description)
    click.echo()
    click.echo(f"Visibility:     {'private' if project.private else 'public'}")
    if project.language:
        click.echo(f"Language:       {project.language}")
    if project.default_branch:
        click.echo(f"Default branch: {project.default_branch}")
    if project.http_transport_url:
        click.echo(f"Clone (https):  {project.http_transport_url}")
    if project.ssh_transport_url:
        click.echo(f"Clone (ssh):    {project.ssh_transport_url}")
    click.echo(f"\nView in browser: {url}")


@repo.command()
@click.argument("repository")
@click.argument("directory", required=False)
@click.option("--ssh", is_flag=True, help="Clone over SSH instead of HTTPS.")
@pass_app
def clone(app: AppContext, repository: str, directory: str | None, ssh: bool) -> None:
    """Clone a repository.

    REPOSITORY is owner/name, host/owner/name or a clone URL.
    """
    if repository.startswith(("https://", "git@")):
        r = parse_remote_url(repository)
        validate_name(r.owner)
        validate_name(r.name)
        url = repository
    else:
        r = parse_repo_flag(repository, app.hostname)
        url = f"git@{r.host}:{r.owner}/{r.name}.git" if ssh else f"https://{r.host}/project/{r.owner}/{r.name}.git"

    target = Path(directory or r.name)
    if target.is_absolute() or ".." in target.parts or str(target).startswith("-"):
        msg = f"invalid directory: {target}"
        raise click.BadParameter(msg, param_hint="DIRECTORY")
    if target.exists():
        raise click.ClickException(f"directory '{target}' already exists")

    click.echo(f"Cloning into '{target}'...")
    stream_git("clone", "--", url, str(target), timeout=CLONE_TIMEOUT)
    click.echo(f"\n✓ Cloned {r.full_name} to {target.resolve()}")


# ── branch ────────────────────────────────────────────────────────


@click.group()
def branch() -> None:
    """Work with remote branches."""


@branch.command("list")
@repo_option
@json_option
@pass_app
def branch_list(app: AppContext, repo_flag: str | None, as_json: bool) -> None:
    """List branches."""
    r = app.repo(repo_flag)
    branches = app.run(lambda c: c.branches.list(r.owner, r.name), hostname=r.host)
    if as_json:
        click.echo(to_json(branches))
        return
    if not branches:
        click.echo(f"No branches in {r.full_name}")
        return
    table = Table(box=None, show_header=False)
    table.add_column(width=1)
    table.add_column()
    table.add_column(style="yellow", no_wrap=True)
    table.add_column(style="dim")
    for b in branches:
        sha = b.last_commit.short_sha if b.last_commit else b.hash[:7]
        table.add_row(
            "[green]*[/green]" if b.default else "",
            escape(b.name),
            sha,
            "protected" if b.protected else "",
        )
    console.print(table)


@branch.command("create")
@repo_option
@click.argument("name")
@click.option("-f", "--from", "origin", default="", help="Branch to start from (default: the default branch).")
@pass_app
def branch_create(app: AppContext, repo_flag: str | None, name: str, origin: str) -> None:
    """Create a branch on the server."""
    r = app.repo(repo_flag)
    validate_ref(name)
    if origin:
        validate_ref(origin)

    async def run(client: ForgeClient):
        start = origin or (await client.branches.default(r.owner, r.name)).name
        return await client.branches.create(r.owner, r.name, name, start), start

    _, start = app.run(run, hostname=r.host)
    click.echo(f"✓ Created branch {name} from {start}")


@branch.command("delete")
@repo_option
@click.argument("name")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation.")
@pass_app
def branch_delete(app: AppContext, repo_flag: str | None, name: str, yes: bool) -> None:
    """Delete a branch on the server."""
    r = app.repo(repo_flag)
    validate_ref(name)
    if not yes and not click.confirm(f"Delete branch {name}?"):
        click.echo("Cancelled.")
        return
    app.run(lambda c: c.branches.delete(r.owner, r.name, name), hostname=r.host)
    click.echo(f"✓ Deleted branch {name}")


# ── tag ───────────────────────────────────────────────────────────


@click.group()
def tag() -> None:
    """Work with tags."""


@tag.command("list")
@repo_option
@json_option
@pass_app
def tag_list(app: AppContext, repo_flag: str | None, as_json: bool) -> None:
    """List tags."""
    r = app.repo(repo_flag)
    tags = app.run(lambda c: c.tags.list(r.owner, r.name), hostname=r.host)
    if as_json:
        click.echo(to_json(tags))
        return
    if not tags:
        click.echo(f"No tags in {r.full_name}")
        return
    table = Table(box=None, show_header=False)
    table.add_column(style="cyan")
    table.add_column(style="yellow", no_wrap=True)
    table.add_column(max_width=50, no_wrap=True, overflow="ellipsis")
    for t in tags:
        table.add_row(escape(t.name), t.commit_id[:7], escape(t.short_message))
    console.print(table)


@tag.command("create")
@repo_option
@click.argument("name")
@click.option("-b", "--branch", "from_branch", default="", help="Tag the head of this branch.")
@click.option("-c", "--commit", default="", help="Tag this commit.")
@click.option("-m", "--message", default="", help="Annotation message.")
@pass_app
def tag_create(
    app: AppContext,
    repo_flag: str | None,
    name: str,
    from_branch: str,
    commit: str,
    message: str,
) -> None:
    """Create a tag on a branch head or a commit."""
    if bool(from_branch) == bool(commit):
        raise click.UsageError("exactly one of --branch or --commit is required")
    r = app.repo(repo_flag)
    validate_ref(name)
    if from_branch:
        validate_ref(from_branch)
    app.run(
        lambda c: c.tags.create(r.owner, r.name, name, branch=from_branch, commit=commit, message=message),
        hostname=r.host,
    )
    click.echo(f"✓ Created tag {name}")


@tag.command("delete")
@repo_option
@click.argument("name")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation.")
@pass_app
def tag_delete(app: AppContext, repo_flag: str | None, name: str, yes: bool) -> None:
    """Delete a tag."""
    r = app.repo(repo_flag)
    validate_ref(name)
    if not yes and not click.confirm(f"Delete tag {name}?"):
        click.echo("Cancelled.")
        return
    app.run(lambda c: c.tags.delete(r.owner, r.name, name), hostname=r.host)
    click.echo(f"✓ Deleted tag {name}")


# ── commit ────────────────────────────────────────────────────────


@click.group()
def commit() -> None:
    """Browse commits."""


@commit.command("list")
@repo_option
@click.option("-b", "--ref", default="", help="Branch to list (default: the default branch).")
@click.option("-L", "--limit", default=30, show_default=True, help="Maximum number to list.")
@json_option
@pass_app
def commit_list(app: AppContext, repo_flag: str | None, ref: str, limit: int, as_json: bool) -> None:
    """List commits."""
    r = app.repo(repo_flag)
    if ref:
        validate_ref(ref)
    commits = app.run(lambda c: c.commits.list(r.owner, r.name, ref=ref, per_page=limit), hostname=r.host)
    if as_json:
        click.echo(to_json(commits))
        return
    if not commits:
        click.echo(f"No commits in {r.full_name}")
        return
    table = Table(box=None, show_header=False)
    table.add_column(style="yellow", no_wrap=True)
    table.add_column(max_width=60, no_wrap=True, overflow="ellipsis")
    table.add_column(max_width=15, no_wrap=True, overflow="ellipsis")
    table.add_column(style="dim", no_wrap=True)
    for c in commits:
        author = c.author_name or (c.author.username if c.author else "")
        table.add_row(c.short_sha, escape(c.title), escape(author), format_relative_time(c.created_at))
    console.print(table)


@commit.command("view")
@repo_option
@click.argument("sha")
@json_option
@pass_app
def commit_view(app: AppContext, repo_flag: str | None, sha: str, as_json: bool) -> None:
    """Show a commit."""
    r = app.repo(repo_flag)
    validate_ref(sha)
    c = app.run(lambda client: client.commits.get(r.owner, r.name, sha), hostname=r.host)
    if as_json:
        click.echo(to_json(c))
        return
    console.print(f"[yellow]commit {c.hash}[/yellow]")
    click.echo(f"Author: {c.author_name} <{c.author_email}>")
    click.echo(f"Date:   {format_relative_time(c.created_at)}\n")
    for line in c.message.rstrip("\n").splitlines():
        click.echo(f"    {line}")
    click.echo(f"\nView in browser: {web_url(r, 'commit', c.hash)}")


def _diff_style(line: str) -> str:
    if line.startswith("+"):
        return "green"
    if line.startswith("-"):
        return "red"
    if line.startswith("@@"):
        return "cyan"
    return ""


@commit.command("diff")
@repo_option
@click.argument("sha")
@click.option("--stat", is_flag=True, help="Only show changed files and line counts.")
@pass_app
def commit_diff(app: AppContext, repo_flag: str | None, sha: str, stat: bool) -> None:
    """Show the changes introduced by a commit."""
    r = app.repo(repo_flag)
    validate_ref(sha)
    diffs = app.run(lambda c: c.commits.diff(r.owner, r.name, sha), hostname=r.host)
    if not diffs:
        click.echo("No changes")
        return
    if stat:
        table = Table(box=None, show_header=False)
        table.add_column()
        table.add_column(style="green", justify="right", no_wrap=True)
        table.add_column(style="red", justify="right", no_wrap=True)
        for d in diffs:
            table.add_row(escape(d.file_path), f"+{d.additions}", f"-{d.deletions}")
        console.print(table)
        return
    for d in diffs:
        console.print(Text(f"diff --git a/{d.old_path or d.file_path} b/{d.file_path}", style="bold"), soft_wrap=True)
        for line in d.diff_content.splitlines():
            console.print(Text(line, style=_diff_style(line)), soft_wrap=True)


# ── file ──────────────────────────────────────────────────────────


@click.group()
def file() -> None:
    """Browse repository files."""


ref_option = click.option("-b", "--ref", default="", help="Branch, tag or commit (default: the default branch).")


async def _resolve_ref(client: ForgeClient, owner: str, name: str, ref: str) -> str:
    if ref:
        return ref
    return (await client.branches.default(owner, name)).name


@file.command("list")
@repo_option
@ref_option
@click.argument("path", default="")
@json_option
@pass_app
def file_list(app: AppContext, repo_flag: str | None, ref: str, path: str, as_json: bool) -> None:
    """List files in a directory."""
    r = app.repo(repo_flag)
    if ref:
        validate_ref(ref)

    async def run(client: ForgeClient):
        return await client.files.list(r.owner, r.name, await _resolve_ref(client, r.owner, r.name, ref), path)

    entries = app.run(run, hostname=r.host)
    if as_json:
        click.echo(to_json(entries))
        return
    if not entries:
        click.echo("No files")
        return
    table = Table(box=None, show_header=False)
    table.add_column()
    table.add_column(justify="right", no_wrap=True)
    for e in sorted(entries, key=lambda e: (not e.is_dir, e.name)):
        if e.is_dir:
            table.add_row(styled(f"{e.name}/", "blue"), "")
        else:
            table.add_row(escape(e.name), format_size(e.size))
    console.print(table)


@file.command("view")
@repo_option
@ref_option
@click.argument("path")
@pass_app
def file_view(app: AppContext, repo_flag: str | None, ref: str, path: str) -> None:
    """Print a file's contents."""
    r = app.repo(repo_flag)
    if ref:
        validate_ref(ref)

    async def run(client: ForgeClient):
        return await client.files.get(r.owner, r.name, await _resolve_ref(client, r.owner, r.name, ref), path)

    content = app.run(run, hostname=r.host)
    click.echo(content, nl=not content.endswith("\n"))


@file.command("download")
@repo_option
@ref_option
@click.argument("path")
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None, help="Output file or directory.")
@pass_app
def file_download(app: AppContext, repo_flag: str | None, ref: str, path: str, output: Path | None) -> None:
    """Download a file."""
    r = app.repo(repo_flag)
    if ref:
        validate_ref(ref)

    async def run(client: ForgeClient) -> tuple[Path, int]:
        resolved = await _resolve_ref(client, r.owner, r.name, ref)
        async with await client.files.download(r.owner, r.name, resolved, path) as dl:
            local = safe_filename(dl.filename) or safe_filename(path)
            if not local:
                raise click.BadParameter(f"invalid file name: {path}")
            target = output or Path(local)
            if target.is_dir():
                target = target / local
            written = 0
            with target.open("wb") as fh:
                async for chunk in dl.aiter_bytes():
                    fh.write(chunk)
                    written += len(chunk)
        return target, written

    target, written = app.run(run, hostname=r.host)
    click.echo(f"✓ Downloaded {target} ({format_size(written)})")
