"""``gf release``: releases and their assets."""

from __future__ import annotations

from pathlib import Path

import click
from rich.markup import escape
from rich.table import Table

from ..client import ForgeClient
from ..flextime import is_zero
from ..git import validate_ref
from ..models.releases import CreateRelease
from ..output import console, format_relative_time, format_size, styled, to_json
from ..transfer import Download, safe_filename
from ._common import AppContext, json_option, pass_app, repo_option, web_url

_TYPE_STYLES = {"Draft": "yellow", "Pre-release": "magenta"}


def _release_type(draft: bool, prerelease: bool) -> str:
    if draft:
        return "Draft"
    if prerelease:
        return "Pre-release"
    return "Release"


async def _save(download: Download, target: Path) -> int:
    written = 0
    with target.open("wb") as fh:
        async for chunk in download.aiter_bytes():
            fh.write(chunk)
            written += len(chunk)
    return written


@click.group()
def release() -> None:
    """Work with releases."""


@release.command("list")
@repo_option
@click.option("-L", "--limit", default=30, show_default=True, help="Maximum number to list.")
@json_option
@pass_app
def list_cmd(app: AppContext, repo_flag: str | None, limit: int, as_json: bool) -> None:
    """List releases."""
    r = app.repo(repo_flag)
    releases, total = app.run(
        lambda c: c.releases.list(r.owner, r.name, per_page=limit, with_total=True),
        hostname=r.host,
    )
    if as_json:
        click.echo(to_json(releases))
        return
    if not releases:
        click.echo(f"No releases in {r.full_name}")
        return

    click.echo(f"\nShowing {len(releases)} of {max(total, len(releases))} releases in {r.full_name}\n")
    table = Table()
    table.add_column("TAG", style="cyan", no_wrap=True)
    table.add_column("TITLE", max_width=42)
    table.add_column("TYPE", no_wrap=True)
    table.add_column("PUBLISHED", no_wrap=True)
    for rel in releases:
        kind = _release_type(rel.is_draft, rel.is_prerelease)
        table.add_row(
            escape(rel.tag_name),
            escape(rel.title),
            styled(kind, _TYPE_STYLES.get(kind)),
            format_relative_time(rel.created_at if is_zero(rel.published_at) else rel.published_at),
        )
    console.print(table)


@release.command()
@repo_option
@click.argument("tag")
@click.option("-w", "--web", is_flag=True, help="Open in the browser.")
@json_option
@pass_app
def view(app: AppContext, repo_flag: str | None, tag: str, web: bool, as_json: bool) -> None:
    """Show a release."""
    r = app.repo(repo_flag)
    validate_ref(tag)
    url = web_url(r, "release", tag)
    if web:
        click.echo(f"Opening {url} in browser...")
        click.launch(url)
        return

    rel = app.run(lambda c: c.releases.get(r.owner, r.name, tag), hostname=r.host)
    if as_json:
        click.echo(to_json(rel))
        return

    click.echo(f"\n{rel.title}")
    click.echo(f"Tag: {rel.tag_name}")
    click.echo(f"Type: {_release_type(rel.is_draft, rel.is_prerelease)}")
    click.echo(f"Created: {format_relative_time(rel.created_at)}")
    if rel.author.username:
        click.echo(f"Author: @{rel.author.username}")
    if rel.description:
        click.echo("\n---")
        click.echo(rel.description)
    click.echo(f"\nView in browser: {url}")


@release.command()
@repo_option
@click.argument("tag")
@click.option("-t", "--title", default="", help="Release title (defaults to the tag).")
@click.option("-n", "--notes", default="", help="Release notes.")
@click.option(
    "-F",
    "--notes-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read release notes from a file.",
)
@click.option("-d", "--draft", is_flag=True, help="Save as draft.")
@click.option("-p", "--prerelease", is_flag=True, help="Mark as pre-release.")
@pass_app
def create(
    app: AppContext,
    repo_flag: str | None,
    tag: str,
    title: str,
    notes: str,
    notes_file: Path | None,
    draft: bool,
    prerelease: bool,
) -> None:
    """Create a release for TAG."""
    r = app.repo(repo_flag)
    validate_ref(tag)
    if notes_file is not None:
        notes = notes_file.read_text(encoding="utf-8")
    request = CreateRelease(
        title=title or tag,
        tag_name=tag,
        description=notes,
        is_draft=draft,
        is_prerelease=prerelease,
    )
    rel = app.run(lambda c: c.releases.create(r.owner, r.name, request), hostname=r.host)
    click.echo(f"✓ {_release_type(draft, prerelease)} '{rel.title or request.title}' created for tag {tag}")
    click.echo(web_url(r, "release", tag))


@release.command()
@repo_option
@click.argument("tag")
@click.option("-t", "--title", default=None, help="New title.")
@click.option("-d", "--description", default=None, help="New description.")
@click.option("--prerelease/--no-prerelease", default=None, help="Set or clear the pre-release mark.")
@pass_app
def edit(
    app: AppContext,
    repo_flag: str | None,
    tag: str,
    title: str | None,
    description: str | None,
    prerelease: bool | None,
) -> None:
    """Edit a release."""
    if not title and not description and prerelease is None:
        raise click.UsageError("nothing to change: pass --title, --description or --[no-]prerelease")
    r = app.repo(repo_flag)
    validate_ref(tag)
    app.run(
        lambda c: c.releases.update(
            r.owner, r.name, tag, title=title, description=description, prerelease=prerelease
        ),
        hostname=r.host,
    )
    click.echo(f'✓ Updated release "{tag}"')


@release.command()
@repo_option
@click.argument("tag")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation.")
@pass_app
def delete(app: AppContext, repo_flag: str | None, tag: str, yes: bool) -> None:
    """Delete a release. The tag itself is kept."""
    r = app.repo(repo_flag)
    validate_ref(tag)
    if not yes and not click.confirm(f'Delete release "{tag}"?'):
        click.echo("Cancelled.")
        return
    app.run(lambda c: c.releases.delete(r.owner, r.name, tag), hostname=r.host)
    click.echo(f'✓ Deleted release "{tag}"')


@release.command()
@repo_option
@click.argument("tag")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-n", "--name", default="", help="Asset name (default: the file name).")
@pass_app
def upload(app: AppContext, repo_flag: str | None, tag: str, file: Path, name: str) -> None:
    """Attach FILE to the release for TAG."""
    r = app.repo(repo_flag)
    validate_ref(tag)
    asset_name = safe_filename(name or file.name)
    if not asset_name:
        raise click.BadParameter(f"invalid asset name: {name or file.name}")

    click.echo(f"Uploading {asset_name} ({format_size(file.stat().st_size)})...")

    async def send(client: ForgeClient):
        with file.open("rb") as fh:
            return await client.releases.upload(r.owner, r.name, tag, asset_name, fh)

    asset = app.run(send, hostname=r.host)
    click.echo(f'✓ Uploaded "{asset.name or asset_name}" to release {tag}')


@release.command()
@repo_option
@click.argument("tag")
@click.argument("asset", required=False)
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None, help="Output file or directory.")
@click.option("-a", "--all", "all_assets", is_flag=True, help="Download every asset.")
@click.option("-l", "--list", "list_only", is_flag=True, help="List the release's assets.")
@pass_app
def download(
    app: AppContext,
    repo_flag: str | None,
    tag: str,
    asset: str | None,
    output: Path | None,
    all_assets: bool,
    list_only: bool,
) -> None:
    """Download release assets."""
    r = app.repo(repo_flag)
    validate_ref(tag)
    if not (asset or all_assets or list_only):
        raise click.UsageError("specify an ASSET, --all or --list")

    async def fetch_one(client: ForgeClient, name: str, target: Path) -> int:
        async with await client.releases.download_asset(r.owner, r.name, tag, name) as dl:
            return await _save(dl, target)

    async def run(client: ForgeClient) -> None:
        assets = await client.releases.assets(r.owner, r.name, tag)
        if list_only:
            if not assets:
                click.echo(f"No assets in release {tag}")
                return
            click.echo(f"\nAssets in release {tag}:\n")
            table = Table()
            table.add_column("NAME")
            table.add_column("SIZE", justify="right", no_wrap=True)
            for a in assets:
                table.add_row(escape(a.name), format_size(a.size))
            console.print(table)
            return

        if all_assets:
            out_dir = output or Path.cwd()
            out_dir.mkdir(parents=True, exist_ok=True)
            count = 0
            for a in assets:
                local = safe_filename(a.name)
                if not local:
                    click.echo(f"⚠ Skipping asset with invalid name: {a.name!r}")
                    continue
                click.echo(f"Downloading {local}...")
                await fetch_one(client, a.name, out_dir / local)
                count += 1
            click.echo(f"\n✓ Downloaded {count} assets to {out_dir}")
            return

        local = safe_filename(asset)
        if not local:
            raise click.BadParameter(f"invalid asset name: {asset}")
        target = output or Path(local)
        if target.is_dir():
            target = target / local
        click.echo(f"Downloading {asset}...")
        written = await fetch_one(client, asset, target)
        click.echo(f"✓ Downloaded {target} ({format_size(written)})")

    app.run(run, hostname=r.host)
