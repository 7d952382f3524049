"""The ``gf`` command group."""

from __future__ import annotations

from urllib.parse import quote

import click
from rich.markup import escape

from .. import __version__
from ..client import ForgeClient
from ..exceptions import ExitError, ForgeError
from ..git import current_branch
from ..output import console, format_relative_time, state_badge, status_badge, truncate
from ._common import AppContext, pass_app, repo_option
from .api import api
from .auth import auth
from .issue import issue
from .mr import mr
from .pipeline import pipeline
from .release import release
from .repo import branch, commit, file, repo, tag
from .webhook import webhook


class ForgeGroup(click.Group):
    """Translates ForgeError into click's error reporting.

    ExitError becomes the process exit code without any message.
    """

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except ExitError as e:
            ctx.exit(e.code)
        except ForgeError as e:
            raise click.ClickException(str(e)) from e


@click.group(cls=ForgeGroup)
@click.version_option(__version__, prog_name="gf")
@click.option("--host", envvar="GF_HOST", default=None, help="Forge hostname (defaults to the active host).")
@click.pass_context
def cli(ctx: click.Context, host: str | None) -> None:
    """Work with GitFlic from the command line."""
    ctx.obj = AppContext(hostname=host)


@cli.command()
def version() -> None:
    """Print version information."""
    click.echo(f"gf version {__version__}")


@cli.command()
@repo_option
@click.argument("number", required=False, type=int)
@click.option("-b", "--branch", "open_branch", is_flag=True, help="Open the current branch.")
@click.option("-s", "--settings", is_flag=True, help="Open repository settings.")
@click.option("--issues", is_flag=True, help="Open the issue list.")
@click.option("--mrs", is_flag=True, help="Open the merge request list.")
@click.option("-m", "--mr", "open_mr", is_flag=True, help="Treat NUMBER as a merge request.")
@click.option("-p", "--pipeline", "open_pipelines", is_flag=True, help="Open the pipeline list.")
@pass_app
def browse(
    app: AppContext,
    repo_flag: str | None,
    number: int | None,
    open_branch: bool,
    settings: bool,
    issues: bool,
    mrs: bool,
    open_mr: bool,
    open_pipelines: bool,
) -> None:
    """Open the repository, an issue or a merge request in the browser."""
    r = app.repo(repo_flag)
    base = f"https://{r.host}/project/{r.owner}/{r.name}"
    if settings:
        url = f"{base}/settings"
    elif issues:
        url = f"{base}/issue"
    elif mrs or (open_mr and not number):
        url = f"{base}/merge-request"
    elif open_pipelines:
        url = f"{base}/cicd/pipeline"
    elif open_branch:
        url = f"{base}/branch/{quote(current_branch(), safe='')}"
    elif open_mr:
        url = f"{base}/merge-request/{number}"
    elif number:
        url = f"{base}/issue/{number}"
    else:
        url = base
    click.echo(f"Opening {url}")
    click.launch(url)


@cli.command()
@repo_option
@pass_app
def status(app: AppContext, repo_flag: str | None) -> None:
    """Show merge request and pipeline status for the current branch."""
    r = app.repo(repo_flag)
    branch_name = current_branch()

    async def fetch(client: ForgeClient):
        mrs = await client.merge_requests.list(r.owner, r.name, state="open")
        pipelines = await client.pipelines.list(r.owner, r.name)
        return mrs, pipelines

    mrs, pipelines = app.run(fetch, hostname=r.host)

    click.echo(f"\nCurrent branch: {branch_name}")
    click.echo("─" * 50)

    own = next((m for m in mrs if m.source_branch.title == branch_name), None)
    if own is None:
        click.echo("\n  No associated merge request")
    else:
        click.echo("\nAssociated MR:")
        console.print(f"  {state_badge(own.state, icon=True)} #{own.local_id} {escape(own.title)}")
        click.echo(f"    {own.source_branch.title} → {own.target_branch.title}")
        if own.has_conflicts:
            click.echo("    ⚠ Has conflicts")

    shown = [p for p in pipelines if p.ref == branch_name][:5] or pipelines[:3]
    if shown:
        click.echo("\nLatest pipelines:")
        for p in shown:
            where = "" if p.ref == branch_name else escape(f" [{truncate(p.ref, 20)}]")
            console.print(
                f"  {status_badge(p.state)} #{p.local_id}{where} "
                f"({format_relative_time(p.created_at)})"
            )

    others = [m for m in mrs if m is not own]
    if others:
        click.echo("\nOther open merge requests:")
        for m in others[:5]:
            click.echo(f"  #{m.local_id:<4} {truncate(m.title, 40)} [{truncate(m.source_branch.title, 15)}]")
        if len(others) > 5:
            click.echo(f"  ... and {len(others) - 5} more")
    click.echo()


cli.add_command(api)
cli.add_command(auth)
cli.add_command(repo)
cli.add_command(branch)
cli.add_command(tag)
cli.add_command(commit)
cli.add_command(file)
cli.add_command(mr)
cli.add_command(issue)
cli.add_command(pipeline)
cli.add_command(release)
cli.add_command(webhook)
