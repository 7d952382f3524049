"""``gf pipeline``: CI/CD pipelines and their jobs."""

from __future__ import annotations

import click
from rich.markup import escape
from rich.table import Table

from ..client import ForgeClient
from ..git import current_branch, validate_ref
from ..output import console, format_duration, format_relative_time, status_badge, to_json
from ..watch import DEFAULT_INTERVAL, WatchOptions, watch_pipeline
from ._common import AppContext, json_option, parse_number, pass_app, repo_option, web_url


@click.group()
def pipeline() -> None:
    """Work with CI/CD pipelines."""


@pipeline.command("list")
@repo_option
@click.option("-L", "--limit", default=20, show_default=True, help="Maximum number to list.")
@json_option
@pass_app
def list_cmd(app: AppContext, repo_flag: str | None, limit: int, as_json: bool) -> None:
    """List recent pipelines."""
    r = app.repo(repo_flag)
    pipelines = app.run(lambda c: c.pipelines.list(r.owner, r.name, size=limit), hostname=r.host)
    if as_json:
        click.echo(to_json(pipelines))
        return
    if not pipelines:
        click.echo(f"No pipelines in {r.full_name}")
        return

    click.echo(f"\nShowing {len(pipelines)} pipelines in {r.full_name}\n")
    table = Table()
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("STATUS", no_wrap=True)
    table.add_column("REF", max_width=25)
    table.add_column("COMMIT", style="yellow", no_wrap=True)
    table.add_column("DURATION", justify="right", no_wrap=True)
    table.add_column("CREATED", no_wrap=True)
    for p in pipelines:
        table.add_row(
            f"#{p.local_id}",
            status_badge(p.state),
            escape(p.ref),
            p.short_sha,
            format_duration(p.duration),
            format_relative_time(p.created_at),
        )
    console.print(table)


@pipeline.command()
@repo_option
@click.argument("number")
@click.option("-w", "--web", is_flag=True, help="Open in the browser.")
@json_option
@pass_app
def view(app: AppContext, repo_flag: str | None, number: str, web: bool, as_json: bool) -> None:
    """Show a pipeline and its jobs."""
    r = app.repo(repo_flag)
    local_id = parse_number(number, "pipeline number")
    url = web_url(r, "cicd", "pipeline", local_id)
    if web:
        click.echo(f"Opening {url} in browser...")
        click.launch(url)
        return

    async def fetch(client: ForgeClient):
        found = await client.pipelines.get(r.owner, r.name, local_id)
        jobs = await client.pipelines.jobs(r.owner, r.name, local_id)
        return found, jobs

    p, jobs = app.run(fetch, hostname=r.host)
    if as_json:
        click.echo(to_json({"pipeline": p, "jobs": jobs}))
        return

    console.print(f"\n[bold]Pipeline #{p.local_id}[/bold] {status_badge(p.state)}")
    click.echo(f"Ref:      {p.ref}")
    click.echo(f"Commit:   {p.short_sha}")
    if p.source:
        click.echo(f"Trigger:  {p.source.lower()}")
    click.echo(f"Created:  {format_relative_time(p.created_at)}")
    click.echo(f"Duration: {format_duration(p.duration)}")

    if jobs:
        table = Table(title="Jobs", title_justify="left")
        table.add_column("ID", style="dim", no_wrap=True)
        table.add_column("NAME", max_width=25)
        table.add_column("STAGE", max_width=15)
        table.add_column("STATUS", no_wrap=True)
        table.add_column("DURATION", justify="right", no_wrap=True)
        for j in jobs:
            table.add_row(
                f"#{j.local_id}",
                escape(j.name),
                escape(j.stage),
                status_badge(j.state),
                format_duration(j.duration),
            )
        console.print()
        console.print(table)
    click.echo(f"\nView in browser: {url}")


@pipeline.command()
@repo_option
@click.argument("number")
@click.option(
    "-i",
    "--interval",
    type=float,
    default=DEFAULT_INTERVAL,
    show_default=True,
    help="Seconds between refreshes (1-300).",
)
@click.option("--exit-status", is_flag=True, help="Exit non-zero when the pipeline fails.")
@pass_app
def watch(app: AppContext, repo_flag: str | None, number: str, interval: float, exit_status: bool) -> None:
    """Watch a pipeline until it finishes."""
    r = app.repo(repo_flag)
    local_id = parse_number(number, "pipeline number")
    options = WatchOptions(interval=interval, exit_status=exit_status, repo=r)
    try:
        options.effective_interval()
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="'--interval'") from e

    app.run(lambda c: watch_pipeline(c.pipelines, local_id, options), hostname=r.host)


@pipeline.command()
@repo_option
@click.option("-b", "--ref", default="", help="Branch or tag to run (default: current branch).")
@click.option("-w", "--watch", "then_watch", is_flag=True, help="Watch the new pipeline.")
@pass_app
def run(app: AppContext, repo_flag: str | None, ref: str, then_watch: bool) -> None:
    """Start a new pipeline."""
    r = app.repo(repo_flag)
    ref = ref or current_branch()
    validate_ref(ref)

    async def start(client: ForgeClient):
        started = await client.pipelines.start(r.owner, r.name, ref)
        click.echo(f"✓ Started pipeline #{started.local_id} for {ref}")
        click.echo(web_url(r, "cicd", "pipeline", started.local_id))
        if then_watch:
            await watch_pipeline(client.pipelines, started.local_id, WatchOptions(repo=r))
        return started

    app.run(start, hostname=r.host)


@pipeline.command()
@repo_option
@click.argument("number")
@pass_app
def retry(app: AppContext, repo_flag: str | None, number: str) -> None:
    """Restart a pipeline."""
    r = app.repo(repo_flag)
    local_id = parse_number(number, "pipeline number")
    p = app.run(lambda c: c.pipelines.restart(r.owner, r.name, local_id), hostname=r.host)
    click.echo(f"✓ Restarted pipeline #{p.local_id} ({p.state})")


@pipeline.command()
@repo_option
@click.argument("number")
@pass_app
def cancel(app: AppContext, repo_flag: str | None, number: str) -> None:
    """Cancel a running pipeline."""
    r = app.repo(repo_flag)
    local_id = parse_number(number, "pipeline number")
    app.run(lambda c: c.pipelines.cancel(r.owner, r.name, local_id), hostname=r.host)
    click.echo(f"✓ Canceled pipeline #{local_id}")


@pipeline.command()
@repo_option
@click.argument("number")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation.")
@pass_app
def delete(app: AppContext, repo_flag: str | None, number: str, yes: bool) -> None:
    """Delete a pipeline."""
    r = app.repo(repo_flag)
    local_id = parse_number(number, "pipeline number")
    if not yes and not click.confirm(f"Delete pipeline #{local_id}?"):
        click.echo("Cancelled.")
        return
    app.run(lambda c: c.pipelines.delete(r.owner, r.name, local_id), hostname=r.host)
    click.echo(f"✓ Deleted pipeline #{local_id}")


@pipeline.group()
def job() -> None:
    """Work with pipeline jobs."""


@job.command("view")
@repo_option
@click.argument("pipeline_number")
@click.argument("job_number")
@json_option
@pass_app
def job_view(app: AppContext, repo_flag: str | None, pipeline_number: str, job_number: str, as_json: bool) -> None:
    """Show a single job."""
    r = app.repo(repo_flag)
    pipeline_id = parse_number(pipeline_number, "pipeline number")
    job_id = parse_number(job_number, "job number")
    j = app.run(lambda c: c.pipelines.job(r.owner, r.name, pipeline_id, job_id), hostname=r.host)
    if as_json:
        click.echo(to_json(j))
        return
    console.print(f"\n[bold]Job #{j.local_id} {escape(j.name)}[/bold] {status_badge(j.state)}")
    click.echo(f"Stage:    {j.stage or '-'}")
    click.echo(f"Runner:   {j.runner or '-'}")
    click.echo(f"Duration: {format_duration(j.duration)}")


@job.command("log")
@repo_option
@click.argument("pipeline_number")
@click.argument("job_number")
@pass_app
def job_log(app: AppContext, repo_flag: str | None, pipeline_number: str, job_number: str) -> None:
    """Print a job's log."""
    r = app.repo(repo_flag)
    pipeline_id = parse_number(pipeline_number, "pipeline number")
    job_id = parse_number(job_number, "job number")
    content = app.run(lambda c: c.pipelines.job_log(r.owner, r.name, pipeline_id, job_id), hostname=r.host)
    if not content:
        click.echo("No log output")
        return
    click.echo(content, nl=not content.endswith("\n"))


@job.command("retry")
@repo_option
@click.argument("pipeline_number")
@click.argument("job_number")
@pass_app
def job_retry(app: AppContext, repo_flag: str | None, pipeline_number: str, job_number: str) -> None:
    """Restart a job."""
    r = app.repo(repo_flag)
    pipeline_id = parse_number(pipeline_number, "pipeline number")
    job_id = parse_number(job_number, "job number")
    app.run(lambda c: c.pipelines.restart_job(r.owner, r.name, pipeline_id, job_id), hostname=r.host)
    click.echo(f"✓ Restarted job #{job_id} in pipeline #{pipeline_id}")


@job.command("cancel")
@repo_option
@click.argument("pipeline_number")
@click.argument("job_number")
@pass_app
def job_cancel(app: AppContext, repo_flag: str | None, pipeline_number: str, job_number: str) -> None:
    """Cancel a job."""
    r = app.repo(repo_flag)
    pipeline_id = parse_number(pipeline_number, "pipeline number")
    job_id = parse_number(job_number, "job number")
    app.run(lambda c: c.pipelines.cancel_job(r.owner, r.name, pipeline_id, job_id), hostname=r.host)
    click.echo(f"✓ Canceled job #{job_id} in pipeline #{pipeline_id}")
