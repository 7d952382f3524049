"""Live pipeline watcher.

A single cooperative loop: fetch pipeline and jobs under a per-tick deadline,
redraw, then sleep until the next tick or until SIGINT/SIGTERM sets the stop
event. A terminal status ends the loop; with ``exit_status`` it is turned into
an :class:`~gf_cli.exceptions.ExitError`.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, TextIO

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .exceptions import ExitError
from .models.common import is_terminal
from .output import format_duration, status_badge, status_color, status_icon, styled

if TYPE_CHECKING:
    from .git import Repository
    from .models.pipelines import Job, Pipeline
    from .services.pipelines import PipelineService

logger = logging.getLogger(__name__)

MIN_INTERVAL = 1
MAX_INTERVAL = 300
DEFAULT_INTERVAL = 3
TICK_TIMEOUT = 30.0

CLEAR_SCREEN = "\033[H\033[2J"
SEPARATOR = "\n---"
HINT = "\n[Ctrl+C to stop watching]"
STOPPED = "\nStopped watching."

_SUCCESS = frozenset({"success", "passed"})


@dataclass
class WatchOptions:
    interval: float = DEFAULT_INTERVAL
    exit_status: bool = False
    repo: Repository | None = None

    def effective_interval(self) -> float:
        """Clamp up to the minimum; reject anything above the maximum."""
        if self.interval > MAX_INTERVAL:
            msg = f"interval must be between {MIN_INTERVAL} and {MAX_INTERVAL} seconds"
            raise ValueError(msg)
        return max(self.interval, MIN_INTERVAL)


def exit_code_for(status: str) -> int:
    return 0 if status in _SUCCESS else 1


class PipelineWatcher:
    def __init__(
        self,
        pipelines: PipelineService,
        pipeline_id: int,
        options: WatchOptions,
        *,
        out: TextIO | None = None,
        stop: asyncio.Event | None = None,
        tick_timeout: float = TICK_TIMEOUT,
    ) -> None:
        if options.repo is None:
            msg = "a repository is required to watch a pipeline"
            raise ValueError(msg)
        self._pipelines = pipelines
        self._pipeline_id = pipeline_id
        self._options = options
        self._interval = options.effective_interval()
        self._out = out or sys.stdout
        self._console = Console(file=self._out, highlight=False)
        self._stop = stop
        self._tick_timeout = tick_timeout
        self.renders = 0

    @property
    def is_tty(self) -> bool:
        isatty = getattr(self._out, "isatty", None)
        return bool(isatty and isatty())

    def _echo(self, text: str = "", nl: bool = True) -> None:
        click.echo(text, file=self._out, nl=nl)

    async def run(self) -> None:
        """Watch until the pipeline finishes or a stop signal arrives."""
        stop = self._stop or asyncio.Event()
        installed = self._install_signal_handlers(stop) if self._stop is None else []
        try:
            await self._loop(stop)
        finally:
            loop = asyncio.get_running_loop()
            for sig in installed:
                loop.remove_signal_handler(sig)

    @staticmethod
    def _install_signal_handlers(stop: asyncio.Event) -> list[signal.Signals]:
        loop = asyncio.get_running_loop()
        installed = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop.set)
            except (NotImplementedError, RuntimeError):
                logger.debug("Cannot install handler for %s", sig.name)
                continue
            installed.append(sig)
        return installed

    async def _loop(self, stop: asyncio.Event) -> None:
        first = True
        while True:
            if not first and self.is_tty:
                self._echo(CLEAR_SCREEN, nl=False)
            elif not first:
                self._echo(SEPARATOR)
            first = False

            status = await self._tick()
            if status is not None and is_terminal(status):
                if self._options.exit_status:
                    raise ExitError(exit_code_for(status))
                return

            self._echo(HINT)
            if await self._sleep(stop):
                self._echo(STOPPED)
                return

    async def _sleep(self, stop: asyncio.Event) -> bool:
        """Wait one interval. True when the stop event fired first."""
        try:
            await asyncio.wait_for(stop.wait(), timeout=self._interval)
        except TimeoutError:
            return False
        return True

    async def _tick(self) -> str | None:
        """Fetch and render once. Returns the normalized status, None on deadline."""
        repo = self._options.repo
        try:
            async with asyncio.timeout(self._tick_timeout):
                pipeline = await self._pipelines.get(repo.owner, repo.name, self._pipeline_id)
                jobs = await self._pipelines.jobs(repo.owner, repo.name, self._pipeline_id)
        except TimeoutError:
            logger.debug("Tick exceeded %.0fs deadline", self._tick_timeout)
            self._echo("\nAPI request timed out; will retry on next refresh")
            return None
        self.render(pipeline, jobs)
        return pipeline.state

    def render(self, pipeline: Pipeline, jobs: list[Job]) -> None:
        self.renders += 1
        self._console.print(
            f"\n[bold]Pipeline #{pipeline.local_id}[/bold] for {escape(pipeline.ref)} ({pipeline.short_sha})\n"
        )
        table = Table.grid(padding=(0, 1))
        table.add_column(min_width=2, justify="right")
        table.add_column(min_width=20)
        table.add_column(min_width=15)
        table.add_column()
        for job in jobs:
            state = job.state
            label = "running..." if state == "running" else state
            table.add_row(
                styled(status_icon(state), status_color(state)),
                escape(job.name),
                escape(label),
                format_duration(job.duration),
            )
        self._console.print(table)
        self._console.print("\nOverall: " + status_badge(pipeline.state))


async def watch_pipeline(
    pipelines: PipelineService,
    pipeline_id: int,
    options: WatchOptions,
    *,
    out: TextIO | None = None,
    stop: asyncio.Event | None = None,
) -> None:
    await PipelineWatcher(pipelines, pipeline_id, options, out=out, stop=stop).run()
