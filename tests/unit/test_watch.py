"""Tests for the live pipeline watcher."""

from __future__ import annotations

import asyncio
import io

import httpx
import pytest
import respx

from gf_cli.client import ForgeClient
from gf_cli.exceptions import ExitError
from gf_cli.git import Repository
from gf_cli.models.pipelines import Job, Pipeline
from gf_cli.watch import (
    CLEAR_SCREEN,
    SEPARATOR,
    STOPPED,
    PipelineWatcher,
    WatchOptions,
    exit_code_for,
    watch_pipeline,
)

REPO = Repository(host="git.example.com", owner="o", name="r")


class FakePipelines:
    """Serves a scripted sequence of pipeline statuses."""

    def __init__(self, statuses: list[str], delay: float = 0.0) -> None:
        self.statuses = list(statuses)
        self.delay = delay
        self.gets = 0

    async def get(self, owner: str, project: str, local_id: int) -> Pipeline:
        if self.delay:
            await asyncio.sleep(self.delay)
        status = self.statuses[min(self.gets, len(self.statuses) - 1)]
        self.gets += 1
        return Pipeline(local_id=local_id, status=status, ref="main", commit_id="abcdef123456")

    async def jobs(self, owner: str, project: str, local_id: int) -> list[Job]:
        return [
            Job(local_id=1, name="build", status="SUCCESS", duration=42),
            Job(local_id=2, name="test", status="RUNNING"),
        ]


class TTYBuffer(io.StringIO):
    def isatty(self) -> bool:
        return True


def _no_wait(monkeypatch):
    async def immediate(self, stop):
        return stop.is_set()

    monkeypatch.setattr(PipelineWatcher, "_sleep", immediate)


class TestOptions:
    def test_interval_clamped_up(self):
        assert WatchOptions(interval=0.2).effective_interval() == 1
        assert WatchOptions(interval=0).effective_interval() == 1

    def test_interval_in_range(self):
        assert WatchOptions(interval=300).effective_interval() == 300

    def test_interval_above_max_rejected(self):
        with pytest.raises(ValueError, match="between 1 and 300"):
            WatchOptions(interval=301).effective_interval()

    def test_repo_required(self):
        with pytest.raises(ValueError):
            PipelineWatcher(FakePipelines(["SUCCESS"]), 1, WatchOptions())

    @pytest.mark.parametrize(("status", "code"), [("success", 0), ("passed", 0), ("failed", 1), ("canceled", 1)])
    def test_exit_codes(self, status: str, code: int):
        assert exit_code_for(status) == code


class TestLoop:
    async def test_stops_on_terminal_status(self, monkeypatch):
        _no_wait(monkeypatch)
        out = io.StringIO()
        service = FakePipelines(["RUNNING", "RUNNING", "SUCCESS"])
        watcher = PipelineWatcher(service, 7, WatchOptions(repo=REPO), out=out, stop=asyncio.Event())
        await watcher.run()
        assert watcher.renders == 3
        assert service.gets == 3
        text = out.getvalue()
        assert "Pipeline #7 for main (abcdef1)" in text
        assert text.count(SEPARATOR) == 2
        assert CLEAR_SCREEN not in text
        assert "Overall: ✓ success" in text

    @pytest.mark.parametrize(("final", "code"), [("SUCCESS", 0), ("FAILED", 1), ("CANCELED", 1)])
    async def test_exit_status(self, monkeypatch, final: str, code: int):
        _no_wait(monkeypatch)
        service = FakePipelines(["RUNNING", "RUNNING", final])
        watcher = PipelineWatcher(
            service, 7, WatchOptions(exit_status=True, repo=REPO), out=io.StringIO(), stop=asyncio.Event()
        )
        with pytest.raises(ExitError) as exc_info:
            await watcher.run()
        assert exc_info.value.code == code
        assert watcher.renders == 3

    async def test_terminal_without_exit_status_returns(self, monkeypatch):
        _no_wait(monkeypatch)
        watcher = PipelineWatcher(
            FakePipelines(["FAILED"]), 7, WatchOptions(repo=REPO), out=io.StringIO(), stop=asyncio.Event()
        )
        await watcher.run()
        assert watcher.renders == 1

    async def test_stop_event_ends_cleanly(self):
        stop = asyncio.Event()
        stop.set()
        out = io.StringIO()
        watcher = PipelineWatcher(
            FakePipelines(["RUNNING"]), 7, WatchOptions(exit_status=True, repo=REPO), out=out, stop=stop
        )
        await watcher.run()
        assert watcher.renders == 1
        assert out.getvalue().rstrip().endswith(STOPPED.strip())

    async def test_stop_during_sleep(self):
        stop = asyncio.Event()
        watcher = PipelineWatcher(
            FakePipelines(["RUNNING"]), 7, WatchOptions(interval=300, repo=REPO), out=io.StringIO(), stop=stop
        )
        task = asyncio.create_task(watcher.run())
        await asyncio.sleep(0.05)
        stop.set()
        await asyncio.wait_for(task, timeout=2)
        assert watcher.renders == 1

    async def test_tty_clears_screen(self, monkeypatch):
        _no_wait(monkeypatch)
        out = TTYBuffer()
        watcher = PipelineWatcher(
            FakePipelines(["RUNNING", "SUCCESS"]), 7, WatchOptions(repo=REPO), out=out, stop=asyncio.Event()
        )
        await watcher.run()
        assert out.getvalue().count(CLEAR_SCREEN) == 1
        assert SEPARATOR not in out.getvalue()

    async def test_tick_deadline_keeps_watching(self, monkeypatch):
        _no_wait(monkeypatch)
        out = io.StringIO()
        stop = asyncio.Event()
        service = FakePipelines(["RUNNING"], delay=1.0)

        async def stop_after_first_tick(self, ev):
            stop.set()
            return True

        monkeypatch.setattr(PipelineWatcher, "_sleep", stop_after_first_tick)
        watcher = PipelineWatcher(service, 7, WatchOptions(repo=REPO), out=out, stop=stop, tick_timeout=0.01)
        await watcher.run()
        assert watcher.renders == 0
        assert "timed out" in out.getvalue()

    async def test_fetch_errors_abort(self, monkeypatch):
        class Broken(FakePipelines):
            async def get(self, owner, project, local_id):
                raise RuntimeError("boom")

        watcher = PipelineWatcher(Broken([]), 7, WatchOptions(repo=REPO), out=io.StringIO(), stop=asyncio.Event())
        with pytest.raises(RuntimeError, match="boom"):
            await watcher.run()

    def test_render_job_lines(self):
        out = io.StringIO()
        watcher = PipelineWatcher(FakePipelines(["RUNNING"]), 7, WatchOptions(repo=REPO), out=out)
        p = Pipeline(local_id=7, status="RUNNING", ref="main", commit_id="abcdef123456")
        watcher.render(p, [Job(name="build", status="SUCCESS", duration=42), Job(name="test", status="RUNNING")])
        lines = out.getvalue().splitlines()
        assert any("build" in line and "success" in line and "42s" in line for line in lines)
        assert any("test" in line and "running..." in line for line in lines)
        assert "Overall: ⧖ running" in out.getvalue()


async def test_watch_against_api(client: ForgeClient, mock_api: respx.MockRouter):
    """Three polls at the minimum interval: RUNNING, RUNNING, SUCCESS."""

    def page(status: str) -> dict:
        item = {"localId": 5, "status": status, "ref": "main", "commitId": "0123456789"}
        return {"_embedded": {"restPipelineModelList": [item]}}

    mock_api.get("/project/o/r/cicd/pipeline").mock(
        side_effect=[
            httpx.Response(200, json=page("RUNNING")),
            httpx.Response(200, json=page("RUNNING")),
            httpx.Response(200, json=page("SUCCESS")),
        ]
    )
    jobs = mock_api.get("/project/o/r/cicd/pipeline/5/jobs").mock(
        return_value=httpx.Response(200, json={"_embedded": {"restPipelineJobModelList": []}})
    )
    out = io.StringIO()
    with pytest.raises(ExitError) as exc_info:
        await watch_pipeline(
            client.pipelines, 5, WatchOptions(interval=1, exit_status=True, repo=REPO), out=out, stop=asyncio.Event()
        )
    assert exc_info.value.code == 0
    assert jobs.call_count == 3
    assert out.getvalue().count("Pipeline #5 for main (0123456)") == 3
