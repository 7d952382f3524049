"""Tests for the pipeline service and models."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from gf_cli.client import ForgeClient
from gf_cli.exceptions import NotFoundError
from gf_cli.models.common import is_terminal
from gf_cli.models.pipelines import Job, Pipeline

PIPELINES = "/project/o/r/cicd/pipeline"


def pipeline_json(local_id: int, status: str = "SUCCESS", **extra) -> dict:
    return {
        "id": f"uuid-{local_id}",
        "localId": local_id,
        "status": status,
        "ref": "main",
        "commitId": "abcdef1234567890",
        "createdAt": "2024-03-01T12:00:00",
        "duration": 65,
        **extra,
    }


def job_json(local_id: int, name: str, status: str) -> dict:
    return {"id": f"job-{local_id}", "localId": local_id, "name": name, "stageName": "test", "status": status}


def pipeline_page(*items: dict) -> dict:
    return {"_embedded": {"restPipelineModelList": list(items)}}


class TestModels:
    def test_pipeline(self):
        p = Pipeline.model_validate(pipeline_json(12, "RUNNING"))
        assert p.state == "running"
        assert p.short_sha == "abcdef1"
        assert not is_terminal(p.state)
        assert p.started_at is None

    @pytest.mark.parametrize("status", ["SUCCESS", "PASSED", "FAILED", "CANCELED"])
    def test_terminal(self, status: str):
        assert is_terminal(Pipeline.model_validate(pipeline_json(1, status)).state)

    def test_negative_duration_clamped(self):
        assert Pipeline.model_validate(pipeline_json(1, duration=-30)).duration == 0
        assert Pipeline.model_validate(pipeline_json(1, duration=None)).duration == 0

    def test_job_stage_alias(self):
        job = Job.model_validate({**job_json(3, "lint", "PENDING"), "runner": None})
        assert job.stage == "test"
        assert job.state == "pending"
        assert job.runner is None


class TestGet:
    async def test_found_on_first_page(self, client: ForgeClient, mock_api: respx.MockRouter):
        mock_api.get(PIPELINES).mock(
            return_value=httpx.Response(200, json=pipeline_page(pipeline_json(3), pipeline_json(2)))
        )
        p = await client.pipelines.get("o", "r", 2)
        assert p.local_id == 2

    async def test_searches_following_pages(self, client: ForgeClient, mock_api: respx.MockRouter):
        def by_page(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params.get("page", "0"))
            assert request.url.params["size"] == "50"
            if page == 0:
                return httpx.Response(200, json=pipeline_page(*(pipeline_json(200 - i) for i in range(50))))
            return httpx.Response(200, json=pipeline_page(pipeline_json(120), pipeline_json(119)))

        route = mock_api.get(PIPELINES).mock(side_effect=by_page)
        p = await client.pipelines.get("o", "r", 119)
        assert p.local_id == 119
        assert route.call_count == 2

    async def test_short_page_stops_search(self, client: ForgeClient, mock_api: respx.MockRouter):
        route = mock_api.get(PIPELINES).mock(return_value=httpx.Response(200, json=pipeline_page(pipeline_json(1))))
        with pytest.raises(NotFoundError, match="pipeline #99"):
            await client.pipelines.get("o", "r", 99)
        assert route.call_count == 1

    async def test_search_is_bounded(self, client: ForgeClient, mock_api: respx.MockRouter):
        full = pipeline_page(*(pipeline_json(1000 + i) for i in range(50)))
        route = mock_api.get(PIPELINES).mock(return_value=httpx.Response(200, json=full))
        with pytest.raises(NotFoundError):
            await client.pipelines.get("o", "r", 1)
        assert route.call_count == 5


class TestOperations:
    async def test_list(self, client: ForgeClient, mock_api: respx.MockRouter):
        route = mock_api.get(PIPELINES).mock(return_value=httpx.Response(200, json=pipeline_page(pipeline_json(1))))
        pipelines = await client.pipelines.list("o", "r", size=10)
        assert [p.local_id for p in pipelines] == [1]
        assert route.calls.last.request.url.params["size"] == "10"

    async def test_jobs(self, client: ForgeClient, mock_api: respx.MockRouter):
        mock_api.get(f"{PIPELINES}/4/jobs").mock(
            return_value=httpx.Response(
                200,
                json={"_embedded": {"restPipelineJobModelList": [job_json(1, "build", "SUCCESS")]}},
            )
        )
        jobs = await client.pipelines.jobs("o", "r", 4)
        assert jobs[0].name == "build"
        assert jobs[0].state == "success"

    async def test_start(self, client: ForgeClient, mock_api: respx.MockRouter):
        route = mock_api.post(f"{PIPELINES}/start").mock(
            return_value=httpx.Response(200, json=pipeline_json(5, "PENDING"))
        )
        p = await client.pipelines.start("o", "r", "feature/x")
        assert p.local_id == 5
        assert json.loads(route.calls.last.request.content) == {"ref": "feature/x"}

    async def test_restart_refetches(self, client: ForgeClient, mock_api: respx.MockRouter):
        mock_api.post(f"{PIPELINES}/4/restart").mock(return_value=httpx.Response(200, content=b""))
        mock_api.get(PIPELINES).mock(return_value=httpx.Response(200, json=pipeline_page(pipeline_json(4, "RUNNING"))))
        p = await client.pipelines.restart("o", "r", 4)
        assert p.state == "running"

    async def test_cancel_and_delete(self, client: ForgeClient, mock_api: respx.MockRouter):
        cancel = mock_api.post(f"{PIPELINES}/4/cancel").mock(return_value=httpx.Response(204))
        delete = mock_api.delete(f"{PIPELINES}/4").mock(return_value=httpx.Response(204))
        await client.pipelines.cancel("o", "r", 4)
        await client.pipelines.delete("o", "r", 4)
        assert cancel.called and delete.called

    async def test_job_operations(self, client: ForgeClient, mock_api: respx.MockRouter):
        job_path = f"{PIPELINES}/4/job/2"
        mock_api.get(job_path).mock(return_value=httpx.Response(200, json=job_json(2, "test", "FAILED")))
        mock_api.post(f"{job_path}/restart").mock(return_value=httpx.Response(200, json=job_json(2, "test", "PENDING")))
        cancel = mock_api.post(f"{job_path}/cancel").mock(return_value=httpx.Response(204))
        mock_api.get(f"{job_path}/log").mock(return_value=httpx.Response(200, json={"content": "line 1\nline 2\n"}))

        assert (await client.pipelines.job("o", "r", 4, 2)).state == "failed"
        assert (await client.pipelines.restart_job("o", "r", 4, 2)).state == "pending"
        await client.pipelines.cancel_job("o", "r", 4, 2)
        assert cancel.called
        assert await client.pipelines.job_log("o", "r", 4, 2) == "line 1\nline 2\n"
