"""Pipeline and job service."""

from __future__ import annotations

from ..exceptions import NotFoundError
from ..models.pipelines import Job, JobLog, Pipeline
from ._helpers import Service, page_params, project_path, unwrap

PIPELINE_LIST_KEY = "restPipelineModelList"
JOB_LIST_KEY = "restPipelineJobModelList"

SEARCH_MAX_PAGES = 5
SEARCH_PAGE_SIZE = 50


class PipelineService(Service):
    async def list(self, owner: str, project: str, page: int = 0, size: int = 0) -> list[Pipeline]:
        data = await self._client.get(
            project_path(owner, project, "cicd", "pipeline"),
            params=page_params(page, size) or None,
        )
        return [Pipeline.from_api(p) for p in unwrap(data, PIPELINE_LIST_KEY)]

    async def get(self, owner: str, project: str, local_id: int) -> Pipeline:
        """Locate a pipeline by local id. There is no single-pipeline endpoint."""
        for page in range(SEARCH_MAX_PAGES):
            pipelines = await self.list(owner, project, page=page, size=SEARCH_PAGE_SIZE)
            for pipeline in pipelines:
                if pipeline.local_id == local_id:
                    return pipeline
            if len(pipelines) < SEARCH_PAGE_SIZE:
                break
        raise NotFoundError(f"pipeline #{local_id}")

    async def jobs(self, owner: str, project: str, local_id: int) -> list[Job]:
        data = await self._client.get(project_path(owner, project, "cicd", "pipeline", local_id, "jobs"))
        return [Job.from_api(j) for j in unwrap(data, JOB_LIST_KEY)]

    async def start(self, owner: str, project: str, ref: str) -> Pipeline:
        data = await self._client.post(
            project_path(owner, project, "cicd", "pipeline", "start"),
            json_data={"ref": ref},
        )
        return Pipeline.from_api(data or {})

    async def restart(self, owner: str, project: str, local_id: int) -> Pipeline:
        # The restart call answers with an empty body.
        await self._client.post(project_path(owner, project, "cicd", "pipeline", local_id, "restart"))
        return await self.get(owner, project, local_id)

    async def cancel(self, owner: str, project: str, local_id: int) -> None:
        await self._client.post(project_path(owner, project, "cicd", "pipeline", local_id, "cancel"))

    async def delete(self, owner: str, project: str, local_id: int) -> None:
        await self._client.delete(project_path(owner, project, "cicd", "pipeline", local_id))

    async def job(self, owner: str, project: str, pipeline_id: int, job_id: int) -> Job:
        data = await self._client.get(
            project_path(owner, project, "cicd", "pipeline", pipeline_id, "job", job_id)
        )
        return Job.from_api(data or {})

    async def restart_job(self, owner: str, project: str, pipeline_id: int, job_id: int) -> Job:
        data = await self._client.post(
            project_path(owner, project, "cicd", "pipeline", pipeline_id, "job", job_id, "restart")
        )
        return Job.from_api(data or {})

    async def cancel_job(self, owner: str, project: str, pipeline_id: int, job_id: int) -> None:
        await self._client.post(
            project_path(owner, project, "cicd", "pipeline", pipeline_id, "job", job_id, "cancel")
        )

    async def job_log(self, owner: str, project: str, pipeline_id: int, job_id: int) -> str:
        data = await self._client.get(
            project_path(owner, project, "cicd", "pipeline", pipeline_id, "job", job_id, "log")
        )
        return JobLog.from_api(data or {}).content
