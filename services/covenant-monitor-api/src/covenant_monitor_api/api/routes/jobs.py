"""Batch test jobs: enqueue on RQ and poll for status."""

from __future__ import annotations

from typing import Protocol

from covenant_persistence import CovenantRepository
from fastapi import APIRouter, Request, Response
from platform_core.config import CovenantMonitorSettings
from platform_core.json_utils import JSONValue, dump_json_str
from platform_core.logging import get_logger
from platform_workers.rq_harness import RQClientQueue

from ...core.container import JobStatus
from ..decode import parse_batch_request

_log = get_logger(__name__)

BATCH_JOB_FUNC = "covenant_monitor_api.worker.batch_job.process_batch_tests"

_ENQUEUE_RESPONSES: dict[int | str, dict[str, JSONValue]] = {
    202: {
        "description": "Job accepted",
        "content": {
            "application/json": {
                "example": {"job_id": "7f9c1a2b-3d4e-4f5a-8b6c-7d8e9f0a1b2c", "status": "queued"}
            }
        },
    },
    503: {"description": "Batch queue is disabled"},
}

_JOB_STATUS_RESPONSES: dict[int | str, dict[str, JSONValue]] = {
    200: {
        "description": "Job status; result is present once the job has finished",
        "content": {
            "application/json": {
                "example": {
                    "job_id": "7f9c1a2b-3d4e-4f5a-8b6c-7d8e9f0a1b2c",
                    "status": "finished",
                    "result": {
                        "status": "complete",
                        "loans_tested": 2,
                        "tests_run": 5,
                        "alerts_created": 1,
                        "loans_skipped": [],
                        "failures": [],
                    },
                }
            }
        },
    },
}


class ContainerProtocol(Protocol):
    settings: CovenantMonitorSettings

    def covenant_repo(self) -> CovenantRepository: ...

    def rq_queue(self) -> RQClientQueue: ...

    def get_job_status(self, job_id: str) -> JobStatus: ...


def build_router(get_container: ContainerProtocol) -> APIRouter:
    router = APIRouter(tags=["jobs"])

    async def _enqueue_batch(request: Request) -> Response:
        """Queue a job testing many loans.

        Body: {"loan_ids": [...]}. An empty or absent list tests every loan
        that has at least one covenant. Returns 202 with {job_id, status}.
        """
        body_bytes = await request.body()
        loan_ids = parse_batch_request(body_bytes)
        queue = get_container.rq_queue()
        if len(loan_ids) == 0:
            loan_ids = [loan["value"] for loan in get_container.covenant_repo().list_loan_ids()]
        rq_cfg = get_container.settings["rq"]
        payload: list[JSONValue] = list(loan_ids)
        job = queue.enqueue(
            BATCH_JOB_FUNC,
            dump_json_str(payload),
            job_timeout=rq_cfg["job_timeout_sec"],
            result_ttl=rq_cfg["result_ttl_sec"],
            failure_ttl=rq_cfg["failure_ttl_sec"],
            description=f"Covenant tests for {len(loan_ids)} loans",
        )
        job_id = job.get_id()
        _log.info("batch_tests_enqueued", extra={"job_id": job_id, "loan_count": len(loan_ids)})
        body: dict[str, JSONValue] = {"job_id": job_id, "status": "queued"}
        return Response(content=dump_json_str(body), media_type="application/json", status_code=202)

    def _get_job_status(job_id: str) -> Response:
        """Get status of a batch job, with its result once finished."""
        job_status = get_container.get_job_status(job_id)
        body: dict[str, JSONValue] = {
            "job_id": job_status["job_id"],
            "status": job_status["status"],
            "result": job_status["result"],
        }
        return Response(content=dump_json_str(body), media_type="application/json")

    router.add_api_route(
        "/tests/batch",
        _enqueue_batch,
        methods=["POST"],
        status_code=202,
        response_model=None,
        summary="Queue batch covenant tests",
        response_description="Job id",
        responses=_ENQUEUE_RESPONSES,
    )
    router.add_api_route(
        "/jobs/{job_id}",
        _get_job_status,
        methods=["GET"],
        response_model=None,
        summary="Get batch job status",
        response_description="Job status",
        responses=_JOB_STATUS_RESPONSES,
    )
    return router


__all__ = ["BATCH_JOB_FUNC", "build_router"]
