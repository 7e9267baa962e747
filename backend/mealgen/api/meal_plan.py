"""
Meal-plan jobs. POST returns 202 with a job id straight away; clients poll
GET /meal-plan/status/{job_id}, or GET /meal-plan/recent after losing the id.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from mealgen.api.deps import get_caller_id, get_client, get_controller
from mealgen.logging import get_logger
from mealgen.schemas.job import CancelAck, JobCreatedResponse, JobStatusView, ProcessRequest
from mealgen.schemas.meal_plan import MealPlanRequest
from mealgen.services.jobs import JobLifecycleController
from mealgen.services.llm.generation_client import GenerationClient

router = APIRouter(prefix="/meal-plan")
logger = get_logger(__name__)


@router.post("", status_code=202, response_model=JobCreatedResponse)
def submit_meal_plan_job(
    request: MealPlanRequest,
    caller_id: str = Depends(get_caller_id),
    controller: JobLifecycleController = Depends(get_controller),
) -> JobCreatedResponse:
    job = controller.submit(caller_id, request)
    return JobCreatedResponse(job_id=job.id)


@router.get("/status/{job_id}", response_model=JobStatusView, response_model_exclude_none=True)
def get_job_status(
    job_id: str,
    caller_id: str = Depends(get_caller_id),
    controller: JobLifecycleController = Depends(get_controller),
) -> JobStatusView:
    return controller.status(job_id, caller_id)


@router.get("/recent")
def recover_recent_job(
    since: Optional[datetime] = None,
    caller_id: str = Depends(get_caller_id),
    controller: JobLifecycleController = Depends(get_controller),
) -> dict:
    """Most recent completed job for the caller, optionally completed at or after ``since``."""
    view = controller.recover_recent(caller_id, since)
    if view.job_id is None:
        return {"result": None}
    return view.model_dump(mode="json", by_alias=True)


@router.post("/process")
async def process_pending_job(
    body: Optional[ProcessRequest] = Body(default=None),
    caller_id: str = Depends(get_caller_id),
    controller: JobLifecycleController = Depends(get_controller),
    client: GenerationClient = Depends(get_client),
):
    """Manual trigger: run the caller's pending ``jobId`` inline, or the oldest pending job."""
    outcome = await controller.process(caller_id, client, body.job_id if body else None)
    payload = outcome.model_dump(mode="json", by_alias=True, exclude_none=True)
    if not outcome.processed and outcome.job_id is not None:
        return JSONResponse(payload, status_code=409)
    return payload


@router.delete("/{job_id}", response_model=CancelAck)
def cancel_job(
    job_id: str,
    caller_id: str = Depends(get_caller_id),
    controller: JobLifecycleController = Depends(get_controller),
) -> CancelAck:
    return controller.cancel(job_id, caller_id)
