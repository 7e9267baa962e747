"""
Caller-facing job operations: submit, status, cancel, recover, manual process.

Every per-job operation validates the id format before touching storage, then
enforces ownership on the fetched record even though storage-level access
control should already restrict it.
"""

import re
from datetime import datetime, timezone
from typing import Callable, Optional

from mealgen.errors import JobForbiddenError, JobNotFoundError, JobValidationError
from mealgen.logging import get_logger
from mealgen.schemas.job import CancelAck, JobStatusView, ProcessResponse, RecentJobView
from mealgen.schemas.meal_plan import MealPlanRequest
from mealgen.services.jobs.worker import run_claimed_job
from mealgen.services.llm.generation_client import GenerationClient
from mealgen.storage.models import JobStatus, MealPlanJob
from mealgen.storage.repositories import JobStore

logger = get_logger(__name__)

_JOB_ID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


def validate_job_id(job_id: str) -> str:
    if not isinstance(job_id, str) or not _JOB_ID_RE.match(job_id):
        raise JobValidationError("Invalid job ID format")
    return job_id.lower()


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive values are taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class JobLifecycleController:
    def __init__(self, store: JobStore, enqueue: Optional[Callable[[str], None]] = None) -> None:
        self.store = store
        self._enqueue = enqueue

    def submit(self, owner_id: str, request: MealPlanRequest) -> MealPlanJob:
        job = self.store.create(owner_id, request.model_dump(mode="json", by_alias=True))
        logger.info(
            "job.submitted job_id=%s user_id=%s days=%s meals_per_day=%s people=%s target_calories=%s",
            job.id,
            owner_id,
            request.days,
            request.meals_per_day,
            request.people,
            request.target_calories,
        )
        if self._enqueue is not None:
            try:
                self._enqueue(job.id)
            except Exception as exc:  # noqa: BLE001 - job stays pending; the reclaim sweep dispatches it
                logger.error("job.enqueue.failed job_id=%s error=%s", job.id, exc)
        return job

    def _owned_job(self, job_id: str, caller_id: str) -> MealPlanJob:
        job_id = validate_job_id(job_id)
        job = self.store.get_visible(job_id)
        if job is None:
            logger.info("job.not_found job_id=%s caller=%s", job_id, caller_id)
            raise JobNotFoundError(job_id)
        if job.user_id != caller_id:
            logger.info("job.forbidden job_id=%s caller=%s", job_id, caller_id)
            raise JobForbiddenError(job_id)
        return job

    def status(self, job_id: str, caller_id: str) -> JobStatusView:
        job = self._owned_job(job_id, caller_id)
        status = JobStatus(job.status)
        view = JobStatusView(job_id=job.id, status=status, created_at=job.created_at)
        if status is JobStatus.COMPLETED and job.result:
            view.result = job.result
        if status is JobStatus.FAILED and job.error:
            view.error = job.error
        if status is JobStatus.PROCESSING and job.processing_started_at:
            view.processing_started_at = job.processing_started_at
        return view

    def cancel(self, job_id: str, caller_id: str) -> CancelAck:
        job = self._owned_job(job_id, caller_id)
        if not self.store.cancel(job.id):
            # cancelled by a concurrent request between the read and the write
            raise JobNotFoundError(job.id)
        logger.info("job.cancelled job_id=%s user_id=%s previous_status=%s", job.id, caller_id, job.status)
        return CancelAck()

    def recover_recent(self, caller_id: str, since: Optional[datetime] = None) -> RecentJobView:
        job = self.store.latest_completed(caller_id, to_utc(since))
        if job is None:
            return RecentJobView()
        logger.info("job.recovered job_id=%s user_id=%s", job.id, caller_id)
        return RecentJobView(job_id=job.id, result=job.result, completed_at=job.completed_at)

    async def process(self, caller_id: str, client: GenerationClient, job_id: Optional[str] = None) -> ProcessResponse:
        """Run one pending job inline: the caller's ``job_id`` if given, otherwise the oldest pending job."""
        if job_id is not None:
            job_id = validate_job_id(job_id)
            job = self.store.get_visible(job_id)
            if job is None or job.status != JobStatus.PENDING.value:
                raise JobNotFoundError(job_id)
            if job.user_id != caller_id:
                raise JobForbiddenError(job_id)
        else:
            job_id = self.store.oldest_pending_id()
            if job_id is None:
                return ProcessResponse(processed=False, message="No pending jobs")

        claimed = self.store.claim(job_id)
        if claimed is None:
            return ProcessResponse(processed=False, job_id=job_id, message="Job already being processed")
        logger.info("job.process.manual job_id=%s caller=%s", job_id, caller_id)
        outcome = await run_claimed_job(self.store, client, claimed)
        return ProcessResponse(processed=True, job_id=job_id, status=outcome.status, error=outcome.error)
