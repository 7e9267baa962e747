"""
Worker side of the job pipeline: claim, generate, write back.

A run always ends in exactly one write, completed or failed, and that write
is conditional on the job still being ``processing`` under the same claim
(``claim_count``). If the job was cancelled, or reclaimed and claimed again,
meanwhile, the write affects no row and the result is discarded.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from pydantic import ValidationError

from mealgen.errors import GenerationError, ParseError
from mealgen.logging import get_logger
from mealgen.schemas.meal_plan import MealPlanRequest
from mealgen.services.llm.generation_client import GenerationClient
from mealgen.services.meal_plan.generator import generate_meal_plan
from mealgen.storage.models import JobStatus, MealPlanJob, utcnow
from mealgen.storage.repositories import JobStore
from mealgen.utils.timing import time_span

logger = get_logger(__name__)


@dataclass
class RunOutcome:
    job_id: str
    status: Optional[JobStatus]  # None when the final write was discarded
    error: Optional[str] = None


def failure_message(exc: BaseException) -> str:
    if isinstance(exc, ParseError):
        return f"Failed to parse meal plan: {exc}"
    if isinstance(exc, GenerationError):
        return str(exc)
    if isinstance(exc, ValidationError):
        return "Invalid meal plan parameters"
    return str(exc) or "Unknown error"


async def run_claimed_job(store: JobStore, client: GenerationClient, job: MealPlanJob) -> RunOutcome:
    with time_span("job.run", job_id=job.id) as span:
        error: Optional[str] = None
        try:
            request = MealPlanRequest.model_validate(job.params)
            plan = await generate_meal_plan(request, client)
        except Exception as exc:
            error = failure_message(exc)
            if isinstance(exc, ParseError):
                logger.warning(
                    "job.parse_failed job_id=%s reason=%s raw=%s", job.id, exc.reason, exc.raw[:4000]
                )
            logger.error("job.failed job_id=%s error=%s", job.id, error)
            written = store.fail(job.id, error, claim_count=job.claim_count)
            status = JobStatus.FAILED
        else:
            written = store.complete(job.id, plan.model_dump(mode="json", by_alias=True), claim_count=job.claim_count)
            status = JobStatus.COMPLETED

        if not written:
            logger.info("job.write.discarded job_id=%s outcome=%s (no longer processing)", job.id, status.value)
            span["outcome"] = "discarded"
            return RunOutcome(job_id=job.id, status=None, error=error)
        span["outcome"] = status.value
        logger.info("job.finished job_id=%s status=%s", job.id, status.value)
        return RunOutcome(job_id=job.id, status=status, error=error)


async def process_job(store: JobStore, client: GenerationClient, job_id: str) -> Optional[RunOutcome]:
    """Claim ``job_id`` and run it. Returns None when the claim was lost or the job is not pending."""
    job = store.claim(job_id)
    if job is None:
        return None
    return await run_claimed_job(store, client, job)


def reclaim_stale_jobs(
    store: JobStore,
    lease_seconds: int,
    max_claims: int,
    now: Optional[datetime] = None,
) -> tuple[list[str], list[str]]:
    """
    Lease sweep. Processing jobs older than the lease go back to pending (or
    fail after ``max_claims``); returns (ids to dispatch, failed ids). Ids to
    dispatch also include pending jobs nobody picked up within the lease.
    """
    cutoff = (now or utcnow()) - timedelta(seconds=lease_seconds)
    requeued, failed = store.reclaim_stale(cutoff, max_claims)
    orphaned = [job_id for job_id in store.pending_ids_created_before(cutoff) if job_id not in requeued]
    if orphaned:
        logger.info("job.reclaim.orphaned_pending count=%s", len(orphaned))
    return requeued + orphaned, failed
