import asyncio

from celery.utils.log import get_task_logger

from mealgen.config import settings
from mealgen.logging import get_logger
from mealgen.services.jobs import worker
from mealgen.services.llm.generation_client import get_generation_client
from mealgen.storage.repositories import JobStore
from mealgen.workers.celery_app import celery_app

logger = get_task_logger(__name__)
app_logger = get_logger(__name__)


@celery_app.task(bind=True)
def process_meal_plan_job(self, job_id: str) -> dict:
    task_id = self.request.id
    logger.info("job.task.start task_id=%s job_id=%s", task_id, job_id)
    outcome = asyncio.run(worker.process_job(JobStore(), get_generation_client(), job_id))
    if outcome is None:
        app_logger.info("job.task.skip task_id=%s job_id=%s (not pending)", task_id, job_id)
        return {"status": "skipped", "job_id": job_id, "reason": "not_pending"}
    status = outcome.status.value if outcome.status else "discarded"
    return {"status": status, "job_id": job_id}


@celery_app.task
def reclaim_stale_jobs() -> dict:
    """Run by Celery Beat every ``reclaim_interval_s``; also safe to trigger by hand."""
    dispatch, failed = worker.reclaim_stale_jobs(
        JobStore(),
        lease_seconds=settings.job_lease_seconds,
        max_claims=settings.job_max_claims,
    )
    for job_id in dispatch:
        process_meal_plan_job.delay(job_id)
    app_logger.info("job.reclaim.done dispatched=%s failed=%s", len(dispatch), len(failed))
    return {"dispatched": dispatch, "failed": failed}


def enqueue_meal_plan_job(job_id: str) -> None:
    process_meal_plan_job.delay(job_id)
