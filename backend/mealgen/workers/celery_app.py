from celery import Celery

from mealgen.config import settings
from mealgen.logging import configure_logging, get_logger


celery_app = Celery("mealgen", broker=settings.redis_url, backend=settings.redis_url)
celery_app.conf.task_routes = {"mealgen.workers.tasks.*": {"queue": "generation"}}
celery_app.conf.worker_concurrency = settings.celery_worker_concurrency
# One generation at a time per worker process; a job must not sit prefetched behind a slow one.
celery_app.conf.worker_prefetch_multiplier = 1
celery_app.conf.task_acks_late = True

# Celery Beat: hand expired processing leases and orphaned pending jobs back to workers
celery_app.conf.beat_schedule = {
    "reclaim-stale-jobs": {
        "task": "mealgen.workers.tasks.reclaim_stale_jobs",
        "schedule": settings.reclaim_interval_s,
        "options": {"queue": "generation"},
    },
}

# Import tasks so they are registered with the worker
from mealgen.workers import tasks  # noqa: E402,F401

configure_logging()
logger = get_logger(__name__)
logger.info(
    "celery.configured broker=%s worker_concurrency=%s lease_s=%s",
    settings.redis_url,
    settings.celery_worker_concurrency,
    settings.job_lease_seconds,
)
