"""Asynchronous meal-plan jobs: caller-facing lifecycle and the worker run."""

from mealgen.services.jobs.lifecycle import JobLifecycleController, validate_job_id
from mealgen.services.jobs.worker import process_job, reclaim_stale_jobs, run_claimed_job

__all__ = ["JobLifecycleController", "validate_job_id", "process_job", "reclaim_stale_jobs", "run_claimed_job"]
