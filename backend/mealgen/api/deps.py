"""FastAPI dependencies; tests swap them via ``app.dependency_overrides``."""

from typing import Optional

from fastapi import Depends, Header

from mealgen.errors import AuthenticationError
from mealgen.services.auth import caller_verifier
from mealgen.services.jobs import JobLifecycleController
from mealgen.services.llm.generation_client import GenerationClient, get_generation_client
from mealgen.storage.repositories import JobStore
from mealgen.workers.tasks import enqueue_meal_plan_job


def get_caller_id(authorization: Optional[str] = Header(default=None)) -> str:
    scheme, _, token = (authorization or "").strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authentication required")
    return caller_verifier.verify(token.strip())


def get_job_store() -> JobStore:
    return JobStore()


def get_controller(store: JobStore = Depends(get_job_store)) -> JobLifecycleController:
    return JobLifecycleController(store, enqueue=enqueue_meal_plan_job)


def get_client() -> GenerationClient:
    return get_generation_client()
