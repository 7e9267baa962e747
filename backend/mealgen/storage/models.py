import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import Column, DateTime, JSON
from sqlmodel import Field, SQLModel


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"  # soft-deleted; resolves to "not found" everywhere


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp; every datetime column is timestamptz."""
    return datetime.now(timezone.utc)


UTC_TIMESTAMP = DateTime(timezone=True)


def new_job_id() -> str:
    return str(uuid.uuid4())


class MealPlanJob(SQLModel, table=True):
    __tablename__ = "meal_plan_jobs"

    id: str = Field(default_factory=new_job_id, primary_key=True, max_length=36)
    user_id: str = Field(index=True)
    status: str = Field(default=JobStatus.PENDING.value, index=True, max_length=16)
    params: dict = Field(sa_column=Column(JSON, nullable=False))
    result: Optional[dict] = Field(default=None, sa_column=Column(JSON, default=None))
    error: Optional[str] = None
    claim_count: int = 0  # bumped on every pending -> processing transition
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTC_TIMESTAMP)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTC_TIMESTAMP)
    processing_started_at: Optional[datetime] = Field(default=None, sa_type=UTC_TIMESTAMP)
    completed_at: Optional[datetime] = Field(default=None, index=True, sa_type=UTC_TIMESTAMP)
    cancelled_at: Optional[datetime] = Field(default=None, sa_type=UTC_TIMESTAMP)


class LLMCallLog(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    prompt_name: str
    prompt_version: str
    model: str
    input_payload: str
    output_payload: str
    latency_ms: int
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTC_TIMESTAMP)
