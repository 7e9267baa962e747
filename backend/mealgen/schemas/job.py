from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from mealgen.storage.models import JobStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class JobCreatedResponse(_CamelModel):
    job_id: str = Field(alias="jobId")
    status: JobStatus = JobStatus.PENDING
    message: str = "Meal plan generation started"


class JobStatusView(_CamelModel):
    """Status-conditional view: optional fields are only set for the matching status."""

    job_id: str = Field(alias="jobId")
    status: JobStatus
    created_at: datetime = Field(alias="createdAt")
    result: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    processing_started_at: Optional[datetime] = Field(default=None, alias="processingStartedAt")


class RecentJobView(_CamelModel):
    job_id: Optional[str] = Field(default=None, alias="jobId")
    result: Optional[dict[str, Any]] = None
    completed_at: Optional[datetime] = Field(default=None, alias="completedAt")


class CancelAck(BaseModel):
    success: bool = True
    message: str = "Job cancelled successfully"


class ProcessRequest(_CamelModel):
    job_id: Optional[str] = Field(default=None, alias="jobId")


class ProcessResponse(_CamelModel):
    processed: bool
    job_id: Optional[str] = Field(default=None, alias="jobId")
    status: Optional[JobStatus] = None
    error: Optional[str] = None
    message: Optional[str] = None
