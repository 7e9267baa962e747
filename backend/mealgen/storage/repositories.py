from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from mealgen.errors import StorageError
from mealgen.logging import get_logger
from mealgen.storage import db
from mealgen.storage.models import JobStatus, LLMCallLog, MealPlanJob, utcnow

logger = get_logger(__name__)

# Statuses a job can be cancelled from; cancelled jobs are invisible to callers.
_VISIBLE_STATUSES = (
    JobStatus.PENDING.value,
    JobStatus.PROCESSING.value,
    JobStatus.COMPLETED.value,
    JobStatus.FAILED.value,
)


class JobStore:
    """
    Durable job records. Every status transition is a conditional UPDATE
    (``WHERE id = :id AND status = :expected``) so concurrent writers cannot
    both win: the loser sees ``rowcount == 0`` and gets ``False``/``None``.
    SQLAlchemy failures surface as StorageError.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        factory = self._session_factory or db.get_session
        try:
            with factory() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("job_store.failure error=%s", exc, exc_info=True)
            raise StorageError("Job storage is unavailable") from exc

    def _transition(
        self,
        session: Session,
        job_id: str,
        expected: tuple[str, ...],
        fence: Optional[int] = None,
        **values,
    ) -> bool:
        values.setdefault("updated_at", utcnow())
        stmt = update(MealPlanJob).where(MealPlanJob.id == job_id, MealPlanJob.status.in_(expected))
        if fence is not None:
            # only the holder of the current claim may write
            stmt = stmt.where(MealPlanJob.claim_count == fence)
        stmt = stmt.values(**values)
        result = session.execute(stmt)
        session.commit()
        return result.rowcount == 1

    def create(self, user_id: str, params: dict) -> MealPlanJob:
        job = MealPlanJob(user_id=user_id, params=params)
        with self._session() as session:
            session.add(job)
            session.commit()
            session.refresh(job)
        logger.info("job.created job_id=%s user_id=%s", job.id, user_id)
        return job

    def get(self, job_id: str) -> Optional[MealPlanJob]:
        with self._session() as session:
            return session.get(MealPlanJob, job_id)

    def get_visible(self, job_id: str) -> Optional[MealPlanJob]:
        """Like get(), but cancelled jobs read as missing."""
        job = self.get(job_id)
        if job is None or job.status == JobStatus.CANCELLED.value:
            return None
        return job

    def oldest_pending_id(self) -> Optional[str]:
        with self._session() as session:
            return session.exec(
                select(MealPlanJob.id)
                .where(MealPlanJob.status == JobStatus.PENDING.value)
                .order_by(MealPlanJob.created_at)
                .limit(1)
            ).first()

    def pending_ids_created_before(self, cutoff: datetime) -> list[str]:
        with self._session() as session:
            return list(
                session.exec(
                    select(MealPlanJob.id)
                    .where(MealPlanJob.status == JobStatus.PENDING.value, MealPlanJob.created_at < cutoff)
                    .order_by(MealPlanJob.created_at)
                )
            )

    def claim(self, job_id: str) -> Optional[MealPlanJob]:
        """Atomically move pending -> processing. Returns the claimed job, or None if someone else won."""
        now = utcnow()
        with self._session() as session:
            won = self._transition(
                session,
                job_id,
                (JobStatus.PENDING.value,),
                status=JobStatus.PROCESSING.value,
                processing_started_at=now,
                claim_count=MealPlanJob.claim_count + 1,
                updated_at=now,
            )
            if not won:
                logger.info("job.claim.lost job_id=%s", job_id)
                return None
            job = session.get(MealPlanJob, job_id)
        logger.info("job.claimed job_id=%s claim_count=%s", job_id, job.claim_count)
        return job

    def complete(self, job_id: str, result: dict, claim_count: Optional[int] = None) -> bool:
        """processing -> completed. With ``claim_count``, a writer whose claim was reclaimed is rejected."""
        now = utcnow()
        with self._session() as session:
            return self._transition(
                session,
                job_id,
                (JobStatus.PROCESSING.value,),
                fence=claim_count,
                status=JobStatus.COMPLETED.value,
                result=result,
                completed_at=now,
                updated_at=now,
            )

    def fail(self, job_id: str, error: str, claim_count: Optional[int] = None) -> bool:
        now = utcnow()
        with self._session() as session:
            return self._transition(
                session,
                job_id,
                (JobStatus.PROCESSING.value,),
                fence=claim_count,
                status=JobStatus.FAILED.value,
                error=error,
                completed_at=now,
                updated_at=now,
            )

    def cancel(self, job_id: str) -> bool:
        now = utcnow()
        with self._session() as session:
            return self._transition(
                session,
                job_id,
                _VISIBLE_STATUSES,
                status=JobStatus.CANCELLED.value,
                cancelled_at=now,
                updated_at=now,
            )

    def latest_completed(self, user_id: str, since: Optional[datetime] = None) -> Optional[MealPlanJob]:
        stmt = select(MealPlanJob).where(
            MealPlanJob.user_id == user_id,
            MealPlanJob.status == JobStatus.COMPLETED.value,
        )
        if since is not None:
            stmt = stmt.where(MealPlanJob.completed_at >= since)
        stmt = stmt.order_by(MealPlanJob.completed_at.desc()).limit(1)
        with self._session() as session:
            return session.exec(stmt).first()

    def reclaim_stale(self, cutoff: datetime, max_claims: int) -> tuple[list[str], list[str]]:
        """
        Hand processing jobs whose lease started before ``cutoff`` back to pending,
        or fail them once they have been claimed ``max_claims`` times.
        Returns (requeued_ids, failed_ids).
        """
        requeued: list[str] = []
        failed: list[str] = []
        with self._session() as session:
            stale = list(
                session.exec(
                    select(MealPlanJob).where(
                        MealPlanJob.status == JobStatus.PROCESSING.value,
                        MealPlanJob.processing_started_at < cutoff,
                    )
                )
            )
            for job in stale:
                guard = (
                    update(MealPlanJob)
                    .where(
                        MealPlanJob.id == job.id,
                        MealPlanJob.status == JobStatus.PROCESSING.value,
                        MealPlanJob.processing_started_at == job.processing_started_at,
                    )
                )
                now = utcnow()
                if job.claim_count >= max_claims:
                    stmt = guard.values(
                        status=JobStatus.FAILED.value,
                        error=f"Job abandoned after {job.claim_count} processing attempts",
                        completed_at=now,
                        updated_at=now,
                    )
                    bucket = failed
                else:
                    stmt = guard.values(
                        status=JobStatus.PENDING.value,
                        processing_started_at=None,
                        updated_at=now,
                    )
                    bucket = requeued
                if session.execute(stmt).rowcount == 1:
                    bucket.append(job.id)
            session.commit()
        if requeued or failed:
            logger.warning("job.reclaim requeued=%s failed=%s", requeued, failed)
        return requeued, failed


def log_llm_call(
    session: Session,
    prompt_name: str,
    prompt_version: str,
    model: str,
    input_payload: str,
    output_payload: str,
    latency_ms: int,
    usage: Optional[dict] = None,
) -> None:
    usage = usage or {}
    session.add(
        LLMCallLog(
            prompt_name=prompt_name,
            prompt_version=prompt_version,
            model=model,
            input_payload=input_payload,
            output_payload=output_payload,
            latency_ms=latency_ms,
            input_tokens=usage.get("input_tokens"),
            output_tokens=usage.get("output_tokens"),
            total_tokens=usage.get("total_tokens"),
        )
    )
    session.commit()
