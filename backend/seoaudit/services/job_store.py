"""
Audit job persistence.

The pipeline only needs get / update (last write wins per field); the API
also creates jobs and the stale sweep fails abandoned ones.
"""

import copy
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from seoaudit.config import settings
from seoaudit.core.exceptions import AuditJobNotFound
from seoaudit.models.audit import SeoAuditJob
from seoaudit.schemas.audit import AuditJob, JobStatus

logger = logging.getLogger(__name__)

STALE_ERROR_MESSAGE = "Audit timed out (stale cleanup)"

UPDATABLE_FIELDS = frozenset(AuditJob.model_fields) - {"id", "created_at"}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_fields(fields: dict[str, Any]) -> None:
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update audit job fields: {', '.join(sorted(unknown))}")


class JobStore(ABC):
    """Where audit jobs live between the API, the worker and the poller."""

    @abstractmethod
    async def get(self, job_id: str) -> AuditJob | None:
        pass

    @abstractmethod
    async def create(
        self,
        urls: list[str],
        language: str,
        requested_by: str | None = None,
    ) -> AuditJob:
        pass

    @abstractmethod
    async def update(self, job_id: str, **fields: Any) -> None:
        """Overwrite the given fields; raises AuditJobNotFound."""
        pass

    @abstractmethod
    async def fail_stale(self, older_than: datetime) -> int:
        """Fail running jobs started before ``older_than``; returns the count."""
        pass


class InMemoryJobStore(JobStore):
    """Dict-backed store. Values are copied in and out so callers never share state."""

    def __init__(self):
        self._jobs: dict[str, AuditJob] = {}

    async def get(self, job_id: str) -> AuditJob | None:
        job = self._jobs.get(job_id)
        return job.model_copy(deep=True) if job else None

    async def create(
        self,
        urls: list[str],
        language: str,
        requested_by: str | None = None,
    ) -> AuditJob:
        job = AuditJob(
            id=str(uuid.uuid4()),
            urls=list(urls),
            language=language,
            requested_by=requested_by,
            created_at=utcnow(),
        )
        self._jobs[job.id] = job
        return job.model_copy(deep=True)

    async def update(self, job_id: str, **fields: Any) -> None:
        _check_fields(fields)
        job = self._jobs.get(job_id)
        if job is None:
            raise AuditJobNotFound(job_id)
        self._jobs[job_id] = job.model_copy(update=copy.deepcopy(fields))

    async def fail_stale(self, older_than: datetime) -> int:
        count = 0
        for job_id, job in self._jobs.items():
            if (
                job.status == JobStatus.RUNNING
                and job.started_at is not None
                and job.started_at < older_than
            ):
                self._jobs[job_id] = job.model_copy(update={
                    "status": JobStatus.FAILED,
                    "error": STALE_ERROR_MESSAGE,
                    "completed_at": utcnow(),
                })
                count += 1
        return count


def _to_column(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_to_column(v) for v in value]
    return value


class SqlAlchemyJobStore(JobStore):
    """Stores jobs in the ``seo_audits`` table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    @staticmethod
    def _to_schema(row: SeoAuditJob) -> AuditJob:
        return AuditJob.model_validate({
            "id": str(row.id),
            "urls": row.urls or [],
            "language": row.language,
            "status": row.status,
            "progress": row.progress,
            "results": row.results or [],
            "summary": row.summary,
            "report_path": row.report_path,
            "error": row.error,
            "requested_by": row.requested_by,
            "created_at": row.created_at,
            "started_at": row.started_at,
            "completed_at": row.completed_at,
        })

    @staticmethod
    def _parse_id(job_id: str) -> uuid.UUID | None:
        try:
            return uuid.UUID(str(job_id))
        except ValueError:
            return None

    async def get(self, job_id: str) -> AuditJob | None:
        key = self._parse_id(job_id)
        if key is None:
            return None
        async with self.session_maker() as session:
            row = await session.get(SeoAuditJob, key)
            return self._to_schema(row) if row else None

    async def create(
        self,
        urls: list[str],
        language: str,
        requested_by: str | None = None,
    ) -> AuditJob:
        async with self.session_maker() as session:
            row = SeoAuditJob(
                urls=list(urls),
                language=language,
                status=JobStatus.PENDING,
                results=[],
                requested_by=requested_by,
            )
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return self._to_schema(row)

    async def update(self, job_id: str, **fields: Any) -> None:
        _check_fields(fields)
        key = self._parse_id(job_id)
        if key is None:
            raise AuditJobNotFound(job_id)

        values = {name: _to_column(value) for name, value in fields.items()}
        async with self.session_maker() as session:
            result = await session.execute(
                update(SeoAuditJob).where(SeoAuditJob.id == key).values(**values)
            )
            await session.commit()
        if result.rowcount == 0:
            raise AuditJobNotFound(job_id)

    async def fail_stale(self, older_than: datetime) -> int:
        async with self.session_maker() as session:
            result = await session.execute(
                update(SeoAuditJob)
                .where(
                    SeoAuditJob.status == JobStatus.RUNNING,
                    SeoAuditJob.started_at < older_than,
                )
                .values(
                    status=JobStatus.FAILED,
                    error=STALE_ERROR_MESSAGE,
                    completed_at=utcnow(),
                )
            )
            await session.commit()
            return result.rowcount


async def cleanup_stale_audits(store: JobStore, minutes: int | None = None) -> int:
    """Fail audits stuck in ``running`` longer than the threshold."""
    minutes = minutes or settings.SEO_AUDIT_STALE_MINUTES
    count = await store.fail_stale(utcnow() - timedelta(minutes=minutes))
    if count:
        logger.warning(f"[AuditStore] Marked {count} stale audit(s) as failed")
    return count
