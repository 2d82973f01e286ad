"""
SEO audit endpoints.

Jobs are created here and executed by the Celery worker; clients poll
the job record for progress.
"""
import logging
from typing import Annotated

from fastapi import APIRouter, Header, status
from fastapi.concurrency import run_in_threadpool

from seoaudit.api.deps import JobStoreDep, UrlValidatorDep
from seoaudit.core.exceptions import BadRequestError, NotFoundError
from seoaudit.schemas.audit import (
    AuditCreate,
    AuditJob,
    AuditValidate,
    UrlValidationResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/seo-audits", tags=["SEO Audits"])


@router.post("/validate", response_model=UrlValidationResult)
async def validate_audit_urls(data: AuditValidate, validator: UrlValidatorDep):
    """Check a newline-delimited URL list without starting an audit."""
    # DNS resolution blocks
    return await run_in_threadpool(validator.validate, data.urls)


@router.post(
    "",
    response_model=AuditJob,
    status_code=status.HTTP_201_CREATED,
)
async def create_audit(
    data: AuditCreate,
    store: JobStoreDep,
    validator: UrlValidatorDep,
    requested_by: Annotated[str | None, Header(alias="X-Requested-By")] = None,
):
    """Validate the URLs and queue a new audit job."""
    result = await run_in_threadpool(validator.validate, data.urls)
    if not result.valid:
        raise BadRequestError({"errors": result.errors, "warnings": result.warnings})

    job = await store.create(result.urls, data.language, requested_by=requested_by)
    logger.info(
        f"[API] Audit {job.id} queued: {len(job.urls)} URL(s), "
        f"language={job.language}, requested_by={requested_by or 'anonymous'}"
    )

    from seoaudit.tasks.audit_tasks import run_audit
    run_audit.delay(job.id)

    return job


@router.get("/{job_id}", response_model=AuditJob)
async def get_audit(job_id: str, store: JobStoreDep):
    """Current state of an audit job, for polling."""
    job = await store.get(job_id)
    if job is None:
        raise NotFoundError("Audit")
    return job
