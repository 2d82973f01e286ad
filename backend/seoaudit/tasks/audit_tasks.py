"""
Audit Tasks

Celery entry points for running an audit job and for the stale sweep.
Each task gets its own event loop, so each also gets its own database
engine; the module-level engine's connections belong to another loop.
"""

import asyncio
import logging

from celery import shared_task

from seoaudit.database import create_engine, create_session_maker
from seoaudit.services.audit_runner import build_orchestrator
from seoaudit.services.job_store import SqlAlchemyJobStore
from seoaudit.services.job_store import cleanup_stale_audits as sweep_stale_audits

logger = logging.getLogger(__name__)


def run_async(coro):
    """Helper to run async code in sync context."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@shared_task(bind=True)
def run_audit(self, job_id: str):
    """Run an SEO audit job to completion."""
    logger.info(f"[Task] run_audit {job_id} (task {self.request.id})")
    return run_async(_run_audit(job_id))


async def _run_audit(job_id: str) -> dict:
    engine = create_engine()
    store = SqlAlchemyJobStore(create_session_maker(engine))
    orchestrator = build_orchestrator(store)
    try:
        await orchestrator.run(job_id)
        job = await store.get(job_id)
    finally:
        await orchestrator.reviewer.llm.close()
        await engine.dispose()

    return {"job_id": job_id, "status": job.status.value if job else None}


@shared_task
def cleanup_stale_audits():
    """Mark audits stuck in running as failed."""
    return run_async(_cleanup_stale_audits())


async def _cleanup_stale_audits() -> dict:
    engine = create_engine()
    try:
        count = await sweep_stale_audits(SqlAlchemyJobStore(create_session_maker(engine)))
    finally:
        await engine.dispose()
    return {"stale_audits_marked": count}
