"""
Celery Worker Configuration

Runs SEO audit jobs off the request path and sweeps stale ones on a
schedule.
"""

from celery import Celery
from celery.schedules import crontab

from seoaudit.config import settings
from seoaudit.core.logging import configure_logging


configure_logging()

# Create Celery app
celery_app = Celery(
    "seoaudit",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["seoaudit.tasks.audit_tasks"],
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # One browser per job; never hand a worker more than it is running
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=3600,
    task_soft_time_limit=3300,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=100,

    # Result backend settings
    result_expires=86400,  # 24 hours

    # Queue routing
    task_routes={
        "seoaudit.tasks.audit_tasks.*": {"queue": "audit"},
    },
    task_default_queue="default",
)

# Beat schedule for periodic tasks
celery_app.conf.beat_schedule = {
    "cleanup-stale-audits": {
        "task": "seoaudit.tasks.audit_tasks.cleanup_stale_audits",
        "schedule": crontab(minute="*/5"),
    },
}
