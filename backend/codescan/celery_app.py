"""Celery application configuration."""

from celery import Celery

from codescan.config import get_settings

settings = get_settings()

celery_app = Celery(
    "codescan",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["codescan.tasks.analyze_repo"],
)

# Configuration
celery_app.conf.update(
    # Task execution
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Task behavior
    task_track_started=True,
    task_time_limit=int(settings.git_fetch_timeout + settings.analyzer_timeout) + 120,
    task_soft_time_limit=int(settings.git_fetch_timeout + settings.analyzer_timeout) + 60,

    # Runs are not retried; failures are recorded on the analysis
    task_acks_late=True,
    task_reject_on_worker_lost=False,

    # Worker configuration
    worker_prefetch_multiplier=1,
    worker_concurrency=2,
)
