"""
Celery application configuration.

Redis is both the message broker and result backend. The worker only runs
best-effort side effects (notification e-mails); nothing in the request
path waits for it.

Run a worker with:
    celery -A app.core.celery_app worker --loglevel=info
"""

from celery import Celery
from celery.signals import setup_logging as celery_setup_logging
from app.core.config import settings
from app.core.logging_config import setup_logging

celery_app = Celery(
    "hiring_lifecycle_worker",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["app.tasks.notification_tasks"],
)

celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    timezone="UTC",
    enable_utc=True,

    # Task behavior
    task_track_started=True,
    task_time_limit=120,
    task_soft_time_limit=90,
    task_acks_late=True,  # Re-deliver if the worker dies mid-send

    result_expires=3600,  # Results expire after 1 hour

    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=200,
)


@celery_setup_logging.connect
def _configure_worker_logging(**kwargs):
    """Worker logs use the same format as the API instead of Celery's own."""
    setup_logging(settings.LOG_LEVEL, json_logs=settings.JSON_LOGS, environment=settings.ENVIRONMENT)
