"""
Celery utility functions for reliable task queueing.

Enqueueing is always best-effort from the request path: a missing or
unreachable broker is logged and reported as False, never raised.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Tuple
from celery import Task
from kombu import Connection
from app.core.config import settings

logger = logging.getLogger(__name__)

# Queueing runs off the event loop thread so uvicorn's loop never blocks on Redis
_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="celery_queue")

ENQUEUE_TIMEOUT_SECONDS = 5


def _queue_task_sync(task: Task, args: tuple, kwargs: dict) -> Tuple[bool, str, str]:
    """
    Queue a task on a fresh Kombu connection.

    Returns:
        (success, task_id, error_message)
    """
    try:
        # A fresh connection avoids stale pooled connections after Redis restarts
        with Connection(settings.REDIS_URL) as conn:
            result = task.apply_async(
                args=args,
                kwargs=kwargs,
                connection=conn,
                retry=True,
                retry_policy={
                    'max_retries': 2,
                    'interval_start': 0,
                    'interval_step': 0.2,
                    'interval_max': 0.5,
                }
            )
            return (True, result.id, "")
    except Exception as e:
        return (False, "", str(e))


def queue_task_safely(task: Task, *args, **kwargs) -> bool:
    """
    Queue a Celery task without letting broker problems reach the caller.

    Args:
        task: The Celery task to queue
        *args: Positional arguments for the task
        **kwargs: Keyword arguments for the task

    Returns:
        bool: True if the task was queued, False otherwise

    Example:
        from app.tasks.notification_tasks import send_notification_email_task
        queue_task_safely(send_notification_email_task, notification.id)
    """
    future = _executor.submit(_queue_task_sync, task, args, kwargs)
    try:
        success, task_id, error = future.result(timeout=ENQUEUE_TIMEOUT_SECONDS)
    except FutureTimeout:
        success, task_id, error = False, "", f"timed out after {ENQUEUE_TIMEOUT_SECONDS}s"

    if success:
        logger.info(f"Task {task.name} queued: {task_id}")
        return True

    logger.error(f"Failed to queue task {task.name}: {error}")
    return False
