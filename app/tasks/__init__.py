"""
Celery tasks package.

Importing the Celery app first binds the shared tasks below to its Redis
broker, in the API process as well as in the worker.

- notification_tasks: e-mail delivery of in-app notifications
"""

from app.core.celery_app import celery_app
from app.tasks import notification_tasks

__all__ = ["celery_app", "notification_tasks"]
