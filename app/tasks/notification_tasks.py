"""
Celery tasks for notification delivery.

The in-app notification row is already committed when these run; e-mail
is an extra, best-effort channel on top of it.
"""

import logging
from celery import shared_task
from app.core.database import SessionLocal, atomic
from app.crud import notification as notification_crud
from app.crud import user as user_crud
from app.services.email_service import get_email_service

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """SES refused or failed to send; raised so Celery retries."""


@shared_task(
    bind=True,
    name="send_notification_email_task",
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(EmailDeliveryError,),
    retry_backoff=True,
    retry_backoff_max=600,  # Max 10 minutes between retries
    retry_jitter=True
)
def send_notification_email_task(self, notification_id: int):
    """
    E-mail a stored notification to its recipient and flag it as sent.

    Args:
        notification_id: Notification to deliver

    Returns:
        dict: Delivery result
    """
    logger.info(f"[Task {self.request.id}] Emailing notification {notification_id} (attempt {self.request.retries + 1})")

    db = SessionLocal()
    try:
        notification = notification_crud.get_by_id(db, notification_id)
        if not notification:
            logger.warning(f"[Task {self.request.id}] Notification {notification_id} no longer exists")
            return {"status": "skipped", "message": "Notification not found"}

        if notification.email_sent:
            return {"status": "skipped", "message": "Already sent"}

        user = user_crud.get_by_id(db, notification.user_id)
        sent = get_email_service().send_notification_email(
            to_email=user.email,
            title=notification.title,
            message=notification.message,
            user_name=user.name,
        )
        if not sent:
            raise EmailDeliveryError(f"Failed to email notification {notification_id} to {user.email}")

        with atomic(db):
            notification_crud.mark_email_sent(db, notification_id)

        return {"status": "success", "notification_id": notification_id}

    finally:
        db.close()
