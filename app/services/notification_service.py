"""
Notification emitter.

Lifecycle engines call ``emit`` after their own transaction has committed.
Emitting is best-effort: a failure is logged and reported in the returned
``EmitResult`` but never raised, so it can never undo a state change.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.celery_utils import queue_task_safely
from app.core.database import atomic
from app.crud import notification as notification_crud
from app.models.application import ApplicationStatus
from app.tasks.notification_tasks import send_notification_email_task

logger = logging.getLogger(__name__)

# Notification types
APPLICATION_RECEIVED = "application_received"
APPLICATION_STATUS_UPDATED = "application_status_updated"
INTERVIEW_SCHEDULED = "interview_scheduled"
INTERVIEW_UPDATED = "interview_updated"

# Related entity types
ENTITY_APPLICATION = "application"
ENTITY_INTERVIEW = "interview"

# (title, message) per application status; {title} is the job title
_STATUS_TEMPLATES: Dict[ApplicationStatus, Tuple[str, str]] = {
    ApplicationStatus.SHORTLISTED: ("Application Shortlisted", "Your application for {title} has been shortlisted"),
    ApplicationStatus.INTERVIEW: ("Interview Scheduled", "Interview scheduled for {title}"),
    ApplicationStatus.REJECTED: ("Application Update", "Your application for {title} has been updated"),
    ApplicationStatus.HIRED: ("Congratulations!", "You have been selected for {title}"),
}


def status_update_text(status: ApplicationStatus, job_title: str) -> Tuple[str, str]:
    """
    Title and message for an application status change.

    Statuses without a template (e.g. APPLIED) yield empty strings; the
    notification is still written.
    """
    template = _STATUS_TEMPLATES.get(status)
    if template is None:
        return "", ""
    title, message = template
    return title, message.format(title=job_title)


@dataclass(frozen=True)
class EmitResult:
    ok: bool
    notification_id: Optional[int] = None
    error: Optional[str] = None


class NotificationEmitter:
    """
    Writes in-app notifications and optionally queues them for e-mail.

    Args:
        db: Session used for the notification write. Callers must have
            committed their own work first; a failed emit rolls back only
            the notification insert.
        email_enabled: Queue ``send_notification_email_task`` after each write
    """

    def __init__(self, db: Session, email_enabled: bool = False):
        self.db = db
        self.email_enabled = email_enabled

    def emit(
        self,
        user_id: int,
        type: str,
        title: str,
        message: str,
        related_entity_type: Optional[str] = None,
        related_entity_id: Optional[int] = None
    ) -> EmitResult:
        try:
            with atomic(self.db):
                notification = notification_crud.create(
                    self.db,
                    user_id=user_id,
                    type=type,
                    title=title,
                    message=message,
                    related_entity_type=related_entity_type,
                    related_entity_id=related_entity_id,
                )
                notification_id = notification.id
        except Exception as e:
            logger.error(f"Failed to create {type} notification for user {user_id}: {e}")
            return EmitResult(ok=False, error=str(e))

        if self.email_enabled:
            self._queue_email(notification_id)

        return EmitResult(ok=True, notification_id=notification_id)

    def _queue_email(self, notification_id: int) -> None:
        try:
            queue_task_safely(send_notification_email_task, notification_id)
        except Exception as e:
            logger.error(f"Could not queue e-mail for notification {notification_id}: {e}")
