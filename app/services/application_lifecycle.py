"""
Application lifecycle engine.

Owns every application status change and its side effects:

    applied -> shortlisted -> interview -> hired
       |            |             |
       +------------+-------------+--> rejected

Hiring a candidate rejects every other application for the job and closes
the job, all in the same transaction as the hire itself. Notifications are
sent only after that transaction commits.
"""

import logging
from typing import Dict, FrozenSet, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import atomic
from app.core.errors import Conflict, InvalidState, NotFound, translate_integrity_error
from app.crud import application as application_crud
from app.crud import job as job_crud
from app.crud import user as user_crud
from app.models.application import Application, ApplicationStatus
from app.models.job import JobStatus
from app.services.notification_service import (
    APPLICATION_RECEIVED,
    APPLICATION_STATUS_UPDATED,
    ENTITY_APPLICATION,
    NotificationEmitter,
    status_update_text,
)

logger = logging.getLogger(__name__)

ALREADY_APPLIED = "You have already applied for this job"

ALLOWED_TRANSITIONS: Dict[ApplicationStatus, FrozenSet[ApplicationStatus]] = {
    ApplicationStatus.APPLIED: frozenset({
        ApplicationStatus.SHORTLISTED, ApplicationStatus.INTERVIEW, ApplicationStatus.REJECTED,
    }),
    ApplicationStatus.SHORTLISTED: frozenset({ApplicationStatus.INTERVIEW, ApplicationStatus.REJECTED}),
    ApplicationStatus.INTERVIEW: frozenset({ApplicationStatus.HIRED, ApplicationStatus.REJECTED}),
    ApplicationStatus.HIRED: frozenset(),
    ApplicationStatus.REJECTED: frozenset(),
}


def is_transition_allowed(current: ApplicationStatus, new: ApplicationStatus) -> bool:
    """Re-applying the current status is always allowed (idempotent)."""
    return current == new or new in ALLOWED_TRANSITIONS[current]


class ApplicationLifecycle:
    """
    Application state machine bound to one database session.

    Args:
        db: Session for this unit of work
        notifier: Emitter used for best-effort notifications
        strict_transitions: Enforce ALLOWED_TRANSITIONS. When False any status
            may follow any other.
    """

    def __init__(self, db: Session, notifier: NotificationEmitter, strict_transitions: bool = True):
        self.db = db
        self.notifier = notifier
        self.strict_transitions = strict_transitions

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def submit_application(
        self,
        job_id: int,
        candidate_id: int,
        cover_letter: Optional[str] = None
    ) -> Application:
        """
        Apply a candidate to a job.

        Raises:
            Conflict: The candidate already applied to this job
            NotFound: The job does not exist
            InvalidState: The job is not active
        """
        if application_crud.get_by_job_and_candidate(self.db, job_id, candidate_id):
            raise Conflict(ALREADY_APPLIED)

        job = job_crud.get_by_id(self.db, job_id)
        if not job:
            raise NotFound("Job not found")
        if job.status != JobStatus.ACTIVE:
            raise InvalidState("This job is not accepting applications")

        try:
            with atomic(self.db):
                application = application_crud.create(self.db, job_id, candidate_id, cover_letter)
        except IntegrityError as e:
            error = translate_integrity_error(e, "application")
            # A concurrent request for the same pair won the insert
            if isinstance(error, Conflict):
                raise Conflict(ALREADY_APPLIED) from e
            raise error from e

        logger.info(f"Candidate {candidate_id} applied to job {job_id} (application {application.id})")

        candidate = user_crud.get_by_id(self.db, candidate_id)
        self.notifier.emit(
            user_id=job.hr_id,
            type=APPLICATION_RECEIVED,
            title="New Application Received",
            message=f"{candidate.name} has applied for {job.title}",
            related_entity_type=ENTITY_APPLICATION,
            related_entity_id=application.id,
        )

        return application

    def update_status(self, application_id: int, new_status: ApplicationStatus) -> Application:
        """
        Move an application to a new status.

        Moving to HIRED also rejects every other application for the job and
        closes the job, in the same transaction. The candidate (and every
        auto-rejected candidate) is notified after commit.

        Raises:
            NotFound: The application does not exist
            InvalidState: The transition is not allowed
        """
        application = self._get_or_404(application_id)
        current = application.status

        if self.strict_transitions and not is_transition_allowed(current, new_status):
            raise InvalidState(
                f"Cannot change application status from {current.value} to {new_status.value}"
            )

        job_id = application.job_id
        rejected: List[Tuple[int, int]] = []

        with atomic(self.db):
            application_crud.set_status(self.db, application_id, new_status)
            if new_status == ApplicationStatus.HIRED:
                rejected = application_crud.reject_others(self.db, job_id, keep_id=application_id)
                job_crud.set_status(self.db, job_id, JobStatus.CLOSED)

        logger.info(f"Application {application_id}: {current.value} -> {new_status.value}")
        if new_status == ApplicationStatus.HIRED:
            logger.info(f"Job {job_id} closed after hire; {len(rejected)} other application(s) rejected")

        job_title = job_crud.get_by_id(self.db, job_id).title
        self._notify_status(application.candidate_id, application_id, new_status, job_title)
        for other_id, candidate_id in rejected:
            self._notify_status(candidate_id, other_id, ApplicationStatus.REJECTED, job_title)

        return application

    def add_notes(self, application_id: int, notes: str) -> Application:
        application = self._get_or_404(application_id)
        with atomic(self.db):
            application_crud.update_notes(self.db, application, notes)
        return application

    def delete_application(self, application_id: int) -> None:
        """
        Hard-delete an application (and, through the FK cascade, its interview).

        Raises:
            NotFound: The application does not exist
            InvalidState: Nothing was deleted
        """
        self._get_or_404(application_id)
        with atomic(self.db):
            if application_crud.delete(self.db, application_id) == 0:
                raise InvalidState("Failed to delete application")
        logger.info(f"Deleted application {application_id}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, application_id: int) -> Application:
        return self._get_or_404(application_id)

    def list_all(self, status: Optional[ApplicationStatus] = None, skip: int = 0, limit: int = 100) -> List[Application]:
        return application_crud.get_multi(self.db, status=status, skip=skip, limit=limit)

    def list_for_job(self, job_id: int, status: Optional[ApplicationStatus] = None) -> List[Application]:
        if not job_crud.get_by_id(self.db, job_id):
            raise NotFound("Job not found")
        return application_crud.get_multi(self.db, job_id=job_id, status=status, limit=1000)

    def list_for_candidate(self, candidate_id: int, status: Optional[ApplicationStatus] = None) -> List[Application]:
        return application_crud.get_multi(self.db, candidate_id=candidate_id, status=status, limit=1000)

    # ------------------------------------------------------------------

    def _get_or_404(self, application_id: int) -> Application:
        application = application_crud.get_by_id(self.db, application_id)
        if not application:
            raise NotFound("Application not found")
        return application

    def _notify_status(
        self,
        candidate_id: int,
        application_id: int,
        status: ApplicationStatus,
        job_title: str
    ) -> None:
        title, message = status_update_text(status, job_title)
        self.notifier.emit(
            user_id=candidate_id,
            type=APPLICATION_STATUS_UPDATED,
            title=title,
            message=message,
            related_entity_type=ENTITY_APPLICATION,
            related_entity_id=application_id,
        )
