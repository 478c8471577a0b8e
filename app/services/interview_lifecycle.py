"""
Interview lifecycle engine.

Scheduling an interview also moves its application to INTERVIEW, in the
same transaction. Calendar events and notifications are best-effort
follow-ups that run after the commit.

Interview status only moves forward:

    not_scheduled -> scheduled -> completed
"""

import logging
from collections import Counter
from typing import List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import atomic
from app.core.errors import Conflict, InvalidState, NotFound, translate_integrity_error
from app.crud import application as application_crud
from app.crud import interview as interview_crud
from app.crud import job as job_crud
from app.crud import user as user_crud
from app.models.application import Application, ApplicationStatus
from app.models.interview import Interview, InterviewResult, InterviewStatus, InterviewType
from app.models.user import User
from app.schemas.interview import InterviewCreateRequest, InterviewUpdateRequest
from app.services.calendar_service import SchedulingOracle
from app.services.notification_service import (
    ENTITY_INTERVIEW,
    INTERVIEW_SCHEDULED,
    INTERVIEW_UPDATED,
    NotificationEmitter,
)

logger = logging.getLogger(__name__)

INTERVIEW_EXISTS = "Interview already exists for this application"

_STATUS_ORDER = {
    InterviewStatus.NOT_SCHEDULED: 0,
    InterviewStatus.SCHEDULED: 1,
    InterviewStatus.COMPLETED: 2,
}


class InterviewLifecycle:
    """
    Interview state machine bound to one database session.

    Args:
        db: Session for this unit of work
        notifier: Emitter used for best-effort notifications
        scheduler: Calendar oracle of the acting HR user, or None when no
            calendar is connected
        strict_transitions: Refuse status regressions
        default_duration_minutes: Event length when an interview has no duration
    """

    def __init__(
        self,
        db: Session,
        notifier: NotificationEmitter,
        scheduler: Optional[SchedulingOracle] = None,
        strict_transitions: bool = True,
        default_duration_minutes: int = 60
    ):
        self.db = db
        self.notifier = notifier
        self.scheduler = scheduler
        self.strict_transitions = strict_transitions
        self.default_duration_minutes = default_duration_minutes

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule_interview(self, data: InterviewCreateRequest, interviewer: User) -> Interview:
        """
        Schedule one interview and move its application to INTERVIEW.

        Raises:
            NotFound: The application does not exist
            Conflict: The application already has an interview
            InvalidState: job_id/candidate_id do not match the application
        """
        application = application_crud.get_by_id(self.db, data.application_id)
        if not application:
            raise NotFound("Application not found")
        self._check_matches(application, data)
        if interview_crud.get_by_application(self.db, data.application_id):
            raise Conflict(INTERVIEW_EXISTS)

        try:
            with atomic(self.db):
                interview = self._insert(data, interviewer.id)
                application_crud.set_status(self.db, application.id, ApplicationStatus.INTERVIEW)
        except IntegrityError as e:
            error = translate_integrity_error(e, "interview")
            if isinstance(error, Conflict):
                raise Conflict(INTERVIEW_EXISTS) from e
            raise error from e

        logger.info(f"Scheduled interview {interview.id} for application {application.id}")

        self._after_schedule(interview, interviewer)
        return interview

    def bulk_schedule(self, items: Sequence[InterviewCreateRequest], interviewer: User) -> List[Interview]:
        """
        Schedule several interviews at once, all or nothing.

        Every item is validated before anything is written; the inserts and
        the application status changes then commit as one transaction.

        Raises:
            InvalidState: Empty batch, or an item's ids do not match its application
            Conflict: An application appears twice or already has an interview
            NotFound: An application does not exist
        """
        if not items:
            raise InvalidState("No interviews provided")

        application_ids = [item.application_id for item in items]
        repeated = sorted(app_id for app_id, n in Counter(application_ids).items() if n > 1)
        if repeated:
            raise Conflict(f"Application {repeated[0]} appears more than once in the request")

        applications = {a.id: a for a in application_crud.get_by_ids(self.db, application_ids)}
        for item in items:
            application = applications.get(item.application_id)
            if not application:
                raise NotFound(f"Application {item.application_id} not found")
            self._check_matches(application, item)

        existing = interview_crud.get_application_ids_with_interview(self.db, application_ids)
        if existing:
            raise Conflict(f"Interview already exists for application {sorted(existing)[0]}")

        try:
            with atomic(self.db):
                interviews = [self._insert(item, interviewer.id) for item in items]
                application_crud.bulk_set_status(self.db, application_ids, ApplicationStatus.INTERVIEW)
        except IntegrityError as e:
            raise translate_integrity_error(e, "interview") from e

        logger.info(f"Bulk scheduled {len(interviews)} interview(s) by user {interviewer.id}")

        for interview in interviews:
            self._after_schedule(interview, interviewer)
        return interviews

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def edit_interview(self, interview_id: int, data: InterviewUpdateRequest) -> Interview:
        """
        Reschedule or edit an interview and notify the candidate.

        A linked calendar event is moved when the date or duration changes.
        """
        interview = self._get_or_404(interview_id)
        fields = data.model_dump(exclude_unset=True)
        if fields.get("interview_date") is None:
            fields.pop("interview_date", None)

        with atomic(self.db):
            interview_crud.update(self.db, interview, fields)

        if interview.calendar_event_id and self.scheduler and ({"interview_date", "duration"} & fields.keys()):
            try:
                self.scheduler.update_event(
                    interview.calendar_event_id,
                    interview.interview_date,
                    interview.duration or self.default_duration_minutes,
                )
            except Exception as e:
                logger.error(f"Failed to update calendar event for interview {interview.id}: {e}")

        job = job_crud.get_by_id(self.db, interview.job_id)
        self.notifier.emit(
            user_id=interview.candidate_id,
            type=INTERVIEW_UPDATED,
            title="Interview Updated",
            message=f"Your interview for {job.title} has been updated",
            related_entity_type=ENTITY_INTERVIEW,
            related_entity_id=interview.id,
        )
        return interview

    def update_status(self, interview_id: int, new_status: InterviewStatus) -> Interview:
        interview = self._get_or_404(interview_id)
        current = interview.status
        if self.strict_transitions and _STATUS_ORDER[new_status] < _STATUS_ORDER[current]:
            raise InvalidState(
                f"Cannot change interview status from {current.value} to {new_status.value}"
            )
        with atomic(self.db):
            interview_crud.update(self.db, interview, {"status": new_status})
        return interview

    def add_preparation_notes(self, interview_id: int, notes: str) -> Interview:
        interview = self._get_or_404(interview_id)
        with atomic(self.db):
            interview_crud.update(self.db, interview, {"preparation_notes": notes})
        return interview

    def add_feedback(
        self,
        interview_id: int,
        feedback: str,
        rating: Optional[int] = None,
        result: Optional[InterviewResult] = None
    ) -> Interview:
        """
        Record interviewer feedback.

        A final result (passed or failed) completes the interview in the
        same write. The application status is left to HR.

        Raises:
            NotFound: The interview does not exist
            InvalidState: rating is outside 1-5
        """
        if rating is not None and not 1 <= rating <= 5:
            raise InvalidState("Rating must be between 1 and 5")

        interview = self._get_or_404(interview_id)
        fields = {"feedback": feedback}
        if rating is not None:
            fields["rating"] = rating
        if result is not None:
            fields["result"] = result
            if result != InterviewResult.PENDING:
                fields["status"] = InterviewStatus.COMPLETED

        with atomic(self.db):
            interview_crud.update(self.db, interview, fields)
        return interview

    def delete_interview(self, interview_id: int) -> None:
        """
        Hard-delete an interview and cancel its calendar event (best-effort).
        """
        interview = self._get_or_404(interview_id)
        event_id = interview.calendar_event_id

        with atomic(self.db):
            if interview_crud.delete(self.db, interview_id) == 0:
                raise InvalidState("Failed to delete interview")

        logger.info(f"Deleted interview {interview_id}")

        if event_id and self.scheduler:
            try:
                self.scheduler.delete_event(event_id)
            except Exception as e:
                logger.error(f"Failed to delete calendar event {event_id}: {e}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, interview_id: int) -> Interview:
        return self._get_or_404(interview_id)

    def get_by_application(self, application_id: int) -> Interview:
        interview = interview_crud.get_by_application(self.db, application_id)
        if not interview:
            raise NotFound("Interview not found")
        return interview

    def list_all(self, status: Optional[InterviewStatus] = None) -> List[Interview]:
        return interview_crud.get_multi(self.db, status=status, limit=1000)

    def list_for_job(self, job_id: int) -> List[Interview]:
        return interview_crud.get_multi(self.db, job_id=job_id, limit=1000)

    def list_for_candidate(self, candidate_id: int) -> List[Interview]:
        return interview_crud.get_multi(self.db, candidate_id=candidate_id, limit=1000)

    # ------------------------------------------------------------------

    def _get_or_404(self, interview_id: int) -> Interview:
        interview = interview_crud.get_by_id(self.db, interview_id)
        if not interview:
            raise NotFound("Interview not found")
        return interview

    @staticmethod
    def _check_matches(application: Application, data: InterviewCreateRequest) -> None:
        if application.job_id != data.job_id or application.candidate_id != data.candidate_id:
            raise InvalidState(
                f"Job and candidate do not match application {application.id}"
            )

    def _insert(self, data: InterviewCreateRequest, interviewer_id: int) -> Interview:
        return interview_crud.create(
            self.db,
            application_id=data.application_id,
            job_id=data.job_id,
            candidate_id=data.candidate_id,
            interviewer_id=interviewer_id,
            interview_date=data.interview_date,
            duration=data.duration,
            type=data.type,
            meeting_link=data.meeting_link,
            preparation_notes=data.preparation_notes,
            status=InterviewStatus.SCHEDULED,
        )

    def _after_schedule(self, interview: Interview, interviewer: User) -> None:
        job = job_crud.get_by_id(self.db, interview.job_id)

        if interview.type == InterviewType.VIRTUAL and self.scheduler:
            self._create_calendar_event(interview, job, interviewer)

        self.notifier.emit(
            user_id=interview.candidate_id,
            type=INTERVIEW_SCHEDULED,
            title="Interview Scheduled",
            message=f"Your interview for {job.title} has been scheduled",
            related_entity_type=ENTITY_INTERVIEW,
            related_entity_id=interview.id,
        )

    def _create_calendar_event(self, interview: Interview, job, interviewer: User) -> None:
        candidate = user_crud.get_by_id(self.db, interview.candidate_id)
        duration = interview.duration or self.default_duration_minutes
        description = "\n".join([
            "Interview Details:",
            f"- Position: {job.title}",
            f"- Department: {job.department}",
            f"- Candidate: {candidate.name} ({candidate.email})",
            f"- Interviewer: {interviewer.name} ({interviewer.email})",
            f"- Duration: {duration} minutes",
        ])

        try:
            event = self.scheduler.create_event(
                summary=f"Interview: {job.title} - {candidate.name}",
                description=description,
                attendees=[candidate.email, interviewer.email],
                start=interview.interview_date,
                duration_minutes=duration,
            )
            with atomic(self.db):
                interview_crud.update(self.db, interview, {
                    "meeting_link": event.meeting_link or interview.meeting_link,
                    "calendar_event_id": event.event_id,
                })
        except Exception as e:
            logger.error(f"Failed to create calendar event for interview {interview.id}: {e}")
