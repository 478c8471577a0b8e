"""
Interview endpoints.

Scheduling, rescheduling and feedback are HR actions on the HR user's own
jobs; candidates can read their own interviews. Only the routes that touch
calendar events build the HR user's calendar client.
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import (
    get_calendar_interview_lifecycle,
    get_current_user,
    get_interview_lifecycle,
    require_admin,
    require_hr,
    require_staff,
)
from app.crud import application as application_crud
from app.crud import job as job_crud
from app.models.interview import Interview, InterviewStatus
from app.models.user import User, UserRole
from app.schemas.common import DataResponse, MessageResponse
from app.schemas.interview import (
    BulkInterviewCreateRequest,
    FeedbackRequest,
    InterviewCreateRequest,
    InterviewResponse,
    InterviewStatusUpdate,
    InterviewUpdateRequest,
    PreparationNotesUpdate,
)
from app.services.interview_lifecycle import InterviewLifecycle

router = APIRouter(prefix="/interviews", tags=["Interviews"])
logger = logging.getLogger(__name__)


def _owns_job(db: Session, job_id: int, user: User) -> bool:
    job = job_crud.get_by_id(db, job_id)
    return job is None or job.hr_id == user.id


def ensure_job_owner(db: Session, job_id: int, user: User) -> None:
    """HR users act only on interviews for their own jobs; admins on any."""
    if user.role == UserRole.HR and not _owns_job(db, job_id, user):
        raise HTTPException(status_code=403, detail="You can only manage interviews for your own jobs")


def _ensure_can_schedule(db: Session, request: InterviewCreateRequest, user: User) -> None:
    # Unknown applications fall through to the engine's 404
    application = application_crud.get_by_id(db, request.application_id)
    if application:
        ensure_job_owner(db, application.job_id, user)


def _ensure_can_view(db: Session, interview: Interview, user: User) -> None:
    if user.role == UserRole.CANDIDATE and interview.candidate_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed to view this interview")
    if user.role == UserRole.HR and not _owns_job(db, interview.job_id, user):
        raise HTTPException(status_code=403, detail="Not allowed to view this interview")


def _visible(db: Session, interviews: List[Interview], user: User) -> List[Interview]:
    if user.role == UserRole.CANDIDATE:
        return [i for i in interviews if i.candidate_id == user.id]
    if user.role == UserRole.HR:
        return [i for i in interviews if _owns_job(db, i.job_id, user)]
    return interviews


def _get_managed(db: Session, lifecycle: InterviewLifecycle, interview_id: int, user: User) -> Interview:
    interview = lifecycle.get(interview_id)
    ensure_job_owner(db, interview.job_id, user)
    return interview


@router.get("", response_model=List[InterviewResponse])
def list_interviews(
    status: Optional[InterviewStatus] = None,
    lifecycle: InterviewLifecycle = Depends(get_interview_lifecycle),
    _: User = Depends(require_admin)
):
    return lifecycle.list_all(status=status)


@router.get("/job/{job_id}", response_model=List[InterviewResponse])
def list_interviews_for_job(
    job_id: int,
    db: Session = Depends(get_db),
    lifecycle: InterviewLifecycle = Depends(get_interview_lifecycle),
    user: User = Depends(get_current_user)
):
    if user.role == UserRole.HR and not _owns_job(db, job_id, user):
        raise HTTPException(status_code=403, detail="You can only view interviews for your own jobs")
    return _visible(db, lifecycle.list_for_job(job_id), user)


@router.get("/candidate/{candidate_id}", response_model=List[InterviewResponse])
def list_interviews_for_candidate(
    candidate_id: int,
    db: Session = Depends(get_db),
    lifecycle: InterviewLifecycle = Depends(get_interview_lifecycle),
    user: User = Depends(get_current_user)
):
    """A candidate's interviews; HR users only see the ones for their own jobs."""
    if user.role == UserRole.CANDIDATE and candidate_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed to view these interviews")
    return _visible(db, lifecycle.list_for_candidate(candidate_id), user)


@router.get("/application/{application_id}", response_model=InterviewResponse)
def get_interview_for_application(
    application_id: int,
    db: Session = Depends(get_db),
    lifecycle: InterviewLifecycle = Depends(get_interview_lifecycle),
    user: User = Depends(get_current_user)
):
    interview = lifecycle.get_by_application(application_id)
    _ensure_can_view(db, interview, user)
    return interview


@router.get("/{interview_id}", response_model=InterviewResponse)
def get_interview(
    interview_id: int,
    db: Session = Depends(get_db),
    lifecycle: InterviewLifecycle = Depends(get_interview_lifecycle),
    user: User = Depends(get_current_user)
):
    interview = lifecycle.get(interview_id)
    _ensure_can_view(db, interview, user)
    return interview


@router.post("", status_code=201, response_model=DataResponse[InterviewResponse])
def schedule_interview(
    request: InterviewCreateRequest,
    db: Session = Depends(get_db),
    lifecycle: InterviewLifecycle = Depends(get_calendar_interview_lifecycle),
    user: User = Depends(require_hr)
):
    """
    Schedule an interview for an application.

    The application moves to "interview". Virtual interviews get a Google
    Meet link when the HR user has connected a calendar.
    """
    _ensure_can_schedule(db, request, user)
    interview = lifecycle.schedule_interview(request, interviewer=user)
    return {"message": "Interview scheduled successfully", "data": interview}


@router.post("/bulk", status_code=201, response_model=DataResponse[List[InterviewResponse]])
def bulk_schedule_interviews(
    request: BulkInterviewCreateRequest,
    db: Session = Depends(get_db),
    lifecycle: InterviewLifecycle = Depends(get_calendar_interview_lifecycle),
    user: User = Depends(require_hr)
):
    """Schedule several interviews at once. Nothing is saved if any item is invalid."""
    for item in request.interviews:
        _ensure_can_schedule(db, item, user)
    interviews = lifecycle.bulk_schedule(request.interviews, interviewer=user)
    return {"message": f"{len(interviews)} interviews scheduled successfully", "data": interviews}


@router.put("/{interview_id}", response_model=DataResponse[InterviewResponse])
def update_interview(
    interview_id: int,
    request: InterviewUpdateRequest,
    db: Session = Depends(get_db),
    lifecycle: InterviewLifecycle = Depends(get_calendar_interview_lifecycle),
    user: User = Depends(require_hr)
):
    _get_managed(db, lifecycle, interview_id, user)
    interview = lifecycle.edit_interview(interview_id, request)
    return {"message": "Interview updated successfully", "data": interview}


@router.patch("/{interview_id}/status", response_model=DataResponse[InterviewResponse])
def update_interview_status(
    interview_id: int,
    request: InterviewStatusUpdate,
    db: Session = Depends(get_db),
    lifecycle: InterviewLifecycle = Depends(get_interview_lifecycle),
    user: User = Depends(require_hr)
):
    _get_managed(db, lifecycle, interview_id, user)
    interview = lifecycle.update_status(interview_id, request.status)
    return {"message": "Interview status updated successfully", "data": interview}


@router.patch("/{interview_id}/preparation-notes", response_model=DataResponse[InterviewResponse])
def add_preparation_notes(
    interview_id: int,
    request: PreparationNotesUpdate,
    db: Session = Depends(get_db),
    lifecycle: InterviewLifecycle = Depends(get_interview_lifecycle),
    user: User = Depends(require_hr)
):
    _get_managed(db, lifecycle, interview_id, user)
    interview = lifecycle.add_preparation_notes(interview_id, request.preparation_notes)
    return {"message": "Preparation notes added successfully", "data": interview}


@router.put("/{interview_id}/feedback", response_model=DataResponse[InterviewResponse])
def add_feedback(
    interview_id: int,
    request: FeedbackRequest,
    db: Session = Depends(get_db),
    lifecycle: InterviewLifecycle = Depends(get_interview_lifecycle),
    user: User = Depends(require_hr)
):
    """
    Record interview feedback. A passed or failed result completes the interview.
    """
    _get_managed(db, lifecycle, interview_id, user)
    interview = lifecycle.add_feedback(interview_id, request.feedback, request.rating, request.result)
    return {"message": "Feedback added successfully", "data": interview}


@router.delete("/{interview_id}", response_model=MessageResponse)
def delete_interview(
    interview_id: int,
    db: Session = Depends(get_db),
    lifecycle: InterviewLifecycle = Depends(get_calendar_interview_lifecycle),
    user: User = Depends(require_staff)
):
    _get_managed(db, lifecycle, interview_id, user)
    lifecycle.delete_interview(interview_id)
    return MessageResponse(message="Interview deleted successfully")
