"""
Application endpoints.

Thin layer over ApplicationLifecycle: role and ownership checks happen
here, every state change happens in the engine.
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_application_lifecycle, get_current_user, require_admin, require_candidate, require_hr
from app.crud import job as job_crud
from app.models.application import Application, ApplicationStatus
from app.models.user import User, UserRole
from app.schemas.application import (
    ApplicationCreateRequest,
    ApplicationNotesUpdate,
    ApplicationResponse,
    ApplicationStatusUpdate,
)
from app.schemas.common import DataResponse, MessageResponse
from app.services.application_lifecycle import ApplicationLifecycle

router = APIRouter(prefix="/applications", tags=["Applications"])
logger = logging.getLogger(__name__)


def ensure_can_view(application: Application, user: User) -> None:
    """Candidates see their own applications, HR the ones for their jobs."""
    if user.role == UserRole.CANDIDATE and application.candidate_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed to view this application")
    if user.role == UserRole.HR and application.job.hr_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed to view this application")


def ensure_job_owner(application: Application, user: User) -> None:
    if application.job.hr_id != user.id:
        raise HTTPException(status_code=403, detail="You can only manage applications for your own jobs")


@router.get("", response_model=List[ApplicationResponse])
def list_applications(
    status: Optional[ApplicationStatus] = None,
    skip: int = 0,
    limit: int = 100,
    lifecycle: ApplicationLifecycle = Depends(get_application_lifecycle),
    _: User = Depends(require_admin)
):
    """List every application (admin only)."""
    return lifecycle.list_all(status=status, skip=skip, limit=min(limit, 100))


@router.get("/me", response_model=List[ApplicationResponse])
def list_my_applications(
    status: Optional[ApplicationStatus] = None,
    lifecycle: ApplicationLifecycle = Depends(get_application_lifecycle),
    user: User = Depends(require_candidate)
):
    return lifecycle.list_for_candidate(user.id, status=status)


@router.get("/job/{job_id}", response_model=List[ApplicationResponse])
def list_applications_for_job(
    job_id: int,
    status: Optional[ApplicationStatus] = None,
    db: Session = Depends(get_db),
    lifecycle: ApplicationLifecycle = Depends(get_application_lifecycle),
    user: User = Depends(get_current_user)
):
    """Applications for one job (owning HR or admin)."""
    if user.role == UserRole.CANDIDATE:
        raise HTTPException(status_code=403, detail="Insufficient permissions")

    job = job_crud.get_by_id(db, job_id)
    if user.role == UserRole.HR and job and job.hr_id != user.id:
        raise HTTPException(status_code=403, detail="You can only view applications for your own jobs")
    return lifecycle.list_for_job(job_id, status=status)


@router.get("/candidate/{candidate_id}", response_model=List[ApplicationResponse])
def list_applications_for_candidate(
    candidate_id: int,
    lifecycle: ApplicationLifecycle = Depends(get_application_lifecycle),
    user: User = Depends(get_current_user)
):
    if user.role == UserRole.CANDIDATE and candidate_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed to view these applications")

    applications = lifecycle.list_for_candidate(candidate_id)
    if user.role == UserRole.HR:
        applications = [a for a in applications if a.job.hr_id == user.id]
    return applications


@router.get("/{application_id}", response_model=ApplicationResponse)
def get_application(
    application_id: int,
    lifecycle: ApplicationLifecycle = Depends(get_application_lifecycle),
    user: User = Depends(get_current_user)
):
    application = lifecycle.get(application_id)
    ensure_can_view(application, user)
    return application


@router.post("", status_code=201, response_model=DataResponse[ApplicationResponse])
def submit_application(
    request: ApplicationCreateRequest,
    lifecycle: ApplicationLifecycle = Depends(get_application_lifecycle),
    user: User = Depends(require_candidate)
):
    """
    Apply to an active job.

    Returns 409 if the candidate already applied, 404 if the job does not
    exist and 400 if it is not accepting applications.
    """
    application = lifecycle.submit_application(request.job_id, user.id, request.cover_letter)
    return {"message": "Application submitted successfully", "data": application}


@router.patch("/{application_id}/status", response_model=DataResponse[ApplicationResponse])
def update_application_status(
    application_id: int,
    request: ApplicationStatusUpdate,
    lifecycle: ApplicationLifecycle = Depends(get_application_lifecycle),
    user: User = Depends(require_hr)
):
    """
    Move an application through the hiring pipeline.

    Hiring closes the job and rejects every other application for it.
    """
    ensure_job_owner(lifecycle.get(application_id), user)
    application = lifecycle.update_status(application_id, request.status)
    return {"message": "Application status updated successfully", "data": application}


@router.patch("/{application_id}/notes", response_model=DataResponse[ApplicationResponse])
def add_application_notes(
    application_id: int,
    request: ApplicationNotesUpdate,
    lifecycle: ApplicationLifecycle = Depends(get_application_lifecycle),
    user: User = Depends(require_hr)
):
    ensure_job_owner(lifecycle.get(application_id), user)
    application = lifecycle.add_notes(application_id, request.notes)
    return {"message": "Notes added successfully", "data": application}


@router.delete("/{application_id}", response_model=MessageResponse)
def delete_application(
    application_id: int,
    lifecycle: ApplicationLifecycle = Depends(get_application_lifecycle),
    _: User = Depends(require_admin)
):
    lifecycle.delete_application(application_id)
    return MessageResponse(message="Application deleted successfully")
