"""
Admin API endpoints: dashboard metrics, HR account management and
system-wide listings.
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import atomic, get_db
from app.core.deps import require_admin
from app.crud import application as application_crud
from app.crud import job as job_crud
from app.crud import user as user_crud
from app.models.application import ApplicationStatus
from app.models.job import JobStatus
from app.models.user import User, UserRole, UserStatus
from app.schemas.common import DataResponse, MessageResponse
from app.schemas.job import JobResponse
from app.schemas.user import DashboardMetrics, HRCreateRequest, HRUpdateRequest, UserResponse

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)


def _get_hr_or_404(db: Session, hr_id: int) -> User:
    user = user_crud.get_by_id(db, hr_id)
    if not user or user.role != UserRole.HR:
        raise HTTPException(status_code=404, detail="HR user not found")
    return user


@router.get("/dashboard", response_model=DashboardMetrics)
def get_dashboard_metrics(db: Session = Depends(get_db)):
    """System-wide counters for the admin dashboard."""
    return DashboardMetrics(
        total_jobs=job_crud.count(db),
        active_jobs=job_crud.count(db, status=JobStatus.ACTIVE),
        total_applications=application_crud.count(db),
        total_hires=application_crud.count(db, status=ApplicationStatus.HIRED),
        active_hr_users=user_crud.count(db, UserRole.HR, status=UserStatus.ACTIVE),
        total_candidates=user_crud.count(db, UserRole.CANDIDATE),
    )


# ----------------------------------------------------------------------
# HR management
# ----------------------------------------------------------------------

@router.get("/hr", response_model=List[UserResponse])
def list_hr_users(status: Optional[UserStatus] = None, db: Session = Depends(get_db)):
    return user_crud.get_multi(db, role=UserRole.HR, status=status, limit=1000)


@router.get("/hr/{hr_id}", response_model=UserResponse)
def get_hr_user(hr_id: int, db: Session = Depends(get_db)):
    return _get_hr_or_404(db, hr_id)


@router.post("/hr", status_code=201, response_model=DataResponse[UserResponse])
def create_hr_user(request: HRCreateRequest, db: Session = Depends(get_db)):
    if user_crud.get_by_email(db, request.email):
        raise HTTPException(status_code=409, detail="Email already registered")

    try:
        with atomic(db):
            hr_user = user_crud.create(
                db,
                email=request.email,
                password=request.password,
                role=UserRole.HR,
                name=request.name,
                phone=request.phone,
                department=request.department,
            )
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Email already registered")

    db.refresh(hr_user)
    logger.info(f"Admin created HR user {hr_user.id} ({hr_user.email})")
    return {"message": "HR user created successfully", "data": hr_user}


@router.put("/hr/{hr_id}", response_model=DataResponse[UserResponse])
def update_hr_user(hr_id: int, request: HRUpdateRequest, db: Session = Depends(get_db)):
    hr_user = _get_hr_or_404(db, hr_id)
    fields = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}

    if "email" in fields:
        existing = user_crud.get_by_email(db, fields["email"])
        if existing and existing.id != hr_id:
            raise HTTPException(status_code=409, detail="Email already registered")

    with atomic(db):
        user_crud.update(db, hr_user, fields)

    return {"message": "HR user updated successfully", "data": hr_user}


@router.delete("/hr/{hr_id}", response_model=MessageResponse)
def delete_hr_user(hr_id: int, db: Session = Depends(get_db)):
    """
    Delete an HR account.

    Refused while the user still owns jobs; close and delete (or keep) the
    jobs first, or set the account status to closed instead.
    """
    hr_user = _get_hr_or_404(db, hr_id)
    if job_crud.count_for_owner(db, hr_id):
        raise HTTPException(status_code=400, detail="Cannot delete an HR user who still owns jobs")

    with atomic(db):
        user_crud.delete(db, hr_user)

    logger.info(f"Admin deleted HR user {hr_id}")
    return MessageResponse(message="HR user deleted successfully")


# ----------------------------------------------------------------------
# System overview
# ----------------------------------------------------------------------

@router.get("/jobs", response_model=List[JobResponse])
def list_all_jobs(status: Optional[JobStatus] = None, db: Session = Depends(get_db)):
    return job_crud.get_multi(db, status=status, limit=1000)


@router.get("/candidates", response_model=List[UserResponse])
def list_all_candidates(db: Session = Depends(get_db)):
    return user_crud.get_multi(db, role=UserRole.CANDIDATE, limit=1000)
