import logging
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session

from app.core.database import atomic, get_db
from app.core.deps import get_current_user, require_hr
from app.crud import job as job_crud
from app.models.job import Job, JobStatus
from app.models.user import User, UserRole
from app.schemas.common import DataResponse
from app.schemas.job import JobCreateRequest, JobUpdateRequest, JobResponse

router = APIRouter(prefix="/jobs", tags=["Jobs"])
logger = logging.getLogger(__name__)


def _get_owned_job(db: Session, job_id: int, user: User) -> Job:
    job = job_crud.get_by_id(db, job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    if job.hr_id != user.id:
        raise HTTPException(status_code=403, detail="You can only manage your own jobs")
    return job


# ----------------------------------------------------------------------
# Public job board
# ----------------------------------------------------------------------

@router.get("/public", response_model=List[JobResponse])
def list_public_jobs(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    """List jobs open for applications. No authentication required."""
    return job_crud.get_multi(db, skip=skip, limit=min(limit, 100), status=JobStatus.ACTIVE)


@router.get("/public/{job_id}", response_model=JobResponse)
def get_public_job(job_id: int, db: Session = Depends(get_db)):
    job = job_crud.get_by_id(db, job_id)
    if not job or job.status != JobStatus.ACTIVE:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


# ----------------------------------------------------------------------
# Authenticated
# ----------------------------------------------------------------------

@router.get("", response_model=List[JobResponse])
def list_jobs(
    skip: int = 0,
    limit: int = 100,
    status: Optional[JobStatus] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """
    List jobs visible to the caller.

    - HR: their own jobs
    - Admin: every job
    - Candidate: active jobs only
    """
    limit = min(limit, 100)

    if user.role == UserRole.HR:
        return job_crud.get_multi(db, skip=skip, limit=limit, status=status, hr_id=user.id)
    if user.role == UserRole.ADMIN:
        return job_crud.get_multi(db, skip=skip, limit=limit, status=status)
    return job_crud.get_multi(db, skip=skip, limit=limit, status=JobStatus.ACTIVE)


@router.get("/{job_id}", response_model=JobResponse)
def get_job(job_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    job = job_crud.get_by_id(db, job_id)

    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    if user.role == UserRole.CANDIDATE and job.status != JobStatus.ACTIVE:
        raise HTTPException(status_code=404, detail="Job not found")

    return job


@router.post("", status_code=201, response_model=DataResponse[JobResponse])
def create_job(
    request: JobCreateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_hr)
):
    """
    Create a job owned by the calling HR user.

    Jobs start as draft unless created as active; only active jobs accept
    applications.
    """
    with atomic(db):
        job = job_crud.create(db, request, hr_id=user.id)

    logger.info(f"Created job {job.id}: {job.title} ({job.status.value}) by HR {user.id}")
    return {"message": "Job created successfully", "data": job}


@router.put("/{job_id}", response_model=DataResponse[JobResponse])
def update_job(
    job_id: int,
    request: JobUpdateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_hr)
):
    """Edit a job. Closed jobs cannot be edited."""
    job = _get_owned_job(db, job_id, user)
    if job.status == JobStatus.CLOSED:
        raise HTTPException(status_code=400, detail="Closed jobs cannot be edited")

    fields = request.model_dump(exclude_unset=True)
    for required in ("title", "department", "description", "requirements", "deadline", "status"):
        if required in fields and fields[required] is None:
            fields.pop(required)

    with atomic(db):
        job_crud.update(db, job, fields)

    return {"message": "Job updated successfully", "data": job}


@router.patch("/{job_id}/close", response_model=DataResponse[JobResponse])
def close_job(job_id: int, db: Session = Depends(get_db), user: User = Depends(require_hr)):
    """Close a job so it stops accepting applications."""
    job = _get_owned_job(db, job_id, user)

    with atomic(db):
        job_crud.set_status(db, job.id, JobStatus.CLOSED)

    db.refresh(job)
    logger.info(f"Job {job_id} closed by HR {user.id}")
    return {"message": "Job closed successfully", "data": job}


@router.delete("/{job_id}", status_code=204)
def delete_job(job_id: int, db: Session = Depends(get_db), user: User = Depends(require_hr)):
    """
    Delete a job by ID. Its applications and interviews are deleted with it.
    """
    _get_owned_job(db, job_id, user)

    with atomic(db):
        job_crud.delete(db, job_id)

    logger.info(f"Deleted job {job_id}")
    return None
