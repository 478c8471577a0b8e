"""
CRUD operations for Job model.

Implements the Repository pattern to encapsulate all database operations
for jobs, providing a clean interface for the API layer.
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from app.models.job import Job, JobStatus
from app.schemas.job import JobCreateRequest


def create(db: Session, job_data: JobCreateRequest, hr_id: int) -> Job:
    """
    Create a new job owned by an HR user.

    Args:
        db: Database session
        job_data: Validated job creation data
        hr_id: Owning HR user id

    Returns:
        Flushed Job instance with id
    """
    db_job = Job(
        title=job_data.title,
        department=job_data.department,
        description=job_data.description,
        requirements=job_data.requirements,
        salary_range=job_data.salary_range,
        job_type=job_data.job_type,
        deadline=job_data.deadline,
        status=job_data.status,
        hr_id=hr_id,
    )

    db.add(db_job)
    db.flush()

    return db_job


def get_by_id(db: Session, job_id: int) -> Optional[Job]:
    """
    Retrieve a job by its ID.

    Args:
        db: Database session
        job_id: Job ID to retrieve

    Returns:
        Job instance if found, None otherwise
    """
    return db.query(Job).filter(Job.id == job_id).first()


def get_multi(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    status: Optional[JobStatus] = None,
    hr_id: Optional[int] = None
) -> List[Job]:
    """
    Retrieve multiple jobs with pagination and optional filtering.

    Args:
        db: Database session
        skip: Number of records to skip (offset)
        limit: Maximum number of records to return
        status: Optional status filter
        hr_id: Optional owner filter

    Returns:
        List of Job instances, newest first
    """
    query = db.query(Job)

    if status:
        query = query.filter(Job.status == status)
    if hr_id is not None:
        query = query.filter(Job.hr_id == hr_id)

    return query.order_by(Job.created_at.desc(), Job.id.desc()).offset(skip).limit(limit).all()


def update(db: Session, job: Job, fields: Dict[str, Any]) -> Job:
    for key, value in fields.items():
        setattr(job, key, value)
    db.flush()
    return job


def set_status(db: Session, job_id: int, status: JobStatus) -> int:
    """
    Set a job's status with a single UPDATE.

    Returns:
        Number of rows affected (0 if the job does not exist)
    """
    return db.query(Job).filter(Job.id == job_id).update(
        {Job.status: status}, synchronize_session="fetch"
    )


def delete(db: Session, job_id: int) -> bool:
    """
    Delete a job by ID. Applications and interviews go with it.

    Returns:
        True if deleted, False if not found
    """
    job = get_by_id(db, job_id)
    if not job:
        return False

    db.delete(job)
    db.flush()

    return True


def count(db: Session, status: Optional[JobStatus] = None) -> int:
    query = db.query(Job)
    if status:
        query = query.filter(Job.status == status)
    return query.count()


def count_for_owner(db: Session, hr_id: int) -> int:
    return db.query(Job).filter(Job.hr_id == hr_id).count()
