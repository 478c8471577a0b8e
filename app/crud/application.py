"""
CRUD operations for Application model.
"""

from typing import List, Optional, Sequence, Tuple
from sqlalchemy.orm import Session
from app.models.application import Application, ApplicationStatus


def create(
    db: Session,
    job_id: int,
    candidate_id: int,
    cover_letter: Optional[str] = None
) -> Application:
    """
    Insert a new application in APPLIED status.

    Raises:
        IntegrityError: On a duplicate (job, candidate) pair or unknown ids
    """
    application = Application(
        job_id=job_id,
        candidate_id=candidate_id,
        cover_letter=cover_letter,
        status=ApplicationStatus.APPLIED,
    )
    db.add(application)
    db.flush()
    return application


def get_by_id(db: Session, application_id: int) -> Optional[Application]:
    return db.query(Application).filter(Application.id == application_id).first()


def get_by_ids(db: Session, application_ids: Sequence[int]) -> List[Application]:
    if not application_ids:
        return []
    return db.query(Application).filter(Application.id.in_(application_ids)).all()


def get_by_job_and_candidate(db: Session, job_id: int, candidate_id: int) -> Optional[Application]:
    return db.query(Application).filter(
        Application.job_id == job_id,
        Application.candidate_id == candidate_id
    ).first()


def get_multi(
    db: Session,
    job_id: Optional[int] = None,
    candidate_id: Optional[int] = None,
    status: Optional[ApplicationStatus] = None,
    skip: int = 0,
    limit: int = 100
) -> List[Application]:
    """
    List applications, newest first.

    Args:
        db: Database session
        job_id: Optional job filter
        candidate_id: Optional candidate filter
        status: Optional status filter
        skip: Offset
        limit: Page size

    Returns:
        List of Application instances
    """
    query = db.query(Application)
    if job_id is not None:
        query = query.filter(Application.job_id == job_id)
    if candidate_id is not None:
        query = query.filter(Application.candidate_id == candidate_id)
    if status:
        query = query.filter(Application.status == status)
    return query.order_by(Application.applied_at.desc(), Application.id.desc()).offset(skip).limit(limit).all()


def set_status(db: Session, application_id: int, status: ApplicationStatus) -> int:
    """
    Write an application's status with a single UPDATE.

    Returns:
        Number of rows affected
    """
    return db.query(Application).filter(Application.id == application_id).update(
        {Application.status: status}, synchronize_session="fetch"
    )


def bulk_set_status(db: Session, application_ids: Sequence[int], status: ApplicationStatus) -> int:
    if not application_ids:
        return 0
    return db.query(Application).filter(Application.id.in_(application_ids)).update(
        {Application.status: status}, synchronize_session="fetch"
    )


def reject_others(db: Session, job_id: int, keep_id: int) -> List[Tuple[int, int]]:
    """
    Reject every application for a job except one.

    Applications that are already rejected are left alone, so running this
    twice affects nothing the second time.

    Args:
        db: Database session
        job_id: Job whose applications are rejected
        keep_id: Application that stays untouched (the hired one)

    Returns:
        (application_id, candidate_id) pairs that changed
    """
    affected = db.query(Application.id, Application.candidate_id).filter(
        Application.job_id == job_id,
        Application.id != keep_id,
        Application.status != ApplicationStatus.REJECTED
    ).all()

    ids = [row.id for row in affected]
    bulk_set_status(db, ids, ApplicationStatus.REJECTED)

    return [(row.id, row.candidate_id) for row in affected]


def update_notes(db: Session, application: Application, notes: str) -> Application:
    application.notes = notes
    db.flush()
    return application


def delete(db: Session, application_id: int) -> int:
    """
    Hard-delete an application. Its interview is removed by the FK cascade.

    Returns:
        Number of rows deleted
    """
    return db.query(Application).filter(Application.id == application_id).delete(
        synchronize_session="fetch"
    )


def count(db: Session, status: Optional[ApplicationStatus] = None) -> int:
    query = db.query(Application)
    if status:
        query = query.filter(Application.status == status)
    return query.count()
