"""
CRUD operations for Interview model.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy.orm import Session
from app.models.interview import Interview, InterviewStatus, InterviewType


def create(
    db: Session,
    *,
    application_id: int,
    job_id: int,
    candidate_id: int,
    interview_date: datetime,
    interviewer_id: Optional[int] = None,
    duration: Optional[int] = None,
    type: Optional[InterviewType] = None,
    meeting_link: Optional[str] = None,
    preparation_notes: Optional[str] = None,
    status: InterviewStatus = InterviewStatus.SCHEDULED,
) -> Interview:
    """
    Insert an interview row.

    Raises:
        IntegrityError: If the application already has an interview or an id is unknown
    """
    interview = Interview(
        application_id=application_id,
        job_id=job_id,
        candidate_id=candidate_id,
        interviewer_id=interviewer_id,
        interview_date=interview_date,
        duration=duration,
        type=type,
        meeting_link=meeting_link,
        preparation_notes=preparation_notes,
        status=status,
    )
    db.add(interview)
    db.flush()
    return interview


def get_by_id(db: Session, interview_id: int) -> Optional[Interview]:
    return db.query(Interview).filter(Interview.id == interview_id).first()


def get_by_application(db: Session, application_id: int) -> Optional[Interview]:
    return db.query(Interview).filter(Interview.application_id == application_id).first()


def get_application_ids_with_interview(db: Session, application_ids: Sequence[int]) -> List[int]:
    if not application_ids:
        return []
    rows = db.query(Interview.application_id).filter(Interview.application_id.in_(application_ids)).all()
    return [row.application_id for row in rows]


def get_multi(
    db: Session,
    job_id: Optional[int] = None,
    candidate_id: Optional[int] = None,
    interviewer_id: Optional[int] = None,
    status: Optional[InterviewStatus] = None,
    skip: int = 0,
    limit: int = 100
) -> List[Interview]:
    """
    List interviews ordered by interview date (soonest first).
    """
    query = db.query(Interview)
    if job_id is not None:
        query = query.filter(Interview.job_id == job_id)
    if candidate_id is not None:
        query = query.filter(Interview.candidate_id == candidate_id)
    if interviewer_id is not None:
        query = query.filter(Interview.interviewer_id == interviewer_id)
    if status:
        query = query.filter(Interview.status == status)
    return query.order_by(Interview.interview_date.asc(), Interview.id.asc()).offset(skip).limit(limit).all()


def update(db: Session, interview: Interview, fields: Dict[str, Any]) -> Interview:
    for key, value in fields.items():
        setattr(interview, key, value)
    db.flush()
    return interview


def delete(db: Session, interview_id: int) -> int:
    """
    Hard-delete an interview.

    Returns:
        Number of rows deleted
    """
    return db.query(Interview).filter(Interview.id == interview_id).delete(
        synchronize_session="fetch"
    )
