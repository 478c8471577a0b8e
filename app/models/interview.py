"""
Interview database model.

Bound 1:1 to an Application (unique application_id).
"""

import enum
from sqlalchemy import Column, Integer, Text, DateTime, Enum, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class InterviewStatus(str, enum.Enum):
    """
    Interview lifecycle: NOT_SCHEDULED -> SCHEDULED -> COMPLETED
    """
    NOT_SCHEDULED = "not_scheduled"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"


class InterviewType(str, enum.Enum):
    VIRTUAL = "virtual"
    IN_PERSON = "in_person"


class InterviewResult(str, enum.Enum):
    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"


def _values(enum_cls):
    return [e.value for e in enum_cls]


class Interview(Base):
    __tablename__ = "interviews"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    candidate_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    interviewer_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    interview_date = Column(DateTime(timezone=True), nullable=False)
    duration = Column(Integer, nullable=True)  # Minutes
    type = Column(Enum(InterviewType, name="interview_type", values_callable=_values), nullable=True)
    meeting_link = Column(Text, nullable=True)

    status = Column(
        Enum(InterviewStatus, name="interview_status", values_callable=_values),
        default=InterviewStatus.NOT_SCHEDULED,
        nullable=False,
        index=True
    )

    preparation_notes = Column(Text, nullable=True)
    feedback = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)
    result = Column(Enum(InterviewResult, name="interview_result", values_callable=_values), nullable=True)

    calendar_event_id = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    application = relationship("Application", back_populates="interview")

    __table_args__ = (
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_interviews_rating_range"),
    )

    def __repr__(self):
        return f"<Interview(id={self.id}, application_id={self.application_id}, status={self.status.value})>"
