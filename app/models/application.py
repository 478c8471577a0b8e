"""
Application database model.

A candidate's submission against one job. At most one application exists
per (job, candidate) pair; the unique constraint is the authoritative guard
against concurrent double-apply.
"""

import enum
from sqlalchemy import Column, Integer, Text, DateTime, Enum, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class ApplicationStatus(str, enum.Enum):
    """
    Application lifecycle:

    APPLIED -> SHORTLISTED -> INTERVIEW -> HIRED
         |           |            |
         +-----------+------------+--> REJECTED

    HIRED and REJECTED are terminal.
    """
    APPLIED = "applied"
    SHORTLISTED = "shortlisted"
    INTERVIEW = "interview"
    REJECTED = "rejected"
    HIRED = "hired"


class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    candidate_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(
        Enum(ApplicationStatus, name="application_status", values_callable=lambda x: [e.value for e in x]),
        default=ApplicationStatus.APPLIED,
        nullable=False,
        index=True
    )
    cover_letter = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)  # Internal HR notes

    applied_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    job = relationship("Job", back_populates="applications")
    candidate = relationship("User", back_populates="applications")
    interview = relationship("Interview", back_populates="application", uselist=False, cascade="all, delete", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint("job_id", "candidate_id", name="uq_applications_job_candidate"),
    )

    def __repr__(self):
        return f"<Application(id={self.id}, job_id={self.job_id}, candidate_id={self.candidate_id}, status={self.status.value})>"
