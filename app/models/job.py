import enum
from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, ForeignKey, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class JobStatus(str, enum.Enum):
    """
    Job posting status.

    - DRAFT: Created by HR, not visible to candidates
    - ACTIVE: Published, accepts applications
    - CLOSED: Closed manually or automatically when a candidate is hired
    """
    DRAFT = "draft"
    ACTIVE = "active"
    CLOSED = "closed"


class Job(Base):
    """
    Job posting owned by an HR user.

    Only ACTIVE jobs accept new applications.
    """
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    department = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    requirements = Column(Text, nullable=False)
    salary_range = Column(String(100), nullable=True)
    job_type = Column(String(50), nullable=True)
    deadline = Column(DateTime(timezone=True), nullable=False)

    status = Column(
        Enum(JobStatus, name="job_status", values_callable=lambda x: [e.value for e in x]),
        default=JobStatus.DRAFT,
        nullable=False,
        index=True
    )

    # The owning HR cannot be deleted while the job exists
    hr_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    hr = relationship("User", back_populates="jobs")
    applications = relationship("Application", back_populates="job", cascade="all, delete", passive_deletes=True)

    def __repr__(self):
        return f"<Job(id={self.id}, title='{self.title}', status={self.status.value})>"
