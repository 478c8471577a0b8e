from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from app.models.job import JobStatus


class JobCreateRequest(BaseModel):
    """Schema for creating a new job (hr_id comes from the session)"""
    title: str = Field(..., min_length=1, max_length=255)
    department: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    requirements: str = Field(..., min_length=1)
    salary_range: Optional[str] = Field(None, max_length=100)
    job_type: Optional[str] = Field(None, max_length=50)
    deadline: datetime
    status: JobStatus = JobStatus.DRAFT

    @field_validator("status")
    @classmethod
    def not_closed(cls, v: JobStatus) -> JobStatus:
        """Jobs are created as draft or active; closing is a separate action."""
        if v == JobStatus.CLOSED:
            raise ValueError("A job cannot be created in closed status")
        return v


class JobUpdateRequest(BaseModel):
    """Partial job update. Omitted fields are left unchanged."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    department: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1)
    requirements: Optional[str] = Field(None, min_length=1)
    salary_range: Optional[str] = Field(None, max_length=100)
    job_type: Optional[str] = Field(None, max_length=50)
    deadline: Optional[datetime] = None
    status: Optional[JobStatus] = None


class JobResponse(BaseModel):
    """Schema for job response"""
    id: int
    title: str
    department: str
    description: str
    requirements: str
    salary_range: Optional[str] = None
    job_type: Optional[str] = None
    deadline: datetime
    status: JobStatus
    hr_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True  # Allows conversion from SQLAlchemy models
