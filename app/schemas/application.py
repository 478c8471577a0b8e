"""
Pydantic schemas for Application API requests/responses.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field
from app.models.application import ApplicationStatus


class ApplicationCreateRequest(BaseModel):
    """Candidate applies to a job. candidate_id is injected from the session."""
    job_id: int = Field(..., gt=0)
    cover_letter: Optional[str] = None


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus


class ApplicationNotesUpdate(BaseModel):
    notes: str


class ApplicationResponse(BaseModel):
    id: int
    job_id: int
    candidate_id: int
    status: ApplicationStatus
    cover_letter: Optional[str] = None
    notes: Optional[str] = None
    applied_at: Optional[datetime] = None

    class Config:
        from_attributes = True
