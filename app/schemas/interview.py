"""
Pydantic schemas for Interview API requests/responses.

Every request model validates the whole payload in one step, so a bad
request reports all failing fields together.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from app.models.interview import InterviewStatus, InterviewType, InterviewResult


class InterviewCreateRequest(BaseModel):
    """Schedule one interview. interviewer_id is injected from the session."""
    application_id: int = Field(..., gt=0)
    job_id: int = Field(..., gt=0)
    candidate_id: int = Field(..., gt=0)
    interview_date: datetime
    duration: Optional[int] = Field(None, gt=0, description="Length in minutes")
    type: Optional[InterviewType] = None
    meeting_link: Optional[str] = None
    preparation_notes: Optional[str] = None


class BulkInterviewCreateRequest(BaseModel):
    interviews: List[InterviewCreateRequest]


class InterviewUpdateRequest(BaseModel):
    """Reschedule or edit an interview. Omitted fields are left unchanged."""
    interview_date: Optional[datetime] = None
    duration: Optional[int] = Field(None, gt=0)
    type: Optional[InterviewType] = None
    meeting_link: Optional[str] = None
    preparation_notes: Optional[str] = None


class InterviewStatusUpdate(BaseModel):
    status: InterviewStatus


class PreparationNotesUpdate(BaseModel):
    preparation_notes: str


class FeedbackRequest(BaseModel):
    feedback: str
    rating: Optional[int] = Field(None, ge=1, le=5)
    result: Optional[InterviewResult] = None


class InterviewResponse(BaseModel):
    id: int
    application_id: int
    job_id: int
    candidate_id: int
    interviewer_id: Optional[int] = None
    interview_date: datetime
    duration: Optional[int] = None
    type: Optional[InterviewType] = None
    meeting_link: Optional[str] = None
    status: InterviewStatus
    preparation_notes: Optional[str] = None
    feedback: Optional[str] = None
    rating: Optional[int] = None
    result: Optional[InterviewResult] = None
    calendar_event_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
