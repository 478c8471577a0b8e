"""
Database models package.
"""

from app.models.user import User, UserRole, UserStatus
from app.models.job import Job, JobStatus
from app.models.application import Application, ApplicationStatus
from app.models.interview import Interview, InterviewStatus, InterviewType, InterviewResult
from app.models.notification import Notification
from app.models.calendar_connection import CalendarConnection

__all__ = [
    "User", "UserRole", "UserStatus",
    "Job", "JobStatus",
    "Application", "ApplicationStatus",
    "Interview", "InterviewStatus", "InterviewType", "InterviewResult",
    "Notification",
    "CalendarConnection",
]
