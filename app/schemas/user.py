"""
Pydantic schemas for users, registration and login.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
from app.models.user import UserRole, UserStatus


class UserRegisterRequest(BaseModel):
    """Request schema for candidate self-registration."""
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)  # bcrypt limit
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    cv_path: Optional[str] = Field(None, description="Resume file name inside the resume directory")


class UserLoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """User profile response (no sensitive data)."""
    id: int
    email: str
    role: UserRole
    name: str
    phone: Optional[str] = None
    department: Optional[str] = None
    cv_path: Optional[str] = None
    status: UserStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    """JWT token response."""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class HRCreateRequest(BaseModel):
    """Admin request to create an HR account."""
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    department: Optional[str] = Field(None, max_length=100)


class HRUpdateRequest(BaseModel):
    """Partial update of an HR account. Omitted fields are left unchanged."""
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=72)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    department: Optional[str] = Field(None, max_length=100)
    status: Optional[UserStatus] = None


class DashboardMetrics(BaseModel):
    total_jobs: int
    active_jobs: int
    total_applications: int
    total_hires: int
    active_hr_users: int
    total_candidates: int
