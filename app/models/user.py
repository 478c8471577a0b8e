"""
User model for the three actor roles.

A User is a candidate (applies to jobs), an HR member (owns jobs and runs
interviews) or an admin (manages HR accounts).
"""

import enum
from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class UserRole(str, enum.Enum):
    CANDIDATE = "candidate"
    HR = "hr"
    ADMIN = "admin"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class User(Base):
    """
    Account for any actor of the platform.

    Deleting a user cascades to their applications, interviews (as candidate),
    notifications and calendar connection. Deletion is refused by the store
    while the user still owns jobs (jobs.hr_id is ON DELETE RESTRICT).
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Authentication credentials
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)

    # Profile
    role = Column(Enum(UserRole, name="user_role", values_callable=lambda x: [e.value for e in x]), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    department = Column(String(100), nullable=True)
    cv_path = Column(Text, nullable=True)  # Resume file name relative to RESUME_DIR

    status = Column(
        Enum(UserStatus, name="user_status", values_callable=lambda x: [e.value for e in x]),
        default=UserStatus.ACTIVE,
        nullable=False
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    jobs = relationship("Job", back_populates="hr", passive_deletes="all")
    applications = relationship("Application", back_populates="candidate", cascade="all, delete", passive_deletes=True)
    notifications = relationship("Notification", back_populates="user", cascade="all, delete", passive_deletes=True)
    calendar_connection = relationship("CalendarConnection", back_populates="user", uselist=False, cascade="all, delete", passive_deletes=True)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role.value})>"
