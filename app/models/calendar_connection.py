"""
Calendar connection model for the scheduling oracle.

Stores the Google Calendar OAuth tokens an HR user granted.
Tokens are encrypted at rest (see app.core.encryption).
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class CalendarConnection(Base):
    """
    One Google Calendar authorization per user.

    When no active connection exists, interviews are still scheduled,
    just without a generated meeting link.
    """
    __tablename__ = "calendar_connections"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)

    # OAuth tokens (stored encrypted)
    access_token = Column(String, nullable=False)
    refresh_token = Column(String, nullable=True)
    token_expires_at = Column(DateTime(timezone=True), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    last_refresh_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="calendar_connection")

    def __repr__(self):
        return f"<CalendarConnection(user_id={self.user_id}, is_active={self.is_active})>"
