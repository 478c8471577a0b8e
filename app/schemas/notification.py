from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    type: str
    title: str
    message: str
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[int] = None
    is_read: bool
    email_sent: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UnreadNotificationsResponse(BaseModel):
    count: int
    notifications: List[NotificationResponse]
