"""
Notification inbox endpoints.

Every route works on the caller's own notifications only.
"""

import logging
from typing import List
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session

from app.core.database import atomic, get_db
from app.core.deps import get_current_user
from app.crud import notification as notification_crud
from app.models.notification import Notification
from app.models.user import User
from app.schemas.common import DataResponse, MessageResponse
from app.schemas.notification import NotificationResponse, UnreadNotificationsResponse

router = APIRouter(prefix="/notifications", tags=["Notifications"])
logger = logging.getLogger(__name__)


def _get_own(db: Session, notification_id: int, user: User) -> Notification:
    notification = notification_crud.get_by_id(db, notification_id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    if notification.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed to access this notification")
    return notification


@router.get("", response_model=List[NotificationResponse])
def list_notifications(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return notification_crud.get_multi_for_user(db, user.id, skip=skip, limit=min(limit, 100))


@router.get("/unread", response_model=UnreadNotificationsResponse)
def list_unread_notifications(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    notifications = notification_crud.get_multi_for_user(db, user.id, unread_only=True)
    return {"count": notification_crud.count_unread(db, user.id), "notifications": notifications}


@router.patch("/read-all", response_model=MessageResponse)
def mark_all_as_read(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    with atomic(db):
        updated = notification_crud.mark_all_read(db, user.id)
    return MessageResponse(message=f"{updated} notifications marked as read")


@router.get("/{notification_id}", response_model=NotificationResponse)
def get_notification(notification_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return _get_own(db, notification_id, user)


@router.patch("/{notification_id}/read", response_model=DataResponse[NotificationResponse])
def mark_as_read(notification_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    notification = _get_own(db, notification_id, user)
    with atomic(db):
        notification_crud.mark_read(db, notification)
    return {"message": "Notification marked as read", "data": notification}


@router.delete("/{notification_id}", response_model=MessageResponse)
def delete_notification(notification_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    notification = _get_own(db, notification_id, user)
    with atomic(db):
        notification_crud.delete(db, notification)
    return MessageResponse(message="Notification deleted successfully")


@router.delete("", response_model=MessageResponse)
def delete_all_notifications(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    with atomic(db):
        deleted = notification_crud.delete_all_for_user(db, user.id)
    logger.info(f"User {user.id} cleared {deleted} notifications")
    return MessageResponse(message=f"{deleted} notifications deleted")
