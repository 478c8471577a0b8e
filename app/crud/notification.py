"""
CRUD operations for Notification model.

Backs both the notification emitter (insert) and the user's inbox
(list, mark read, delete).
"""

from typing import List, Optional
from sqlalchemy.orm import Session
from app.models.notification import Notification


def create(
    db: Session,
    user_id: int,
    type: str,
    title: str,
    message: str,
    related_entity_type: Optional[str] = None,
    related_entity_id: Optional[int] = None
) -> Notification:
    """
    Insert an unread notification.

    Args:
        db: Database session
        user_id: Recipient
        type: Free-form tag (e.g. "application_status_updated")
        title: Short headline
        message: Body text
        related_entity_type: Optional entity kind ("application", "interview")
        related_entity_id: Optional entity id

    Returns:
        Flushed Notification instance with id
    """
    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        related_entity_type=related_entity_type,
        related_entity_id=related_entity_id,
        is_read=False,
        email_sent=False,
    )
    db.add(notification)
    db.flush()
    return notification


def get_by_id(db: Session, notification_id: int) -> Optional[Notification]:
    return db.query(Notification).filter(Notification.id == notification_id).first()


def get_multi_for_user(
    db: Session,
    user_id: int,
    unread_only: bool = False,
    skip: int = 0,
    limit: int = 100
) -> List[Notification]:
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).offset(skip).limit(limit).all()


def count_unread(db: Session, user_id: int) -> int:
    return db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(False)
    ).count()


def mark_read(db: Session, notification: Notification) -> Notification:
    notification.is_read = True
    db.flush()
    return notification


def mark_all_read(db: Session, user_id: int) -> int:
    """
    Mark every unread notification of a user as read.

    Returns:
        Number of notifications updated
    """
    return db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(False)
    ).update({Notification.is_read: True}, synchronize_session="fetch")


def mark_email_sent(db: Session, notification_id: int) -> int:
    return db.query(Notification).filter(Notification.id == notification_id).update(
        {Notification.email_sent: True}, synchronize_session="fetch"
    )


def delete(db: Session, notification: Notification) -> None:
    db.delete(notification)
    db.flush()


def delete_all_for_user(db: Session, user_id: int) -> int:
    return db.query(Notification).filter(Notification.user_id == user_id).delete(
        synchronize_session="fetch"
    )
