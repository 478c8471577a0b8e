"""
CRUD operations for calendar connections.

Tokens are encrypted before storage; callers always pass and receive
plain text through the helpers below.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from sqlalchemy.orm import Session
from app.core.encryption import token_encryption
from app.models.calendar_connection import CalendarConnection


def get_by_user(db: Session, user_id: int) -> Optional[CalendarConnection]:
    return db.query(CalendarConnection).filter(CalendarConnection.user_id == user_id).first()


def get_active_by_user(db: Session, user_id: int) -> Optional[CalendarConnection]:
    return db.query(CalendarConnection).filter(
        CalendarConnection.user_id == user_id,
        CalendarConnection.is_active.is_(True)
    ).first()


def _expiry(expires_in: Optional[int]) -> Optional[datetime]:
    if not expires_in:
        return None
    return datetime.now(timezone.utc) + timedelta(seconds=expires_in)


def create_or_update(
    db: Session,
    user_id: int,
    access_token: str,
    refresh_token: Optional[str] = None,
    expires_in: Optional[int] = None
) -> CalendarConnection:
    """
    Create a new calendar connection or re-activate the existing one.

    Args:
        db: Database session
        user_id: Connecting user
        access_token: Plain OAuth access token (encrypted before storage)
        refresh_token: Plain OAuth refresh token. Google only returns it on
            first consent, so an existing one is kept when this is None.
        expires_in: Access token lifetime in seconds

    Returns:
        CalendarConnection: Created or updated connection
    """
    connection = get_by_user(db, user_id)

    if connection is None:
        connection = CalendarConnection(user_id=user_id)
        db.add(connection)

    connection.access_token = token_encryption.encrypt(access_token)
    if refresh_token:
        connection.refresh_token = token_encryption.encrypt(refresh_token)
    connection.token_expires_at = _expiry(expires_in)
    connection.is_active = True
    connection.last_refresh_at = datetime.now(timezone.utc)

    db.flush()
    return connection


def update_access_token(
    db: Session,
    connection: CalendarConnection,
    access_token: str,
    expires_in: Optional[int] = None
) -> CalendarConnection:
    connection.access_token = token_encryption.encrypt(access_token)
    connection.token_expires_at = _expiry(expires_in)
    connection.last_refresh_at = datetime.now(timezone.utc)
    db.flush()
    return connection


def get_access_token(connection: CalendarConnection) -> str:
    return token_encryption.decrypt(connection.access_token)


def get_refresh_token(connection: CalendarConnection) -> Optional[str]:
    if not connection.refresh_token:
        return None
    return token_encryption.decrypt(connection.refresh_token)


def deactivate(db: Session, user_id: int) -> bool:
    """
    Disconnect a user's calendar.

    Returns:
        True if a connection was deactivated, False if none existed
    """
    connection = get_by_user(db, user_id)
    if not connection:
        return False
    connection.is_active = False
    db.flush()
    return True
