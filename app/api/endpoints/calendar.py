"""
Google Calendar connection endpoints (HR only).

Flow:
1. GET /calendar/auth-url returns Google's consent URL
2. Google redirects the browser to GET /calendar/callback with a code
3. Tokens are stored encrypted; interviews scheduled afterwards get Meet links
"""

import logging
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import atomic, get_db
from app.core.deps import get_oauth_client, require_hr
from app.crud import calendar_connection as calendar_crud
from app.crud import user as user_crud
from app.models.user import User, UserRole
from app.schemas.common import MessageResponse
from app.services.calendar_service import GoogleOAuthClient, SchedulingError, scheduler_for

router = APIRouter(prefix="/calendar", tags=["Calendar"])
logger = logging.getLogger(__name__)


@router.get("/auth-url")
def get_auth_url(
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client),
    user: User = Depends(require_hr)
) -> Dict[str, str]:
    return {"url": oauth_client.get_authorization_url(user.id)}


@router.get("/callback")
async def oauth_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(get_db),
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client),
    config: Settings = Depends(get_settings)
):
    """
    OAuth callback. Google redirects here (no bearer token), so the user is
    identified by the signed `state` parameter.
    """
    failure = RedirectResponse(f"{config.FRONTEND_URL}/hr/dashboard?calendar=error")

    if error or not code or not state:
        logger.warning(f"Calendar OAuth callback without code/state (error={error})")
        return failure

    user_id = oauth_client.user_id_from_state(state)
    user = user_crud.get_by_id(db, user_id) if user_id else None
    if not user or user.role != UserRole.HR:
        logger.warning("Calendar OAuth callback with invalid state")
        return failure

    try:
        token_data = await oauth_client.exchange_code_for_token(code)
        with atomic(db):
            calendar_crud.create_or_update(
                db,
                user_id=user.id,
                access_token=token_data["access_token"],
                refresh_token=token_data.get("refresh_token"),
                expires_in=token_data.get("expires_in"),
            )
    except (SchedulingError, KeyError) as e:
        logger.error(f"Calendar connection failed for user {user.id}: {e}")
        return failure

    logger.info(f"Google Calendar connected for user {user.id}")
    return RedirectResponse(f"{config.FRONTEND_URL}/hr/dashboard?calendar=connected")


@router.get("/status")
def get_calendar_status(db: Session = Depends(get_db), user: User = Depends(require_hr)) -> Dict[str, bool]:
    return {"connected": calendar_crud.get_active_by_user(db, user.id) is not None}


@router.get("/events")
def list_calendar_events(db: Session = Depends(get_db), user: User = Depends(require_hr)) -> Dict[str, Any]:
    """Upcoming events on the connected calendar (next 90 days)."""
    scheduler = scheduler_for(db, user)
    if scheduler is None:
        raise HTTPException(status_code=400, detail="Please connect Google Calendar first")

    try:
        return {"events": scheduler.list_upcoming_events()}
    except SchedulingError as e:
        logger.error(f"Fetching calendar events failed for user {user.id}: {e}")
        raise HTTPException(status_code=503, detail="Failed to fetch calendar events")


@router.delete("", response_model=MessageResponse)
def disconnect_calendar(db: Session = Depends(get_db), user: User = Depends(require_hr)):
    with atomic(db):
        disconnected = calendar_crud.deactivate(db, user.id)
    if not disconnected:
        raise HTTPException(status_code=404, detail="No calendar connected")
    return MessageResponse(message="Google Calendar disconnected")
