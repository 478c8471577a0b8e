"""
Google Calendar scheduling oracle.

Creates, moves and cancels interview events (with a Google Meet link) on the
interviewer's primary calendar through the Calendar v3 REST API.

API Documentation: https://developers.google.com/calendar/api/v3/reference/events
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Protocol, Tuple
from urllib.parse import urlencode

import httpx
from cryptography.fernet import InvalidToken
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.core.config import Settings, settings
from app.core.database import atomic
from app.crud import calendar_connection as calendar_crud
from app.models.calendar_connection import CalendarConnection
from app.models.user import User

logger = logging.getLogger(__name__)


class SchedulingError(Exception):
    """The calendar provider rejected or failed a request."""


@dataclass(frozen=True)
class ScheduledEvent:
    event_id: str
    meeting_link: Optional[str] = None
    calendar_link: Optional[str] = None


class SchedulingOracle(Protocol):
    """Anything that can place interview events on a calendar."""

    def create_event(
        self,
        summary: str,
        description: str,
        attendees: List[str],
        start: datetime,
        duration_minutes: int
    ) -> ScheduledEvent: ...

    def update_event(self, event_id: str, start: datetime, duration_minutes: int) -> ScheduledEvent: ...

    def delete_event(self, event_id: str) -> None: ...


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _time_range(start: datetime, duration_minutes: int) -> Tuple[Dict, Dict]:
    start = _as_utc(start)
    end = start + timedelta(minutes=duration_minutes)
    return (
        {"dateTime": start.isoformat(), "timeZone": "UTC"},
        {"dateTime": end.isoformat(), "timeZone": "UTC"},
    )


class GoogleCalendarScheduler:
    """
    Scheduling oracle backed by one user's Google Calendar.

    Args:
        access_token: Valid (already refreshed) OAuth access token
        timeout: Per-request timeout in seconds
    """

    API_BASE = "https://www.googleapis.com/calendar/v3"

    def __init__(self, access_token: str, timeout: float = 30.0):
        self.access_token = access_token
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            with httpx.Client(base_url=self.API_BASE, timeout=self.timeout) as client:
                response = client.request(
                    method,
                    path,
                    headers={"Authorization": f"Bearer {self.access_token}"},
                    **kwargs
                )
        except httpx.HTTPError as e:
            raise SchedulingError(f"Google Calendar unreachable: {e}") from e
        if response.status_code >= 400:
            logger.error(f"Google Calendar {method} {path} failed: {response.status_code} {response.text}")
            raise SchedulingError(f"Google Calendar request failed with status {response.status_code}")
        return response

    def create_event(
        self,
        summary: str,
        description: str,
        attendees: List[str],
        start: datetime,
        duration_minutes: int
    ) -> ScheduledEvent:
        start_field, end_field = _time_range(start, duration_minutes)
        event = {
            "summary": summary,
            "description": description,
            "start": start_field,
            "end": end_field,
            "attendees": [{"email": email} for email in attendees if email],
            # Asks Google to attach a Meet conference to the event
            "conferenceData": {
                "createRequest": {
                    "requestId": f"interview-{uuid.uuid4().hex}",
                    "conferenceSolutionKey": {"type": "hangoutsMeet"},
                }
            },
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "email", "minutes": 24 * 60},
                    {"method": "popup", "minutes": 30},
                ],
            },
        }

        data = self._request(
            "POST",
            "/calendars/primary/events",
            params={"conferenceDataVersion": 1, "sendUpdates": "all"},
            json=event,
        ).json()

        return ScheduledEvent(
            event_id=data["id"],
            meeting_link=data.get("hangoutLink"),
            calendar_link=data.get("htmlLink"),
        )

    def update_event(self, event_id: str, start: datetime, duration_minutes: int) -> ScheduledEvent:
        start_field, end_field = _time_range(start, duration_minutes)
        data = self._request(
            "PATCH",
            f"/calendars/primary/events/{event_id}",
            params={"sendUpdates": "all"},
            json={"start": start_field, "end": end_field},
        ).json()
        return ScheduledEvent(
            event_id=data["id"],
            meeting_link=data.get("hangoutLink"),
            calendar_link=data.get("htmlLink"),
        )

    def delete_event(self, event_id: str) -> None:
        self._request(
            "DELETE",
            f"/calendars/primary/events/{event_id}",
            params={"sendUpdates": "all"},
        )

    def list_upcoming_events(self, days: int = 90, max_results: int = 50) -> List[Dict]:
        """Events on the primary calendar from now until `days` ahead."""
        now = datetime.now(timezone.utc)
        data = self._request(
            "GET",
            "/calendars/primary/events",
            params={
                "timeMin": now.isoformat(),
                "timeMax": (now + timedelta(days=days)).isoformat(),
                "singleEvents": "true",
                "orderBy": "startTime",
                "maxResults": max_results,
            },
        ).json()
        return [
            {
                "id": item.get("id"),
                "summary": item.get("summary"),
                "description": item.get("description"),
                "start": item.get("start"),
                "end": item.get("end"),
                "hangout_link": item.get("hangoutLink"),
                "html_link": item.get("htmlLink"),
            }
            for item in data.get("items", [])
        ]


class GoogleOAuthClient:
    """
    OAuth 2.0 flow for connecting a user's Google Calendar.

    The `state` parameter is a short-lived signed token naming the user, so
    the callback can be matched to the account that started the flow.
    """

    AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    SCOPES = [
        "https://www.googleapis.com/auth/calendar",
        "https://www.googleapis.com/auth/calendar.events",
    ]
    STATE_TTL_MINUTES = 15

    def __init__(self, config: Settings):
        self.client_id = config.GOOGLE_CLIENT_ID
        self.client_secret = config.GOOGLE_CLIENT_SECRET
        self.redirect_uri = config.GOOGLE_REDIRECT_URI
        self.secret_key = config.SECRET_KEY
        self.algorithm = config.ALGORITHM

    def get_authorization_url(self, user_id: int) -> str:
        state = jwt.encode(
            {
                "sub": str(user_id),
                "purpose": "calendar_oauth",
                "exp": datetime.now(timezone.utc) + timedelta(minutes=self.STATE_TTL_MINUTES),
            },
            self.secret_key,
            algorithm=self.algorithm,
        )
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(self.SCOPES),
            "access_type": "offline",
            "prompt": "consent",  # Always return a refresh token
            "state": state,
        }
        return f"{self.AUTH_URL}?{urlencode(params)}"

    def user_id_from_state(self, state: str) -> Optional[int]:
        """Return the user id signed into `state`, or None if it is invalid or expired."""
        try:
            payload = jwt.decode(state, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None
        if payload.get("purpose") != "calendar_oauth":
            return None
        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            return None

    async def exchange_code_for_token(self, code: str) -> Dict:
        """
        Exchange authorization code for tokens.

        Returns:
            Token data including access_token, refresh_token, expires_in

        Raises:
            SchedulingError: If token exchange fails
        """
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.TOKEN_URL,
                    data={
                        "grant_type": "authorization_code",
                        "code": code,
                        "redirect_uri": self.redirect_uri,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret
                    },
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                    timeout=30.0
                )
        except httpx.HTTPError as e:
            raise SchedulingError(f"Google token endpoint unreachable: {e}") from e

        if response.status_code != 200:
            logger.error(f"Google token exchange failed: {response.text}")
            raise SchedulingError("Failed to exchange auth code for tokens")

        return response.json()

    def refresh_access_token(self, refresh_token: str) -> Dict:
        try:
            with httpx.Client(timeout=30.0) as client:
                response = client.post(
                    self.TOKEN_URL,
                    data={
                        "grant_type": "refresh_token",
                        "refresh_token": refresh_token,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret
                    },
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.HTTPError as e:
            raise SchedulingError(f"Google token endpoint unreachable: {e}") from e

        if response.status_code != 200:
            logger.error(f"Google token refresh failed: {response.text}")
            raise SchedulingError("Token refresh failed")

        return response.json()


def is_token_expired(connection: CalendarConnection) -> bool:
    """
    Check if access token is expired or about to expire (5 min buffer).
    """
    if not connection.token_expires_at:
        return False

    buffer = timedelta(minutes=5)
    return datetime.now(timezone.utc) + buffer >= _as_utc(connection.token_expires_at)


def scheduler_for(
    db: Session,
    user: User,
    oauth_client: Optional[GoogleOAuthClient] = None
) -> Optional[GoogleCalendarScheduler]:
    """
    Build a scheduling oracle for a user's calendar.

    Returns None when the user has no active calendar connection, or when
    an expired token cannot be refreshed. Scheduling then proceeds without
    a calendar event.
    """
    connection = calendar_crud.get_active_by_user(db, user.id)
    if not connection:
        return None

    if is_token_expired(connection):
        try:
            refresh_token = calendar_crud.get_refresh_token(connection)
        except InvalidToken:
            refresh_token = None
        if not refresh_token:
            logger.warning(f"Calendar token for user {user.id} expired and no refresh token is stored")
            return None
        client = oauth_client or GoogleOAuthClient(settings)
        try:
            token_data = client.refresh_access_token(refresh_token)
            with atomic(db):
                calendar_crud.update_access_token(
                    db, connection, token_data["access_token"], token_data.get("expires_in")
                )
        except (SchedulingError, KeyError) as e:
            logger.error(f"Could not refresh calendar token for user {user.id}: {e}")
            return None
        logger.info(f"Refreshed calendar token for user {user.id}")

    try:
        access_token = calendar_crud.get_access_token(connection)
    except InvalidToken:
        logger.error(f"Stored calendar token for user {user.id} cannot be decrypted; reconnect required")
        return None
    return GoogleCalendarScheduler(access_token)
