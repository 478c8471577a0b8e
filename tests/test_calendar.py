"""
Tests for the Google Calendar connection and scheduling oracle plumbing.
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.config import Settings
from app.core.database import atomic
from app.core.deps import get_oauth_client
from app.crud import calendar_connection as calendar_crud
from app.services.calendar_service import (
    GoogleCalendarScheduler,
    GoogleOAuthClient,
    SchedulingError,
    _time_range,
    is_token_expired,
    scheduler_for,
)
from main import app
from tests.conftest import auth_headers


def connect(db, user, expires_in=3600, refresh_token="refresh-1"):
    with atomic(db):
        return calendar_crud.create_or_update(
            db, user_id=user.id, access_token="access-1", refresh_token=refresh_token, expires_in=expires_in
        )


class FakeOAuthClient(GoogleOAuthClient):
    """Real state signing, canned token endpoint."""

    def __init__(self, fail=False):
        super().__init__(Settings(SECRET_KEY="test-secret"))
        self.fail = fail
        self.refreshed = []

    async def exchange_code_for_token(self, code):
        if self.fail:
            raise SchedulingError("bad code")
        return {"access_token": f"access-for-{code}", "refresh_token": "refresh-new", "expires_in": 3600}

    def refresh_access_token(self, refresh_token):
        if self.fail:
            raise SchedulingError("refresh refused")
        self.refreshed.append(refresh_token)
        return {"access_token": "access-2", "expires_in": 3600}


class TestOAuthState:
    def test_state_roundtrip(self):
        client = FakeOAuthClient()
        url = client.get_authorization_url(42)
        state = url.split("state=")[1]

        assert client.user_id_from_state(state) == 42
        assert "access_type=offline" in url

    def test_tampered_state_rejected(self):
        assert FakeOAuthClient().user_id_from_state("not-a-token") is None

    def test_state_from_other_secret_rejected(self):
        foreign = GoogleOAuthClient(Settings(SECRET_KEY="someone-else"))
        state = foreign.get_authorization_url(7).split("state=")[1]

        assert FakeOAuthClient().user_id_from_state(state) is None


class TestTokenHandling:
    def test_time_range_is_utc(self):
        start, end = _time_range(datetime(2030, 1, 1, 9, 0), 90)

        assert start == {"dateTime": "2030-01-01T09:00:00+00:00", "timeZone": "UTC"}
        assert end["dateTime"] == "2030-01-01T10:30:00+00:00"

    def test_expiry_buffer(self, db_session, hr):
        connection = connect(db_session, hr, expires_in=60)

        assert is_token_expired(connection)

    def test_no_connection_means_no_scheduler(self, db_session, hr):
        assert scheduler_for(db_session, hr) is None

    def test_valid_token_builds_scheduler(self, db_session, hr):
        connect(db_session, hr)

        scheduler = scheduler_for(db_session, hr)

        assert isinstance(scheduler, GoogleCalendarScheduler)
        assert scheduler.access_token == "access-1"

    def test_expired_token_is_refreshed(self, db_session, hr):
        connect(db_session, hr, expires_in=60)
        oauth = FakeOAuthClient()

        scheduler = scheduler_for(db_session, hr, oauth_client=oauth)

        assert oauth.refreshed == ["refresh-1"]
        assert scheduler.access_token == "access-2"

    def test_failed_refresh_means_no_scheduler(self, db_session, hr):
        connect(db_session, hr, expires_in=60)

        assert scheduler_for(db_session, hr, oauth_client=FakeOAuthClient(fail=True)) is None

    def test_expired_without_refresh_token(self, db_session, hr):
        connect(db_session, hr, expires_in=60, refresh_token=None)

        assert scheduler_for(db_session, hr, oauth_client=FakeOAuthClient()) is None

    def test_reconnect_keeps_refresh_token(self, db_session, hr):
        connect(db_session, hr)
        connection = connect(db_session, hr, refresh_token=None)

        assert calendar_crud.get_refresh_token(connection) == "refresh-1"


class TestCalendarEndpoints:
    """HTTP surface of /calendar"""

    @pytest.fixture
    def oauth(self):
        fake = FakeOAuthClient()
        app.dependency_overrides[get_oauth_client] = lambda: fake
        return fake

    def test_status_reflects_connection(self, client, db_session, hr):
        before = client.get("/api/v1/calendar/status", headers=auth_headers(hr)).json()
        connect(db_session, hr)
        after = client.get("/api/v1/calendar/status", headers=auth_headers(hr)).json()

        assert before == {"connected": False}
        assert after == {"connected": True}

    def test_callback_stores_tokens(self, client, db_session, oauth, hr):
        state = oauth.get_authorization_url(hr.id).split("state=")[1]

        response = client.get(
            "/api/v1/calendar/callback", params={"code": "abc", "state": state}, follow_redirects=False
        )

        assert response.status_code == 307
        assert response.headers["location"].endswith("calendar=connected")
        connection = calendar_crud.get_active_by_user(db_session, hr.id)
        assert calendar_crud.get_access_token(connection) == "access-for-abc"

    def test_callback_with_bad_state_redirects_to_error(self, client, oauth):
        response = client.get(
            "/api/v1/calendar/callback", params={"code": "abc", "state": "forged"}, follow_redirects=False
        )

        assert response.headers["location"].endswith("calendar=error")

    def test_callback_for_candidate_is_refused(self, client, oauth, candidate):
        state = oauth.get_authorization_url(candidate.id).split("state=")[1]

        response = client.get(
            "/api/v1/calendar/callback", params={"code": "abc", "state": state}, follow_redirects=False
        )

        assert response.headers["location"].endswith("calendar=error")

    def test_events_require_connection(self, client, hr):
        response = client.get("/api/v1/calendar/events", headers=auth_headers(hr))

        assert response.status_code == 400

    def test_disconnect(self, client, db_session, hr):
        connect(db_session, hr)

        response = client.delete("/api/v1/calendar", headers=auth_headers(hr))
        again = client.delete("/api/v1/calendar", headers=auth_headers(hr))

        assert response.status_code == 200
        assert again.status_code == 404
        assert calendar_crud.get_active_by_user(db_session, hr.id) is None

    def test_candidates_cannot_connect(self, client, candidate):
        response = client.get("/api/v1/calendar/auth-url", headers=auth_headers(candidate))

        assert response.status_code == 403
