"""
Tests for the notification emitter, the inbox endpoints and e-mail delivery.
"""

import pytest

from app.core.database import atomic
from app.crud import notification as notification_crud
from app.models.application import ApplicationStatus
from app.models.notification import Notification
from app.models.user import UserRole
from app.services import notification_service
from app.services.notification_service import NotificationEmitter, status_update_text
from app.tasks import notification_tasks
from app.tasks.notification_tasks import EmailDeliveryError, send_notification_email_task
from tests.conftest import TestingSessionLocal, auth_headers, make_user


def add_notification(db, user, title="Hello", is_read=False):
    with atomic(db):
        notification = notification_crud.create(db, user_id=user.id, type="test", title=title, message="Body")
        if is_read:
            notification_crud.mark_read(db, notification)
    return notification


class TestStatusText:
    def test_templates(self):
        assert status_update_text(ApplicationStatus.SHORTLISTED, "QA") == (
            "Application Shortlisted", "Your application for QA has been shortlisted"
        )
        assert status_update_text(ApplicationStatus.INTERVIEW, "QA") == ("Interview Scheduled", "Interview scheduled for QA")
        assert status_update_text(ApplicationStatus.HIRED, "QA") == ("Congratulations!", "You have been selected for QA")
        assert status_update_text(ApplicationStatus.REJECTED, "QA") == (
            "Application Update", "Your application for QA has been updated"
        )

    def test_status_without_template_is_blank(self):
        assert status_update_text(ApplicationStatus.APPLIED, "QA") == ("", "")


class TestNotificationEmitter:
    """NotificationEmitter.emit never raises"""

    def test_emit_writes_unread_notification(self, db_session, candidate):
        result = NotificationEmitter(db_session).emit(candidate.id, "custom", "Title", "Message", "application", 7)

        assert result.ok
        stored = db_session.get(Notification, result.notification_id)
        assert stored.is_read is False
        assert stored.email_sent is False
        assert (stored.related_entity_type, stored.related_entity_id) == ("application", 7)

    def test_emit_failure_is_reported_not_raised(self, db_session):
        # Unknown user violates the foreign key
        result = NotificationEmitter(db_session).emit(9999, "custom", "Title", "Message")

        assert not result.ok
        assert result.error
        assert db_session.query(Notification).count() == 0

    def test_email_is_queued_when_enabled(self, db_session, candidate, monkeypatch):
        queued = []
        monkeypatch.setattr(notification_service, "queue_task_safely", lambda task, *args: queued.append(args) or True)

        result = NotificationEmitter(db_session, email_enabled=True).emit(candidate.id, "custom", "T", "M")

        assert queued == [(result.notification_id,)]

    def test_queue_failure_does_not_fail_emit(self, db_session, candidate, monkeypatch):
        def broken(*args, **kwargs):
            raise ConnectionError("redis down")

        monkeypatch.setattr(notification_service, "queue_task_safely", broken)

        result = NotificationEmitter(db_session, email_enabled=True).emit(candidate.id, "custom", "T", "M")

        assert result.ok


class TestInboxEndpoints:
    """HTTP surface of /notifications"""

    def test_list_and_unread_count(self, client, db_session, candidate):
        add_notification(db_session, candidate, "One")
        add_notification(db_session, candidate, "Two", is_read=True)

        listed = client.get("/api/v1/notifications", headers=auth_headers(candidate)).json()
        unread = client.get("/api/v1/notifications/unread", headers=auth_headers(candidate)).json()

        assert [n["title"] for n in listed] == ["Two", "One"]
        assert unread["count"] == 1
        assert unread["notifications"][0]["title"] == "One"

    def test_mark_read(self, client, db_session, candidate):
        notification = add_notification(db_session, candidate)

        response = client.patch(f"/api/v1/notifications/{notification.id}/read", headers=auth_headers(candidate))

        assert response.status_code == 200
        assert response.json()["data"]["is_read"] is True

    def test_mark_all_read(self, client, db_session, candidate):
        for _ in range(3):
            add_notification(db_session, candidate)

        response = client.patch("/api/v1/notifications/read-all", headers=auth_headers(candidate))

        assert response.json()["message"] == "3 notifications marked as read"
        assert notification_crud.count_unread(db_session, candidate.id) == 0

    def test_cannot_touch_someone_elses_notification(self, client, db_session, candidate):
        other = make_user(db_session, UserRole.CANDIDATE, "other@example.com")
        notification = add_notification(db_session, other)

        read = client.patch(f"/api/v1/notifications/{notification.id}/read", headers=auth_headers(candidate))
        delete = client.delete(f"/api/v1/notifications/{notification.id}", headers=auth_headers(candidate))

        assert read.status_code == 403
        assert delete.status_code == 403

    def test_delete_one_and_all(self, client, db_session, candidate):
        first = add_notification(db_session, candidate)
        add_notification(db_session, candidate)
        add_notification(db_session, candidate)

        assert client.delete(f"/api/v1/notifications/{first.id}", headers=auth_headers(candidate)).status_code == 200
        response = client.delete("/api/v1/notifications", headers=auth_headers(candidate))

        assert response.json()["message"] == "2 notifications deleted"
        assert db_session.query(Notification).count() == 0

    def test_unknown_notification_returns_404(self, client, candidate):
        assert client.get("/api/v1/notifications/555", headers=auth_headers(candidate)).status_code == 404


class FakeEmailService:
    def __init__(self, succeed=True):
        self.succeed = succeed
        self.sent = []

    def send_notification_email(self, to_email, title, message, user_name=None):
        self.sent.append((to_email, title))
        return self.succeed


class TestEmailDeliveryTask:
    """send_notification_email_task run in-process"""

    @pytest.fixture(autouse=True)
    def _test_session(self, monkeypatch):
        monkeypatch.setattr(notification_tasks, "SessionLocal", TestingSessionLocal)

    def test_sends_and_flags_notification(self, db_session, candidate, monkeypatch):
        email = FakeEmailService()
        monkeypatch.setattr(notification_tasks, "get_email_service", lambda: email)
        notification = add_notification(db_session, candidate, "Interview Scheduled")

        result = send_notification_email_task(notification.id)

        assert result["status"] == "success"
        assert email.sent == [(candidate.email, "Interview Scheduled")]
        db_session.expire_all()
        assert db_session.get(Notification, notification.id).email_sent is True

    def test_already_sent_is_skipped(self, db_session, candidate, monkeypatch):
        email = FakeEmailService()
        monkeypatch.setattr(notification_tasks, "get_email_service", lambda: email)
        notification = add_notification(db_session, candidate)
        with atomic(db_session):
            notification_crud.mark_email_sent(db_session, notification.id)

        result = send_notification_email_task(notification.id)

        assert result["status"] == "skipped"
        assert email.sent == []

    def test_missing_notification_is_skipped(self, db_session):
        assert send_notification_email_task(424242)["status"] == "skipped"

    def test_delivery_failure_raises_for_retry(self, db_session, candidate, monkeypatch):
        monkeypatch.setattr(notification_tasks, "get_email_service", lambda: FakeEmailService(succeed=False))
        notification = add_notification(db_session, candidate)

        with pytest.raises(EmailDeliveryError):
            send_notification_email_task(notification.id)
