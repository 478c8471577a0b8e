"""
Test suite for job endpoints.

Tests cover:
- Job creation and validation
- Visibility per role and the public board
- Editing, closing and deleting
"""

from datetime import datetime, timedelta, timezone

import pytest
from app.models.application import Application
from app.models.job import Job, JobStatus
from app.models.user import UserRole
from tests.conftest import auth_headers, make_application, make_job, make_user


@pytest.fixture
def job_payload():
    return {
        "title": "Senior Python Developer",
        "department": "Engineering",
        "description": "Own our FastAPI services",
        "requirements": "Python, FastAPI, PostgreSQL",
        "salary_range": "120k-150k",
        "job_type": "full-time",
        "deadline": (datetime.now(timezone.utc) + timedelta(days=30)).isoformat(),
    }


class TestJobCreation:
    """Tests for POST /jobs"""

    def test_create_job_defaults_to_draft(self, client, hr, job_payload):
        response = client.post("/api/v1/jobs", json=job_payload, headers=auth_headers(hr))

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "draft"
        assert data["hr_id"] == hr.id

    def test_create_active_job(self, client, hr, job_payload):
        response = client.post("/api/v1/jobs", json={**job_payload, "status": "active"}, headers=auth_headers(hr))

        assert response.json()["data"]["status"] == "active"

    def test_cannot_create_closed_job(self, client, hr, job_payload):
        response = client.post("/api/v1/jobs", json={**job_payload, "status": "closed"}, headers=auth_headers(hr))

        assert response.status_code == 422

    def test_missing_fields_rejected(self, client, hr):
        response = client.post("/api/v1/jobs", json={"title": "Only a title"}, headers=auth_headers(hr))

        assert response.status_code == 422

    def test_candidate_cannot_create_job(self, client, candidate, job_payload):
        response = client.post("/api/v1/jobs", json=job_payload, headers=auth_headers(candidate))

        assert response.status_code == 403


class TestJobVisibility:
    """Who sees which jobs"""

    def test_public_board_lists_active_jobs_only(self, client, db_session, hr):
        make_job(db_session, hr, title="Open role")
        make_job(db_session, hr, title="Draft role", status=JobStatus.DRAFT)
        make_job(db_session, hr, title="Closed role", status=JobStatus.CLOSED)

        response = client.get("/api/v1/jobs/public")

        assert response.status_code == 200
        assert [j["title"] for j in response.json()] == ["Open role"]

    def test_public_job_hides_drafts(self, client, db_session, hr):
        draft = make_job(db_session, hr, status=JobStatus.DRAFT)

        assert client.get(f"/api/v1/jobs/public/{draft.id}").status_code == 404

    def test_hr_sees_only_own_jobs(self, client, db_session, hr):
        other_hr = make_user(db_session, UserRole.HR, "other-hr@example.com")
        make_job(db_session, hr, title="Mine", status=JobStatus.DRAFT)
        make_job(db_session, other_hr, title="Theirs")

        response = client.get("/api/v1/jobs", headers=auth_headers(hr))

        assert [j["title"] for j in response.json()] == ["Mine"]

    def test_admin_sees_every_job(self, client, db_session, hr, admin):
        make_job(db_session, hr, status=JobStatus.DRAFT)
        make_job(db_session, hr)

        response = client.get("/api/v1/jobs", headers=auth_headers(admin))

        assert len(response.json()) == 2

    def test_candidate_cannot_open_draft(self, client, db_session, hr, candidate):
        draft = make_job(db_session, hr, status=JobStatus.DRAFT)

        response = client.get(f"/api/v1/jobs/{draft.id}", headers=auth_headers(candidate))

        assert response.status_code == 404

    def test_get_nonexistent_job(self, client, hr):
        assert client.get("/api/v1/jobs/999", headers=auth_headers(hr)).status_code == 404


class TestJobUpdates:
    """PUT, close and DELETE"""

    def test_owner_edits_job(self, client, hr, active_job):
        response = client.put(
            f"/api/v1/jobs/{active_job.id}", json={"salary_range": "130k-160k"}, headers=auth_headers(hr)
        )

        assert response.status_code == 200
        assert response.json()["data"]["salary_range"] == "130k-160k"
        assert response.json()["data"]["title"] == "Backend Engineer"

    def test_closed_job_cannot_be_edited(self, client, db_session, hr):
        job = make_job(db_session, hr, status=JobStatus.CLOSED)

        response = client.put(f"/api/v1/jobs/{job.id}", json={"title": "Reopened"}, headers=auth_headers(hr))

        assert response.status_code == 400

    def test_other_hr_cannot_edit(self, client, db_session, active_job):
        intruder = make_user(db_session, UserRole.HR, "intruder@example.com")

        response = client.put(f"/api/v1/jobs/{active_job.id}", json={"title": "Mine now"}, headers=auth_headers(intruder))

        assert response.status_code == 403

    def test_close_job(self, client, hr, active_job):
        response = client.patch(f"/api/v1/jobs/{active_job.id}/close", headers=auth_headers(hr))

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "closed"

    def test_delete_job_cascades_to_applications(self, client, db_session, hr, candidate, active_job):
        make_application(db_session, active_job, candidate)

        response = client.delete(f"/api/v1/jobs/{active_job.id}", headers=auth_headers(hr))

        assert response.status_code == 204
        assert db_session.query(Job).count() == 0
        assert db_session.query(Application).count() == 0

    def test_delete_nonexistent_job(self, client, hr):
        assert client.delete("/api/v1/jobs/999", headers=auth_headers(hr)).status_code == 404
