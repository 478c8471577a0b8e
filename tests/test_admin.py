"""
Unit tests for admin endpoints.

Tests:
- Admin dashboard metrics
- HR account management
- System health checks
"""

from app.models.application import ApplicationStatus
from app.models.job import JobStatus
from app.models.user import User, UserRole
from tests.conftest import auth_headers, make_application, make_job, make_user


class TestAdminDashboard:
    """Test admin dashboard endpoint"""

    def test_get_dashboard_metrics(self, client, db_session, admin, hr, candidate):
        job = make_job(db_session, hr)
        make_job(db_session, hr, status=JobStatus.CLOSED)
        make_application(db_session, job, candidate, ApplicationStatus.HIRED)

        response = client.get("/api/v1/admin/dashboard", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json() == {
            "total_jobs": 2,
            "active_jobs": 1,
            "total_applications": 1,
            "total_hires": 1,
            "active_hr_users": 1,
            "total_candidates": 1,
        }

    def test_dashboard_requires_admin(self, client, hr, candidate):
        for user in (hr, candidate):
            response = client.get("/api/v1/admin/dashboard", headers=auth_headers(user))
            assert response.status_code == 403


class TestHRManagement:
    """Admin CRUD on HR accounts"""

    def test_create_hr_user(self, client, admin):
        response = client.post(
            "/api/v1/admin/hr",
            json={"email": "Recruiter@Example.com", "password": "recruit123", "name": "Rita", "department": "Talent"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["role"] == "hr"
        assert data["email"] == "recruiter@example.com"

        login = client.post("/api/v1/auth/login", json={"email": "recruiter@example.com", "password": "recruit123"})
        assert login.status_code == 200

    def test_duplicate_email_conflicts(self, client, admin, hr):
        response = client.post(
            "/api/v1/admin/hr",
            json={"email": hr.email, "password": "recruit123", "name": "Dup"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 409

    def test_update_hr_user(self, client, admin, hr):
        response = client.put(
            f"/api/v1/admin/hr/{hr.id}",
            json={"department": "People", "status": "closed"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["data"]["department"] == "People"
        assert response.json()["data"]["status"] == "closed"

    def test_candidate_is_not_an_hr_user(self, client, admin, candidate):
        response = client.get(f"/api/v1/admin/hr/{candidate.id}", headers=auth_headers(admin))

        assert response.status_code == 404

    def test_cannot_delete_hr_who_owns_jobs(self, client, db_session, admin, hr):
        make_job(db_session, hr)

        response = client.delete(f"/api/v1/admin/hr/{hr.id}", headers=auth_headers(admin))

        assert response.status_code == 400
        assert db_session.get(User, hr.id) is not None

    def test_delete_hr_without_jobs(self, client, db_session, admin):
        recruiter = make_user(db_session, UserRole.HR, "temp@example.com")
        recruiter_id = recruiter.id

        response = client.delete(f"/api/v1/admin/hr/{recruiter_id}", headers=auth_headers(admin))

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(User, recruiter_id) is None

    def test_list_hr_and_candidates(self, client, admin, hr, candidate):
        hr_list = client.get("/api/v1/admin/hr", headers=auth_headers(admin)).json()
        candidates = client.get("/api/v1/admin/candidates", headers=auth_headers(admin)).json()

        assert [u["id"] for u in hr_list] == [hr.id]
        assert [u["id"] for u in candidates] == [candidate.id]


class TestHealthCheck:
    """Test health check endpoints"""

    def test_health_check(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_detailed_health_check(self, client):
        response = client.get("/api/v1/health/detailed")

        assert response.status_code == 200
        data = response.json()
        assert data["checks"]["database"]["status"] == "healthy"
        assert data["checks"]["broker"]["status"] == "disabled"
