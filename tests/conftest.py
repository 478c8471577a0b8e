"""
Pytest configuration and fixtures for testing.

This file provides reusable test fixtures for:
- Database setup/teardown
- FastAPI test client with fake scheduling and scoring oracles
- User, job and application factories
"""

import os

# Settings are read once at import time
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["NOTIFICATION_EMAILS_ENABLED"] = "false"
os.environ["STRICT_STATUS_TRANSITIONS"] = "true"

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, atomic, get_db
from app.core.deps import get_scheduler, get_scoring_oracle
from app.core.security import create_access_token
from app.crud import application as application_crud
from app.crud import user as user_crud
from app.models.application import Application, ApplicationStatus
from app.models.job import Job, JobStatus
from app.models.user import User, UserRole
from app.schemas.ai import MatchedJob, RankedCandidate, ResumeProfile
from app.services.calendar_service import ScheduledEvent, SchedulingError
from app.services.scoring_service import ScoringError
from main import app


# Use in-memory SQLite for testing (fast, isolated)
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeScheduler:
    """In-memory calendar that records every call."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.created: List[dict] = []
        self.updated: List[tuple] = []
        self.deleted: List[str] = []

    def create_event(self, summary, description, attendees, start, duration_minutes):
        if self.fail:
            raise SchedulingError("calendar down")
        self.created.append({
            "summary": summary,
            "description": description,
            "attendees": attendees,
            "start": start,
            "duration_minutes": duration_minutes,
        })
        event_id = f"evt-{len(self.created)}"
        return ScheduledEvent(event_id=event_id, meeting_link=f"https://meet.google.com/{event_id}")

    def update_event(self, event_id, start, duration_minutes):
        if self.fail:
            raise SchedulingError("calendar down")
        self.updated.append((event_id, start, duration_minutes))
        return ScheduledEvent(event_id=event_id)

    def delete_event(self, event_id):
        if self.fail:
            raise SchedulingError("calendar down")
        self.deleted.append(event_id)


class FakeScoringOracle:
    """Scores candidates by the number of skills in their resume."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.resumes_parsed = 0

    def parse_resume(self, raw: bytes) -> ResumeProfile:
        if self.fail:
            raise ScoringError("model unavailable")
        self.resumes_parsed += 1
        skills = [s.strip() for s in raw.decode().split(",") if s.strip()]
        return ResumeProfile(skills=skills, experience="5 years", education="BSc")

    def rank_candidates(self, job, candidates):
        if self.fail:
            raise ScoringError("model unavailable")
        # Deliberately unsorted: the service sorts
        return [
            RankedCandidate(
                candidate_id=c.id,
                name=c.name,
                match_score=min(100, len(c.skills) * 20),
                recommendation="Interview" if c.skills else "Skip",
            )
            for c in candidates
        ]

    def match_jobs(self, profile, jobs):
        if self.fail:
            raise ScoringError("model unavailable")
        return [
            MatchedJob(job_id=j.id, title=j.title, match_score=(i * 10) % 100, match_reason="Skills overlap")
            for i, j in enumerate(jobs)
        ]


@pytest.fixture
def db_session():
    """
    Create a fresh database session for each test.
    Tables are dropped after the test completes.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def scoring_oracle():
    return FakeScoringOracle()


@pytest.fixture
def client(db_session, scheduler, scoring_oracle):
    """
    FastAPI test client with overridden database and oracle dependencies.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_scheduler] = lambda: scheduler
    app.dependency_overrides[get_scoring_oracle] = lambda: scoring_oracle

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ----------------------------------------------------------------------
# Factories
# ----------------------------------------------------------------------

def make_user(
    db,
    role: UserRole,
    email: str,
    name: str = "Test User",
    password: str = "secret123",
    cv_path: Optional[str] = None
) -> User:
    with atomic(db):
        user = user_crud.create(db, email=email, password=password, role=role, name=name, cv_path=cv_path)
    return user


def make_job(db, hr: User, title: str = "Backend Engineer", status: JobStatus = JobStatus.ACTIVE) -> Job:
    with atomic(db):
        job = Job(
            title=title,
            department="Engineering",
            description="Build and run APIs",
            requirements="Python, SQL, FastAPI",
            salary_range="100k-120k",
            deadline=datetime.now(timezone.utc) + timedelta(days=30),
            status=status,
            hr_id=hr.id,
        )
        db.add(job)
        db.flush()
    return job


def make_application(db, job: Job, candidate: User, status: ApplicationStatus = ApplicationStatus.APPLIED) -> Application:
    with atomic(db):
        application = application_crud.create(db, job.id, candidate.id)
        if status != ApplicationStatus.APPLIED:
            application_crud.set_status(db, application.id, status)
    return application


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def hr(db_session):
    return make_user(db_session, UserRole.HR, "hr@example.com", name="Harriet HR")


@pytest.fixture
def admin(db_session):
    return make_user(db_session, UserRole.ADMIN, "admin@example.com", name="Ada Admin")


@pytest.fixture
def candidate(db_session):
    return make_user(db_session, UserRole.CANDIDATE, "cand@example.com", name="Carl Candidate")


@pytest.fixture
def active_job(db_session, hr):
    return make_job(db_session, hr)
