"""
Tests for AI candidate ranking and job matching.

The scoring oracle is faked; the OpenAI-backed oracle is exercised with a
stub client that returns canned JSON.
"""

import json
from types import SimpleNamespace

import pytest

from app.core.config import Settings
from app.core.errors import InvalidState, NotFound, ServiceUnavailable
from app.models.application import Application, ApplicationStatus
from app.models.job import JobStatus
from app.models.user import UserRole
from app.schemas.ai import CandidateProfile
from app.services.scoring_service import OpenAIScoringOracle, RankingService, ScoringError
from tests.conftest import FakeScoringOracle, auth_headers, make_application, make_job, make_user


@pytest.fixture
def resume_dir(tmp_path):
    (tmp_path / "alice.pdf").write_bytes(b"python, sql, fastapi, docker")
    (tmp_path / "bob.pdf").write_bytes(b"excel")
    return tmp_path


class TestRankingService:
    """RankingService with a fake oracle"""

    def test_rank_sorts_best_first(self, db_session, hr, active_job, resume_dir):
        alice = make_user(db_session, UserRole.CANDIDATE, "alice@example.com", name="Alice", cv_path="alice.pdf")
        bob = make_user(db_session, UserRole.CANDIDATE, "bob@example.com", name="Bob", cv_path="bob.pdf")
        make_application(db_session, active_job, bob)
        make_application(db_session, active_job, alice)

        ranked = RankingService(db_session, FakeScoringOracle(), str(resume_dir)).rank_for_job(active_job.id)

        assert [r.name for r in ranked] == ["Alice", "Bob"]
        assert ranked[0].match_score == 80

    def test_ranking_does_not_change_applications(self, db_session, active_job, candidate, resume_dir):
        application = make_application(db_session, active_job, candidate)

        RankingService(db_session, FakeScoringOracle(), str(resume_dir)).rank_for_job(active_job.id)

        db_session.expire_all()
        assert db_session.get(Application, application.id).status == ApplicationStatus.APPLIED

    def test_unreadable_resume_still_ranked(self, db_session, active_job, resume_dir):
        lost = make_user(db_session, UserRole.CANDIDATE, "lost@example.com", name="Lost", cv_path="missing.pdf")
        make_application(db_session, active_job, lost)

        ranked = RankingService(db_session, FakeScoringOracle(), str(resume_dir)).rank_for_job(active_job.id)

        assert [r.candidate_id for r in ranked] == [lost.id]
        assert ranked[0].match_score == 0

    def test_resume_path_cannot_escape_directory(self, db_session, resume_dir):
        service = RankingService(db_session, FakeScoringOracle(), str(resume_dir))

        with pytest.raises(ScoringError):
            service._read_resume("../../etc/passwd")

    def test_job_without_applicants(self, db_session, active_job, resume_dir):
        with pytest.raises(NotFound) as exc:
            RankingService(db_session, FakeScoringOracle(), str(resume_dir)).rank_for_job(active_job.id)

        assert exc.value.message == "No applicants for this job yet"

    def test_oracle_failure_is_service_unavailable(self, db_session, active_job, candidate, resume_dir):
        make_application(db_session, active_job, candidate)

        with pytest.raises(ServiceUnavailable):
            RankingService(db_session, FakeScoringOracle(fail=True), str(resume_dir)).rank_for_job(active_job.id)

    def test_match_requires_cv(self, db_session, candidate, resume_dir):
        with pytest.raises(InvalidState):
            RankingService(db_session, FakeScoringOracle(), str(resume_dir)).match_for_candidate(candidate)

    def test_match_needs_active_jobs(self, db_session, hr, resume_dir):
        make_job(db_session, hr, status=JobStatus.DRAFT)
        alice = make_user(db_session, UserRole.CANDIDATE, "alice@example.com", cv_path="alice.pdf")

        with pytest.raises(NotFound):
            RankingService(db_session, FakeScoringOracle(), str(resume_dir)).match_for_candidate(alice)

    def test_match_returns_top_five(self, db_session, hr, resume_dir):
        for i in range(8):
            make_job(db_session, hr, title=f"Job {i}")
        alice = make_user(db_session, UserRole.CANDIDATE, "alice@example.com", cv_path="alice.pdf")

        matches = RankingService(db_session, FakeScoringOracle(), str(resume_dir)).match_for_candidate(alice)

        assert len(matches) == 5
        scores = [m.match_score for m in matches]
        assert scores == sorted(scores, reverse=True)


class StubCompletions:
    def __init__(self, content):
        self.content = content
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def stub_client(content):
    completions = StubCompletions(content)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


class TestOpenAIScoringOracle:
    """Response validation of the chat-completion oracle"""

    def _job(self):
        return SimpleNamespace(id=1, title="QA", department="Quality", requirements="Testing", salary_range=None)

    def test_rank_parses_json_mode_response(self):
        payload = {"ranked_candidates": [{"candidate_id": 3, "name": "Zed", "match_score": 72}]}
        client, completions = stub_client(json.dumps(payload))
        oracle = OpenAIScoringOracle(Settings(OPENAI_MODEL="test-model"), client=client)

        ranked = oracle.rank_candidates(self._job(), [CandidateProfile(id=3, name="Zed", email="z@example.com")])

        assert ranked[0].candidate_id == 3
        assert completions.calls[0]["model"] == "test-model"
        assert completions.calls[0]["response_format"] == {"type": "json_object"}

    def test_invalid_json_is_scoring_error(self):
        client, _ = stub_client("not json at all")
        oracle = OpenAIScoringOracle(Settings(), client=client)

        with pytest.raises(ScoringError):
            oracle.rank_candidates(self._job(), [CandidateProfile(id=1, name="A", email="a@example.com")])

    def test_out_of_range_score_is_scoring_error(self):
        payload = {"matched_jobs": [{"job_id": 1, "title": "QA", "match_score": 140}]}
        client, _ = stub_client(json.dumps(payload))
        oracle = OpenAIScoringOracle(Settings(), client=client)

        with pytest.raises(ScoringError):
            oracle.match_jobs(CandidateProfile(id=1, name="A", email="a@example.com"), [self._job()])

    def test_non_pdf_resume_is_scoring_error(self):
        client, completions = stub_client("{}")
        oracle = OpenAIScoringOracle(Settings(), client=client)

        with pytest.raises(ScoringError):
            oracle.parse_resume(b"plain text, not a pdf")
        assert completions.calls == []


class TestAIEndpoints:
    """HTTP surface of /ai"""

    def test_owner_ranks_applicants(self, client, db_session, hr, candidate, active_job):
        make_application(db_session, active_job, candidate)

        response = client.post("/api/v1/ai/rank-candidates", json={"job_id": active_job.id}, headers=auth_headers(hr))

        assert response.status_code == 200
        assert response.json()[0]["candidate_id"] == candidate.id

    def test_other_hr_cannot_rank(self, client, db_session, active_job):
        intruder = make_user(db_session, UserRole.HR, "intruder@example.com")

        response = client.post(
            "/api/v1/ai/rank-candidates", json={"job_id": active_job.id}, headers=auth_headers(intruder)
        )

        assert response.status_code == 403

    def test_oracle_outage_returns_503(self, client, db_session, scoring_oracle, hr, candidate, active_job):
        make_application(db_session, active_job, candidate)
        scoring_oracle.fail = True

        response = client.post("/api/v1/ai/rank-candidates", json={"job_id": active_job.id}, headers=auth_headers(hr))

        assert response.status_code == 503
        assert response.json() == {"detail": "Failed to rank candidates"}

    def test_matching_without_cv_returns_400(self, client, candidate):
        response = client.get("/api/v1/ai/matching-jobs", headers=auth_headers(candidate))

        assert response.status_code == 400
        assert response.json()["detail"] == "Please upload your CV first"
