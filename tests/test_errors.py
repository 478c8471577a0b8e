"""
Tests for domain error translation.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.errors import Conflict, InvalidState, NotFound, translate_integrity_error
from app.core.database import atomic
from app.crud import application as application_crud
from tests.conftest import auth_headers


class FakeDiag:
    def __init__(self, constraint_name):
        self.constraint_name = constraint_name


class FakePgError(Exception):
    def __init__(self, pgcode, message, constraint_name=None):
        super().__init__(message)
        self.pgcode = pgcode
        self.diag = FakeDiag(constraint_name)


def integrity_error(orig):
    return IntegrityError("INSERT ...", {}, orig)


class TestTranslateIntegrityError:
    def test_postgres_unique_violation(self):
        error = translate_integrity_error(
            integrity_error(FakePgError("23505", "duplicate key value violates unique constraint")), "application"
        )

        assert isinstance(error, Conflict)
        assert error.message == "Duplicate application"

    def test_postgres_foreign_key_names_the_reference(self):
        error = translate_integrity_error(
            integrity_error(FakePgError("23503", "violates foreign key", "applications_job_id_fkey")), "application"
        )

        assert isinstance(error, NotFound)
        assert error.message == "Unknown applications job"
        assert "fkey" not in error.message

    def test_other_violations_are_invalid_state(self):
        error = translate_integrity_error(integrity_error(FakePgError("23514", "check violation")), "interview")

        assert isinstance(error, InvalidState)

    def test_sqlite_unique_violation(self, db_session, candidate, active_job):
        with atomic(db_session):
            application_crud.create(db_session, active_job.id, candidate.id)

        with pytest.raises(IntegrityError) as exc:
            with atomic(db_session):
                application_crud.create(db_session, active_job.id, candidate.id)

        assert isinstance(translate_integrity_error(exc.value, "application"), Conflict)

    def test_sqlite_foreign_key_violation(self, db_session, candidate):
        with pytest.raises(IntegrityError) as exc:
            with atomic(db_session):
                application_crud.create(db_session, 9999, candidate.id)

        error = translate_integrity_error(exc.value, "application")
        assert isinstance(error, NotFound)
        assert error.message == "Unknown reference"


class TestErrorResponses:
    def test_domain_errors_become_detail_payloads(self, client, hr):
        response = client.get("/api/v1/applications/job/9999", headers=auth_headers(hr))

        assert response.status_code == 404
        assert response.json() == {"detail": "Job not found"}
