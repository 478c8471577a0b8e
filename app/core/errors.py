"""
Domain errors raised by the lifecycle engines.

Each error kind carries the HTTP status it maps to, so the API layer can
translate it with a single exception handler (see main.py).
"""

import re
from typing import Optional

from fastapi import status
from sqlalchemy.exc import IntegrityError


class LifecycleError(Exception):
    """Base class for errors surfaced to the caller."""
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(LifecycleError):
    """Referenced entity id does not exist."""
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(LifecycleError):
    """Uniqueness violation (duplicate application, duplicate interview)."""
    status_code = status.HTTP_409_CONFLICT


class InvalidState(LifecycleError):
    """Precondition violated (job not active, transition not allowed)."""
    status_code = status.HTTP_400_BAD_REQUEST


class ServiceUnavailable(LifecycleError):
    """An external oracle (scoring or scheduling) failed."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class Forbidden(LifecycleError):
    """Actor lacks the role or ownership for the target entity."""
    status_code = status.HTTP_403_FORBIDDEN


# Postgres SQLSTATE codes
_UNIQUE_VIOLATION = "23505"
_FOREIGN_KEY_VIOLATION = "23503"


def _humanize(name: str) -> str:
    return name.replace("_fkey", "").replace("_id", "").replace("_", " ").strip()


def translate_integrity_error(exc: IntegrityError, entity: str) -> LifecycleError:
    """
    Map a store-level constraint violation to a domain error.

    Raw constraint names never reach the caller: duplicates become
    "Duplicate <entity>", dangling references become "Unknown <reference>".
    """
    orig = exc.orig
    code: Optional[str] = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    text = str(orig)

    if code == _UNIQUE_VIOLATION or "UNIQUE constraint failed" in text:
        return Conflict(f"Duplicate {entity}")

    if code == _FOREIGN_KEY_VIOLATION or "FOREIGN KEY constraint failed" in text:
        constraint = getattr(getattr(orig, "diag", None), "constraint_name", None)
        if constraint:
            # e.g. "applications_job_id_fkey" -> "applications job"
            return NotFound(f"Unknown {_humanize(constraint)}")
        match = re.search(r"Key \((\w+)\)", text)
        if match:
            return NotFound(f"Unknown {_humanize(match.group(1))}")
        return NotFound("Unknown reference")

    return InvalidState(f"Failed to save {entity}")
