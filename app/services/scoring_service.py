"""
Scoring oracle and the ranking service that consumes it.

The oracle is any OpenAI-compatible chat completion endpoint used in JSON
mode (OpenAI, Groq, ...). It only reads: ranking or matching never changes
an application.
"""

import io
import json
import logging
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

import pdfplumber
from openai import OpenAI
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.errors import InvalidState, NotFound, ServiceUnavailable
from app.crud import application as application_crud
from app.crud import job as job_crud
from app.crud import user as user_crud
from app.models.job import Job, JobStatus
from app.models.user import User
from app.schemas.ai import (
    NOT_SPECIFIED,
    CandidateProfile,
    MatchedJob,
    MatchedJobs,
    RankedCandidate,
    RankedCandidates,
    ResumeProfile,
)

logger = logging.getLogger(__name__)

MAX_MATCHED_JOBS = 5


class ScoringError(Exception):
    """The scoring oracle could not produce a usable answer."""


class ScoringOracle(Protocol):
    def parse_resume(self, raw: bytes) -> ResumeProfile: ...

    def rank_candidates(self, job: Job, candidates: Sequence[CandidateProfile]) -> List[RankedCandidate]: ...

    def match_jobs(self, profile: ResumeProfile, jobs: Sequence[Job]) -> List[MatchedJob]: ...


RESUME_SYSTEM_PROMPT = """You extract resume information.
Respond ONLY with valid JSON matching this exact shape:
{
  "skills": ["skill1", "skill2"],
  "experience": "summary string",
  "education": "degree and institution string"
}
No markdown, no extra keys."""

RANK_SYSTEM_PROMPT = """You objectively rank job candidates.
Respond ONLY with valid JSON matching this exact shape:
{
  "ranked_candidates": [
    {
      "candidate_id": 1,
      "name": "string",
      "match_score": 85,
      "strengths": ["string"],
      "concerns": ["string"],
      "recommendation": "string"
    }
  ]
}
match_score is between 0 and 100. Sort by match_score descending. No markdown, no extra keys."""

MATCH_SYSTEM_PROMPT = f"""You match candidates to suitable job openings.
Respond ONLY with valid JSON matching this exact shape:
{{
  "matched_jobs": [
    {{
      "job_id": 1,
      "title": "string",
      "match_score": 90,
      "match_reason": "string",
      "missing_skills": ["string"]
    }}
  ]
}}
match_score is between 0 and 100. Return the top {MAX_MATCHED_JOBS} matches only, sorted by match_score descending.
No markdown, no extra keys."""


def extract_pdf_text(raw: bytes) -> str:
    """
    Extract text from a PDF resume.

    Raises:
        ScoringError: If the file is not a readable PDF or holds no text
    """
    try:
        with pdfplumber.open(io.BytesIO(raw)) as pdf:
            text = "\n".join(page.extract_text() or "" for page in pdf.pages)
    except Exception as e:
        raise ScoringError(f"Could not read PDF: {e}") from e

    if not text.strip():
        raise ScoringError("No text could be extracted from the resume. It may be a scanned image.")
    return text


class OpenAIScoringOracle:
    """
    Scoring oracle backed by chat completions in JSON mode.

    Args:
        config: Application settings (API key, base URL, model, temperature)
        client: Pre-built OpenAI client, mainly for tests
    """

    def __init__(self, config: Settings, client: Optional[OpenAI] = None):
        self.model = config.OPENAI_MODEL
        self.temperature = config.OPENAI_TEMPERATURE
        self.client = client or OpenAI(
            api_key=config.OPENAI_API_KEY,
            base_url=config.OPENAI_BASE_URL,
            timeout=config.OPENAI_TIMEOUT_SECONDS,
        )

    def _complete(self, system_prompt: str, user_prompt: str, schema: type[BaseModel], temperature: float) -> BaseModel:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt.strip()}
                ],
                response_format={"type": "json_object"},
                temperature=temperature
            )
            content = response.choices[0].message.content
            if not content:
                raise ScoringError("Empty response from scoring model")
            return schema(**json.loads(content))
        except ScoringError:
            raise
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            raise ScoringError(f"Invalid response from scoring model: {e}") from e
        except Exception as e:
            raise ScoringError(f"Scoring model request failed: {e}") from e

    def parse_resume(self, raw: bytes) -> ResumeProfile:
        text = extract_pdf_text(raw)
        profile = self._complete(
            RESUME_SYSTEM_PROMPT,
            f"Extract structured information from this resume:\n\n{text}",
            ResumeProfile,
            temperature=0.3,
        )
        return ResumeProfile(
            skills=profile.skills,
            experience=profile.experience or NOT_SPECIFIED,
            education=profile.education or NOT_SPECIFIED,
        )

    def rank_candidates(self, job: Job, candidates: Sequence[CandidateProfile]) -> List[RankedCandidate]:
        if not candidates:
            raise ScoringError("No candidates provided for ranking")

        candidate_list = "\n\n".join(
            f"{c.name} (ID: {c.id})\n"
            f"  Skills: {', '.join(c.skills) or NOT_SPECIFIED}\n"
            f"  Experience: {c.experience}\n"
            f"  Education: {c.education}"
            for c in candidates
        )
        result = self._complete(
            RANK_SYSTEM_PROMPT,
            f"""Rank the following candidates for this job opening.

JOB:
Title: {job.title}
Department: {job.department}
Requirements: {job.requirements}

CANDIDATES:
{candidate_list}""",
            RankedCandidates,
            temperature=self.temperature,
        )
        return result.ranked_candidates

    def match_jobs(self, profile: ResumeProfile, jobs: Sequence[Job]) -> List[MatchedJob]:
        if not jobs:
            raise ScoringError("No jobs provided for matching")

        job_list = "\n\n".join(
            f"{j.title} (ID: {j.id})\n"
            f"  Department: {j.department}\n"
            f"  Requirements: {j.requirements[:200]}...\n"
            f"  Salary: {j.salary_range or NOT_SPECIFIED}"
            for j in jobs
        )
        result = self._complete(
            MATCH_SYSTEM_PROMPT,
            f"""Match this candidate to the most suitable jobs from the list below.

CANDIDATE:
Skills: {', '.join(profile.skills) or NOT_SPECIFIED}
Experience: {profile.experience}
Education: {profile.education}

AVAILABLE JOBS:
{job_list}""",
            MatchedJobs,
            temperature=self.temperature,
        )
        return result.matched_jobs


class RankingService:
    """
    Ranks applicants for a job and matches candidates to open jobs.

    Args:
        db: Database session (read only)
        oracle: Scoring oracle
        resume_dir: Directory holding resume files named by User.cv_path
    """

    def __init__(self, db: Session, oracle: ScoringOracle, resume_dir: str):
        self.db = db
        self.oracle = oracle
        self.resume_dir = Path(resume_dir)

    def _read_resume(self, cv_path: str) -> bytes:
        path = (self.resume_dir / cv_path).resolve()
        # cv_path must not escape the resume directory
        if self.resume_dir.resolve() not in path.parents:
            raise ScoringError(f"Resume path outside resume directory: {cv_path}")
        try:
            return path.read_bytes()
        except OSError as e:
            raise ScoringError(f"Could not read resume {cv_path}: {e}") from e

    def _profile_for(self, candidate: User) -> CandidateProfile:
        identity = {"id": candidate.id, "name": candidate.name, "email": candidate.email}

        if not candidate.cv_path:
            return CandidateProfile(**identity)

        try:
            profile = self.oracle.parse_resume(self._read_resume(candidate.cv_path))
        except ScoringError as e:
            logger.error(f"Failed to parse CV for candidate {candidate.id}: {e}")
            return CandidateProfile(**identity, experience="CV parsing failed")

        return CandidateProfile(**identity, **profile.model_dump())

    def rank_for_job(self, job_id: int) -> List[RankedCandidate]:
        """
        Rank every applicant of a job, best match first.

        Raises:
            NotFound: The job does not exist or has no applicants
            ServiceUnavailable: The oracle could not rank
        """
        job = job_crud.get_by_id(self.db, job_id)
        if not job:
            raise NotFound("Job not found")

        applications = application_crud.get_multi(self.db, job_id=job_id, limit=1000)
        if not applications:
            raise NotFound("No applicants for this job yet")

        candidates = [
            self._profile_for(user_crud.get_by_id(self.db, application.candidate_id))
            for application in applications
        ]

        try:
            ranked = self.oracle.rank_candidates(job, candidates)
        except ScoringError as e:
            logger.error(f"Ranking failed for job {job_id}: {e}")
            raise ServiceUnavailable("Failed to rank candidates") from e

        return sorted(ranked, key=lambda r: r.match_score, reverse=True)

    def match_for_candidate(self, candidate: User) -> List[MatchedJob]:
        """
        Find the best open jobs for a candidate's resume.

        Raises:
            InvalidState: The candidate has no CV on file
            NotFound: No job is currently active
            ServiceUnavailable: The resume could not be parsed or matched
        """
        if not candidate.cv_path:
            raise InvalidState("Please upload your CV first")

        active_jobs = job_crud.get_multi(self.db, status=JobStatus.ACTIVE, limit=1000)
        if not active_jobs:
            raise NotFound("No active jobs available at the moment")

        try:
            profile = self.oracle.parse_resume(self._read_resume(candidate.cv_path))
            matches = self.oracle.match_jobs(profile, active_jobs)
        except ScoringError as e:
            logger.error(f"Job matching failed for candidate {candidate.id}: {e}")
            raise ServiceUnavailable("Failed to find matching jobs") from e

        return sorted(matches, key=lambda m: m.match_score, reverse=True)[:MAX_MATCHED_JOBS]
