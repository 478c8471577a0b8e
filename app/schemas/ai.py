"""
Schemas exchanged with the scoring oracle.

The oracle answers in JSON; these models validate its output before the
rest of the system sees it.
"""

from typing import List
from pydantic import BaseModel, Field

NOT_SPECIFIED = "Not specified"


class ResumeProfile(BaseModel):
    """Structured view of a resume."""
    skills: List[str] = Field(default_factory=list)
    experience: str = NOT_SPECIFIED
    education: str = NOT_SPECIFIED


class CandidateProfile(ResumeProfile):
    """Resume profile plus the identity needed to rank it."""
    id: int
    name: str
    email: str


class RankedCandidate(BaseModel):
    candidate_id: int
    name: str
    match_score: float = Field(..., ge=0, le=100)
    strengths: List[str] = Field(default_factory=list)
    concerns: List[str] = Field(default_factory=list)
    recommendation: str = ""


class RankedCandidates(BaseModel):
    ranked_candidates: List[RankedCandidate]


class MatchedJob(BaseModel):
    job_id: int
    title: str
    match_score: float = Field(..., ge=0, le=100)
    match_reason: str = ""
    missing_skills: List[str] = Field(default_factory=list)


class MatchedJobs(BaseModel):
    matched_jobs: List[MatchedJob]


class RankCandidatesRequest(BaseModel):
    job_id: int = Field(..., gt=0)
