"""
AI-assisted ranking and matching.

Both routes only read: ranking applicants never changes an application.
"""

import logging
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_ranking_service, require_candidate, require_hr
from app.core.errors import Forbidden
from app.crud import job as job_crud
from app.models.user import User
from app.schemas.ai import MatchedJob, RankCandidatesRequest, RankedCandidate
from app.services.scoring_service import RankingService

router = APIRouter(prefix="/ai", tags=["AI"])
logger = logging.getLogger(__name__)


@router.post("/rank-candidates", response_model=List[RankedCandidate])
def rank_candidates(
    request: RankCandidatesRequest,
    db: Session = Depends(get_db),
    ranking: RankingService = Depends(get_ranking_service),
    user: User = Depends(require_hr)
):
    """
    Rank every applicant of a job against its requirements, best first.

    Applicants whose resume cannot be read are still ranked, on an empty
    profile. Returns 503 when the scoring model is unavailable.
    """
    job = job_crud.get_by_id(db, request.job_id)
    if job and job.hr_id != user.id:
        raise Forbidden("You can only rank applicants for your own jobs")

    ranked = ranking.rank_for_job(request.job_id)
    logger.info(f"Ranked {len(ranked)} candidate(s) for job {request.job_id}")
    return ranked


@router.get("/matching-jobs", response_model=List[MatchedJob])
def find_matching_jobs(
    ranking: RankingService = Depends(get_ranking_service),
    user: User = Depends(require_candidate)
):
    """Top active jobs for the caller's resume."""
    return ranking.match_for_candidate(user)
