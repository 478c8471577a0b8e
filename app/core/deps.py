"""
FastAPI dependencies for authentication and authorization.

These dependencies are used to protect endpoints, extract user context and
build the lifecycle engines for a request.
"""

from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.security import decode_token
from app.models.user import User, UserRole
from app.services.application_lifecycle import ApplicationLifecycle
from app.services.calendar_service import GoogleOAuthClient, SchedulingOracle, scheduler_for
from app.services.interview_lifecycle import InterviewLifecycle
from app.services.notification_service import NotificationEmitter
from app.services.scoring_service import OpenAIScoringOracle, RankingService, ScoringOracle

# HTTP Bearer token scheme (Authorization: Bearer <token>)
security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Extract and validate the current user from JWT token.

    Raises:
        HTTPException 401: If token is invalid or user not found
        HTTPException 403: If the account is closed
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_token(credentials.credentials)
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    return user


def require_roles(*roles: UserRole) -> Callable[..., User]:
    """
    Build a dependency that only lets the given roles through.

    Usage:
        @router.post("/jobs")
        def create_job(user: User = Depends(require_roles(UserRole.HR))):
            ...
    """
    allowed = set(roles)

    def _checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )
        return user

    return _checker


require_candidate = require_roles(UserRole.CANDIDATE)
require_hr = require_roles(UserRole.HR)
require_admin = require_roles(UserRole.ADMIN)
require_staff = require_roles(UserRole.HR, UserRole.ADMIN)


# ----------------------------------------------------------------------
# Lifecycle engines and oracles
#
# Built per request from the cached settings. Tests swap any of these
# through app.dependency_overrides.
# ----------------------------------------------------------------------

def get_notifier(
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings)
) -> NotificationEmitter:
    return NotificationEmitter(db, email_enabled=config.NOTIFICATION_EMAILS_ENABLED)


def get_application_lifecycle(
    db: Session = Depends(get_db),
    notifier: NotificationEmitter = Depends(get_notifier),
    config: Settings = Depends(get_settings)
) -> ApplicationLifecycle:
    return ApplicationLifecycle(db, notifier, strict_transitions=config.STRICT_STATUS_TRANSITIONS)


def get_scheduler(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Optional[SchedulingOracle]:
    """The acting HR user's calendar, or None when none is connected."""
    if user.role != UserRole.HR:
        return None
    return scheduler_for(db, user)


def get_interview_lifecycle(
    db: Session = Depends(get_db),
    notifier: NotificationEmitter = Depends(get_notifier),
    config: Settings = Depends(get_settings)
) -> InterviewLifecycle:
    """Interview engine without calendar access, for reads and status/notes/feedback."""
    return InterviewLifecycle(
        db,
        notifier,
        strict_transitions=config.STRICT_STATUS_TRANSITIONS,
        default_duration_minutes=config.DEFAULT_INTERVIEW_DURATION_MINUTES,
    )


def get_calendar_interview_lifecycle(
    db: Session = Depends(get_db),
    notifier: NotificationEmitter = Depends(get_notifier),
    scheduler: Optional[SchedulingOracle] = Depends(get_scheduler),
    config: Settings = Depends(get_settings)
) -> InterviewLifecycle:
    """
    Interview engine bound to the acting HR user's calendar.

    Only routes that create, move or remove calendar events use this, so
    reads never trigger a token refresh.
    """
    return InterviewLifecycle(
        db,
        notifier,
        scheduler=scheduler,
        strict_transitions=config.STRICT_STATUS_TRANSITIONS,
        default_duration_minutes=config.DEFAULT_INTERVIEW_DURATION_MINUTES,
    )


@lru_cache(maxsize=1)
def get_scoring_oracle() -> ScoringOracle:
    return OpenAIScoringOracle(get_settings())


def get_ranking_service(
    db: Session = Depends(get_db),
    oracle: ScoringOracle = Depends(get_scoring_oracle),
    config: Settings = Depends(get_settings)
) -> RankingService:
    return RankingService(db, oracle, resume_dir=config.RESUME_DIR)


def get_oauth_client(config: Settings = Depends(get_settings)) -> GoogleOAuthClient:
    return GoogleOAuthClient(config)
