"""
Authentication endpoints for registration and login.

Implements JWT-based stateless authentication:
- POST /register: Create a candidate account
- POST /login: Authenticate and receive a JWT
- GET /me: Get current user profile

HR accounts are created by admins (see admin.py).
"""

import logging
from fastapi import APIRouter, HTTPException, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import atomic, get_db
from app.core.deps import get_current_user
from app.core.security import verify_password, create_access_token
from app.crud import user as user_crud
from app.models.user import User, UserRole
from app.schemas.user import UserRegisterRequest, UserLoginRequest, TokenResponse, UserResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)


def _token_for(user: User) -> TokenResponse:
    access_token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    return TokenResponse(access_token=access_token, token_type="bearer", user=UserResponse.model_validate(user))


@router.post("/register", status_code=201, response_model=TokenResponse)
def register(
    request: UserRegisterRequest,
    db: Session = Depends(get_db)
):
    """
    Register a new candidate account.

    Returns a JWT for immediate login.
    """
    if user_crud.get_by_email(db, request.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    try:
        with atomic(db):
            new_user = user_crud.create(
                db,
                email=request.email,
                password=request.password,
                role=UserRole.CANDIDATE,
                name=request.name,
                phone=request.phone,
                cv_path=request.cv_path,
            )
    except IntegrityError:
        # Lost a race with a concurrent registration for the same e-mail
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    db.refresh(new_user)
    logger.info(f"New candidate registered: {new_user.email} (id: {new_user.id})")

    return _token_for(new_user)


@router.post("/login", response_model=TokenResponse)
def login(
    request: UserLoginRequest,
    db: Session = Depends(get_db)
):
    """
    Authenticate user and return a JWT.
    """
    user = user_crud.get_by_email(db, request.email)
    if not user or not verify_password(request.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive. Please contact support."
        )

    logger.info(f"User logged in: {user.email} ({user.role.value})")

    return _token_for(user)


@router.get("/me", response_model=UserResponse)
def get_current_user_profile(current_user: User = Depends(get_current_user)):
    """Get the authenticated user's profile."""
    return current_user
