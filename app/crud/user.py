"""
CRUD operations for User model.
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from app.core.security import get_password_hash
from app.models.user import User, UserRole, UserStatus


def get_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower()).first()


def create(
    db: Session,
    *,
    email: str,
    password: str,
    role: UserRole,
    name: str,
    phone: Optional[str] = None,
    department: Optional[str] = None,
    cv_path: Optional[str] = None,
) -> User:
    """
    Create a user with a bcrypt-hashed password.

    Args:
        db: Database session
        email: Login e-mail (stored lower-cased)
        password: Plain text password
        role: Actor role
        name: Display name
        phone: Optional phone number
        department: Optional department (HR accounts)
        cv_path: Optional resume file name (candidate accounts)

    Returns:
        Flushed User instance with id

    Raises:
        IntegrityError: If the e-mail is already registered
    """
    user = User(
        email=email.lower(),
        hashed_password=get_password_hash(password),
        role=role,
        name=name,
        phone=phone,
        department=department,
        cv_path=cv_path,
        status=UserStatus.ACTIVE,
    )
    db.add(user)
    db.flush()
    return user


def get_multi(
    db: Session,
    role: Optional[UserRole] = None,
    status: Optional[UserStatus] = None,
    skip: int = 0,
    limit: int = 100
) -> List[User]:
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if status:
        query = query.filter(User.status == status)
    return query.order_by(User.created_at.desc(), User.id.desc()).offset(skip).limit(limit).all()


def update(db: Session, user: User, fields: Dict[str, Any]) -> User:
    """
    Apply a partial update. A "password" key is hashed before storage.
    """
    for key, value in fields.items():
        if key == "password":
            user.hashed_password = get_password_hash(value)
        elif key == "email":
            user.email = value.lower()
        else:
            setattr(user, key, value)
    db.flush()
    return user


def delete(db: Session, user: User) -> None:
    db.delete(user)
    db.flush()


def count(db: Session, role: UserRole, status: Optional[UserStatus] = None) -> int:
    query = db.query(User).filter(User.role == role)
    if status:
        query = query.filter(User.status == status)
    return query.count()
