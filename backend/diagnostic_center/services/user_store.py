"""User side of the record store."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from diagnostic_center.errors import ConflictError, NotFoundError
from diagnostic_center.models.user import User, UserRole
from diagnostic_center.services.passwords import hash_password

logger = logging.getLogger(__name__)


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.user_id == user_id).first()


def require_user(db: Session, user_id: str) -> User:
    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def list_users_by_role(db: Session, role: UserRole) -> list[User]:
    return db.query(User).filter(User.role == role).order_by(User.created_at.desc()).all()


def create_user(db: Session, name: str, email: str, password: str, role: UserRole = UserRole.agent) -> User:
    """Create an account. Email uniqueness is case-insensitive."""
    if find_user_by_email(db, email) is not None:
        raise ConflictError("Email already exists")

    user = User(
        name=name.strip(),
        email=email.strip().lower(),
        password_hash=hash_password(password),
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created %s %s (%s)", role.value, user.user_id, user.email)
    return user


def set_user_active(db: Session, user_id: str, is_active: bool) -> User:
    user = require_user(db, user_id)
    user.is_active = is_active
    db.commit()
    db.refresh(user)
    logger.info("Set user %s active=%s", user_id, is_active)
    return user
