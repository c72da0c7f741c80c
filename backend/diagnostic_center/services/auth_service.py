"""Identity & access — credentials, session tokens and role checks.

Tokens are HS256 JWTs carrying ``sub`` (user id), ``email`` and ``role``.
A token is only as good as the account behind it: ``user_from_token``
reloads the user and rejects deactivated accounts even when the token itself
is still within its lifetime.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Iterable

from jose import JWTError, jwt
from sqlalchemy.orm import Session

from diagnostic_center.config import settings
from diagnostic_center.errors import AuthenticationError, AuthorizationError
from diagnostic_center.models.user import User, UserRole
from diagnostic_center.services import user_store
from diagnostic_center.services.passwords import verify_password
from diagnostic_center.timeutils import utcnow

logger = logging.getLogger(__name__)


def create_access_token(user: User) -> str:
    now = utcnow()
    payload: dict[str, Any] = {
        "sub": user.user_id,
        "email": user.email,
        "role": UserRole(user.role).value,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)).timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise AuthenticationError("Invalid or expired token") from exc
    if not claims.get("sub"):
        raise AuthenticationError("Invalid or expired token")
    return claims


def authenticate(db: Session, email: str, password: str) -> User:
    user = user_store.find_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login for %s", email.lower())
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        logger.warning("Login attempt by deactivated user %s", user.user_id)
        raise AuthenticationError("Your account has been deactivated")
    return user


def login(db: Session, email: str, password: str) -> tuple[str, User]:
    user = authenticate(db, email, password)
    logger.info("User %s logged in", user.user_id)
    return create_access_token(user), user


def user_from_token(db: Session, token: str) -> User:
    claims = decode_access_token(token)
    user = user_store.get_user(db, claims["sub"])
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("User account is deactivated")
    return user


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing an operation."""

    user_id: str
    role: UserRole
    is_active: bool = True

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(user_id=user.user_id, role=UserRole(user.role), is_active=bool(user.is_active))


def authorize(actor: Actor, allowed_roles: Iterable[UserRole]) -> None:
    """Raise AuthorizationError unless the actor is active and holds an allowed role."""
    allowed = set(allowed_roles)
    if not actor.is_active:
        raise AuthorizationError("User account is deactivated")
    if actor.role not in allowed:
        names = ", ".join(sorted(role.value for role in allowed))
        raise AuthorizationError(f"Access denied. Required roles: {names}")
