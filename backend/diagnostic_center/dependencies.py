"""FastAPI dependencies: current user, role guards, shared collaborators."""
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from diagnostic_center.database import get_db
from diagnostic_center.errors import AuthenticationError
from diagnostic_center.models.user import User, UserRole
from diagnostic_center.services import auth_service
from diagnostic_center.services.auth_service import Actor

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated")
    return auth_service.user_from_token(db, credentials.credentials)


def get_current_actor(user: User = Depends(get_current_user)) -> Actor:
    return Actor.from_user(user)


def require_roles(*roles: UserRole):
    """Dependency factory: the current actor must hold one of ``roles``."""

    def _dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        auth_service.authorize(actor, roles)
        return actor

    return _dependency


require_admin = require_roles(UserRole.admin)
require_staff = require_roles(UserRole.admin, UserRole.agent)


def get_notifier(request: Request):
    return request.app.state.notifier


def get_mailer(request: Request):
    return request.app.state.mailer
