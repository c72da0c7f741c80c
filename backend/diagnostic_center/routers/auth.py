"""Authentication routes."""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from diagnostic_center.database import get_db
from diagnostic_center.dependencies import get_current_user
from diagnostic_center.models.user import User
from diagnostic_center.schemas.user import LoginRequest, TokenOut, UserOut
from diagnostic_center.services import auth_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/login", response_model=TokenOut)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email + password for a bearer token."""
    token, user = auth_service.login(db, payload.email, payload.password)
    return TokenOut(access_token=token, user=UserOut.model_validate(user))


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user
