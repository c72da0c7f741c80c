"""Admin routes for managing agent and admin accounts."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from diagnostic_center.database import get_db
from diagnostic_center.dependencies import require_admin
from diagnostic_center.models.user import UserRole
from diagnostic_center.schemas.user import UserCreate, UserOut, UserStatusUpdate
from diagnostic_center.services import user_store

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("/agents", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_agent(payload: UserCreate, db: Session = Depends(get_db)):
    return user_store.create_user(db, payload.name, payload.email, payload.password, role=UserRole.agent)


@router.get("/agents", response_model=list[UserOut])
def list_agents(db: Session = Depends(get_db)):
    return user_store.list_users_by_role(db, UserRole.agent)


@router.put("/agents/{user_id}/status", response_model=UserOut)
def update_agent_status(user_id: str, payload: UserStatusUpdate, db: Session = Depends(get_db)):
    """Activate or deactivate an account. Deactivation also voids its live tokens."""
    return user_store.set_user_active(db, user_id, payload.is_active)


@router.post("/admins", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_admin(payload: UserCreate, db: Session = Depends(get_db)):
    return user_store.create_user(db, payload.name, payload.email, payload.password, role=UserRole.admin)


@router.get("/admins", response_model=list[UserOut])
def list_admins(db: Session = Depends(get_db)):
    return user_store.list_users_by_role(db, UserRole.admin)
