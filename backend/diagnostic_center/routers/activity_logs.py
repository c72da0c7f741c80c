"""Admin routes for reading the audit trail."""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from diagnostic_center.database import get_db
from diagnostic_center.dependencies import require_admin
from diagnostic_center.schemas.activity_log import ActivityLogOut
from diagnostic_center.services import audit_log

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/", response_model=list[ActivityLogOut])
def list_activity_logs(db: Session = Depends(get_db)):
    """All entries, newest first."""
    return audit_log.list_all(db)


@router.get("/appointment/{appointment_id}", response_model=list[ActivityLogOut])
def list_appointment_logs(appointment_id: str, db: Session = Depends(get_db)):
    return audit_log.list_by_appointment(db, appointment_id)


@router.get("/agent/{user_id}", response_model=list[ActivityLogOut])
def list_agent_logs(user_id: str, db: Session = Depends(get_db)):
    """Entries whose actor is the given user."""
    return audit_log.list_by_agent(db, user_id)
