"""Audit log — append-only history of appointment mutations.

Entries carry denormalized before/after snapshots so they stay readable after
the appointment (or its owner's details) change or disappear.
"""
import logging
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session, joinedload

from diagnostic_center.models.activity_log import ActivityLog, ActionType
from diagnostic_center.models.appointment import Appointment
from diagnostic_center.services.appointment_store import CENTS

logger = logging.getLogger(__name__)


def _money(value) -> Optional[str]:
    return str(Decimal(str(value)).quantize(CENTS)) if value is not None else None


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def appointment_snapshot(appointment: Appointment) -> dict[str, Any]:
    """Serialize an appointment to a JSON-safe dict for the audit log."""
    agent = appointment.agent
    return {
        "appointment_id": appointment.appointment_id,
        "patient_name": appointment.patient_name,
        "test_name": appointment.test_name,
        "branch_location": appointment.branch_location,
        "appointment_date": _iso(appointment.appointment_date),
        "amount": _money(appointment.amount),
        "advance_amount": _money(appointment.advance_amount),
        "balance_amount": _money(appointment.balance_amount),
        "pro_details": appointment.pro_details,
        "contact_number": appointment.contact_number,
        "agent_id": agent.user_id if agent is not None else appointment.agent_id,
        "agent_name": agent.name if agent is not None else None,
        "created_at": _iso(appointment.created_at),
        "updated_at": _iso(appointment.updated_at),
    }


def append(
    db: Session,
    appointment_id: str,
    actor_id: str,
    action: ActionType,
    new_data: dict[str, Any],
    old_data: Optional[dict[str, Any]] = None,
) -> ActivityLog:
    """Stage one audit entry. The caller owns the commit."""
    entry = ActivityLog(
        appointment_id=appointment_id,
        actor_id=actor_id,
        action=action,
        old_data=old_data,
        new_data=new_data,
    )
    db.add(entry)
    db.flush()
    logger.debug("Audit %s on appointment %s by %s", action.value, appointment_id, actor_id)
    return entry


def _listing(db: Session):
    return db.query(ActivityLog).options(
        joinedload(ActivityLog.actor),
        joinedload(ActivityLog.appointment),
    )


def list_all(db: Session) -> list[ActivityLog]:
    return _listing(db).order_by(ActivityLog.created_at.desc()).all()


def list_by_appointment(db: Session, appointment_id: str) -> list[ActivityLog]:
    return (
        _listing(db)
        .filter(ActivityLog.appointment_id == appointment_id)
        .order_by(ActivityLog.created_at.desc())
        .all()
    )


def list_by_agent(db: Session, actor_id: str) -> list[ActivityLog]:
    """Entries whose actor is the given user."""
    return (
        _listing(db)
        .filter(ActivityLog.actor_id == actor_id)
        .order_by(ActivityLog.created_at.desc())
        .all()
    )
