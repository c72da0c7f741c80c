"""Mutation pipeline — the only entry point for appointment writes.

Every operation runs authorize → derive → persist → snapshot-log → notify:
- Authorization is checked explicitly against the actor's role.
- The record store recomputes the balance before each write.
- Exactly one audit entry is written per mutation, attributed to the actor.
- The audit write happens before the broadcast. If it fails the mutation
  fails and nothing is broadcast. A failed broadcast is logged and never
  reported to the caller.
"""
import logging
from typing import Any

from sqlalchemy.orm import Session

from diagnostic_center.errors import InternalInvariantError, NotFoundError
from diagnostic_center.models.activity_log import ActionType
from diagnostic_center.models.appointment import Appointment
from diagnostic_center.models.user import UserRole
from diagnostic_center.schemas.appointment import AppointmentOut
from diagnostic_center.services import appointment_store, audit_log, user_store
from diagnostic_center.services.auth_service import Actor, authorize
from diagnostic_center.services.notifier import (
    APPOINTMENT_CREATED,
    APPOINTMENT_DELETED,
    APPOINTMENT_UPDATED,
)
from diagnostic_center.services.validation import validate_appointment_create, validate_appointment_patch

logger = logging.getLogger(__name__)

WRITERS = (UserRole.admin, UserRole.agent)
DELETERS = (UserRole.admin,)


def _reload(db: Session, appointment_id: str) -> Appointment:
    appointment = appointment_store.get_appointment(db, appointment_id)
    if appointment is None:
        raise InternalInvariantError(f"Failed to reload appointment {appointment_id} after write")
    return appointment


def _notify(notifier, event_kind: str, payload: dict[str, Any]) -> None:
    try:
        notifier.broadcast(event_kind, payload)
    except Exception:
        logger.exception("Failed to broadcast %s", event_kind)


def canonical_payload(appointment: Appointment) -> dict[str, Any]:
    return AppointmentOut.model_validate(appointment).model_dump(mode="json")


def create_appointment(db: Session, notifier, payload: Any, actor: Actor) -> Appointment:
    """Create an appointment owned by the actor, or by the agent an admin names."""
    authorize(actor, WRITERS)
    data = validate_appointment_create(payload)

    owner_id = actor.user_id
    if actor.role == UserRole.admin and data.agent_id:
        if user_store.get_user(db, data.agent_id) is None:
            raise NotFoundError("Agent not found")
        owner_id = data.agent_id

    fields = data.model_dump(exclude={"agent_id"})
    try:
        appointment = appointment_store.save_appointment(db, Appointment(**fields, agent_id=owner_id))
        canonical = _reload(db, appointment.appointment_id)
        audit_log.append(
            db,
            appointment_id=canonical.appointment_id,
            actor_id=actor.user_id,
            action=ActionType.create,
            new_data=audit_log.appointment_snapshot(canonical),
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    canonical = _reload(db, canonical.appointment_id)
    logger.info("Created appointment %s for agent %s by %s", canonical.appointment_id, owner_id, actor.user_id)
    _notify(notifier, APPOINTMENT_CREATED, canonical_payload(canonical))
    return canonical


def update_appointment(db: Session, notifier, appointment_id: str, patch: Any, actor: Actor) -> Appointment:
    """Apply a partial update. Any writer may edit any appointment."""
    authorize(actor, WRITERS)
    changes = validate_appointment_patch(patch)
    existing = appointment_store.require_appointment(db, appointment_id)
    before = audit_log.appointment_snapshot(existing)

    try:
        for field, value in changes.items():
            setattr(existing, field, value)
        appointment_store.save_appointment(db, existing)
        canonical = _reload(db, appointment_id)
        audit_log.append(
            db,
            appointment_id=appointment_id,
            actor_id=actor.user_id,
            action=ActionType.update,
            old_data=before,
            new_data=audit_log.appointment_snapshot(canonical),
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    canonical = _reload(db, appointment_id)
    logger.info("Updated appointment %s (%s) by %s", appointment_id, ", ".join(sorted(changes)) or "no fields", actor.user_id)
    _notify(notifier, APPOINTMENT_UPDATED, canonical_payload(canonical))
    return canonical


def delete_appointment(db: Session, notifier, appointment_id: str, actor: Actor) -> None:
    """Admin-only physical delete, logged before the row goes away."""
    authorize(actor, DELETERS)
    existing = appointment_store.require_appointment(db, appointment_id)

    try:
        audit_log.append(
            db,
            appointment_id=appointment_id,
            actor_id=actor.user_id,
            action=ActionType.delete,
            old_data=audit_log.appointment_snapshot(existing),
            new_data={},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    # The DELETE entry is durable from here on, even if the delete below fails.
    try:
        appointment_store.delete_appointment(db, existing)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Deleted appointment %s by %s", appointment_id, actor.user_id)
    _notify(notifier, APPOINTMENT_DELETED, {"appointment_id": appointment_id})
