"""Appointment side of the record store.

Owns the balance invariant: every write path goes through
``save_appointment``, which recomputes ``balance_amount`` from ``amount`` and
``advance_amount`` immediately before the flush.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import and_, desc, func, or_
from sqlalchemy.orm import Session, joinedload

from diagnostic_center.errors import NotFoundError, ValidationError
from diagnostic_center.models.activity_log import ActivityLog, ActionType
from diagnostic_center.models.appointment import Appointment
from diagnostic_center.timeutils import today_window

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
MIN_SUGGESTION_QUERY = 2
NAME_SUGGESTIONS = 3
PHONE_SUGGESTIONS = 2


def compute_balance(amount, advance) -> Decimal:
    """balance = amount - advance, exact to the cent."""
    return (Decimal(str(amount or 0)) - Decimal(str(advance or 0))).quantize(CENTS, rounding=ROUND_HALF_UP)


def save_appointment(db: Session, appointment: Appointment) -> Appointment:
    """Recompute the derived balance and stage the row. The caller commits."""
    appointment.balance_amount = compute_balance(appointment.amount, appointment.advance_amount)
    db.add(appointment)
    db.flush()
    return appointment


def get_appointment(db: Session, appointment_id: str) -> Optional[Appointment]:
    """Load an appointment with its owning agent attached."""
    return (
        db.query(Appointment)
        .options(joinedload(Appointment.agent))
        .filter(Appointment.appointment_id == appointment_id)
        .populate_existing()
        .first()
    )


def require_appointment(db: Session, appointment_id: str) -> Appointment:
    appointment = get_appointment(db, appointment_id)
    if appointment is None:
        raise NotFoundError(f"Appointment with ID {appointment_id} not found")
    return appointment


def delete_appointment(db: Session, appointment: Appointment) -> None:
    """Physically delete an appointment together with its CREATE/UPDATE history.

    DELETE entries are kept: they are the only trace of the record left.
    """
    (
        db.query(ActivityLog)
        .filter(
            ActivityLog.appointment_id == appointment.appointment_id,
            ActivityLog.action != ActionType.delete,
        )
        .delete(synchronize_session=False)
    )
    db.delete(appointment)
    db.flush()


@dataclass
class AppointmentPage:
    items: list[Appointment]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


def _like(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def find_appointments(
    db: Session,
    search: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    page: int = 1,
    page_size: int = 10,
    tz_name: str = "UTC",
) -> AppointmentPage:
    """Filtered, paginated listing, newest first.

    ``(name LIKE q AND in_range) OR (phone LIKE q AND in_range)``; with no
    search and no bounds the range defaults to today's creation window.
    """
    if page < 1:
        raise ValidationError("page must be >= 1")
    if page_size < 1:
        raise ValidationError("page size must be >= 1")

    search = (search or "").strip()
    if not search and start is None and end is None:
        start, end = today_window(tz_name)

    range_conditions = []
    if start is not None:
        range_conditions.append(Appointment.created_at >= start)
    if end is not None:
        range_conditions.append(Appointment.created_at <= end)

    query = db.query(Appointment)
    if search:
        pattern = _like(search)
        query = query.filter(
            or_(
                and_(Appointment.patient_name.ilike(pattern, escape="\\"), *range_conditions),
                and_(Appointment.contact_number.ilike(pattern, escape="\\"), *range_conditions),
            )
        )
    elif range_conditions:
        query = query.filter(*range_conditions)

    total = query.count()
    items = (
        query.options(joinedload(Appointment.agent))
        .order_by(Appointment.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return AppointmentPage(items=items, total=total, page=page, page_size=page_size)


def search_suggestions(db: Session, query: str) -> list[dict[str, str]]:
    """Autocomplete: up to 3 recent distinct names and 2 recent distinct phones."""
    query = (query or "").strip()
    if len(query) < MIN_SUGGESTION_QUERY:
        return []
    pattern = _like(query)

    names = (
        db.query(Appointment.patient_name, func.max(Appointment.created_at).label("latest"))
        .filter(Appointment.patient_name.ilike(pattern, escape="\\"))
        .group_by(Appointment.patient_name)
        .order_by(desc("latest"))
        .limit(NAME_SUGGESTIONS)
        .all()
    )
    phones = (
        db.query(Appointment.contact_number, func.max(Appointment.created_at).label("latest"))
        .filter(Appointment.contact_number.ilike(pattern, escape="\\"))
        .group_by(Appointment.contact_number)
        .order_by(desc("latest"))
        .limit(PHONE_SUGGESTIONS)
        .all()
    )

    suggestions: list[dict[str, str]] = []
    seen: set[tuple[str, str]] = set()
    for text, kind in [(row[0], "name") for row in names] + [(row[0], "phone") for row in phones]:
        if (text, kind) not in seen:
            seen.add((text, kind))
            suggestions.append({"text": text, "type": kind})
    return suggestions


def find_created_between(db: Session, start: Optional[datetime], end: Optional[datetime]) -> list[Appointment]:
    """Appointments created inside [start, end], oldest first (report input)."""
    query = db.query(Appointment).options(joinedload(Appointment.agent))
    if start is not None:
        query = query.filter(Appointment.created_at >= start)
    if end is not None:
        query = query.filter(Appointment.created_at <= end)
    return query.order_by(Appointment.created_at.asc()).all()


def find_all_appointments(db: Session) -> list[Appointment]:
    return find_created_between(db, None, None)
