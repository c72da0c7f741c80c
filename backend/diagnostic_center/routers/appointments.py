"""Appointment API routes — writes delegate to the mutation pipeline."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from diagnostic_center.config import settings
from diagnostic_center.database import get_db
from diagnostic_center.dependencies import get_notifier, require_staff
from diagnostic_center.errors import ValidationError
from diagnostic_center.schemas.appointment import (
    AppointmentCreate,
    AppointmentOut,
    AppointmentPageOut,
    AppointmentUpdate,
    SearchSuggestion,
)
from diagnostic_center.services import appointment_service, appointment_store
from diagnostic_center.services.auth_service import Actor
from diagnostic_center.timeutils import parse_range_bound

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/search-suggestions", response_model=list[SearchSuggestion])
def search_suggestions(
    query: str = Query(""),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_staff),
):
    """Autocomplete on patient name / contact number."""
    return appointment_store.search_suggestions(db, query)


@router.get("/", response_model=AppointmentPageOut)
def list_appointments(
    search: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    page: int = Query(1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_staff),
):
    """List appointments; with no filters, today's appointments."""
    if limit > settings.MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be <= {settings.MAX_PAGE_SIZE}")
    result = appointment_store.find_appointments(
        db,
        search=search,
        start=parse_range_bound(start_date, settings.TIMEZONE),
        end=parse_range_bound(end_date, settings.TIMEZONE, end=True),
        page=page,
        page_size=limit,
        tz_name=settings.TIMEZONE,
    )
    return AppointmentPageOut(
        data=[AppointmentOut.model_validate(item) for item in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/{appointment_id}", response_model=AppointmentOut)
def get_appointment(appointment_id: str, db: Session = Depends(get_db), actor: Actor = Depends(require_staff)):
    return appointment_store.require_appointment(db, appointment_id)


@router.post("/", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED)
def create_appointment(
    payload: AppointmentCreate,
    db: Session = Depends(get_db),
    notifier=Depends(get_notifier),
    actor: Actor = Depends(require_staff),
):
    """Create an appointment; admins may assign it to another agent."""
    return appointment_service.create_appointment(db, notifier, payload.model_dump(exclude_unset=True), actor)


@router.put("/{appointment_id}", response_model=AppointmentOut)
def update_appointment(
    appointment_id: str,
    payload: AppointmentUpdate,
    db: Session = Depends(get_db),
    notifier=Depends(get_notifier),
    actor: Actor = Depends(require_staff),
):
    """Partial update: fields absent from the body are left untouched."""
    return appointment_service.update_appointment(
        db, notifier, appointment_id, payload.model_dump(exclude_unset=True), actor
    )


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(
    appointment_id: str,
    db: Session = Depends(get_db),
    notifier=Depends(get_notifier),
    actor: Actor = Depends(require_staff),
):
    """Delete an appointment (the pipeline restricts this to admins)."""
    appointment_service.delete_appointment(db, notifier, appointment_id, actor)
