"""Pydantic schemas for the activity (audit) log."""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel

from diagnostic_center.schemas.user import UserSummary


class AppointmentSummary(BaseModel):
    appointment_id: str
    patient_name: str
    test_name: str

    model_config = {"from_attributes": True}


class ActivityLogOut(BaseModel):
    log_id: str
    appointment_id: str
    actor_id: str
    action: str
    old_data: Optional[dict[str, Any]] = None
    new_data: dict[str, Any]
    created_at: datetime
    actor: Optional[UserSummary] = None
    appointment: Optional[AppointmentSummary] = None

    model_config = {"from_attributes": True}
