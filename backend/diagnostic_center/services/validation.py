"""Explicit input validation for the mutation pipeline.

Each validator returns the typed, normalized input or raises
``ValidationError`` with a readable message. Nothing is persisted before
validation passes.
"""
from typing import Any, Mapping

from pydantic import BaseModel, ValidationError as PydanticValidationError

from diagnostic_center.errors import ValidationError
from diagnostic_center.schemas.appointment import AppointmentCreate, AppointmentUpdate

# advance_amount may be omitted on create (defaults to 0) but is never null
NOT_NULLABLE_FIELDS = (
    "patient_name", "test_name", "branch_location", "appointment_date", "amount", "advance_amount", "contact_number",
)


def _describe(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"]) or "body"
        parts.append(f"{field}: {error['msg']}")
    return "; ".join(parts)


def _as_mapping(data: Any) -> Mapping[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_unset=True)
    if not isinstance(data, Mapping):
        raise ValidationError("Request body must be an object")
    return data


def validate_appointment_create(data: Any) -> AppointmentCreate:
    try:
        return AppointmentCreate.model_validate(dict(_as_mapping(data)))
    except PydanticValidationError as exc:
        raise ValidationError(_describe(exc)) from exc


def validate_appointment_patch(data: Any) -> dict[str, Any]:
    """Return only the fields present in the patch, validated."""
    raw = dict(_as_mapping(data))
    nulled = sorted(field for field in NOT_NULLABLE_FIELDS if field in raw and raw[field] is None)
    if nulled:
        raise ValidationError(f"{', '.join(nulled)}: may not be null")
    try:
        patch = AppointmentUpdate.model_validate(raw)
    except PydanticValidationError as exc:
        raise ValidationError(_describe(exc)) from exc
    return patch.model_dump(exclude_unset=True)
