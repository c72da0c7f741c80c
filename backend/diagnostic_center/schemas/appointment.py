"""Pydantic schemas for Appointments."""
from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from diagnostic_center.schemas.user import UserSummary


class AppointmentCreate(BaseModel):
    patient_name: str = Field(min_length=1, max_length=255)
    test_name: str = Field(min_length=1, max_length=255)
    branch_location: str = Field(min_length=1, max_length=255)
    appointment_date: datetime
    amount: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    advance_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    pro_details: Optional[str] = None
    contact_number: str = Field(min_length=1, max_length=20)
    agent_id: Optional[str] = None  # honoured for admins only

    model_config = {"str_strip_whitespace": True, "extra": "forbid"}


class AppointmentUpdate(BaseModel):
    patient_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    test_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    branch_location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    appointment_date: Optional[datetime] = None
    amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    advance_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    pro_details: Optional[str] = None
    contact_number: Optional[str] = Field(default=None, min_length=1, max_length=20)

    model_config = {"str_strip_whitespace": True, "extra": "forbid"}


class AppointmentOut(BaseModel):
    appointment_id: str
    patient_name: str
    test_name: str
    branch_location: str
    appointment_date: datetime
    amount: Decimal
    advance_amount: Decimal
    balance_amount: Decimal
    pro_details: Optional[str] = None
    contact_number: str
    agent_id: str
    agent: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AppointmentPageOut(BaseModel):
    data: list[AppointmentOut]
    total: int
    page: int
    page_size: int
    total_pages: int


class SearchSuggestion(BaseModel):
    text: str
    type: str  # "name" or "phone"
