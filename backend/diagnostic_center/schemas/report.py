"""Pydantic schemas for report and export jobs."""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class ExportRequest(BaseModel):
    recipients: list[EmailStr] = Field(min_length=1)
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class ReportOutcomeOut(BaseModel):
    status: str
    message: str
    count: int
    sent_to: list[str] = []

    model_config = {"from_attributes": True}
