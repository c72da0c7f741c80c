"""Appointment ORM model.

``balance_amount`` is derived (amount - advance_amount). It is recomputed by
the record store right before every write and never taken from input.
"""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship

from diagnostic_center.database import Base
from diagnostic_center.timeutils import utcnow


class Appointment(Base):
    __tablename__ = "appointments"

    appointment_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    patient_name = Column(String(255), nullable=False, index=True)
    test_name = Column(String(255), nullable=False)
    branch_location = Column(String(255), nullable=False)
    appointment_date = Column(DateTime(timezone=True), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False, default=0)
    advance_amount = Column(Numeric(10, 2), nullable=False, default=0)
    balance_amount = Column(Numeric(10, 2), nullable=False, default=0)
    pro_details = Column(Text, nullable=True)  # free-text referral / note
    contact_number = Column(String(20), nullable=False, index=True)
    agent_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    agent = relationship("User", back_populates="appointments")
