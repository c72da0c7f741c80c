"""ActivityLog ORM model — append-only audit trail of appointment mutations.

``appointment_id`` is deliberately not a foreign key: DELETE entries must
outlive the appointment they describe. CREATE/UPDATE entries are removed
together with their appointment by the record store.
"""
import enum
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, JSON, String, Enum as SAEnum
from sqlalchemy.orm import relationship

from diagnostic_center.database import Base
from diagnostic_center.timeutils import utcnow


class ActionType(str, enum.Enum):
    create = "CREATE"
    update = "UPDATE"
    delete = "DELETE"


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    log_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    appointment_id = Column(String(36), nullable=False, index=True)
    actor_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    action = Column(SAEnum(ActionType), nullable=False)
    old_data = Column(JSON, nullable=True)
    new_data = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    actor = relationship("User")
    appointment = relationship(
        "Appointment",
        primaryjoin="foreign(ActivityLog.appointment_id) == Appointment.appointment_id",
        viewonly=True,
    )
