"""User ORM model — agents and admins."""
import enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Enum as SAEnum
from sqlalchemy.orm import relationship

from diagnostic_center.database import Base
from diagnostic_center.timeutils import utcnow


class UserRole(str, enum.Enum):
    admin = "admin"
    agent = "agent"


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)  # stored lower-cased
    password_hash = Column(String(255), nullable=False)
    role = Column(SAEnum(UserRole), nullable=False, default=UserRole.agent)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    appointments = relationship("Appointment", back_populates="agent")
