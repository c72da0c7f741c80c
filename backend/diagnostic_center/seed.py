"""Create or re-activate the initial admin account.

Usage: ADMIN_PASSWORD=... python -m diagnostic_center.seed
"""
import logging
import os
import sys

from diagnostic_center.database import Base, SessionLocal, engine
from diagnostic_center.models.user import UserRole
from diagnostic_center.models.appointment import Appointment    # noqa: F401
from diagnostic_center.models.activity_log import ActivityLog   # noqa: F401
from diagnostic_center.services import user_store
from diagnostic_center.services.passwords import hash_password

logger = logging.getLogger(__name__)


def seed_admin(db, email: str, password: str, name: str = "System Admin") -> str:
    """Return "created" or "updated"."""
    user = user_store.find_user_by_email(db, email)
    if user is None:
        user_store.create_user(db, name, email, password, role=UserRole.admin)
        return "created"
    user.role = UserRole.admin
    user.is_active = True
    user.password_hash = hash_password(password)
    db.commit()
    return "updated"


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    email = os.getenv("ADMIN_EMAIL", "admin@diagnosticcenter.com")
    password = os.getenv("ADMIN_PASSWORD")
    if not password:
        logger.error("ADMIN_PASSWORD is required")
        return 1
    if engine.url.get_backend_name() == "sqlite":
        Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        action = seed_admin(db, email, password, os.getenv("ADMIN_NAME", "System Admin"))
    finally:
        db.close()
    logger.info("Admin %s %s", email, action)
    return 0


if __name__ == "__main__":
    sys.exit(main())
