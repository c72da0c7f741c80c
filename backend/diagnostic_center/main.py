"""FastAPI application entry point."""
import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from diagnostic_center.config import settings
from diagnostic_center.database import Base, SessionLocal, engine
from diagnostic_center.errors import AuthenticationError, BookingError

# Import routers
from diagnostic_center.routers import activity_logs, appointments, auth, jobs, live, users

# Import all models so Base.metadata knows about them
from diagnostic_center.models.user import User                  # noqa: F401
from diagnostic_center.models.appointment import Appointment    # noqa: F401
from diagnostic_center.models.activity_log import ActivityLog   # noqa: F401

from diagnostic_center.services.mailer import SmtpMailer
from diagnostic_center.services.notifier import LiveUpdateHub
from diagnostic_center.services.scheduler import daily_report_loop

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables for SQLite dev mode and run the daily report trigger."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)

    report_task = None
    if settings.REPORT_SCHEDULER_ENABLED:
        report_task = asyncio.create_task(daily_report_loop(SessionLocal, app.state.mailer, settings))
        logger.info("Daily report scheduled for %02d:%02d %s",
                    settings.REPORT_HOUR, settings.REPORT_MINUTE, settings.TIMEZONE)
    yield
    if report_task is not None:
        report_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await report_task


app = FastAPI(
    title="Diagnostic Center Appointments",
    description="Appointment booking for diagnostic centers — audited mutations, live updates, daily reports",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.notifier = LiveUpdateHub()
app.state.mailer = SmtpMailer.from_settings(settings)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


# Register routers
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(appointments.router, prefix="/api/appointments", tags=["Appointments"])
app.include_router(users.router, prefix="/api/admin", tags=["Admin"])
app.include_router(activity_logs.router, prefix="/api/admin/activity-logs", tags=["ActivityLogs"])
app.include_router(jobs.router, prefix="/api/admin/jobs", tags=["Jobs"])
app.include_router(live.router, tags=["Live"])


@app.get("/api/health")
def health_check():
    return {"status": "ok", "live_sessions": app.state.notifier.session_count}
