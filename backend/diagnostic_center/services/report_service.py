"""Reporting / export — CSV rendering and mail dispatch.

Three entry points share one renderer:
- ``run_daily_report``: today's appointments to the configured recipients.
- ``run_ad_hoc_export``: an admin-chosen range to admin-chosen recipients.
- ``build_export_csv``: direct download, header-only when empty.

Mail failures are logged and reported as a failed outcome, never raised.
"""
import csv
import logging
from dataclasses import dataclass, field
from datetime import datetime
from io import StringIO
from typing import Callable, Optional

from sqlalchemy.orm import Session

from diagnostic_center.config import settings
from diagnostic_center.models.appointment import Appointment
from diagnostic_center.services import appointment_store
from diagnostic_center.timeutils import today_window, utcnow

logger = logging.getLogger(__name__)

STATUS_SENT = "sent"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


def _fmt_datetime(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else ""


def _fmt_money(value) -> str:
    return f"{value:.2f}" if value is not None else ""


# Column order and labels are consumed downstream; keep them stable.
CSV_COLUMNS: list[tuple[str, Callable[[Appointment], str]]] = [
    ("ID", lambda a: a.appointment_id),
    ("Patient Name", lambda a: a.patient_name),
    ("Test Name", lambda a: a.test_name),
    ("Branch Location", lambda a: a.branch_location),
    ("Appointment Date", lambda a: _fmt_datetime(a.appointment_date)),
    ("Amount", lambda a: _fmt_money(a.amount)),
    ("Advance Amount", lambda a: _fmt_money(a.advance_amount)),
    ("Balance Amount", lambda a: _fmt_money(a.balance_amount)),
    ("Contact Number", lambda a: a.contact_number),
    ("Pro Details", lambda a: a.pro_details or ""),
    ("Agent Name", lambda a: a.agent.name if a.agent is not None else ""),
    ("Created At", lambda a: _fmt_datetime(a.created_at)),
]


@dataclass
class ReportOutcome:
    status: str
    message: str
    count: int = 0
    sent_to: list[str] = field(default_factory=list)


def render_csv(appointments: list[Appointment]) -> str:
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow([label for label, _ in CSV_COLUMNS])
    for appointment in appointments:
        writer.writerow([getter(appointment) for _, getter in CSV_COLUMNS])
    return output.getvalue()


def _summary(title: str, count: int, now: datetime) -> str:
    return (
        f"{title} - {now.strftime('%A, %B %d, %Y')}\n\n"
        f"Total Appointments: {count}\n\n"
        "Please find the detailed report attached.\n\n"
        "This is an automated email from the Diagnostic Center Appointment System."
    )


def _dispatch(mailer, appointments: list[Appointment], filename: str, recipients: list[str],
              title: str, now: datetime) -> ReportOutcome:
    csv_bytes = render_csv(appointments).encode("utf-8")
    try:
        mailer.send(csv_bytes, filename, recipients, _summary(title, len(appointments), now))
    except Exception:
        logger.exception("Failed to send %s to %s", filename, ", ".join(recipients))
        return ReportOutcome(STATUS_FAILED, "Failed to send report email", count=len(appointments))
    return ReportOutcome(STATUS_SENT, "Report generated and sent successfully",
                         count=len(appointments), sent_to=list(recipients))


def run_daily_report(db: Session, mailer, recipients: Optional[list[str]] = None,
                     now: Optional[datetime] = None) -> ReportOutcome:
    """Email today's appointments. Zero rows or no recipients: skip quietly."""
    now = now or utcnow()
    recipients = settings.report_recipients if recipients is None else recipients
    start, end = today_window(settings.TIMEZONE, now)
    appointments = appointment_store.find_created_between(db, start, end)

    if not appointments:
        logger.info("No appointments found for today. Skipping report.")
        return ReportOutcome(STATUS_SKIPPED, "No appointments found for today")
    if not recipients:
        logger.warning("No report recipients configured. Skipping email.")
        return ReportOutcome(STATUS_SKIPPED, "No report recipients configured", count=len(appointments))

    filename = f"appointments_report_{now.strftime('%Y-%m-%d')}.csv"
    outcome = _dispatch(mailer, appointments, filename, recipients, "Appointments Report", now)
    if outcome.status == STATUS_SENT:
        logger.info("Daily report sent with %d appointments", outcome.count)
    return outcome


def run_ad_hoc_export(db: Session, mailer, recipients: list[str], start: Optional[datetime] = None,
                      end: Optional[datetime] = None, now: Optional[datetime] = None) -> ReportOutcome:
    """Email the appointments created in [start, end] (all when unbounded)."""
    now = now or utcnow()
    logger.info("Export requested to: %s", ", ".join(recipients))
    appointments = appointment_store.find_created_between(db, start, end)
    if not appointments:
        return ReportOutcome(STATUS_SKIPPED, "No appointments found")

    filename = f"appointments_export_{now.strftime('%Y-%m-%d')}.csv"
    outcome = _dispatch(mailer, appointments, filename, recipients, "Appointments Export", now)
    if outcome.status == STATUS_SENT:
        outcome.message = "Report exported and sent successfully"
    return outcome


def build_export_csv(db: Session, start: Optional[datetime] = None,
                     end: Optional[datetime] = None) -> tuple[str, int]:
    if start is None and end is None:
        appointments = appointment_store.find_all_appointments(db)
    else:
        appointments = appointment_store.find_created_between(db, start, end)
    return render_csv(appointments), len(appointments)
