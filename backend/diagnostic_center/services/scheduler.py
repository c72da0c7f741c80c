"""In-process daily trigger for the appointment report."""
import asyncio
import logging

from diagnostic_center.config import Settings
from diagnostic_center.services import report_service
from diagnostic_center.timeutils import seconds_until

logger = logging.getLogger(__name__)


def run_daily_report_once(session_factory, mailer) -> report_service.ReportOutcome:
    db = session_factory()
    try:
        return report_service.run_daily_report(db, mailer)
    finally:
        db.close()


async def daily_report_loop(session_factory, mailer, settings: Settings) -> None:
    """Run the daily report at REPORT_HOUR:REPORT_MINUTE (business time) forever.

    A failed run is logged and the loop waits for the next day.
    """
    while True:
        delay = seconds_until(settings.REPORT_HOUR, settings.REPORT_MINUTE, settings.TIMEZONE)
        logger.info("Next daily report in %.0f seconds", delay)
        await asyncio.sleep(delay)
        logger.info("Starting daily appointment report generation...")
        try:
            outcome = await asyncio.to_thread(run_daily_report_once, session_factory, mailer)
            logger.info("Daily report finished: %s (%d appointments)", outcome.status, outcome.count)
        except Exception:
            logger.exception("Failed to generate/send daily report")
