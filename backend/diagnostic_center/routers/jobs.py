"""Admin routes for reports and CSV export."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from diagnostic_center.config import settings
from diagnostic_center.database import get_db
from diagnostic_center.dependencies import get_mailer, require_admin
from diagnostic_center.schemas.report import ExportRequest, ReportOutcomeOut
from diagnostic_center.services import report_service
from diagnostic_center.timeutils import parse_range_bound, utcnow

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(require_admin)])


def _respond(outcome: report_service.ReportOutcome):
    body = ReportOutcomeOut.model_validate(outcome).model_dump()
    if outcome.status == report_service.STATUS_FAILED:
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=body)
    return body


@router.post("/trigger-report", response_model=ReportOutcomeOut)
def trigger_report(db: Session = Depends(get_db), mailer=Depends(get_mailer)):
    """Run the daily report now, to the configured recipients."""
    logger.info("Manual report trigger requested")
    return _respond(report_service.run_daily_report(db, mailer))


@router.post("/export-email", response_model=ReportOutcomeOut)
def export_email(payload: ExportRequest, db: Session = Depends(get_db), mailer=Depends(get_mailer)):
    """Email a CSV of the appointments in the range (all when no range)."""
    outcome = report_service.run_ad_hoc_export(
        db,
        mailer,
        [str(r) for r in payload.recipients],
        start=parse_range_bound(payload.start_date, settings.TIMEZONE),
        end=parse_range_bound(payload.end_date, settings.TIMEZONE, end=True),
    )
    return _respond(outcome)


@router.get("/export-csv")
def export_csv(
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Download the CSV directly; an empty range yields the header row only."""
    content, count = report_service.build_export_csv(
        db,
        start=parse_range_bound(start_date, settings.TIMEZONE),
        end=parse_range_bound(end_date, settings.TIMEZONE, end=True),
    )
    filename = f"appointments_export_{utcnow().strftime('%Y-%m-%d')}.csv"
    logger.info("CSV export: %s (%d appointments)", filename, count)
    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Appointment-Count": str(count),
        },
    )
