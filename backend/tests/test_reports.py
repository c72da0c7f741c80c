"""Tests for CSV reports, email export and the daily trigger."""
import csv
from datetime import timedelta
from decimal import Decimal
from io import StringIO

from sqlalchemy.orm import sessionmaker

from diagnostic_center.models.appointment import Appointment
from diagnostic_center.services import appointment_store, report_service
from diagnostic_center.services.mailer import SmtpMailer
from diagnostic_center.services.scheduler import run_daily_report_once
from diagnostic_center.timeutils import utcnow
from tests.conftest import FakeMailer

HEADER = [
    "ID", "Patient Name", "Test Name", "Branch Location", "Appointment Date", "Amount",
    "Advance Amount", "Balance Amount", "Contact Number", "Pro Details", "Agent Name", "Created At",
]


def _add(db, owner, created_days_ago: int = 0, **fields) -> Appointment:
    values = {
        "patient_name": "Ravi Kumar",
        "test_name": "Lipid Profile",
        "branch_location": "East Branch",
        "appointment_date": utcnow() + timedelta(days=1),
        "amount": Decimal("800.00"),
        "advance_amount": Decimal("300.00"),
        "contact_number": "9876543210",
        "agent_id": owner.user_id,
        "created_at": utcnow() - timedelta(days=created_days_ago),
    }
    values.update(fields)
    appointment = appointment_store.save_appointment(db, Appointment(**values))
    db.commit()
    return appointment


def _rows(text: str) -> list[list[str]]:
    return list(csv.reader(StringIO(text)))


class TestRenderCsv:

    def test_header_only_when_empty(self):
        assert _rows(report_service.render_csv([])) == [HEADER]

    def test_row_values(self, db, agent):
        appointment = _add(db, agent, pro_details="Walk-in, urgent")
        rows = _rows(report_service.render_csv(appointment_store.find_all_appointments(db)))
        assert rows[0] == HEADER
        row = dict(zip(HEADER, rows[1]))
        assert row["ID"] == appointment.appointment_id
        assert row["Amount"] == "800.00"
        assert row["Advance Amount"] == "300.00"
        assert row["Balance Amount"] == "500.00"
        assert row["Pro Details"] == "Walk-in, urgent"
        assert row["Agent Name"] == "Front Desk"


class TestDailyReport:

    def test_skips_when_nothing_today(self, db, agent):
        _add(db, agent, created_days_ago=2)
        mailer = FakeMailer()
        outcome = report_service.run_daily_report(db, mailer, recipients=["boss@labcenter.org"])
        assert outcome.status == report_service.STATUS_SKIPPED
        assert mailer.sent == []

    def test_sends_todays_rows(self, db, agent):
        _add(db, agent, patient_name="Today")
        _add(db, agent, created_days_ago=2, patient_name="Earlier")
        mailer = FakeMailer()
        outcome = report_service.run_daily_report(db, mailer, recipients=["boss@labcenter.org"])

        assert outcome.status == report_service.STATUS_SENT
        assert outcome.count == 1
        assert outcome.sent_to == ["boss@labcenter.org"]
        message = mailer.sent[0]
        assert message["filename"].startswith("appointments_report_")
        assert message["recipients"] == ["boss@labcenter.org"]
        assert "Total Appointments: 1" in message["summary"]
        assert [r[1] for r in _rows(message["csv"])[1:]] == ["Today"]

    def test_no_recipients_skips(self, db, agent):
        _add(db, agent)
        mailer = FakeMailer()
        outcome = report_service.run_daily_report(db, mailer, recipients=[])
        assert outcome.status == report_service.STATUS_SKIPPED
        assert outcome.count == 1
        assert mailer.sent == []

    def test_mail_failure_is_reported(self, db, agent):
        _add(db, agent)
        outcome = report_service.run_daily_report(db, FakeMailer(fail=True), recipients=["boss@labcenter.org"])
        assert outcome.status == report_service.STATUS_FAILED
        assert outcome.sent_to == []

    def test_configured_recipients_used(self, db, agent):
        _add(db, agent)
        mailer = FakeMailer()
        report_service.run_daily_report(db, mailer)
        assert mailer.sent[0]["recipients"] == ["reports@labcenter.org"]

    def test_scheduler_run_uses_own_session(self, db_engine, db, agent):
        _add(db, agent)
        mailer = FakeMailer()
        outcome = run_daily_report_once(sessionmaker(bind=db_engine), mailer)
        assert outcome.status == report_service.STATUS_SENT
        assert len(mailer.sent) == 1


class TestAdHocExport:

    def test_zero_rows(self, db):
        mailer = FakeMailer()
        outcome = report_service.run_ad_hoc_export(db, mailer, ["boss@labcenter.org"])
        assert outcome.message == "No appointments found"
        assert outcome.count == 0
        assert outcome.sent_to == []
        assert mailer.sent == []

    def test_unbounded_exports_everything(self, db, agent):
        _add(db, agent, created_days_ago=30)
        _add(db, agent)
        mailer = FakeMailer()
        outcome = report_service.run_ad_hoc_export(db, mailer, ["a@labcenter.org", "b@labcenter.org"])
        assert outcome.status == report_service.STATUS_SENT
        assert outcome.count == 2
        assert outcome.sent_to == ["a@labcenter.org", "b@labcenter.org"]
        assert mailer.sent[0]["filename"].startswith("appointments_export_")


class TestJobEndpoints:

    def test_trigger_report(self, client, db, agent, admin_headers, mailer):
        _add(db, agent)
        resp = client.post("/api/admin/jobs/trigger-report", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["status"] == "sent"
        assert resp.json()["sent_to"] == ["reports@labcenter.org"]

    def test_export_email_with_range(self, client, db, agent, admin_headers, mailer):
        _add(db, agent, created_days_ago=10)
        _add(db, agent)
        start = (utcnow() - timedelta(days=1)).date().isoformat()
        resp = client.post("/api/admin/jobs/export-email", headers=admin_headers, json={
            "recipients": ["boss@labcenter.org"],
            "start_date": start,
        })
        assert resp.status_code == 200
        assert resp.json()["count"] == 1
        assert len(mailer.sent) == 1

    def test_export_email_empty(self, client, admin_headers, mailer):
        resp = client.post("/api/admin/jobs/export-email", headers=admin_headers,
                           json={"recipients": ["boss@labcenter.org"]})
        assert resp.status_code == 200
        assert resp.json() == {"status": "skipped", "message": "No appointments found", "count": 0, "sent_to": []}

    def test_export_email_needs_recipients(self, client, admin_headers, mailer):
        resp = client.post("/api/admin/jobs/export-email", headers=admin_headers, json={"recipients": []})
        assert resp.status_code == 422

    def test_export_email_mail_down(self, client, db, agent, admin_headers, mailer):
        _add(db, agent)
        mailer.fail = True
        resp = client.post("/api/admin/jobs/export-email", headers=admin_headers,
                           json={"recipients": ["boss@labcenter.org"]})
        assert resp.status_code == 502
        assert resp.json()["status"] == "failed"

    def test_export_csv_empty(self, client, admin_headers):
        resp = client.get("/api/admin/jobs/export-csv", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "attachment" in resp.headers["content-disposition"]
        assert resp.headers["x-appointment-count"] == "0"
        assert _rows(resp.text) == [HEADER]

    def test_export_csv_rows(self, client, db, agent, admin_headers):
        _add(db, agent)
        resp = client.get("/api/admin/jobs/export-csv", headers=admin_headers)
        assert resp.headers["x-appointment-count"] == "1"
        assert len(_rows(resp.text)) == 2

    def test_export_csv_with_range(self, client, db, agent, admin_headers):
        _add(db, agent, created_days_ago=10, patient_name="Old")
        _add(db, agent, patient_name="New")
        start = (utcnow() - timedelta(days=1)).date().isoformat()
        resp = client.get("/api/admin/jobs/export-csv", headers=admin_headers, params={"start_date": start})
        assert resp.headers["x-appointment-count"] == "1"
        assert [r[1] for r in _rows(resp.text)[1:]] == ["New"]

    def test_agents_cannot_export(self, client, agent_headers):
        resp = client.get("/api/admin/jobs/export-csv", headers=agent_headers)
        assert resp.status_code == 403


class TestSmtpMailer:

    def test_message_has_csv_attachment(self):
        mailer = SmtpMailer(host="localhost", port=25, sender="noreply@labcenter.org", use_tls=False)
        msg = mailer.build_message(b"ID\r\n", "report.csv", ["a@labcenter.org", "b@labcenter.org"],
                                   "Appointments Report - today\n\nbody")
        assert msg["Subject"] == "Appointments Report - today"
        assert msg["To"] == "a@labcenter.org, b@labcenter.org"
        attachments = list(msg.iter_attachments())
        assert len(attachments) == 1
        assert attachments[0].get_filename() == "report.csv"
        assert attachments[0].get_content_type() == "text/csv"
