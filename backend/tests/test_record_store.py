"""Tests for the appointment record store and time helpers."""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from diagnostic_center.errors import ValidationError
from diagnostic_center.models.appointment import Appointment
from diagnostic_center.services import appointment_store
from diagnostic_center.services.appointment_store import AppointmentPage, compute_balance
from diagnostic_center.timeutils import day_window, parse_range_bound, seconds_until, utcnow


def _add(db, owner, created_days_ago: int = 0, **fields) -> Appointment:
    values = {
        "patient_name": "Ravi Kumar",
        "test_name": "Thyroid Panel",
        "branch_location": "North Branch",
        "appointment_date": utcnow(),
        "amount": Decimal("500.00"),
        "advance_amount": Decimal("100.00"),
        "contact_number": "9876543210",
        "agent_id": owner.user_id,
        "created_at": utcnow() - timedelta(days=created_days_ago),
    }
    values.update(fields)
    appointment = appointment_store.save_appointment(db, Appointment(**values))
    db.commit()
    return appointment


class TestBalance:

    def test_simple(self):
        assert compute_balance(Decimal("1000.00"), Decimal("250.50")) == Decimal("749.50")

    def test_no_float_drift(self):
        assert compute_balance("0.30", "0.10") == Decimal("0.20")

    def test_missing_advance(self):
        assert compute_balance(Decimal("12"), None) == Decimal("12.00")

    def test_save_overrides_stale_balance(self, db, agent):
        appointment = _add(db, agent, balance_amount=Decimal("1.00"))
        assert appointment.balance_amount == Decimal("400.00")


class TestFindAppointments:

    def test_today_default(self, db, agent):
        today = _add(db, agent, patient_name="Today")
        _add(db, agent, created_days_ago=2, patient_name="Earlier")
        page = appointment_store.find_appointments(db)
        assert [a.appointment_id for a in page.items] == [today.appointment_id]

    def test_search_ignores_today_default(self, db, agent):
        _add(db, agent, created_days_ago=2, patient_name="Earlier")
        page = appointment_store.find_appointments(db, search="earl")
        assert page.total == 1

    def test_search_matches_name_or_phone(self, db, agent):
        _add(db, agent, patient_name="Anil 42", contact_number="1110000000")
        _add(db, agent, patient_name="Sunil", contact_number="4200000000")
        _add(db, agent, patient_name="Other", contact_number="9990000000")
        page = appointment_store.find_appointments(db, search="42")
        assert page.total == 2

    def test_range_applies_to_both_branches(self, db, agent):
        _add(db, agent, created_days_ago=5, patient_name="Anil", contact_number="1110000000")
        _add(db, agent, created_days_ago=5, patient_name="Other", contact_number="anil-phone")
        start = utcnow() - timedelta(days=1)
        page = appointment_store.find_appointments(db, search="anil", start=start)
        assert page.total == 0

    def test_wildcards_are_literal(self, db, agent):
        _add(db, agent, patient_name="Fifty%Off")
        _add(db, agent, patient_name="Plain")
        page = appointment_store.find_appointments(db, search="%")
        assert [a.patient_name for a in page.items] == ["Fifty%Off"]

    def test_page_past_end_is_empty(self, db, agent):
        _add(db, agent)
        page = appointment_store.find_appointments(db, page=5, page_size=10)
        assert page.items == []
        assert page.total == 1
        assert page.total_pages == 1

    def test_invalid_page(self, db):
        with pytest.raises(ValidationError):
            appointment_store.find_appointments(db, page=0)

    def test_total_pages(self):
        assert AppointmentPage(items=[], total=0, page=1, page_size=10).total_pages == 0
        assert AppointmentPage(items=[], total=10, page=1, page_size=10).total_pages == 1
        assert AppointmentPage(items=[], total=11, page=1, page_size=10).total_pages == 2

    def test_find_created_between_oldest_first(self, db, agent):
        newer = _add(db, agent, created_days_ago=1)
        older = _add(db, agent, created_days_ago=3)
        rows = appointment_store.find_created_between(db, None, None)
        assert [a.appointment_id for a in rows] == [older.appointment_id, newer.appointment_id]


class TestSuggestions:

    def test_short_query(self, db, agent):
        _add(db, agent)
        assert appointment_store.search_suggestions(db, "r") == []

    def test_limits_and_dedup(self, db, agent):
        for name in ["Ravi A", "Ravi B", "Ravi C", "Ravi D", "Ravi A"]:
            _add(db, agent, patient_name=name, contact_number="ravi-0001")
        _add(db, agent, patient_name="Zed", contact_number="ravi-0002")
        _add(db, agent, patient_name="Zed", contact_number="ravi-0003")

        suggestions = appointment_store.search_suggestions(db, "ravi")
        names = [s["text"] for s in suggestions if s["type"] == "name"]
        phones = [s["text"] for s in suggestions if s["type"] == "phone"]
        assert len(names) == 3
        assert len(set(names)) == 3
        assert len(phones) == 2
        assert len(set(phones)) == 2


class TestTimeHelpers:

    def test_day_window_in_business_tz(self):
        start, end = day_window(date(2026, 10, 19), "Asia/Kolkata")
        assert start == datetime(2026, 10, 18, 18, 30, tzinfo=timezone.utc)
        assert end.date() == date(2026, 10, 19)
        assert end.hour == 18 and end.minute == 29

    def test_parse_date_only_bounds(self):
        start = parse_range_bound("2026-10-19", "UTC")
        end = parse_range_bound("2026-10-19", "UTC", end=True)
        assert start == datetime(2026, 10, 19, tzinfo=timezone.utc)
        assert end.date() == date(2026, 10, 19)
        assert end.hour == 23

    def test_parse_blank_is_open(self):
        assert parse_range_bound("", "UTC") is None
        assert parse_range_bound(None, "UTC") is None

    def test_parse_invalid(self):
        with pytest.raises(ValidationError):
            parse_range_bound("19/10/2026", "UTC")

    def test_seconds_until_later_today(self):
        now = datetime(2026, 10, 19, 23, 0, tzinfo=timezone.utc)
        assert seconds_until(23, 30, "UTC", now=now) == 30 * 60

    def test_seconds_until_rolls_over(self):
        now = datetime(2026, 10, 19, 23, 45, tzinfo=timezone.utc)
        assert seconds_until(23, 30, "UTC", now=now) == (24 * 60 - 15) * 60
