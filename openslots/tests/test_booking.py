from __future__ import annotations

from datetime import date
from unittest.mock import patch

from openslots.models import Appointment, Client

TUESDAY = date(2026, 3, 3)


def test_booking_commits_appointment_and_reports(engine, db, salon, make_booking, activity, calendar) -> None:
    result = engine.book_appointment(make_booking(notes="First visit"))

    assert result.success
    assert result.warnings == []
    appointment_id = result.data["appointment_id"]
    appointment = db.get(Appointment, appointment_id)
    assert appointment.status == "Booked"
    assert appointment.appointment_date == TUESDAY
    assert appointment.start_time == "10:00"
    assert appointment.created_at is not None
    assert appointment.calendar_event_id == f"evt-{appointment_id}"

    response = result.data["appointment"]
    assert response.end_time == "11:00"

    assert activity.actions == ["book"]
    assert activity.entries[0]["note"] == "First visit"
    assert calendar.created == [appointment_id]


def test_booking_normalizes_single_digit_hour(engine, salon, make_booking) -> None:
    result = engine.book_appointment(make_booking(start_time="9:30", duration_minutes=30))
    assert result.success
    assert result.data["appointment"].start_time == "09:30"


def test_first_booking_sets_client_first_visit(engine, db, salon, make_booking) -> None:
    engine.book_appointment(make_booking())
    engine.book_appointment(make_booking(date="2026-03-04"))
    client = db.get(Client, salon.client.id)
    assert client.first_visit_date == TUESDAY


def test_double_booking_is_rejected(engine, db, salon, make_booking) -> None:
    assert engine.book_appointment(make_booking()).success

    result = engine.book_appointment(make_booking(start_time="10:30", duration_minutes=30))
    assert not result.success
    assert result.error.kind == "SlotUnavailable"
    assert db.query(Appointment).count() == 1


def test_adjacent_bookings_do_not_conflict(engine, salon, make_booking) -> None:
    assert engine.book_appointment(make_booking(start_time="10:00")).success
    assert engine.book_appointment(make_booking(start_time="11:00")).success
    assert engine.book_appointment(make_booking(start_time="09:00")).success


def test_same_slot_with_other_provider_is_fine(engine, salon, make_booking) -> None:
    assert engine.book_appointment(make_booking()).success
    assert engine.book_appointment(make_booking(provider_id=salon.sam.id)).success


def test_booking_outside_working_hours(engine, salon, make_booking) -> None:
    result = engine.book_appointment(make_booking(start_time="16:30"))
    assert result.error.kind == "SlotUnavailable"


def test_missing_fields(engine, salon, make_booking) -> None:
    payload = make_booking()
    del payload["start_time"]
    payload["service_id"] = None

    result = engine.book_appointment(payload)
    assert result.error.kind == "MissingField"
    assert "start_time" in result.error.message
    assert "service_id" in result.error.message


def test_unknown_records(engine, salon, make_booking) -> None:
    assert engine.book_appointment(make_booking(client_id=999)).error.kind == "NotFound"
    assert engine.book_appointment(make_booking(provider_id=999)).error.kind == "NotFound"
    assert engine.book_appointment(make_booking(service_id=999)).error.kind == "NotFound"


def test_service_not_offered_by_provider(engine, salon, make_booking) -> None:
    result = engine.book_appointment(make_booking(service_id=salon.colour.id, duration_minutes=90))
    assert result.error.kind == "ServiceNotOfferedByProvider"


def test_inactive_provider_does_not_offer_services(engine, db, salon, make_booking) -> None:
    salon.alex.is_active = False
    db.commit()
    assert engine.book_appointment(make_booking()).error.kind == "ServiceNotOfferedByProvider"


def test_past_date_time(engine, salon, make_booking, clock) -> None:
    # Clock is Monday 08:00; Monday 07:30 has already passed
    result = engine.book_appointment(make_booking(date="2026-03-02", start_time="07:30", duration_minutes=30))
    assert result.error.kind == "PastDateTime"


def test_duration_must_be_a_service_option(engine, salon, make_booking) -> None:
    assert engine.book_appointment(make_booking(duration_minutes=45)).error.kind == "InvalidDuration"
    assert engine.book_appointment(make_booking(duration_minutes=0)).error.kind == "InvalidDuration"


def test_first_failed_check_wins(engine, salon, make_booking) -> None:
    # Not offered beats past time and bad duration
    result = engine.book_appointment(
        make_booking(service_id=salon.colour.id, date="2026-03-01", duration_minutes=45)
    )
    assert result.error.kind == "ServiceNotOfferedByProvider"

    # Past time beats bad duration
    result = engine.book_appointment(make_booking(date="2026-03-01", duration_minutes=45))
    assert result.error.kind == "PastDateTime"


def test_malformed_values(engine, salon, make_booking) -> None:
    assert engine.book_appointment(make_booking(start_time="ten")).error.kind == "InvalidFormat"
    assert engine.book_appointment(make_booking(date="3 March")).error.kind == "InvalidFormat"
    assert engine.book_appointment(make_booking(duration_minutes="an hour")).error.kind == "InvalidFormat"


def test_calendar_failure_becomes_warning(engine, db, salon, make_booking, calendar) -> None:
    with patch.object(calendar, "create_event", side_effect=RuntimeError("Google is down")):
        result = engine.book_appointment(make_booking())

    assert result.success
    assert any("Calendar event creation failed" in w for w in result.warnings)
    appointment = db.get(Appointment, result.data["appointment_id"])
    assert appointment.status == "Booked"
    assert appointment.calendar_event_id is None


def test_activity_log_failure_becomes_warning(engine, db, salon, make_booking, activity) -> None:
    with patch.object(activity, "log", side_effect=RuntimeError("disk full")):
        result = engine.book_appointment(make_booking())

    assert result.success
    assert any("Activity log failed" in w for w in result.warnings)
    assert db.query(Appointment).count() == 1
