import datetime

import pytest
from pydantic import ValidationError

from coach_scheduler.constants import AppointmentStatus
from coach_scheduler.models.model import Appointment
from coach_scheduler.parsers.document_parser import (
    appointment_to_document,
    parse_appointment,
    parse_auto_scheduling_settings,
    parse_availability,
    parse_customer,
)

UTC = datetime.timezone.utc


def availability_data(**overrides):
    data = {
        "coachId": "coach-1",
        "coachName": "Grace Hopper",
        "startDate": datetime.datetime(2026, 10, 19, tzinfo=UTC),
        "endDate": datetime.datetime(2026, 10, 31, tzinfo=UTC),
        "status": "approved",
        "selectedDays": {"1": ["session1"], "3": ["session2", "session1"]},
    }
    data.update(overrides)
    return data


def test_parse_customer_uses_document_id_and_names():
    customer = parse_customer("customer-1", {
        "role": "customer", "firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com"
    })

    assert customer.id == "customer-1"
    assert customer.full_name == "Ada Lovelace"
    assert customer.email == "ada@example.com"


def test_customer_without_names_has_empty_full_name():
    assert parse_customer("customer-1", {"role": "customer"}).full_name == ""


def test_parse_availability_converts_weekday_keys_and_keeps_session_order():
    availability = parse_availability("availability-1", availability_data())

    assert availability.selected_days == {1: ["session1"], 3: ["session2", "session1"]}
    assert availability.coach_name == "Grace Hopper"
    assert availability.id == "availability-1"


def test_naive_dates_are_read_as_utc():
    availability = parse_availability("availability-1", availability_data(
        startDate=datetime.datetime(2026, 10, 19),
        endDate=datetime.datetime(2026, 10, 20)
    ))

    assert availability.start_date.tzinfo is not None
    assert availability.start_date == datetime.datetime(2026, 10, 19, tzinfo=UTC)


def test_missing_selected_days_means_no_sessions():
    data = availability_data()
    del data["selectedDays"]

    assert parse_availability("availability-1", data).selected_days == {}


@pytest.mark.parametrize("selected_days", [
    {"7": ["session1"]},
    {"-1": ["session1"]},
    {"monday": ["session1"]},
    ["session1"],
    {"1": "session1"},
    {"1": 5},
    {"1": ["session1", 2]},
])
def test_invalid_selected_days_are_rejected(selected_days):
    with pytest.raises(ValidationError):
        parse_availability("availability-1", availability_data(selectedDays=selected_days))


def test_inverted_window_is_rejected():
    with pytest.raises(ValidationError):
        parse_availability("availability-1", availability_data(
            startDate=datetime.datetime(2026, 11, 1, tzinfo=UTC)
        ))


def test_missing_coach_id_is_rejected():
    data = availability_data()
    del data["coachId"]

    with pytest.raises(ValidationError):
        parse_availability("availability-1", data)


def test_parse_appointment_defaults_status_to_scheduled():
    appointment = parse_appointment("appointment-1", {
        "customerId": "customer-1",
        "coachId": "coach-1",
        "date": datetime.datetime(2026, 10, 19, 17, 0)
    })

    assert appointment.status == AppointmentStatus.SCHEDULED
    assert appointment.date == datetime.datetime(2026, 10, 19, 17, 0, tzinfo=UTC)
    assert appointment.notes is None


def test_parse_auto_scheduling_settings_handles_missing_document():
    assert parse_auto_scheduling_settings(None).enabled is False

    updated_at = datetime.datetime(2026, 10, 19, 8, 0, tzinfo=UTC)
    settings = parse_auto_scheduling_settings({"enabled": True, "updatedAt": updated_at})
    assert settings.enabled is True
    assert settings.updated_at == updated_at


def test_appointment_to_document_omits_empty_optional_fields():
    now = datetime.datetime(2026, 10, 19, 8, 0, tzinfo=UTC)
    appointment = Appointment(
        id="",
        customer_id="customer-1",
        coach_id="coach-1",
        date=datetime.datetime(2026, 10, 19, 17, 0, tzinfo=UTC),
        created_at=now,
        updated_at=now
    )

    document = appointment_to_document(appointment)

    assert document == {
        "customerId": "customer-1",
        "coachId": "coach-1",
        "date": datetime.datetime(2026, 10, 19, 17, 0, tzinfo=UTC),
        "status": "scheduled",
        "createdAt": now,
        "updatedAt": now,
    }

    appointment.customer_name = "Ada Lovelace"
    appointment.coach_name = "Grace Hopper"
    document = appointment_to_document(appointment)
    assert document["customerName"] == "Ada Lovelace"
    assert document["coachName"] == "Grace Hopper"
    assert "notes" not in document
