"""Shared fixtures for the auto-scheduling tests.

The engine is driven by an in-memory store with the same five operations
as FirestoreSchedulingStore, and by a fixed clock.
"""

import datetime
import itertools
from zoneinfo import ZoneInfo

import pytest

from coach_scheduler.constants import AppointmentStatus
from coach_scheduler.models.model import Appointment, Availability, AutoSchedulingSettings, Customer
from coach_scheduler.scheduling.errors import WriteError

UTC = ZoneInfo("UTC")

# Monday
NOW = datetime.datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


class FixedClock:
    def __init__(self, now: datetime.datetime = NOW):
        self.now = now

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += datetime.timedelta(**kwargs)


class InMemorySchedulingStore:
    def __init__(self):
        self.customers = []
        self.availabilities = []
        self.appointments = []
        self.calls = []
        self.failing_writes = 0
        self.customer_query_error = None
        self.availability_query_error = None
        self._ids = itertools.count(1)

    def add_customer(self, customer_id: str, first_name: str = "", last_name: str = "") -> Customer:
        customer = Customer(id=customer_id, first_name=first_name, last_name=last_name)
        self.customers.append(customer)
        return customer

    def add_availability(self, coach_id: str, start_date, end_date, selected_days, coach_name=None) -> Availability:
        availability = Availability(
            id=f"availability-{len(self.availabilities) + 1}",
            coach_id=coach_id,
            coach_name=coach_name,
            start_date=start_date,
            end_date=end_date,
            status="approved",
            selected_days=selected_days
        )
        self.availabilities.append(availability)
        return availability

    def add_appointment(self, customer_id: str, coach_id: str, date) -> Appointment:
        appointment = Appointment(id=f"appointment-{next(self._ids)}", customer_id=customer_id,
                                  coach_id=coach_id, date=date)
        self.appointments.append(appointment)
        return appointment

    def appointments_for(self, customer_id: str):
        return [a for a in self.appointments if a.customer_id == customer_id]

    # store interface

    def list_customers_without_future_appointment(self, now):
        self.calls.append("list_customers")
        if self.customer_query_error is not None:
            raise self.customer_query_error
        return [c for c in self.customers if not self.customer_has_future_appointment(c.id, now)]

    def list_approved_availabilities(self, now):
        self.calls.append("list_availabilities")
        if self.availability_query_error is not None:
            raise self.availability_query_error
        return list(self.availabilities)

    def customer_has_future_appointment(self, customer_id, now):
        return any(a.customer_id == customer_id and a.date >= now for a in self.appointments)

    def has_conflicting_appointment(self, coach_id, instant):
        return any(a.coach_id == coach_id and a.date == instant for a in self.appointments)

    def create_appointment(self, customer_id, coach_id, instant, customer_name=None, coach_name=None):
        self.calls.append(("create", customer_id, instant))
        if self.failing_writes > 0:
            self.failing_writes -= 1
            raise WriteError("permission denied")
        appointment = self.add_appointment(customer_id, coach_id, instant)
        appointment.status = AppointmentStatus.SCHEDULED
        appointment.customer_name = customer_name
        appointment.coach_name = coach_name
        return appointment


class InMemorySettingsStore:
    def __init__(self, enabled: bool = False):
        self.settings = AutoSchedulingSettings(enabled=enabled)
        self.saves = []

    def fetch_auto_scheduling_settings(self):
        return self.settings

    def save_auto_scheduling_enabled(self, enabled, now):
        self.settings = AutoSchedulingSettings(enabled=enabled, updated_at=now)
        self.saves.append(enabled)
        return self.settings


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store():
    return InMemorySchedulingStore()


@pytest.fixture
def settings_store():
    return InMemorySettingsStore()


@pytest.fixture
def store_factory():
    return InMemorySchedulingStore
