import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from coach_scheduler.constants import AppointmentStatus
from coach_scheduler.models.model import Appointment, Availability, AutoSchedulingSettings, Customer


def _as_aware_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


class UserDocument(BaseModel):
    """Pydantic model for a document of the users collection"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    role: str = Field(alias="role")
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    email: str = Field(default="", alias="email")
    phone: Optional[str] = Field(default=None, alias="phone")


class AvailabilityDocument(BaseModel):
    """Pydantic model for a document of the availabilities collection"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    coach_id: str = Field(alias="coachId")
    coach_name: Optional[str] = Field(default=None, alias="coachName")
    start_date: datetime.datetime = Field(alias="startDate")
    end_date: datetime.datetime = Field(alias="endDate")
    status: str = Field(alias="status")
    selected_days: Dict[int, List[str]] = Field(default_factory=dict, alias="selectedDays")

    @field_validator("start_date", "end_date")
    @classmethod
    def ensure_timezone(cls, value: datetime.datetime) -> datetime.datetime:
        return _as_aware_utc(value)

    @field_validator("selected_days", mode="before")
    @classmethod
    def parse_weekday_keys(cls, value):
        # Firestore map keys are always strings: "0" (Sunday) .. "6" (Saturday)
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("selectedDays must be a map of weekday to session codes")
        parsed = {}
        for key, sessions in value.items():
            try:
                weekday = int(key)
            except (TypeError, ValueError) as e:
                raise ValueError(f"Weekday key {key!r} is not an integer") from e
            if not 0 <= weekday <= 6:
                raise ValueError(f"Weekday index {key} is outside 0-6")
            # the List[str] annotation validates the session codes themselves
            parsed[weekday] = [] if sessions is None else sessions
        return parsed

    @model_validator(mode="after")
    def check_window(self):
        if self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self


class AppointmentDocument(BaseModel):
    """Pydantic model for a document of the appointments collection"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    customer_id: str = Field(alias="customerId")
    coach_id: str = Field(alias="coachId")
    date: datetime.datetime = Field(alias="date")
    status: str = Field(default=AppointmentStatus.SCHEDULED, alias="status")
    notes: Optional[str] = Field(default=None, alias="notes")
    customer_name: Optional[str] = Field(default=None, alias="customerName")
    coach_name: Optional[str] = Field(default=None, alias="coachName")
    created_at: Optional[datetime.datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime.datetime] = Field(default=None, alias="updatedAt")

    @field_validator("date")
    @classmethod
    def ensure_timezone(cls, value: datetime.datetime) -> datetime.datetime:
        return _as_aware_utc(value)


class AutoSchedulingSettingsDocument(BaseModel):
    """Pydantic model for the settings/autoScheduling document"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    enabled: bool = Field(default=False, alias="enabled")
    updated_at: Optional[datetime.datetime] = Field(default=None, alias="updatedAt")


def parse_customer(doc_id: str, raw_data: dict) -> Customer:
    user = UserDocument.model_validate(raw_data)
    return Customer(
        id=doc_id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email
    )


def parse_availability(doc_id: str, raw_data: dict) -> Availability:
    """
    Validate a raw availability document and convert it to the model used
    by the slot generator.

    Raises:
        pydantic.ValidationError: if required fields are missing, a weekday
            key is not 0-6 or the window is inverted
    """
    availability = AvailabilityDocument.model_validate(raw_data)
    return Availability(
        id=doc_id,
        coach_id=availability.coach_id,
        coach_name=availability.coach_name,
        start_date=availability.start_date,
        end_date=availability.end_date,
        status=availability.status,
        selected_days=availability.selected_days
    )


def parse_appointment(doc_id: str, raw_data: dict) -> Appointment:
    appointment = AppointmentDocument.model_validate(raw_data)
    return Appointment(
        id=doc_id,
        customer_id=appointment.customer_id,
        coach_id=appointment.coach_id,
        date=appointment.date,
        status=appointment.status,
        notes=appointment.notes,
        customer_name=appointment.customer_name,
        coach_name=appointment.coach_name,
        created_at=appointment.created_at,
        updated_at=appointment.updated_at
    )


def parse_auto_scheduling_settings(raw_data: Optional[dict]) -> AutoSchedulingSettings:
    settings = AutoSchedulingSettingsDocument.model_validate(raw_data or {})
    return AutoSchedulingSettings(enabled=settings.enabled, updated_at=settings.updated_at)


def appointment_to_document(appointment: Appointment) -> dict:
    data = {
        "customerId": appointment.customer_id,
        "coachId": appointment.coach_id,
        "date": appointment.date,
        "status": appointment.status,
        "createdAt": appointment.created_at,
        "updatedAt": appointment.updated_at,
    }
    if appointment.customer_name:
        data["customerName"] = appointment.customer_name
    if appointment.coach_name:
        data["coachName"] = appointment.coach_name
    if appointment.notes:
        data["notes"] = appointment.notes
    return data
