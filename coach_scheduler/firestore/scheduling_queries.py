"""
Firestore queries used by the auto-scheduling engine.

Every read the engine needs goes through FirestoreSchedulingStore so the
engine can be driven by an in-memory store in tests.
"""

import datetime
from typing import Callable, Iterable, List, Optional

from google.api_core.exceptions import GoogleAPIError
from google.cloud.firestore_v1 import Client as FirestoreClient
from google.cloud.firestore_v1.base_query import FieldFilter
from pydantic import ValidationError

from coach_scheduler.constants import (
    APPOINTMENTS_COLLECTION,
    AVAILABILITIES_COLLECTION,
    USERS_COLLECTION,
    AppointmentStatus,
    AvailabilityStatus,
    UserRole,
)
from coach_scheduler.models.model import Appointment, Availability, Customer
from coach_scheduler.parsers.document_parser import (
    appointment_to_document,
    parse_appointment,
    parse_availability,
    parse_customer,
)
from coach_scheduler.scheduling.errors import DiscoveryError, WriteError
from coach_scheduler.utils.logging_config import get_firestore_logger, log_database_operation
from coach_scheduler.utils.time_utils import utc_now

logger = get_firestore_logger()


class FirestoreSchedulingStore:
    def __init__(self, firestore_db: FirestoreClient, now_provider: Callable[[], datetime.datetime] = utc_now):
        self.firestore_db = firestore_db
        self.now_provider = now_provider

    def list_customers_without_future_appointment(self, now: datetime.datetime) -> List[Customer]:
        """
        Return every customer with no appointment dated at or after `now`,
        in the store's document order.

        Raises:
            DiscoveryError: if any of the underlying queries fails
        """
        try:
            customer_docs = (
                self.firestore_db.collection(USERS_COLLECTION)
                .where(filter=FieldFilter("role", "==", UserRole.CUSTOMER))
                .stream()
            )
            customers = self._parse_documents(customer_docs, parse_customer, USERS_COLLECTION)

            results = []
            for customer in customers:
                if not self._has_appointment_since(customer.id, now):
                    results.append(customer)
        except GoogleAPIError as e:
            log_database_operation(logger, "QUERY", USERS_COLLECTION, success=False, error=e)
            raise DiscoveryError(f"Failed to list customers without appointments: {e}") from e

        log_database_operation(
            logger, "QUERY", USERS_COLLECTION, success=True,
            details=f"{len(results)} of {len(customers)} customers have no upcoming appointment"
        )
        return results

    def list_approved_availabilities(self, now: datetime.datetime) -> List[Availability]:
        """
        Return every approved availability. Elapsed windows are kept; the slot
        generator drops them.

        Raises:
            DiscoveryError: if the query fails
        """
        try:
            availability_docs = (
                self.firestore_db.collection(AVAILABILITIES_COLLECTION)
                .where(filter=FieldFilter("status", "==", AvailabilityStatus.APPROVED))
                .stream()
            )
            availabilities = self._parse_documents(availability_docs, parse_availability, AVAILABILITIES_COLLECTION)
        except GoogleAPIError as e:
            log_database_operation(logger, "QUERY", AVAILABILITIES_COLLECTION, success=False, error=e)
            raise DiscoveryError(f"Failed to list approved availabilities: {e}") from e

        log_database_operation(
            logger, "QUERY", AVAILABILITIES_COLLECTION, success=True,
            details=f"{len(availabilities)} approved availabilities"
        )
        return availabilities

    def customer_has_future_appointment(self, customer_id: str, now: datetime.datetime) -> bool:
        return self._has_appointment_since(customer_id, now)

    def has_conflicting_appointment(self, coach_id: str, instant: datetime.datetime) -> bool:
        docs = (
            self.firestore_db.collection(APPOINTMENTS_COLLECTION)
            .where(filter=FieldFilter("coachId", "==", coach_id))
            .where(filter=FieldFilter("date", "==", instant))
            .limit(1)
            .stream()
        )
        return any(True for _ in docs)

    def create_appointment(
        self,
        customer_id: str,
        coach_id: str,
        instant: datetime.datetime,
        customer_name: Optional[str] = None,
        coach_name: Optional[str] = None
    ) -> Appointment:
        """
        Insert a scheduled appointment.

        Raises:
            WriteError: if Firestore rejects the write (network, permission)
        """
        now = self.now_provider()
        appointment = Appointment(
            id="",
            customer_id=customer_id,
            coach_id=coach_id,
            date=instant,
            status=AppointmentStatus.SCHEDULED,
            customer_name=customer_name,
            coach_name=coach_name,
            created_at=now,
            updated_at=now
        )

        try:
            _, doc_ref = self.firestore_db.collection(APPOINTMENTS_COLLECTION).add(
                appointment_to_document(appointment)
            )
        except GoogleAPIError as e:
            log_database_operation(logger, "INSERT", APPOINTMENTS_COLLECTION, success=False, error=e)
            raise WriteError(f"Failed to create appointment for customer {customer_id}: {e}") from e

        appointment.id = doc_ref.id
        log_database_operation(
            logger, "INSERT", APPOINTMENTS_COLLECTION, success=True,
            details=f"{doc_ref.id} customer={customer_id} coach={coach_id} date={instant.isoformat()}"
        )
        return appointment

    def list_upcoming_appointments(self, user_id: str, role: str, now: datetime.datetime) -> List[Appointment]:
        """
        Appointments of a coach or customer dated at or after `now`, earliest
        first.
        """
        field_name = "coachId" if role == UserRole.COACH else "customerId"
        docs = (
            self.firestore_db.collection(APPOINTMENTS_COLLECTION)
            .where(filter=FieldFilter(field_name, "==", user_id))
            .stream()
        )
        appointments = self._parse_documents(docs, parse_appointment, APPOINTMENTS_COLLECTION)
        upcoming = [appointment for appointment in appointments if appointment.date >= now]
        upcoming.sort(key=lambda appointment: appointment.date)
        return upcoming

    def _has_appointment_since(self, customer_id: str, now: datetime.datetime) -> bool:
        # Filtered in code to avoid needing a composite (customerId, date) index
        docs = (
            self.firestore_db.collection(APPOINTMENTS_COLLECTION)
            .where(filter=FieldFilter("customerId", "==", customer_id))
            .stream()
        )
        appointments = self._parse_documents(docs, parse_appointment, APPOINTMENTS_COLLECTION)
        return any(appointment.date >= now for appointment in appointments)

    @staticmethod
    def _parse_documents(docs: Iterable, parser, collection: str) -> list:
        parsed = []
        for doc in docs:
            try:
                parsed.append(parser(doc.id, doc.to_dict() or {}))
            except ValidationError as e:
                logger.warning(f"Skipping malformed document {collection}/{doc.id}: {e}")
        return parsed
