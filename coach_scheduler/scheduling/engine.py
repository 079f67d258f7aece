"""
Auto-scheduling matching engine.

A run moves through three steps (finding customers, checking availabilities,
creating appointments). In the last step every customer without an upcoming
appointment is offered the first free candidate slot of the approved
availabilities, in discovery order, and at most one appointment is created
per customer per run.

The store passed in must provide:
    list_customers_without_future_appointment(now)
    list_approved_availabilities(now)
    customer_has_future_appointment(customer_id, now)
    has_conflicting_appointment(coach_id, instant)
    create_appointment(customer_id, coach_id, instant, customer_name=, coach_name=)
FirestoreSchedulingStore is the production implementation.
"""

import dataclasses
import datetime
from typing import Callable, List, Optional
from zoneinfo import ZoneInfo

from coach_scheduler.constants import (
    DEVICE_TZ,
    STEP_CHECKING_AVAILABILITIES,
    STEP_CREATING_APPOINTMENTS,
    STEP_FINDING_CUSTOMERS,
)
from coach_scheduler.models.model import Availability, Customer, SchedulingResult, SchedulingStats
from coach_scheduler.scheduling.errors import WriteError
from coach_scheduler.scheduling.progress import ProgressCallback, ProgressReporter
from coach_scheduler.scheduling.slot_generator import generate_time_slots
from coach_scheduler.utils.logging_config import get_engine_logger, log_scheduling_operation
from coach_scheduler.utils.time_utils import format_slot, utc_now

logger = get_engine_logger()


class AutoSchedulingEngine:
    def __init__(
        self,
        store,
        now_provider: Callable[[], datetime.datetime] = utc_now,
        tz: ZoneInfo = DEVICE_TZ
    ):
        self.store = store
        self.now_provider = now_provider
        self.tz = tz

    def run(self, on_progress: Optional[ProgressCallback] = None) -> SchedulingResult:
        """
        Execute one scheduling run.

        Args:
            on_progress: Called with a fresh SchedulingProgress snapshot after
                every state transition

        Returns:
            SchedulingResult with the number of appointments created

        Raises:
            DiscoveryError: if listing customers or availabilities fails. The
                failing step is reported as error before the exception
                propagates. Appointments created so far stay committed.
        """
        reporter = ProgressReporter(on_progress)
        stats = SchedulingStats()
        now = self.now_provider()

        try:
            reporter.start_step(STEP_FINDING_CUSTOMERS)
            customers = self.store.list_customers_without_future_appointment(now)
            stats.customers_without_appointments = len(customers)
            reporter.complete_step(
                STEP_FINDING_CUSTOMERS,
                f"Found {len(customers)} customers without appointments",
                stats=dataclasses.asdict(stats)
            )

            if not customers:
                reporter.complete_step(STEP_CHECKING_AVAILABILITIES, "No customers need appointments")
                reporter.complete_step(STEP_CREATING_APPOINTMENTS, "No appointments needed")
                logger.info("No customers without appointments, nothing to schedule")
                return SchedulingResult(success=True, appointments_created=0)

            reporter.start_step(STEP_CHECKING_AVAILABILITIES)
            availabilities = self.store.list_approved_availabilities(now)
            stats.availabilities_found = len(availabilities)
            stats.available_coaches = len({availability.coach_id for availability in availabilities})
            stats.slots_generated = sum(
                1 for availability in availabilities for _ in generate_time_slots(availability, now, self.tz)
            )
            reporter.complete_step(
                STEP_CHECKING_AVAILABILITIES,
                f"Found {len(availabilities)} approved availabilities",
                stats=dataclasses.asdict(stats)
            )

            if not availabilities:
                reporter.complete_step(STEP_CREATING_APPOINTMENTS, "No available time slots")
                logger.info("No approved availabilities, nothing to schedule")
                return SchedulingResult(success=True, appointments_created=0)

            reporter.start_step(STEP_CREATING_APPOINTMENTS)
            self._create_appointments(customers, availabilities, stats, reporter)

            reporter.complete_step(
                STEP_CREATING_APPOINTMENTS,
                f"Created {stats.appointments_created} appointments for {stats.customers_processed} customers",
                current_customer=None,
                current_coach=None,
                current_action=None
            )
            logger.info(f"Auto-scheduling run finished, {stats.appointments_created} appointments created")
            return SchedulingResult(success=True, appointments_created=stats.appointments_created)

        except Exception as e:
            logger.error(f"Error in auto-scheduling: {e}")
            reporter.fail_processing_step(str(e) or "An error occurred during this step")
            raise

    def _create_appointments(
        self,
        customers: List[Customer],
        availabilities: List[Availability],
        stats: SchedulingStats,
        reporter: ProgressReporter
    ) -> None:
        for customer in customers:
            stats.customers_processed += 1
            customer_name = customer.full_name or customer.id
            reporter.update(
                step_label=STEP_CREATING_APPOINTMENTS,
                step_details=f"Processing customer {stats.customers_processed}/{len(customers)}",
                stats=dataclasses.asdict(stats),
                current_customer=customer_name,
                current_coach=None,
                current_action=None
            )

            # The customer list can be minutes old by now
            now = self.now_provider()
            if self.store.customer_has_future_appointment(customer.id, now):
                log_scheduling_operation(logger, "skip", customer_id=customer.id,
                                         details="customer already has an upcoming appointment")
                continue

            if not self._book_first_free_slot(customer, availabilities, now, stats, reporter):
                log_scheduling_operation(logger, "unmatched", customer_id=customer.id,
                                         details="no free slot in any approved availability")

    def _book_first_free_slot(
        self,
        customer: Customer,
        availabilities: List[Availability],
        now: datetime.datetime,
        stats: SchedulingStats,
        reporter: ProgressReporter
    ) -> bool:
        customer_name = customer.full_name or customer.id

        for availability in availabilities:
            coach_name = availability.coach_name or availability.coach_id
            reporter.update(current_coach=coach_name, current_action="Checking slot availability")

            for slot in generate_time_slots(availability, now, self.tz):
                stats.slots_checked += 1
                reporter.update(
                    stats=dataclasses.asdict(stats),
                    current_action=f"Checking slot: {format_slot(slot)}"
                )

                if self.store.has_conflicting_appointment(availability.coach_id, slot):
                    continue

                reporter.update(current_action=f"Creating appointment for {format_slot(slot)}")
                try:
                    self.store.create_appointment(
                        customer.id,
                        availability.coach_id,
                        slot,
                        customer_name=customer_name,
                        coach_name=availability.coach_name
                    )
                except WriteError as e:
                    log_scheduling_operation(logger, "write_failed", customer_id=customer.id,
                                             coach_id=availability.coach_id, details=str(e))
                    reporter.update(current_action=f"Failed to create appointment for {format_slot(slot)}")
                    continue

                stats.appointments_created += 1
                log_scheduling_operation(logger, "created", customer_id=customer.id,
                                         coach_id=availability.coach_id, details=slot.isoformat())
                reporter.update(
                    stats=dataclasses.asdict(stats),
                    current_action=f"Created appointment for {format_slot(slot)}"
                )
                return True

        return False


def run_auto_scheduling(
    store,
    on_progress: Optional[ProgressCallback] = None,
    now_provider: Callable[[], datetime.datetime] = utc_now,
    tz: ZoneInfo = DEVICE_TZ
) -> SchedulingResult:
    return AutoSchedulingEngine(store, now_provider=now_provider, tz=tz).run(on_progress)
