# scheduling_model.py
import datetime
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from coach_scheduler.constants import AppointmentStatus, SCHEDULING_STEP_LABELS, StepStatus


@dataclass
class Customer:
    id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class Availability:
    id: str
    coach_id: str
    start_date: datetime.datetime
    end_date: datetime.datetime
    status: str
    # weekday index (0 = Sunday) -> ordered session codes
    selected_days: Dict[int, List[str]] = field(default_factory=dict)
    coach_name: Optional[str] = None


@dataclass
class Appointment:
    id: str
    customer_id: str
    coach_id: str
    date: datetime.datetime
    status: str = AppointmentStatus.SCHEDULED
    notes: Optional[str] = None
    customer_name: Optional[str] = None
    coach_name: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None


@dataclass
class SchedulingStep:
    label: str
    status: str = StepStatus.PENDING
    details: Optional[str] = None


@dataclass
class SchedulingStats:
    customers_without_appointments: int = 0
    available_coaches: int = 0
    availabilities_found: int = 0
    # candidate slots across all approved availabilities, before conflict checks
    slots_generated: int = 0
    slots_checked: int = 0
    customers_processed: int = 0
    appointments_created: int = 0


def default_steps() -> List[SchedulingStep]:
    return [SchedulingStep(label=label) for label in SCHEDULING_STEP_LABELS]


@dataclass
class SchedulingProgress:
    steps: List[SchedulingStep] = field(default_factory=default_steps)
    stats: SchedulingStats = field(default_factory=SchedulingStats)
    current_customer: Optional[str] = None
    current_coach: Optional[str] = None
    current_action: Optional[str] = None

    def step(self, label: str) -> SchedulingStep:
        for step in self.steps:
            if step.label == label:
                return step
        raise KeyError(label)

    def processing_step(self) -> Optional[SchedulingStep]:
        for step in self.steps:
            if step.status == StepStatus.PROCESSING:
                return step
        return None

    @property
    def percent_complete(self) -> float:
        completed = sum(1 for step in self.steps if step.status == StepStatus.COMPLETED)
        return completed / len(self.steps) * 100


@dataclass
class SchedulingResult:
    success: bool
    appointments_created: int


@dataclass
class AutoSchedulingSettings:
    enabled: bool = False
    updated_at: Optional[datetime.datetime] = None
