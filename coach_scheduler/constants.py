from datetime import time
from zoneinfo import ZoneInfo


# Default scheduling timezone, overridden by SCHEDULER_TZ in main
DEVICE_TZ = ZoneInfo("UTC")

# Firestore collections
USERS_COLLECTION = "users"
AVAILABILITIES_COLLECTION = "availabilities"
APPOINTMENTS_COLLECTION = "appointments"
SETTINGS_COLLECTION = "settings"
AUTO_SCHEDULING_SETTINGS_DOCUMENT = "autoScheduling"

# Session code -> (start, end) time of day, same day, start < end
SESSION_TIMES = {
    "session1": (time(17, 0), time(20, 0)),
    "session2": (time(20, 0), time(22, 0)),
}

SLOT_STEP_MINUTES = 15

DEFAULT_SCHEDULING_INTERVAL_SECONDS = 60

AUTO_SCHEDULING_JOB_ID = "auto_scheduling"

# Step labels, in run order
STEP_FINDING_CUSTOMERS = "Finding customers"
STEP_CHECKING_AVAILABILITIES = "Checking availabilities"
STEP_CREATING_APPOINTMENTS = "Creating appointments"
SCHEDULING_STEP_LABELS = (
    STEP_FINDING_CUSTOMERS,
    STEP_CHECKING_AVAILABILITIES,
    STEP_CREATING_APPOINTMENTS,
)


class StepStatus:
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class UserRole:
    ADMIN = "admin"
    COACH = "coach"
    CUSTOMER = "customer"


class AvailabilityStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AppointmentStatus:
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    MISSED = "missed"
