import datetime
from typing import Iterator, List, Optional, Tuple
from zoneinfo import ZoneInfo

from coach_scheduler.constants import DEVICE_TZ, SESSION_TIMES, SLOT_STEP_MINUTES
from coach_scheduler.models.model import Availability
from coach_scheduler.utils.logging_config import get_engine_logger

logger = get_engine_logger()


def weekday_index(day: datetime.date) -> int:
    """0 = Sunday .. 6 = Saturday, the convention stored in selectedDays."""
    return (day.weekday() + 1) % 7


def get_session_times(session_code: str) -> Optional[Tuple[datetime.time, datetime.time]]:
    return SESSION_TIMES.get(session_code)


def slots_for_session(
    day: datetime.date,
    session_code: str,
    now: datetime.datetime,
    tz: ZoneInfo = DEVICE_TZ
) -> List[datetime.datetime]:
    session_times = get_session_times(session_code)
    if session_times is None:
        logger.debug(f"Unknown session code '{session_code}' on {day.isoformat()}, no slots")
        return []

    start_time, end_time = session_times
    step = datetime.timedelta(minutes=SLOT_STEP_MINUTES)
    slot_time = datetime.datetime.combine(day, start_time, tzinfo=tz)
    session_end = datetime.datetime.combine(day, end_time, tzinfo=tz)

    slots = []
    while slot_time < session_end:
        if slot_time > now:
            slots.append(slot_time)
        slot_time += step
    return slots


def generate_time_slots(
    availability: Availability,
    now: datetime.datetime,
    tz: ZoneInfo = DEVICE_TZ
) -> Iterator[datetime.datetime]:
    """
    Lazily expand an availability window into candidate appointment instants.

    Days run from max(start_date, now) through end_date inclusive, both taken
    as calendar days in `tz`. Each day's session codes are expanded in
    SLOT_STEP_MINUTES steps and only instants strictly after `now` are kept.
    The sequence is chronological across the whole window; the matching
    engine books the first free instant it sees, so this order decides which
    slot a customer gets.

    Args:
        availability: The approved availability window
        now: Current instant (timezone-aware)
        tz: Timezone the session times of day are expressed in

    Returns:
        A fresh generator; calling again with the same inputs yields the same
        instants
    """
    if availability.end_date < now:
        return

    current_day = max(availability.start_date, now).astimezone(tz).date()
    last_day = availability.end_date.astimezone(tz).date()
    one_day = datetime.timedelta(days=1)

    while current_day <= last_day:
        session_codes = availability.selected_days.get(weekday_index(current_day), [])

        day_slots = set()
        for session_code in session_codes:
            day_slots.update(slots_for_session(current_day, session_code, now, tz))

        # Codes may be listed out of order or overlap
        yield from sorted(day_slots)

        current_day += one_day
