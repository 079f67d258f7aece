import datetime
import types
from zoneinfo import ZoneInfo

from coach_scheduler.models.model import Availability
from coach_scheduler.scheduling.slot_generator import generate_time_slots, slots_for_session, weekday_index

UTC = ZoneInfo("UTC")
NOW = datetime.datetime(2026, 10, 19, 12, 0, tzinfo=UTC)  # Monday

SUNDAY, MONDAY, TUESDAY, WEDNESDAY = 0, 1, 2, 3


def at(day, hour, minute=0, tz=UTC):
    return datetime.datetime(2026, 10, day, hour, minute, tzinfo=tz)


def window(start, end, selected_days):
    return Availability(
        id="availability-1",
        coach_id="coach-1",
        start_date=start,
        end_date=end,
        status="approved",
        selected_days=selected_days
    )


def test_weekday_index_starts_on_sunday():
    assert weekday_index(datetime.date(2026, 10, 18)) == SUNDAY
    assert weekday_index(datetime.date(2026, 10, 19)) == MONDAY
    assert weekday_index(datetime.date(2026, 10, 24)) == 6


def test_elapsed_window_yields_nothing():
    availability = window(at(5, 0), at(18, 23, 59), {MONDAY: ["session1"], SUNDAY: ["session1"]})

    assert list(generate_time_slots(availability, NOW, UTC)) == []


def test_session1_is_expanded_in_quarter_hours():
    availability = window(at(19, 0), at(19, 23, 59), {MONDAY: ["session1"]})

    slots = list(generate_time_slots(availability, NOW, UTC))

    assert len(slots) == 12
    assert slots[0] == at(19, 17, 0)
    assert slots[1] == at(19, 17, 15)
    assert slots[-1] == at(19, 19, 45)
    assert at(19, 20, 0) not in slots


def test_start_is_clamped_to_now_and_now_itself_is_excluded():
    now = at(19, 18, 0)
    availability = window(at(1, 0), at(19, 23, 59), {MONDAY: ["session1"]})

    slots = list(generate_time_slots(availability, now, UTC))

    assert slots[0] == at(19, 18, 15)
    assert all(slot > now for slot in slots)


def test_missing_weekday_and_unknown_session_produce_no_slots():
    availability = window(at(19, 0), at(20, 23, 59), {MONDAY: ["lunch"]})

    assert list(generate_time_slots(availability, NOW, UTC)) == []


def test_unknown_code_does_not_hide_known_codes():
    availability = window(at(19, 0), at(19, 23, 59), {MONDAY: ["lunch", "session2"]})

    slots = list(generate_time_slots(availability, NOW, UTC))

    assert len(slots) == 8
    assert slots[0] == at(19, 20, 0)


def test_sessions_listed_out_of_order_are_emitted_chronologically():
    availability = window(at(19, 0), at(19, 23, 59), {MONDAY: ["session2", "session1"]})

    slots = list(generate_time_slots(availability, NOW, UTC))

    assert slots == sorted(slots)
    assert slots[0] == at(19, 17, 0)
    assert slots[-1] == at(19, 21, 45)
    assert len(slots) == 20


def test_duplicate_session_codes_do_not_duplicate_slots():
    availability = window(at(19, 0), at(19, 23, 59), {MONDAY: ["session1", "session1"]})

    slots = list(generate_time_slots(availability, NOW, UTC))

    assert len(slots) == len(set(slots)) == 12


def test_multi_day_window_only_uses_configured_weekdays():
    availability = window(at(19, 0), at(21, 0), {MONDAY: ["session2"], WEDNESDAY: ["session1"]})

    slots = list(generate_time_slots(availability, NOW, UTC))

    assert slots == sorted(slots)
    assert {slot.day for slot in slots} == {19, 21}
    assert slots[0] == at(19, 20, 0)
    assert slots[8] == at(21, 17, 0)


def test_end_date_day_is_inclusive():
    availability = window(at(19, 0), at(20, 0), {TUESDAY: ["session2"]})

    slots = list(generate_time_slots(availability, NOW, UTC))

    assert slots[0] == at(20, 20, 0)
    assert len(slots) == 8


def test_generator_is_lazy_and_restartable():
    availability = window(at(19, 0), at(25, 0), {MONDAY: ["session1"], TUESDAY: ["session1"]})

    generator = generate_time_slots(availability, NOW, UTC)

    assert isinstance(generator, types.GeneratorType)
    assert next(generator) == at(19, 17, 0)
    assert list(generate_time_slots(availability, NOW, UTC)) == list(generate_time_slots(availability, NOW, UTC))


def test_session_times_are_local_to_the_scheduling_timezone():
    new_york = ZoneInfo("America/New_York")
    availability = window(at(19, 0), at(19, 23, 0), {MONDAY: ["session1"]})

    slots = list(generate_time_slots(availability, NOW, new_york))

    assert slots[0] == at(19, 17, 0, tz=new_york)
    assert slots[0] == at(19, 21, 0)


def test_slots_for_session_unknown_code_is_empty():
    assert slots_for_session(datetime.date(2026, 10, 19), "session9", NOW, UTC) == []
