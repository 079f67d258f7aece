import datetime
from zoneinfo import ZoneInfo


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(tz=datetime.timezone.utc)


def load_timezone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ValueError, KeyError) as e:
        raise ValueError(f"Timezone '{tz_name}' is not a valid IANA timezone name") from e


def format_slot(slot: datetime.datetime) -> str:
    """Human readable slot, e.g. 'Oct 20, 2026, 05:00 PM'."""
    return slot.strftime("%b %d, %Y, %I:%M %p")


def format_clock_time(moment: datetime.datetime) -> str:
    return moment.strftime("%H:%M:%S")
