"""
Layout math for the 24-hour timeline (Gantt) view.

Everything here is a pure function of a routine's schedule fields: positions
and widths are percentages of the day axis, so the client only has to apply
them as CSS offsets.
"""

from datetime import datetime, time

from routine_admin.schemas.routine import RoutineOut
from routine_admin.schemas.timeline import TimelineBar, TimelineOut

MINUTES_PER_DAY = 24 * 60
SECONDS_PER_DAY = 24 * 3600
MIN_WIDTH_PERCENT = 1.0
MIN_DISPLAY_WIDTH_PERCENT = 2.0

_FREQUENCY_SUFFIX = {"second": "s", "minute": "min", "hour": "H"}
_DURATION_SUFFIX = {"second": "sec", "minute": "min", "hour": "h"}


def _parse_start_time(start_time: str) -> tuple[int, int]:
    hours, minutes = start_time.split(":")
    return int(hours), int(minutes)


def left_percent(start_time: str) -> float:
    hours, minutes = _parse_start_time(start_time)
    return (hours * 60 + minutes) / MINUTES_PER_DAY * 100


def duration_minutes(duration: int, unit: str) -> float:
    if unit == "second":
        return duration / 60
    if unit == "hour":
        return duration * 60
    return float(duration)


def width_percent(duration: int, unit: str) -> float:
    return max(duration_minutes(duration, unit) / MINUTES_PER_DAY * 100, MIN_WIDTH_PERCENT)


def display_width_percent(duration: int, unit: str) -> float:
    return max(width_percent(duration, unit), MIN_DISPLAY_WIDTH_PERCENT)


def now_marker_percent(now: datetime | time | None = None) -> float:
    """Position of the "now" line; defaults to the local wall clock."""
    moment = now if now is not None else datetime.now()
    seconds = moment.hour * 3600 + moment.minute * 60 + moment.second
    return seconds / SECONDS_PER_DAY * 100


def hour_marks() -> list[str]:
    return [f"{hour:02d}:00" for hour in range(24)]


def frequency_label(frequency_value: int, frequency_type: str) -> str:
    return f"{frequency_value}{_FREQUENCY_SUFFIX[frequency_type]}"


def duration_label(duration: int, unit: str) -> str:
    return f"{duration} {_DURATION_SUFFIX[unit]}"


def layout_bar(routine: RoutineOut) -> TimelineBar:
    return TimelineBar(
        id=routine.id,
        name=routine.name,
        is_active=routine.is_active,
        frequency_type=routine.frequency_type,
        start_time=routine.start_time,
        left=left_percent(routine.start_time),
        width=width_percent(routine.duration, routine.duration_unit),
        display_width=display_width_percent(routine.duration, routine.duration_unit),
        frequency_label=frequency_label(routine.frequency_value, routine.frequency_type),
        duration_label=duration_label(routine.duration, routine.duration_unit),
    )


def build_timeline(routines: list[RoutineOut], now: datetime | time | None = None) -> TimelineOut:
    return TimelineOut(
        hours=hour_marks(),
        now=now_marker_percent(now),
        bars=[layout_bar(routine) for routine in routines],
    )
