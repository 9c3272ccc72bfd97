"""Week arithmetic shared by the schedule and attendance modules."""

from datetime import date, timedelta
from typing import Optional, Union

WEEKDAYS = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]


def week_start(day: date) -> date:
    """Return the Monday of the week containing day (Sunday ends the week)."""
    return day - timedelta(days=day.weekday())


def parse_iso_date(value: Union[str, date]) -> date:
    """Parse a YYYY-MM-DD string, raising ValueError on anything else."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"expected an ISO date string, got {type(value).__name__}")
    return date.fromisoformat(value.strip())


def resolve_week_start(value: Optional[Union[str, date]] = None, today: Optional[date] = None) -> str:
    """
    Normalize an optional week start to the ISO string of its Monday.

    Without a value the current week is used.
    """
    if value is None or value == "":
        return week_start(today or date.today()).isoformat()
    return week_start(parse_iso_date(value)).isoformat()


def empty_weekly_data() -> dict:
    """Seven weekday keys, each with no sessions."""
    return {day: [] for day in WEEKDAYS}
