from datetime import date

import pytest
from pydantic import ValidationError

from campus.schemas.schedule import ScheduleBulkAction, ScheduleSave, dump_weekly_data
from campus.utils.weeks import WEEKDAYS, empty_weekly_data, resolve_week_start, week_start


@pytest.mark.parametrize("day, monday", [
    (date(2024, 3, 4), date(2024, 3, 4)),    # Monday
    (date(2024, 3, 6), date(2024, 3, 4)),    # Wednesday
    (date(2024, 3, 10), date(2024, 3, 4)),   # Sunday closes the week
    (date(2024, 3, 11), date(2024, 3, 11)),
    (date(2024, 1, 2), date(2024, 1, 1)),
    (date(2023, 12, 31), date(2023, 12, 25)),
])
def test_week_start(day, monday):
    assert week_start(day) == monday


def test_resolve_week_start_defaults_to_today():
    assert resolve_week_start(None, today=date(2024, 3, 9)) == "2024-03-04"
    assert resolve_week_start("", today=date(2024, 3, 9)) == "2024-03-04"


def test_resolve_week_start_rejects_garbage():
    with pytest.raises(ValueError):
        resolve_week_start("next tuesday")
    with pytest.raises(ValueError):
        resolve_week_start(20240304)


def test_empty_weekly_data_has_every_day():
    data = empty_weekly_data()

    assert list(data) == WEEKDAYS
    assert all(entries == [] for entries in data.values())


def test_dump_fills_missing_days_and_drops_nulls():
    payload = ScheduleSave(
        teacherId="T1",
        classroomId="C1",
        weekStartDate="2024-03-05",
        scheduleData={"Thursday": [{"startTime": "08:00", "endTime": "08:45", "subject": "Chemistry"}]},
    )

    data = dump_weekly_data(payload.schedule_data)

    assert payload.week_start_date == "2024-03-04"
    assert data["Thursday"] == [{"startTime": "08:00", "endTime": "08:45", "subject": "Chemistry"}]
    assert data["Monday"] == []


def test_bad_week_start_fails_validation():
    with pytest.raises(ValidationError):
        ScheduleSave(teacherId="T1", classroomId="C1", weekStartDate="2024-13-01")


def test_bulk_action_source_is_optional_but_normalized():
    clear = ScheduleBulkAction(action="clear_week", teacherId="T1", classroomId="C1", targetWeekStartDate="2024-03-08")
    copy = ScheduleBulkAction(
        action="copy_week", teacherId="T1", classroomId="C1",
        sourceWeekStartDate="2024-03-01", targetWeekStartDate="2024-03-08",
    )

    assert clear.source_week_start_date is None
    assert clear.target_week_start_date == "2024-03-04"
    assert copy.source_week_start_date == "2024-02-26"
