import json
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from campus.schemas.common import (
    CamelModel,
    TIME_PATTERN,
    TIME_SLOT_PATTERN,
    Weekday,
    decode_json_string,
    normalize_week_start,
)
from campus.schemas.classrooms import ClassroomSummary, Enrollment
from campus.utils.weeks import empty_weekly_data

BulkAction = Literal["copy_week", "clear_week"]
SessionType = Literal["class", "break", "lunch"]


class SessionEntry(CamelModel):
    """
    One slot in a day's grid.

    The time range is either ``startTime``/``endTime`` or a single
    ``timeSlot`` such as "09:00-10:00"; entries are stored in whichever
    form they were sent. Extra keys (colour, ...) are kept as sent.
    """
    model_config = ConfigDict(extra="allow")

    day: Optional[Weekday] = None
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    time_slot: Optional[str] = Field(None, pattern=TIME_SLOT_PATTERN)
    type: Optional[SessionType] = None
    subject: Optional[str] = None
    room: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_time_range(self):
        if self.start_time or self.end_time:
            if not (self.start_time and self.end_time):
                raise ValueError("startTime and endTime must be given together")
            start, end = self.start_time, self.end_time
        elif self.time_slot:
            start, end = self.time_slot.split("-")
        else:
            raise ValueError("startTime/endTime or timeSlot is required")

        if end <= start:
            raise ValueError("end of the session must be after its start")
        return self


WeeklyData = Dict[Weekday, List[SessionEntry]]


def dump_weekly_data(data: Optional[WeeklyData]) -> dict:
    """
    Expand validated weekly data into the stored JSON shape: all seven
    weekdays present, entries without null fields.
    """
    result = empty_weekly_data()
    for day, entries in (data or {}).items():
        result[day] = [entry.model_dump(by_alias=True, exclude_none=True) for entry in entries]
    return result


class ScheduleSave(CamelModel):
    teacher_id: str = Field(..., min_length=1)
    classroom_id: str = Field(..., min_length=1)
    week_start_date: str
    schedule_data: Optional[WeeklyData] = None

    @field_validator("schedule_data", mode="before")
    @classmethod
    def lenient_schedule_data(cls, value: Any) -> Any:
        # Absent, unparsable or non-object payloads mean an empty week;
        # a day whose value is not a list is saved empty
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                return None
        if not isinstance(value, dict):
            return None
        return {day: entries for day, entries in value.items() if isinstance(entries, list)}

    normalize_week = field_validator("week_start_date", mode="before")(normalize_week_start)


class ScheduleUpdate(CamelModel):
    schedule_id: str = Field(..., min_length=1)
    teacher_id: str = Field(..., min_length=1)
    schedule_data: WeeklyData

    decode_schedule_data = field_validator("schedule_data", mode="before")(decode_json_string)


class ScheduleBulkAction(CamelModel):
    action: BulkAction
    teacher_id: str = Field(..., min_length=1)
    classroom_id: str = Field(..., min_length=1)
    source_week_start_date: Optional[str] = None
    target_week_start_date: str

    @field_validator("source_week_start_date", mode="before")
    @classmethod
    def normalize_source(cls, value: Any) -> Optional[str]:
        return normalize_week_start(value) if value else None

    normalize_target = field_validator("target_week_start_date", mode="before")(normalize_week_start)


class WeeklySchedule(CamelModel):
    id: Optional[str] = None
    teacher_id: str
    classroom_id: str
    week_start_date: str
    weekly_data: Dict[str, List[Dict[str, Any]]]
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ScheduleResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    schedule: Optional[WeeklySchedule] = None
    classrooms: Optional[List[ClassroomSummary]] = None
    week_start_date: Optional[str] = None


class StudentScheduleResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    schedule: Optional[WeeklySchedule] = None
    enrollments: List[Enrollment] = []
    week_start_date: Optional[str] = None
