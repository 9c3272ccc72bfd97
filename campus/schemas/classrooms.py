from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from campus.schemas.common import CamelModel, TIME_PATTERN, Weekday


class ScheduleSlot(CamelModel):
    day: Weekday
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)


class ClassroomCreate(CamelModel):
    teacher_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    max_students: int = Field(..., ge=1, le=200)
    schedule: List[ScheduleSlot] = Field(..., min_length=1)
    is_public: bool = False
    tags: List[str] = []
    academic_year: Optional[str] = None
    semester: Optional[str] = None


class ClassroomJoin(CamelModel):
    invite_code: str = Field(..., min_length=1)
    student_id: str = Field(..., min_length=1)

    @field_validator("invite_code")
    @classmethod
    def upper_code(cls, value: str) -> str:
        return value.strip().upper()


class ClassroomSummary(CamelModel):
    id: str
    title: str
    subject: Optional[str] = None
    invite_code: Optional[str] = None
    students_count: int = 0


class Classroom(CamelModel):
    id: str
    classroom_code: str
    invite_code: str
    title: str
    subject: str
    description: Optional[str] = None
    teacher_id: str
    teacher_name: Optional[str] = None
    teacher_email: Optional[str] = None
    max_students: int
    students_count: int = 0
    schedule: List[Dict[str, Any]] = []
    status: str = "active"
    is_public: bool = False
    tags: List[str] = []
    academic_year: Optional[str] = None
    semester: Optional[str] = None
    created_at: Optional[datetime] = None


class Enrollment(CamelModel):
    id: Optional[str] = None
    classroom_id: str
    student_id: str
    student_name: str
    student_email: Optional[str] = None
    student_roll_number: Optional[str] = None
    enrolled_at: Optional[datetime] = None
    status: str = "active"
    enrolled_by: Optional[str] = None


class ClassroomResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    classroom: Classroom


class ClassroomListResponse(CamelModel):
    success: bool = True
    classrooms: List[Classroom] = []
    enrolled_classrooms: Optional[List[Classroom]] = None
    available_classrooms: Optional[List[Classroom]] = None


class JoinResponse(CamelModel):
    success: bool = True
    message: str
    classroom: ClassroomSummary


class RosterListResponse(CamelModel):
    success: bool = True
    students: List[Enrollment] = []
