import datetime as dt
from typing import List, Literal, Optional

from pydantic import Field

from campus.schemas.common import CamelModel
from campus.schemas.classrooms import ClassroomSummary, Enrollment

# Allowed attendance states
AttendanceStatus = Literal["present", "absent", "late"]


class AttendanceMarkIn(CamelModel):
    student_id: str = Field(..., min_length=1)
    status: AttendanceStatus = "absent"
    remarks: Optional[str] = None


class AttendanceSubmit(CamelModel):
    teacher_id: str = Field(..., min_length=1)
    classroom_id: str = Field(..., min_length=1)
    subject_name: str = Field(..., min_length=1)
    date: dt.date
    attendance_data: List[AttendanceMarkIn]
    remarks: Optional[str] = None
    time_slot: Optional[str] = None


class AttendanceUpdate(CamelModel):
    attendance_id: str = Field(..., min_length=1)
    teacher_id: str = Field(..., min_length=1)
    status: AttendanceStatus
    remarks: Optional[str] = None


class AttendanceRecord(CamelModel):
    id: Optional[str] = None
    teacher_id: str
    student_id: str
    class_name: str
    subject_name: str
    date: str
    status: AttendanceStatus = "absent"
    time_slot: Optional[str] = None
    remarks: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class AttendanceMark(CamelModel):
    id: Optional[str] = None
    status: AttendanceStatus
    remarks: Optional[str] = None
    subject_name: Optional[str] = None
    time_slot: Optional[str] = None


class RosterEntry(Enrollment):
    attendance: Optional[AttendanceMark] = None


class RosterResponse(CamelModel):
    success: bool = True
    classroom: ClassroomSummary
    students: List[RosterEntry] = []
    date: Optional[str] = None


class AttendanceSubmitResponse(CamelModel):
    success: bool = True
    message: str
    saved_records: int
    errors: Optional[List[str]] = None


class AttendanceUpdateResponse(CamelModel):
    success: bool = True
    message: str
    record: AttendanceRecord


class AttendanceStats(CamelModel):
    total_classes: int = 0
    classes_today: int = 0
    students_present: int = 0
    late_count: int = 0
    attendance_rate: int = 0


class StatsResponse(CamelModel):
    success: bool = True
    stats: AttendanceStats


class StudentHistory(CamelModel):
    student_id: Optional[str] = None
    student_name: Optional[str] = None
    total_classes: int = 0
    present_count: int = 0
    absent_count: int = 0
    late_count: int = 0
    attendance_percentage: float = 0.0
    records: List[AttendanceRecord] = []


class ClassStats(CamelModel):
    total_records: int = 0
    overall_present: int = 0
    overall_absent: int = 0
    overall_late: int = 0
    average_attendance: float = 0.0


class DateSummary(CamelModel):
    date: str
    class_name: str
    subject_name: str
    total_students: int = 0
    present: int = 0
    absent: int = 0
    late: int = 0


class ClassOverview(CamelModel):
    students: List[StudentHistory] = []
    class_stats: ClassStats
    date_wise_summary: List[DateSummary] = []
    total_records: int = 0


class HistoryResponse(CamelModel):
    success: bool = True
    student_history: Optional[StudentHistory] = None
    class_overview: Optional[ClassOverview] = None


class StudentAttendanceResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    enrollments: List[Enrollment] = []
    summary: Optional[StudentHistory] = None
