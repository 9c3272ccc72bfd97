import datetime as dt
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from supabase import Client

from campus.core.config import settings
from campus.core.dependencies import ensure_same_user, require_student, require_teacher
from campus.db.supabase import get_supabase
from campus.modules.attendance import stats
from campus.modules.classrooms.queries import (
    find_enrollment,
    get_owned_classroom,
    list_active_enrollments,
    list_student_enrollments,
)
from campus.schemas.attendance import (
    AttendanceRecord,
    AttendanceSubmit,
    AttendanceSubmitResponse,
    AttendanceUpdate,
    AttendanceUpdateResponse,
    HistoryResponse,
    RosterEntry,
    RosterResponse,
    StatsResponse,
    StudentAttendanceResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Attendance"])

# Unique constraint backing the per-student upsert
ATTENDANCE_KEY = "student_id,teacher_id,class_name,date,subject_name"


def _student_names(db: Client, student_ids: List[str]) -> Dict[str, str]:
    if not student_ids:
        return {}
    result = (
        db.table("profiles")
        .select("id, full_name")
        .in_("id", student_ids)
        .execute()
    )
    return {row["id"]: row.get("full_name") for row in result.data}


def get_attendance_stats(db: Client, teacher_id: str) -> StatsResponse:
    result = (
        db.table("attendance")
        .select("class_name, subject_name, date, status")
        .eq("teacher_id", teacher_id)
        .execute()
    )
    return StatsResponse(
        stats=stats.teacher_stats(
            result.data,
            today=dt.date.today(),
            late_counts_as_present=settings.ATTENDANCE_LATE_COUNTS_AS_PRESENT,
        )
    )


def get_roster_with_attendance(
    db: Client,
    teacher_id: str,
    classroom_id: str,
    date: Optional[dt.date],
    subject_name: Optional[str] = None,
) -> RosterResponse:
    """
    Active roster of a classroom, each student joined with their mark for
    the date. Students without a mark get attendance=None; nothing is
    written for them.
    """
    classroom = get_owned_classroom(db, classroom_id, teacher_id)
    enrollments = list_active_enrollments(db, classroom_id)

    if date is None:
        return RosterResponse(classroom=classroom, students=enrollments)

    query = (
        db.table("attendance")
        .select("*")
        .eq("teacher_id", teacher_id)
        .eq("class_name", classroom["title"])
        .eq("date", date.isoformat())
    )
    if subject_name:
        query = query.eq("subject_name", subject_name)
    marks = {row["student_id"]: row for row in query.execute().data}

    students = [
        RosterEntry(**enrollment, attendance=marks.get(enrollment["student_id"]))
        for enrollment in enrollments
    ]
    return RosterResponse(classroom=classroom, students=students, date=date.isoformat())


# -------------------------
# ROSTER FOR A DATE / TEACHER STATS
# -------------------------
@router.get("")
def get_attendance(
    teacher_id: str = Query(..., alias="teacherId", min_length=1),
    classroom_id: Optional[str] = Query(None, alias="classroomId"),
    date: Optional[dt.date] = Query(None),
    subject_name: Optional[str] = Query(None, alias="subjectName"),
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    """
    With classroomId: the roster, annotated with marks when a date is given.
    Without it: dashboard statistics across all the teacher's classes.
    """
    teacher_id = ensure_same_user(user, teacher_id, "Teacher")

    try:
        if not classroom_id:
            return get_attendance_stats(db, teacher_id)
        return get_roster_with_attendance(db, teacher_id, classroom_id, date, subject_name)

    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching attendance data for teacher %s", teacher_id)
        raise HTTPException(status_code=500, detail="Failed to fetch attendance data")


# -------------------------
# TAKE ATTENDANCE
# -------------------------
@router.post("", response_model=AttendanceSubmitResponse)
def mark_attendance(
    payload: AttendanceSubmit,
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    """
    Upsert one mark per student for (teacher, class, subject, date).

    Each student is written independently: one failing row does not stop
    the rest, and savedRecords reports how many went through.
    """
    teacher_id = ensure_same_user(user, payload.teacher_id, "Teacher")

    try:
        classroom = get_owned_classroom(db, payload.classroom_id, teacher_id)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error verifying classroom %s", payload.classroom_id)
        raise HTTPException(status_code=500, detail="Failed to save attendance")

    day = payload.date.isoformat()
    saved = 0
    errors = []

    for mark in payload.attendance_data:
        row = {
            "teacher_id": teacher_id,
            "student_id": mark.student_id,
            "class_name": classroom["title"],
            "subject_name": payload.subject_name,
            "date": day,
            "status": mark.status,
            "remarks": mark.remarks if mark.remarks is not None else payload.remarks,
            "updated_at": dt.datetime.utcnow().isoformat(),
        }
        if payload.time_slot:
            row["time_slot"] = payload.time_slot

        try:
            db.table("attendance").upsert(row, on_conflict=ATTENDANCE_KEY).execute()
            saved += 1
        except Exception as e:
            logger.error("Error saving attendance for student %s: %s", mark.student_id, e)
            errors.append(f"Failed to save attendance for student {mark.student_id}")

    logger.info(
        "Attendance for %s %s on %s: %d saved, %d failed",
        classroom["title"], payload.subject_name, day, saved, len(errors),
    )

    return AttendanceSubmitResponse(
        message=f"Attendance saved for {saved} students",
        saved_records=saved,
        errors=errors or None,
    )


# -------------------------
# CORRECT ONE MARK
# -------------------------
@router.put("", response_model=AttendanceUpdateResponse)
def update_attendance(
    payload: AttendanceUpdate,
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    teacher_id = ensure_same_user(user, payload.teacher_id, "Teacher")

    try:
        result = (
            db.table("attendance")
            .update({
                "status": payload.status,
                "remarks": payload.remarks,
                "updated_at": dt.datetime.utcnow().isoformat(),
            })
            .eq("id", payload.attendance_id)
            .eq("teacher_id", teacher_id)
            .execute()
        )
        if not result.data:
            raise HTTPException(status_code=404, detail="Attendance record not found")

        return AttendanceUpdateResponse(
            message="Attendance updated successfully",
            record=AttendanceRecord(**result.data[0]),
        )

    except HTTPException:
        raise
    except Exception:
        logger.exception("Error updating attendance %s", payload.attendance_id)
        raise HTTPException(status_code=500, detail="Failed to update attendance")


# -------------------------
# HISTORY / ANALYTICS
# -------------------------
@router.get("/history", response_model=HistoryResponse)
def get_attendance_history(
    teacher_id: str = Query(..., alias="teacherId", min_length=1),
    student_id: Optional[str] = Query(None, alias="studentId"),
    class_name: Optional[str] = Query(None, alias="className"),
    subject_name: Optional[str] = Query(None, alias="subjectName"),
    start_date: Optional[dt.date] = Query(None, alias="startDate"),
    end_date: Optional[dt.date] = Query(None, alias="endDate"),
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    """
    Attendance history for the teacher's marks.

    With studentId returns that student's totals and records; otherwise a
    class overview with per-student and per-session breakdowns.
    """
    teacher_id = ensure_same_user(user, teacher_id, "Teacher")
    late_counts = settings.ATTENDANCE_LATE_COUNTS_AS_PRESENT

    try:
        query = db.table("attendance").select("*").eq("teacher_id", teacher_id)
        if student_id:
            query = query.eq("student_id", student_id)
        if class_name:
            query = query.eq("class_name", class_name)
        if subject_name:
            query = query.eq("subject_name", subject_name)
        if start_date:
            query = query.gte("date", start_date.isoformat())
        if end_date:
            query = query.lte("date", end_date.isoformat())

        rows = query.order("date", desc=True).execute().data

        if student_id:
            names = _student_names(db, [student_id])
            return HistoryResponse(
                student_history=stats.student_history(
                    rows, late_counts, student_id, names.get(student_id)
                )
            )

        names = _student_names(db, sorted({row["student_id"] for row in rows}))
        return HistoryResponse(class_overview=stats.class_overview(rows, names, late_counts))

    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching attendance history for teacher %s", teacher_id)
        raise HTTPException(status_code=500, detail="Failed to fetch attendance history")


# -------------------------
# STUDENT'S OWN ATTENDANCE
# -------------------------
@router.get("/student", response_model=StudentAttendanceResponse)
def get_student_attendance(
    student_id: str = Query(..., alias="studentId", min_length=1),
    classroom_id: Optional[str] = Query(None, alias="classroomId"),
    start_date: Optional[dt.date] = Query(None, alias="startDate"),
    end_date: Optional[dt.date] = Query(None, alias="endDate"),
    user: dict = Depends(require_student),
    db: Client = Depends(get_supabase),
):
    student_id = ensure_same_user(user, student_id, "Student")

    try:
        enrollments = list_student_enrollments(db, student_id)

        if not classroom_id:
            return StudentAttendanceResponse(
                enrollments=enrollments,
                message="Select a classroom to view attendance",
            )

        if not find_enrollment(enrollments, classroom_id):
            raise HTTPException(status_code=403, detail="Student not enrolled in this classroom")

        classroom = (
            db.table("classrooms")
            .select("id, title, teacher_id")
            .eq("id", classroom_id)
            .execute()
        )
        if not classroom.data:
            raise HTTPException(status_code=404, detail="Classroom not found")
        classroom = classroom.data[0]

        query = (
            db.table("attendance")
            .select("*")
            .eq("student_id", student_id)
            .eq("teacher_id", classroom["teacher_id"])
            .eq("class_name", classroom["title"])
        )
        if start_date:
            query = query.gte("date", start_date.isoformat())
        if end_date:
            query = query.lte("date", end_date.isoformat())

        rows = query.order("date", desc=True).execute().data

        return StudentAttendanceResponse(
            enrollments=enrollments,
            summary=stats.student_history(
                rows, settings.ATTENDANCE_LATE_COUNTS_AS_PRESENT, student_id, user.get("full_name")
            ),
        )

    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching attendance for student %s", student_id)
        raise HTTPException(status_code=500, detail="Failed to fetch attendance")
