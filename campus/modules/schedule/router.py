import copy
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from supabase import Client

from campus.core.dependencies import ensure_same_user, require_student, require_teacher
from campus.db.supabase import get_supabase
from campus.modules.classrooms.queries import (
    find_enrollment,
    get_owned_classroom,
    list_student_enrollments,
    list_teacher_classrooms,
)
from campus.schemas.common import MessageResponse
from campus.schemas.schedule import (
    ScheduleBulkAction,
    ScheduleResponse,
    ScheduleSave,
    ScheduleUpdate,
    StudentScheduleResponse,
    WeeklySchedule,
    dump_weekly_data,
)
from campus.utils.weeks import empty_weekly_data, resolve_week_start

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Schedule"])

# Unique constraint backing the natural-key upsert
SCHEDULE_KEY = "teacher_id,classroom_id,week_start_date"


# -------------------------
# HELPERS
# -------------------------
def _week_param(value: Optional[str]) -> str:
    try:
        return resolve_week_start(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="weekStartDate must be an ISO date (YYYY-MM-DD)")


def find_active_schedule(db: Client, teacher_id: str, classroom_id: str, week_start_date: str) -> Optional[dict]:
    result = (
        db.table("weekly_schedules")
        .select("*")
        .eq("teacher_id", teacher_id)
        .eq("classroom_id", classroom_id)
        .eq("week_start_date", week_start_date)
        .eq("is_active", True)
        .execute()
    )
    return result.data[0] if result.data else None


def empty_schedule(teacher_id: str, classroom_id: str, week_start_date: str) -> WeeklySchedule:
    """In-memory placeholder for a week nobody has saved yet. Never persisted."""
    return WeeklySchedule(
        teacher_id=teacher_id,
        classroom_id=classroom_id,
        week_start_date=week_start_date,
        weekly_data=empty_weekly_data(),
        is_active=True,
    )


def upsert_schedule(db: Client, teacher_id: str, classroom_id: str, week_start_date: str, fields: dict) -> dict:
    """
    Create or overwrite the week's row keyed by (teacher, classroom, week).

    weekly_data is always sent whole, so the stored JSON is replaced rather
    than merged.
    """
    row = {
        "teacher_id": teacher_id,
        "classroom_id": classroom_id,
        "week_start_date": week_start_date,
        "updated_at": datetime.utcnow().isoformat(),
        **fields,
    }
    result = (
        db.table("weekly_schedules")
        .upsert(row, on_conflict=SCHEDULE_KEY)
        .execute()
    )
    return result.data[0]


def copy_week(db: Client, teacher_id: str, classroom_id: str, source_week: str, target_week: str) -> dict:
    source = find_active_schedule(db, teacher_id, classroom_id, source_week)
    if not source:
        raise HTTPException(status_code=404, detail="Source schedule not found")

    return upsert_schedule(
        db, teacher_id, classroom_id, target_week,
        {"weekly_data": copy.deepcopy(source["weekly_data"]), "is_active": True},
    )


def clear_week(db: Client, teacher_id: str, classroom_id: str, target_week: str) -> dict:
    return upsert_schedule(
        db, teacher_id, classroom_id, target_week,
        {"weekly_data": empty_weekly_data()},
    )


# -------------------------
# GET WEEK (TEACHER)
# -------------------------
@router.get("", response_model=ScheduleResponse)
def get_schedule(
    teacher_id: str = Query(..., alias="teacherId", min_length=1),
    classroom_id: Optional[str] = Query(None, alias="classroomId"),
    week_start_date: Optional[str] = Query(None, alias="weekStartDate"),
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    """
    Get one week of a classroom's schedule.

    Without classroomId only the teacher's classrooms are returned so the
    client can ask which one to show. A week with no saved row comes back
    as seven empty days.
    """
    teacher_id = ensure_same_user(user, teacher_id, "Teacher")
    week = _week_param(week_start_date)

    try:
        classrooms = list_teacher_classrooms(db, teacher_id)

        if not classroom_id:
            return ScheduleResponse(
                classrooms=classrooms,
                message="Select a classroom to view schedule",
            )

        row = find_active_schedule(db, teacher_id, classroom_id, week)
        schedule = WeeklySchedule(**row) if row else empty_schedule(teacher_id, classroom_id, week)

        return ScheduleResponse(schedule=schedule, classrooms=classrooms, week_start_date=week)

    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching schedule for teacher %s", teacher_id)
        raise HTTPException(status_code=500, detail="Failed to fetch schedule")


# -------------------------
# SAVE WEEK (UPSERT)
# -------------------------
@router.post("", response_model=ScheduleResponse)
def save_schedule(
    payload: ScheduleSave,
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    """
    Save a week's schedule, creating the row on first save and overwriting
    (and reactivating) it afterwards.
    """
    teacher_id = ensure_same_user(user, payload.teacher_id, "Teacher")

    try:
        get_owned_classroom(db, payload.classroom_id, teacher_id)

        row = upsert_schedule(
            db, teacher_id, payload.classroom_id, payload.week_start_date,
            {"weekly_data": dump_weekly_data(payload.schedule_data), "is_active": True},
        )
        logger.info("Saved schedule %s week %s", row.get("id"), payload.week_start_date)

        return ScheduleResponse(
            message="Schedule saved successfully",
            schedule=WeeklySchedule(**row),
            week_start_date=payload.week_start_date,
        )

    except HTTPException:
        raise
    except Exception:
        logger.exception("Error saving schedule for teacher %s", teacher_id)
        raise HTTPException(status_code=500, detail="Failed to save schedule")


# -------------------------
# UPDATE WEEK BY ID
# -------------------------
@router.put("", response_model=ScheduleResponse)
def update_schedule_field(
    payload: ScheduleUpdate,
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    teacher_id = ensure_same_user(user, payload.teacher_id, "Teacher")

    try:
        # Ownership is part of the write predicate
        result = (
            db.table("weekly_schedules")
            .update({
                "weekly_data": dump_weekly_data(payload.schedule_data),
                "updated_at": datetime.utcnow().isoformat(),
            })
            .eq("id", payload.schedule_id)
            .eq("teacher_id", teacher_id)
            .execute()
        )
        if not result.data:
            raise HTTPException(status_code=404, detail="Schedule not found or unauthorized")

        return ScheduleResponse(
            message="Schedule updated successfully",
            schedule=WeeklySchedule(**result.data[0]),
        )

    except HTTPException:
        raise
    except Exception:
        logger.exception("Error updating schedule %s", payload.schedule_id)
        raise HTTPException(status_code=500, detail="Failed to update schedule")


# -------------------------
# SOFT DELETE
# -------------------------
@router.delete("", response_model=MessageResponse)
def delete_schedule(
    schedule_id: str = Query(..., alias="scheduleId", min_length=1),
    teacher_id: str = Query(..., alias="teacherId", min_length=1),
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    teacher_id = ensure_same_user(user, teacher_id, "Teacher")

    try:
        result = (
            db.table("weekly_schedules")
            .update({"is_active": False, "updated_at": datetime.utcnow().isoformat()})
            .eq("id", schedule_id)
            .eq("teacher_id", teacher_id)
            .execute()
        )
        if not result.data:
            raise HTTPException(status_code=404, detail="Schedule not found or unauthorized")

        return MessageResponse(message="Schedule deleted successfully")

    except HTTPException:
        raise
    except Exception:
        logger.exception("Error deleting schedule %s", schedule_id)
        raise HTTPException(status_code=500, detail="Failed to delete schedule")


# -------------------------
# COPY / CLEAR WEEK
# -------------------------
@router.patch("", response_model=ScheduleResponse)
def bulk_schedule_action(
    payload: ScheduleBulkAction,
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    """
    Bulk week operations.

    - copy_week: overwrite the target week with the source week's sessions
    - clear_week: reset the target week to seven empty days, keeping the row
    """
    teacher_id = ensure_same_user(user, payload.teacher_id, "Teacher")

    if payload.action == "copy_week" and not payload.source_week_start_date:
        raise HTTPException(
            status_code=400,
            detail="Source week, target week, and classroom ID are required for copying",
        )

    try:
        get_owned_classroom(db, payload.classroom_id, teacher_id)

        if payload.action == "copy_week":
            row = copy_week(
                db, teacher_id, payload.classroom_id,
                payload.source_week_start_date, payload.target_week_start_date,
            )
            message = "Schedule copied successfully"
        else:
            row = clear_week(db, teacher_id, payload.classroom_id, payload.target_week_start_date)
            message = "Schedule cleared successfully"

        return ScheduleResponse(
            message=message,
            schedule=WeeklySchedule(**row),
            week_start_date=payload.target_week_start_date,
        )

    except HTTPException:
        raise
    except Exception:
        logger.exception("Error in bulk schedule operation %s", payload.action)
        raise HTTPException(status_code=500, detail="Failed to perform bulk operation")


# -------------------------
# GET WEEK (STUDENT)
# -------------------------
@router.get("/student", response_model=StudentScheduleResponse)
def get_student_schedule(
    student_id: str = Query(..., alias="studentId", min_length=1),
    classroom_id: Optional[str] = Query(None, alias="classroomId"),
    week_start_date: Optional[str] = Query(None, alias="weekStartDate"),
    user: dict = Depends(require_student),
    db: Client = Depends(get_supabase),
):
    """
    Read-only view of a classroom's week for an enrolled student.
    """
    student_id = ensure_same_user(user, student_id, "Student")
    week = _week_param(week_start_date)

    try:
        enrollments = list_student_enrollments(db, student_id)

        if not classroom_id:
            return StudentScheduleResponse(
                enrollments=enrollments,
                message="Select a classroom to view schedule",
            )

        if not find_enrollment(enrollments, classroom_id):
            raise HTTPException(status_code=403, detail="Student not enrolled in this classroom")

        classroom = (
            db.table("classrooms")
            .select("id, teacher_id")
            .eq("id", classroom_id)
            .execute()
        )
        if not classroom.data:
            raise HTTPException(status_code=404, detail="Classroom not found")

        owner_id = classroom.data[0]["teacher_id"]
        row = find_active_schedule(db, owner_id, classroom_id, week)
        schedule = WeeklySchedule(**row) if row else empty_schedule(owner_id, classroom_id, week)

        return StudentScheduleResponse(
            schedule=schedule,
            enrollments=enrollments,
            week_start_date=week,
        )

    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching schedule for student %s", student_id)
        raise HTTPException(status_code=500, detail="Failed to fetch schedule")
