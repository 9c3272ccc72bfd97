import logging
import secrets
import string
import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from supabase import Client

from campus.core.config import settings
from campus.core.dependencies import ensure_same_user, require_student, require_teacher
from campus.core.security import get_current_user
from campus.db.supabase import get_supabase
from campus.modules.classrooms.queries import get_owned_classroom, list_active_enrollments
from campus.schemas.classrooms import (
    ClassroomCreate,
    ClassroomJoin,
    ClassroomListResponse,
    ClassroomResponse,
    JoinResponse,
    RosterListResponse,
)
from campus.schemas.common import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Classrooms"])

INVITE_ALPHABET = string.ascii_uppercase + string.digits
AVAILABLE_LIMIT = 20


# -------------------------
# HELPER: CODES
# -------------------------
def generate_invite_code(length: Optional[int] = None) -> str:
    length = length or settings.INVITE_CODE_LENGTH
    return "".join(secrets.choice(INVITE_ALPHABET) for _ in range(length))


def generate_classroom_code(subject: str) -> str:
    """Subject initials (up to three) followed by a number from 100 to 999."""
    prefix = "".join(word[0] for word in subject.split()).upper()[:3]
    return f"{prefix}{secrets.randbelow(900) + 100}"


def _unused(db: Client, column: str, value: str) -> bool:
    result = db.table("classrooms").select("id").eq(column, value).execute()
    return not result.data


def _unique_codes(db: Client, subject: str) -> tuple:
    classroom_code = generate_classroom_code(subject)
    while not _unused(db, "classroom_code", classroom_code):
        classroom_code = generate_classroom_code(subject)

    invite_code = generate_invite_code()
    while not _unused(db, "invite_code", invite_code):
        invite_code = generate_invite_code()

    return classroom_code, invite_code


def _set_students_count(db: Client, classroom_id: str, count: int) -> None:
    db.table("classrooms").update({
        "students_count": max(count, 0),
        "updated_at": datetime.utcnow().isoformat(),
    }).eq("id", classroom_id).execute()


# -------------------------
# CREATE CLASSROOM (TEACHER)
# -------------------------
@router.post("", response_model=ClassroomResponse)
def create_classroom(
    payload: ClassroomCreate,
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    teacher_id = ensure_same_user(user, payload.teacher_id, "Teacher")

    try:
        classroom_code, invite_code = _unique_codes(db, payload.subject)
        now = datetime.utcnow().isoformat()

        classroom = {
            "id": str(uuid.uuid4()),
            "classroom_code": classroom_code,
            "invite_code": invite_code,
            "title": payload.title,
            "subject": payload.subject,
            "description": payload.description,
            "teacher_id": teacher_id,
            "teacher_name": user.get("full_name"),
            "teacher_email": user.get("email"),
            "max_students": payload.max_students,
            "students_count": 0,
            "schedule": [slot.model_dump(by_alias=True) for slot in payload.schedule],
            "status": "active",
            "is_public": payload.is_public,
            "tags": payload.tags,
            "academic_year": payload.academic_year,
            "semester": payload.semester,
            "created_at": now,
            "updated_at": now,
        }

        result = db.table("classrooms").insert(classroom).execute()
        logger.info("Created classroom %s with invite code %s", classroom_code, invite_code)

        return ClassroomResponse(message="Classroom created successfully", classroom=result.data[0])

    except HTTPException:
        raise
    except Exception:
        logger.exception("Error creating classroom for teacher %s", teacher_id)
        raise HTTPException(status_code=500, detail="Failed to create classroom")


# -------------------------
# LIST CLASSROOMS
# -------------------------
@router.get("", response_model=ClassroomListResponse)
def get_classrooms(
    teacher_id: Optional[str] = Query(None, alias="teacherId"),
    student_id: Optional[str] = Query(None, alias="studentId"),
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Teachers get their own classrooms, newest first. Students get the
    classrooms they are enrolled in plus public ones they could join.
    """
    if not teacher_id and not student_id:
        raise HTTPException(status_code=400, detail="Teacher ID or Student ID is required")

    try:
        if teacher_id:
            teacher_id = ensure_same_user(user, teacher_id, "Teacher")
            result = (
                db.table("classrooms")
                .select("*")
                .eq("teacher_id", teacher_id)
                .order("created_at", desc=True)
                .execute()
            )
            return ClassroomListResponse(classrooms=result.data)

        student_id = ensure_same_user(user, student_id, "Student")
        enrollments = (
            db.table("classroom_enrollments")
            .select("classroom_id")
            .eq("student_id", student_id)
            .eq("status", "active")
            .execute()
        )
        enrolled_ids = [row["classroom_id"] for row in enrollments.data]

        enrolled = []
        if enrolled_ids:
            enrolled = (
                db.table("classrooms")
                .select("*")
                .in_("id", enrolled_ids)
                .execute()
            ).data

        public = (
            db.table("classrooms")
            .select("*")
            .eq("status", "active")
            .eq("is_public", True)
            .limit(AVAILABLE_LIMIT + len(enrolled_ids))
            .execute()
        ).data
        available = [c for c in public if c["id"] not in enrolled_ids][:AVAILABLE_LIMIT]

        return ClassroomListResponse(
            classrooms=enrolled,
            enrolled_classrooms=enrolled,
            available_classrooms=available,
        )

    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching classrooms")
        raise HTTPException(status_code=500, detail="Failed to fetch classrooms")


# -------------------------
# JOIN BY INVITE CODE (STUDENT)
# -------------------------
@router.post("/join", response_model=JoinResponse)
def join_classroom(
    payload: ClassroomJoin,
    user: dict = Depends(require_student),
    db: Client = Depends(get_supabase),
):
    """
    Enroll the calling student using a classroom's invite code.

    Rejected when the code is unknown, the student is already enrolled or
    the classroom has reached maxStudents.
    """
    student_id = ensure_same_user(user, payload.student_id, "Student")

    try:
        classroom = (
            db.table("classrooms")
            .select("*")
            .eq("invite_code", payload.invite_code)
            .eq("status", "active")
            .execute()
        )
        if not classroom.data:
            raise HTTPException(status_code=404, detail="Invalid classroom code or classroom not found")
        classroom = classroom.data[0]

        existing = (
            db.table("classroom_enrollments")
            .select("id")
            .eq("classroom_id", classroom["id"])
            .eq("student_id", student_id)
            .eq("status", "active")
            .execute()
        )
        if existing.data:
            raise HTTPException(status_code=400, detail="You are already enrolled in this classroom")

        if classroom.get("students_count", 0) >= classroom["max_students"]:
            raise HTTPException(status_code=400, detail="Classroom is full")

        profile = (
            db.table("profiles")
            .select("full_name, email, roll_number")
            .eq("id", student_id)
            .execute()
        ).data
        profile = profile[0] if profile else {}

        # A previously removed enrollment is reactivated in place
        db.table("classroom_enrollments").upsert({
            "classroom_id": classroom["id"],
            "student_id": student_id,
            "student_name": profile.get("full_name") or user.get("full_name") or "",
            "student_email": profile.get("email") or user.get("email"),
            "student_roll_number": profile.get("roll_number"),
            "enrolled_at": datetime.utcnow().isoformat(),
            "status": "active",
            "enrolled_by": "student",
        }, on_conflict="classroom_id,student_id").execute()

        _set_students_count(db, classroom["id"], classroom.get("students_count", 0) + 1)
        logger.info("Student %s joined classroom %s", student_id, classroom["id"])

        return JoinResponse(message="Successfully joined classroom", classroom=classroom)

    except HTTPException:
        raise
    except Exception:
        logger.exception("Error joining classroom")
        raise HTTPException(status_code=500, detail="Failed to join classroom")


# -------------------------
# ROSTER (OWNER TEACHER)
# -------------------------
@router.get("/{classroom_id}/students", response_model=RosterListResponse)
def get_classroom_students(
    classroom_id: str,
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    try:
        get_owned_classroom(db, classroom_id, user["id"])
        return RosterListResponse(students=list_active_enrollments(db, classroom_id))
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching students for classroom %s", classroom_id)
        raise HTTPException(status_code=500, detail="Failed to fetch students")


@router.delete("/{classroom_id}/students/{student_id}", response_model=MessageResponse)
def remove_classroom_student(
    classroom_id: str,
    student_id: str,
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    try:
        classroom = get_owned_classroom(db, classroom_id, user["id"])

        result = (
            db.table("classroom_enrollments")
            .update({"status": "removed"})
            .eq("classroom_id", classroom_id)
            .eq("student_id", student_id)
            .eq("status", "active")
            .execute()
        )
        if not result.data:
            raise HTTPException(status_code=404, detail="Student not found in this classroom")

        _set_students_count(db, classroom_id, classroom.get("students_count", 0) - 1)

        return MessageResponse(message="Student removed from classroom")

    except HTTPException:
        raise
    except Exception:
        logger.exception("Error removing student %s from classroom %s", student_id, classroom_id)
        raise HTTPException(status_code=500, detail="Failed to remove student")
