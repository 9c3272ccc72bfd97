from typing import List, Optional

from fastapi import HTTPException
from supabase import Client

CLASSROOM_SUMMARY_COLUMNS = "id, title, subject, invite_code, students_count"


def get_owned_classroom(db: Client, classroom_id: str, teacher_id: str) -> dict:
    """
    Fetch a classroom only if teacher_id owns it.

    Non-owners get the same 404 as a missing classroom so existence is not
    revealed.
    """
    result = (
        db.table("classrooms")
        .select("*")
        .eq("id", classroom_id)
        .eq("teacher_id", teacher_id)
        .execute()
    )
    if not result.data:
        raise HTTPException(status_code=404, detail="Classroom not found or unauthorized")
    return result.data[0]


def list_teacher_classrooms(db: Client, teacher_id: str) -> List[dict]:
    result = (
        db.table("classrooms")
        .select(CLASSROOM_SUMMARY_COLUMNS)
        .eq("teacher_id", teacher_id)
        .eq("status", "active")
        .order("title")
        .execute()
    )
    return result.data


def list_active_enrollments(db: Client, classroom_id: str) -> List[dict]:
    result = (
        db.table("classroom_enrollments")
        .select("*")
        .eq("classroom_id", classroom_id)
        .eq("status", "active")
        .order("student_name")
        .execute()
    )
    return result.data


def list_student_enrollments(db: Client, student_id: str) -> List[dict]:
    result = (
        db.table("classroom_enrollments")
        .select("*")
        .eq("student_id", student_id)
        .eq("status", "active")
        .order("enrolled_at", desc=True)
        .execute()
    )
    return result.data


def find_enrollment(enrollments: List[dict], classroom_id: str) -> Optional[dict]:
    for enrollment in enrollments:
        if enrollment["classroom_id"] == classroom_id:
            return enrollment
    return None
