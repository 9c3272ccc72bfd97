"""
Aggregations over attendance rows.

Rows are the dicts returned by the ``attendance`` table. Whether a "late"
mark counts as attended is decided by the caller (see
``ATTENDANCE_LATE_COUNTS_AS_PRESENT``); "present" always does.
"""

import math
from datetime import date
from typing import Dict, Iterable, List, Optional

from campus.schemas.attendance import (
    AttendanceRecord,
    AttendanceStats,
    ClassOverview,
    ClassStats,
    DateSummary,
    StudentHistory,
)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _attended(counts: Dict[str, int], late_counts_as_present: bool) -> int:
    attended = counts["present"]
    if late_counts_as_present:
        attended += counts["late"]
    return attended


def count_statuses(rows: Iterable[dict]) -> Dict[str, int]:
    counts = {"present": 0, "absent": 0, "late": 0}
    for row in rows:
        status = row.get("status")
        if status in counts:
            counts[status] += 1
    return counts


def teacher_stats(rows: List[dict], today: date, late_counts_as_present: bool = False) -> AttendanceStats:
    """
    Dashboard numbers for one teacher across every class.

    A class session is a distinct (class, subject, date); the rate is
    attended marks over all marks, as a whole percent. No marks means a
    rate of 0.
    """
    sessions = {(r["class_name"], r["subject_name"], r["date"]) for r in rows}
    today_iso = today.isoformat()
    counts = count_statuses(rows)

    rate = 0
    if rows:
        rate = round_half_up(_attended(counts, late_counts_as_present) / len(rows) * 100)

    return AttendanceStats(
        total_classes=len(sessions),
        classes_today=sum(1 for s in sessions if s[2] == today_iso),
        students_present=counts["present"],
        late_count=counts["late"],
        attendance_rate=rate,
    )


def student_history(
    rows: List[dict],
    late_counts_as_present: bool = False,
    student_id: Optional[str] = None,
    student_name: Optional[str] = None,
) -> StudentHistory:
    counts = count_statuses(rows)
    total = len(rows)
    percentage = 0.0
    if total:
        percentage = round(_attended(counts, late_counts_as_present) / total * 100, 2)

    return StudentHistory(
        student_id=student_id,
        student_name=student_name,
        total_classes=total,
        present_count=counts["present"],
        absent_count=counts["absent"],
        late_count=counts["late"],
        attendance_percentage=percentage,
        records=[AttendanceRecord(**row) for row in rows],
    )


def class_overview(
    rows: List[dict],
    student_names: Dict[str, str],
    late_counts_as_present: bool = False,
) -> ClassOverview:
    """
    Per-student stats, overall stats and a newest-first per-session summary.

    Late marks count toward the percentages only when
    ``late_counts_as_present`` is set, the same rule as ``teacher_stats``.
    """
    by_student: Dict[str, List[dict]] = {}
    sessions: Dict[tuple, DateSummary] = {}

    for row in rows:
        by_student.setdefault(row["student_id"], []).append(row)

        key = (row["date"], row["class_name"], row["subject_name"])
        summary = sessions.get(key)
        if summary is None:
            summary = DateSummary(
                date=row["date"],
                class_name=row["class_name"],
                subject_name=row["subject_name"],
            )
            sessions[key] = summary
        summary.total_students += 1
        if row.get("status") in ("present", "absent", "late"):
            setattr(summary, row["status"], getattr(summary, row["status"]) + 1)

    students = [
        student_history(student_rows, late_counts_as_present, student_id, student_names.get(student_id))
        for student_id, student_rows in by_student.items()
    ]
    students.sort(key=lambda s: s.attendance_percentage, reverse=True)

    counts = count_statuses(rows)
    average = 0.0
    if rows:
        average = round(_attended(counts, late_counts_as_present) / len(rows) * 100, 2)

    return ClassOverview(
        students=students,
        class_stats=ClassStats(
            total_records=len(rows),
            overall_present=counts["present"],
            overall_absent=counts["absent"],
            overall_late=counts["late"],
            average_attendance=average,
        ),
        date_wise_summary=sorted(sessions.values(), key=lambda s: s.date, reverse=True),
        total_records=len(rows),
    )
