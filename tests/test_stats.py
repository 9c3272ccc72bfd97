from datetime import date

from campus.modules.attendance.stats import class_overview, round_half_up, student_history, teacher_stats


def mark(student_id, status, day="2024-03-04", class_name="Physics", subject_name="Optics"):
    return {
        "id": f"{student_id}-{day}-{subject_name}",
        "teacher_id": "T1",
        "student_id": student_id,
        "class_name": class_name,
        "subject_name": subject_name,
        "date": day,
        "status": status,
    }


def test_no_marks_means_zero_rate():
    stats = teacher_stats([], today=date(2024, 3, 4))

    assert stats.attendance_rate == 0
    assert stats.total_classes == 0


def test_rate_rounds_half_up():
    rows = [mark("S1", "present"), mark("S2", "absent"), mark("S3", "absent"),
            mark("S4", "absent"), mark("S5", "absent"), mark("S6", "absent"),
            mark("S7", "absent"), mark("S8", "absent")]

    # 1/8 = 12.5%
    assert teacher_stats(rows, today=date(2024, 3, 4)).attendance_rate == 13
    assert round_half_up(2.5) == 3


def test_sessions_are_distinct_class_subject_date():
    rows = [
        mark("S1", "present"),
        mark("S2", "present"),
        mark("S1", "present", subject_name="Mechanics"),
        mark("S1", "present", day="2024-03-05"),
    ]

    stats = teacher_stats(rows, today=date(2024, 3, 4))

    assert stats.total_classes == 3
    assert stats.classes_today == 2


def test_late_counting_is_configurable():
    rows = [mark("S1", "present"), mark("S2", "late")]

    assert teacher_stats(rows, today=date(2024, 3, 4)).attendance_rate == 50
    assert teacher_stats(rows, today=date(2024, 3, 4), late_counts_as_present=True).attendance_rate == 100
    assert student_history(rows, late_counts_as_present=True).attendance_percentage == 100.0


def test_class_overview_follows_late_setting():
    rows = [mark("S1", "late"), mark("S2", "present")]

    strict = class_overview(rows, {})
    lenient = class_overview(rows, {}, late_counts_as_present=True)

    assert strict.class_stats.average_attendance == 50.0
    assert lenient.class_stats.average_attendance == 100.0
    assert [s.attendance_percentage for s in lenient.students] == [100.0, 100.0]


def test_class_overview_orders_students_by_percentage():
    rows = [
        mark("S1", "absent"),
        mark("S2", "present"),
        mark("S1", "present", day="2024-03-05"),
    ]

    overview = class_overview(rows, {"S1": "Grace", "S2": "Edsger"})

    assert [s.student_id for s in overview.students] == ["S2", "S1"]
    assert overview.students[1].student_name == "Grace"
    assert [d.date for d in overview.date_wise_summary] == ["2024-03-05", "2024-03-04"]
    assert overview.class_stats.overall_present == 2
