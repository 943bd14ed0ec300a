from __future__ import annotations

import pytest

from src.attendance_tracker.attendance_tracker.attendance.model import NewAttendanceRecord
from src.attendance_tracker.attendance_tracker.attendance.service import AttendanceQueryService, build_filters
from src.attendance_tracker.attendance_tracker.common.cache import TTLCache
from src.attendance_tracker.attendance_tracker.core.exceptions import ValidationError
from src.attendance_tracker.attendance_tracker.spreadsheets.model import CourseInfo, StudentRow


def _seed(repos, user_id, rows):
    """rows: (registration_no, name, course_code, attended, conducted)"""
    repos.courses.insert_ignore(user_id, [CourseInfo(code, f"{code} name") for _, _, code, _, _ in rows])
    repos.students.insert_ignore(user_id, [StudentRow("", reg, name) for reg, name, _, _, _ in rows])
    records = []
    for reg, _, code, attended, conducted in rows:
        student = repos.students.find_by_registration_nos(user_id, [reg])[0]
        course = repos.courses.get_by_code(user_id, code)
        records.append(
            NewAttendanceRecord(
                student_id=student.student_id,
                course_id=course.course_id,
                attended_periods=attended,
                conducted_periods=conducted,
                attendance_percentage=round(attended / conducted * 100, 1),
            )
        )
    repos.attendance.insert_ignore(user_id, records)


@pytest.fixture
def service(repos):
    return AttendanceQueryService(repos.attendance, repos.courses, repos.students, cache=TTLCache())


@pytest.fixture
def two_students(repos):
    _seed(repos, "u1", [("RA1", "Asha", "21CS301", 30, 40), ("RA2", "Bala", "21CS301", 24, 40)])


def test_critical_count_with_threshold(service, two_students):
    stats = service.filtered_stats("u1", build_filters(threshold=65))

    assert stats["critical_attendance_count"] == 1
    assert stats["low_attendance_count"] == 1
    assert stats["total_students"] == 2
    assert stats["total_courses_in_system"] == 1


def test_dashboard_stats(service, two_students):
    assert service.dashboard_stats("u1") == {
        "total_students": 2,
        "total_courses": 1,
        "low_attendance_count": 1,
        "critical_attendance_count": 1,
    }


def test_empty_user_gets_zeros(service, two_students):
    assert service.dashboard_stats("nobody")["total_students"] == 0
    assert service.list_records("nobody", build_filters())["records"] == []


def test_stats_recomputed_after_clear_all(service, repos, two_students):
    assert service.dashboard_stats("u1")["total_students"] == 2
    assert service.list_courses("u1") == [{"code": "21CS301", "name": "21CS301 name"}]

    assert service.clear_all_data("u1") is True

    assert service.dashboard_stats("u1")["total_students"] == 0
    assert service.list_courses("u1") == []
    assert repos.students.count_for_user("u1") == 0


def test_clear_all_leaves_other_users(service, repos, two_students):
    _seed(repos, "u2", [("RA1", "Asha", "21CS301", 40, 40)])

    service.clear_all_data("u1")

    assert service.dashboard_stats("u2")["total_students"] == 1


def test_clear_all_reports_failure(service, repos, two_students, monkeypatch):
    def boom(user_id):
        raise RuntimeError("db down")

    monkeypatch.setattr(repos.students, "delete_all_for_user", boom)

    assert service.clear_all_data("u1") is False


def test_single_student_search(service, repos):
    _seed(
        repos,
        "u1",
        [
            ("RA1", "Asha", "21CS301", 30, 40),
            ("RA1", "Asha", "21MA201", 35, 40),
            ("RA2", "Bala", "21CS301", 24, 40),
        ],
    )

    stats = service.filtered_stats("u1", build_filters(search="asha"))

    assert stats["is_single_student"] is True
    assert stats["student_details"] == {"name": "Asha", "registration_no": "RA1"}
    assert stats["student_course_info"] == "2 courses"

    by_course = service.filtered_stats("u1", build_filters(search="RA1", course="21MA201"))
    assert by_course["student_course_info"] == "21MA201"
    assert by_course["course_details"] == {"code": "21MA201", "name": "21MA201 name"}


def test_search_matching_many_students_is_not_single(service, two_students):
    stats = service.filtered_stats("u1", build_filters(search="RA"))

    assert stats["is_single_student"] is False
    assert stats["student_details"] is None


def test_listing_applies_threshold(service, two_students):
    below = service.list_records("u1", build_filters(threshold=75))
    everyone = service.list_records("u1", build_filters(threshold=100))

    assert [r["registration_no"] for r in below["records"]] == ["RA2"]
    assert [r["attendance_percentage"] for r in everyone["records"]] == [60.0, 75.0]


def test_listing_excludes_courses(service, repos):
    _seed(repos, "u1", [("RA1", "Asha", "21CS301", 30, 40), ("RA1", "Asha", "21MA201", 20, 40)])

    page = service.list_records("u1", build_filters(threshold=100, exclude_courses=("21CS301",)))

    assert [r["course_code"] for r in page["records"]] == ["21MA201"]


def test_pagination(service, two_students):
    page = service.list_records("u1", build_filters(threshold=100), page=2, per_page=1)

    assert page["total"] == 2
    assert page["total_pages"] == 2
    assert page["page"] == 2
    assert [r["registration_no"] for r in page["records"]] == ["RA1"]


def test_invalid_paging(service):
    with pytest.raises(ValidationError):
        service.list_records("u1", build_filters(), page=0)


def test_delete_record_invalidates_stats(service, repos, two_students):
    assert service.dashboard_stats("u1")["total_students"] == 2
    record = repos.attendance.records_for("u1")[0]

    assert service.delete_record("u1", record.record_id) is True
    assert service.delete_record("u2", record.record_id) is False

    assert service.dashboard_stats("u1")["total_students"] == 1


def test_cleanup_insufficient_records(service, repos):
    _seed(repos, "u1", [("RA1", "Asha", "21CS301", 2, 3), ("RA2", "Bala", "21CS301", 30, 40)])

    assert service.cleanup_insufficient_records("u1", 5) == 1
    assert service.dashboard_stats("u1")["total_students"] == 1


def test_export_pages_through_everything(service, repos):
    rows = [(f"RA{i:04d}", f"S{i}", "21CS301", 30, 40) for i in range(1005)]
    _seed(repos, "u1", rows)

    records = service.records_for_export("u1", build_filters(threshold=100))

    assert len(records) == 1005
