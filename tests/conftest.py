from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from typing import Optional, Sequence

import openpyxl
import pytest

from src.attendance_tracker.attendance_tracker.attendance.model import (
    AttendanceCounts,
    AttendanceFilters,
    AttendanceListRow,
    NewAttendanceRecord,
    StudentSummary,
)
from src.attendance_tracker.attendance_tracker.courses.model import Course
from src.attendance_tracker.attendance_tracker.spreadsheets.model import CourseInfo, StudentRow
from src.attendance_tracker.attendance_tracker.students.model import Student


class InMemoryCourses:
    def __init__(self):
        self._by_key: dict[tuple[str, str], Course] = {}
        self._by_id: dict[int, Course] = {}
        self._id = 0

    def by_id(self, course_id: int) -> Optional[Course]:
        return self._by_id.get(course_id)

    def find_by_codes(self, user_id: str, codes: Sequence[str]):
        return [self._by_key[(user_id, code)] for code in dict.fromkeys(codes) if (user_id, code) in self._by_key]

    def insert_ignore(self, user_id: str, courses: Sequence[CourseInfo]) -> int:
        inserted = 0
        for c in courses:
            if (user_id, c.code) in self._by_key:
                continue
            self._id += 1
            self._by_key[(user_id, c.code)] = Course(
                course_id=self._id, user_id=user_id, course_code=c.code, course_name=c.name
            )
            self._by_id[self._id] = self._by_key[(user_id, c.code)]
            inserted += 1
        return inserted

    def get_by_code(self, user_id: str, code: str) -> Optional[Course]:
        return self._by_key.get((user_id, code))

    def list_for_user(self, user_id: str):
        return sorted((c for c in self._by_key.values() if c.user_id == user_id), key=lambda c: c.course_code)

    def count_for_user(self, user_id: str) -> int:
        return len(self.list_for_user(user_id))

    def delete_all_for_user(self, user_id: str) -> int:
        keys = [k for k in self._by_key if k[0] == user_id]
        for k in keys:
            del self._by_id[self._by_key.pop(k).course_id]
        return len(keys)


class InMemoryStudents:
    def __init__(self):
        self._by_key: dict[tuple[str, str], Student] = {}
        self._by_id: dict[int, Student] = {}
        self._id = 0

    def by_id(self, student_id: int) -> Optional[Student]:
        return self._by_id.get(student_id)

    def find_by_registration_nos(self, user_id: str, registration_nos: Sequence[str]):
        return [
            self._by_key[(user_id, reg)]
            for reg in dict.fromkeys(registration_nos)
            if (user_id, reg) in self._by_key
        ]

    def insert_ignore(self, user_id: str, students: Sequence[StudentRow]) -> int:
        inserted = 0
        for s in students:
            if (user_id, s.registration_no) in self._by_key:
                continue
            self._id += 1
            self._by_key[(user_id, s.registration_no)] = Student(
                student_id=self._id,
                user_id=user_id,
                registration_no=s.registration_no,
                name=s.name,
                admission_no=s.admission_no or None,
            )
            self._by_id[self._id] = self._by_key[(user_id, s.registration_no)]
            inserted += 1
        return inserted

    def count_for_user(self, user_id: str) -> int:
        return sum(1 for k in self._by_key if k[0] == user_id)

    def delete_all_for_user(self, user_id: str) -> int:
        keys = [k for k in self._by_key if k[0] == user_id]
        for k in keys:
            del self._by_id[self._by_key.pop(k).student_id]
        return len(keys)


@dataclass(frozen=True)
class StoredRecord:
    record_id: int
    user_id: str
    student_id: int
    course_id: int
    attended_periods: int
    conducted_periods: int
    attendance_percentage: float


class InMemoryAttendance:
    """Attendance store that evaluates filters in Python over the two other fakes."""

    def __init__(self, students: InMemoryStudents, courses: InMemoryCourses):
        self._students = students
        self._courses = courses
        self._records: dict[int, StoredRecord] = {}
        self._id = 0
        self.pair_lookups: list[int] = []
        self.insert_errors: list[Exception] = []

    def records_for(self, user_id: str) -> list[StoredRecord]:
        return [r for r in self._records.values() if r.user_id == user_id]

    def find_existing_pairs(self, user_id: str, pairs):
        self.pair_lookups.append(len(pairs))
        have = {(r.student_id, r.course_id) for r in self.records_for(user_id)}
        return {tuple(p) for p in pairs if tuple(p) in have}

    def insert_ignore(self, user_id: str, records: Sequence[NewAttendanceRecord]) -> int:
        if self.insert_errors:
            raise self.insert_errors.pop(0)
        have = {(r.student_id, r.course_id) for r in self.records_for(user_id)}
        inserted = 0
        for r in records:
            if (r.student_id, r.course_id) in have:
                continue
            self._id += 1
            self._records[self._id] = StoredRecord(
                record_id=self._id,
                user_id=user_id,
                student_id=r.student_id,
                course_id=r.course_id,
                attended_periods=r.attended_periods,
                conducted_periods=r.conducted_periods,
                attendance_percentage=r.attendance_percentage,
            )
            have.add((r.student_id, r.course_id))
            inserted += 1
        return inserted

    def _joined(self, user_id: str, filters: AttendanceFilters, *, with_threshold: bool):
        out = []
        for r in self.records_for(user_id):
            s = self._students.by_id(r.student_id)
            c = self._courses.by_id(r.course_id)
            if s is None or c is None:
                continue
            if filters.course and c.course_code != filters.course:
                continue
            if c.course_code in filters.exclude_courses:
                continue
            if with_threshold and filters.threshold < 100 and not r.attendance_percentage < filters.threshold:
                continue
            if filters.search and filters.search.lower() not in f"{s.name}\n{s.registration_no}".lower():
                continue
            out.append((r, s, c))
        return out

    def count_stats(self, user_id, *, low_threshold, critical_threshold, filters=None) -> AttendanceCounts:
        if filters is None:
            records = self.records_for(user_id)
        else:
            records = [r for r, _, _ in self._joined(user_id, filters, with_threshold=False)]
        return AttendanceCounts(
            total_students=len({r.student_id for r in records}),
            total_courses=len({r.course_id for r in records}),
            low_attendance_count=sum(1 for r in records if r.attendance_percentage < low_threshold),
            critical_attendance_count=sum(1 for r in records if r.attendance_percentage < critical_threshold),
        )

    def find_single_student(self, user_id, filters) -> Optional[StudentSummary]:
        by_student: dict[int, set[int]] = {}
        students = {}
        for r, s, _ in self._joined(user_id, filters, with_threshold=False):
            by_student.setdefault(s.student_id, set()).add(r.course_id)
            students[s.student_id] = s
        if len(by_student) != 1:
            return None
        sid, course_ids = next(iter(by_student.items()))
        return StudentSummary(
            name=students[sid].name,
            registration_no=students[sid].registration_no,
            course_count=len(course_ids),
        )

    def _rows(self, user_id, filters):
        rows = [
            AttendanceListRow(
                record_id=r.record_id,
                registration_no=s.registration_no,
                student_name=s.name,
                course_code=c.course_code,
                course_name=c.course_name,
                attended_periods=r.attended_periods,
                conducted_periods=r.conducted_periods,
                attendance_percentage=r.attendance_percentage,
            )
            for r, s, c in self._joined(user_id, filters, with_threshold=True)
        ]
        rows.sort(key=lambda x: (x.course_code, x.attendance_percentage, x.registration_no))
        return rows

    def list_records(self, user_id, filters, *, limit, offset):
        return self._rows(user_id, filters)[offset : offset + limit]

    def count_records(self, user_id, filters) -> int:
        return len(self._rows(user_id, filters))

    def delete_record(self, user_id: str, record_id: int) -> bool:
        r = self._records.get(record_id)
        if r is None or r.user_id != user_id:
            return False
        del self._records[record_id]
        return True

    def delete_all_for_user(self, user_id: str) -> int:
        ids = [r.record_id for r in self.records_for(user_id)]
        for i in ids:
            del self._records[i]
        return len(ids)

    def delete_below_conducted(self, user_id: str, min_conducted: int) -> int:
        ids = [r.record_id for r in self.records_for(user_id) if r.conducted_periods < min_conducted]
        for i in ids:
            del self._records[i]
        return len(ids)


@dataclass
class Repos:
    students: InMemoryStudents = field(default_factory=InMemoryStudents)
    courses: InMemoryCourses = field(default_factory=InMemoryCourses)
    attendance: Optional[InMemoryAttendance] = None

    def __post_init__(self):
        if self.attendance is None:
            self.attendance = InMemoryAttendance(self.students, self.courses)


def attendance_grid(courses, students) -> list[list]:
    """Sheet in the export layout: course headers on row 4, column headers on row 8.

    ``courses`` is a list of ``(code, name)``; ``students`` a list of
    ``(admission_no, registration_no, name, [(attended, conducted, percent), ...])``.
    """
    course_row = [None, None, None]
    header = ["Admission No", "Registration No", "Student Name"]
    for code, name in courses:
        course_row += [f"{code} - {name}", None, None]
        header += ["Attended", "Conducted", "%"]

    rows: list[list] = [["Attendance Report"], ["Semester 1"], [], course_row, [], [], [], header]
    for adm, reg, name, cells in students:
        row = [adm, reg, name]
        for attended, conducted, percent in cells:
            row += [attended, conducted, percent]
        rows.append(row)
    return rows


def xlsx_bytes(rows) -> bytes:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Attendance"
    for row in rows:
        ws.append(list(row))
    out = io.BytesIO()
    wb.save(out)
    return out.getvalue()


def csv_bytes(rows) -> bytes:
    out = io.StringIO()
    writer = csv.writer(out)
    for row in rows:
        writer.writerow(["" if v is None else v for v in row])
    return out.getvalue().encode("utf-8")


SCENARIO_COURSES = [("21CS301", "Data Structures")]
SCENARIO_STUDENTS = [
    ("A001", "RA2101", "Asha", [(30, 40, None)]),
    ("A002", "RA2102", "Bala", [(38, 40, None)]),
    ("", "CUMULATIVE", "Cumulative", [(68, 80, None)]),
]


@pytest.fixture
def repos() -> Repos:
    return Repos()


@pytest.fixture
def scenario_xlsx() -> bytes:
    """3-row sheet: two students and a cumulative footer row, one course."""
    return xlsx_bytes(attendance_grid(SCENARIO_COURSES, SCENARIO_STUDENTS))


@pytest.fixture
def make_xlsx():
    def _make(courses, students) -> bytes:
        return xlsx_bytes(attendance_grid(courses, students))

    return _make


@pytest.fixture
def make_csv():
    def _make(courses, students) -> bytes:
        return csv_bytes(attendance_grid(courses, students))

    return _make


@pytest.fixture
def make_grid():
    return attendance_grid
