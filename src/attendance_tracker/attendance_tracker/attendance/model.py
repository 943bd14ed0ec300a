from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..core.constants import DEFAULT_LIST_THRESHOLD


@dataclass(frozen=True)
class NewAttendanceRecord:
    """Row handed to the repository for insertion."""

    student_id: int
    course_id: int
    attended_periods: int
    conducted_periods: int
    attendance_percentage: float


@dataclass(frozen=True)
class AttendanceListRow:
    """Read-model for the dashboard table and exports (one JOIN row)."""

    record_id: int
    registration_no: str
    student_name: str
    course_code: str
    course_name: str
    attended_periods: int
    conducted_periods: int
    attendance_percentage: float

    def to_dict(self) -> dict:
        return {
            "id": self.record_id,
            "registration_no": self.registration_no,
            "student_name": self.student_name,
            "course_code": self.course_code,
            "course_name": self.course_name,
            "attended_periods": self.attended_periods,
            "conducted_periods": self.conducted_periods,
            "attendance_percentage": round(float(self.attendance_percentage), 1),
        }


@dataclass(frozen=True)
class AttendanceFilters:
    """Dashboard filters. ``threshold`` below 100 limits listings to ``percentage < threshold``."""

    course: Optional[str] = None
    threshold: float = DEFAULT_LIST_THRESHOLD
    search: Optional[str] = None
    exclude_courses: tuple[str, ...] = field(default_factory=tuple)

    def cache_key(self) -> tuple:
        return (self.course or "", float(self.threshold), self.search or "", tuple(sorted(self.exclude_courses)))


@dataclass(frozen=True)
class AttendanceCounts:
    total_students: int = 0
    total_courses: int = 0
    low_attendance_count: int = 0
    critical_attendance_count: int = 0

    def to_dict(self) -> dict:
        return {
            "total_students": self.total_students,
            "total_courses": self.total_courses,
            "low_attendance_count": self.low_attendance_count,
            "critical_attendance_count": self.critical_attendance_count,
        }


@dataclass(frozen=True)
class StudentSummary:
    """A student matched by a search, with the number of courses in the filtered set."""

    name: str
    registration_no: str
    course_count: int
