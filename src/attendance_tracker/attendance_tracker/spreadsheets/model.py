from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class CourseInfo:
    """Course found in the sheet header (``"21CS101 - Data Structures"``)."""

    code: str
    name: str


@dataclass(frozen=True)
class StudentRow:
    admission_no: str
    registration_no: str
    name: str


@dataclass(frozen=True)
class AttendanceRow:
    """One (student, course) attendance tuple extracted from a data row."""

    registration_no: str
    course_code: str
    course_name: str
    attended_periods: float
    conducted_periods: float
    attendance_percentage: float


@dataclass(frozen=True)
class CourseColumns:
    attended: int
    conducted: int
    percentage: int


@dataclass(frozen=True)
class ColumnMapping:
    admission_no: Optional[int] = None
    registration_no: Optional[int] = None
    student_name: Optional[int] = None
    courses: dict[str, CourseColumns] = field(default_factory=dict)
    # Detected courses with no "Attended" column left to pair with.
    unmapped_courses: tuple[str, ...] = ()


@dataclass(frozen=True)
class ParsedSheet:
    filename: str
    courses: dict[int, CourseInfo]
    students: list[StudentRow]
    attendance: list[AttendanceRow]
    skipped_rows: int = 0
    unmapped_courses: tuple[str, ...] = ()

    def course_list(self) -> list[CourseInfo]:
        """Detected courses in column order."""
        return [self.courses[idx] for idx in sorted(self.courses)]
