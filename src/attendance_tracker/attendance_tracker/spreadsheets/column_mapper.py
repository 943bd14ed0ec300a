from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from .cells import cell_text
from .model import ColumnMapping, CourseColumns, CourseInfo


def map_columns(header_row: Sequence[Any], courses: Mapping[int, CourseInfo]) -> ColumnMapping:
    """Locate identity columns and each course's (attended, conducted, %) triple.

    Every header cell containing "attended" opens a 3-column block. Blocks are
    paired left to right with the detected courses in column order; courses
    beyond the last block are reported in ``unmapped_courses``.
    """
    admission: Optional[int] = None
    registration: Optional[int] = None
    name: Optional[int] = None
    attended_cols: list[int] = []

    for idx, value in enumerate(header_row):
        text = cell_text(value).upper()
        if not text:
            continue
        if "ADMISSION" in text:
            admission = idx if admission is None else admission
        elif "REGISTRATION" in text:
            registration = idx if registration is None else registration
        elif "NAME" in text:
            name = idx if name is None else name
        if "ATTENDED" in text:
            attended_cols.append(idx)

    ordered = [courses[col] for col in sorted(courses)]
    course_columns: dict[str, CourseColumns] = {}
    for course, start in zip(ordered, attended_cols):
        course_columns[course.code] = CourseColumns(attended=start, conducted=start + 1, percentage=start + 2)
    unmapped = tuple(c.code for c in ordered[len(attended_cols):])

    return ColumnMapping(
        admission_no=admission,
        registration_no=registration,
        student_name=name,
        courses=course_columns,
        unmapped_courses=unmapped,
    )
