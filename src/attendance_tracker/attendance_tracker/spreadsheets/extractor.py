from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from ..core.constants import DEFAULT_MAX_CONDUCTED_PERIODS, INVALID_REGISTRATION_VALUES, SUMMARY_ROW_MARKERS
from .cells import cell_at, cell_text, is_invalid_marker, parse_number, row_is_blank
from .model import AttendanceRow, ColumnMapping, CourseColumns, CourseInfo, StudentRow

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    students: list[StudentRow] = field(default_factory=list)
    attendance: list[AttendanceRow] = field(default_factory=list)
    skipped_rows: int = 0


def is_rejected_row(registration_no: str, student_name: str) -> bool:
    """Rows without a real registration number, or footer/aggregate rows."""
    reg = registration_no.upper()
    if not reg or reg in INVALID_REGISTRATION_VALUES:
        return True
    name = student_name.upper()
    return any(marker in name or marker in reg for marker in SUMMARY_ROW_MARKERS)


class RowExtractor:
    def __init__(self, *, max_conducted_periods: float = DEFAULT_MAX_CONDUCTED_PERIODS):
        # Anything above this is a merged/cumulative row, not a real course.
        self._max_conducted = float(max_conducted_periods)

    def extract(
        self,
        rows: Sequence[Sequence[Any]],
        data_start: int,
        mapping: ColumnMapping,
        courses: Mapping[int, CourseInfo],
    ) -> ExtractionResult:
        names = {c.code: c.name for c in courses.values()}
        result = ExtractionResult()

        for idx in range(max(data_start, 0), len(rows)):
            row = rows[idx]
            if row_is_blank(row):
                continue
            try:
                registration_no = cell_text(cell_at(row, mapping.registration_no))
                student_name = cell_text(cell_at(row, mapping.student_name))
                if is_rejected_row(registration_no, student_name):
                    result.skipped_rows += 1
                    continue
                admission_no = cell_text(cell_at(row, mapping.admission_no))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping row %d: %s", idx + 1, exc)
                result.skipped_rows += 1
                continue

            result.students.append(
                StudentRow(admission_no=admission_no, registration_no=registration_no, name=student_name)
            )

            for code, cols in mapping.courses.items():
                try:
                    record = self._attendance_for(row, registration_no, code, names.get(code, ""), cols)
                except (TypeError, ValueError, ZeroDivisionError) as exc:
                    logger.warning("Skipping %s for %s (row %d): %s", code, registration_no, idx + 1, exc)
                    continue
                if record is not None:
                    result.attendance.append(record)

        return result

    def _attendance_for(
        self,
        row: Sequence[Any],
        registration_no: str,
        course_code: str,
        course_name: str,
        cols: CourseColumns,
    ) -> Optional[AttendanceRow]:
        attended_val = cell_at(row, cols.attended)
        conducted_val = cell_at(row, cols.conducted)
        if is_invalid_marker(attended_val) or is_invalid_marker(conducted_val):
            return None

        attended = parse_number(attended_val)
        conducted = parse_number(conducted_val)
        if attended is None or conducted is None:
            return None
        if conducted > self._max_conducted:
            return None

        percentage_val = cell_at(row, cols.percentage)
        percentage = None if is_invalid_marker(percentage_val) else parse_number(percentage_val)
        if percentage is None:
            percentage = attended / conducted * 100 if conducted > 0 else 0.0

        return AttendanceRow(
            registration_no=registration_no,
            course_code=course_code,
            course_name=course_name,
            attended_periods=attended,
            conducted_periods=conducted,
            attendance_percentage=percentage,
        )
