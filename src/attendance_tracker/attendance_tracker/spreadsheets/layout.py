from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, Sequence

from ..core.constants import (
    COURSE_CELL_PATTERN,
    COURSE_HEADER_FIRST_ROW,
    COURSE_HEADER_LAST_ROW,
    DATA_HEADER_MARKERS,
    FALLBACK_DATA_START_ROW,
)
from .cells import cell_text
from .model import CourseInfo

Rows = Sequence[Sequence[Any]]


class LayoutDetector(ABC):
    """Strategy Pattern: how to find courses and student data in a sheet.

    Row indices are 0-based positions in the grid produced by the reader.
    """

    @abstractmethod
    def detect_courses(self, rows: Rows) -> dict[int, CourseInfo]:
        """Column index -> course, or an empty dict when no course header is found."""
        raise NotImplementedError

    @abstractmethod
    def find_data_start(self, rows: Rows) -> int:
        """Index of the first student row."""
        raise NotImplementedError

    def header_row(self, rows: Rows, data_start: int) -> Sequence[Any]:
        idx = data_start - 1
        if 0 <= idx < len(rows):
            return rows[idx]
        return []


class HeaderRowLayoutDetector(LayoutDetector):
    """Layout used by the university attendance exports.

    Course headers (``"<code> - <name>"``) sit somewhere in spreadsheet rows
    4..7 depending on the export; each candidate row is scored by the number
    of distinct course cells and the best row wins (earliest on ties). Student
    data starts right below the row mentioning admission/registration
    number or student name.
    """

    def __init__(
        self,
        *,
        first_row: int = COURSE_HEADER_FIRST_ROW,
        last_row: int = COURSE_HEADER_LAST_ROW,
        fallback_data_start_row: int = FALLBACK_DATA_START_ROW,
        course_pattern: str = COURSE_CELL_PATTERN,
        header_markers: Sequence[str] = DATA_HEADER_MARKERS,
    ):
        # Settings are 1-based spreadsheet rows.
        self._first_idx = first_row - 1
        self._last_idx = last_row - 1
        self._fallback_idx = fallback_data_start_row - 1
        self._pattern = re.compile(course_pattern)
        self._markers = tuple(m.upper() for m in header_markers)

    def _courses_in_row(self, row: Sequence[Any]) -> dict[int, CourseInfo]:
        found: dict[int, CourseInfo] = {}
        seen: set[str] = set()
        for col, value in enumerate(row):
            if not isinstance(value, str):
                continue
            match = self._pattern.search(value)
            if not match:
                continue
            code = match.group(1).strip()
            if code in seen:
                continue
            seen.add(code)
            found[col] = CourseInfo(code=code, name=match.group(2).strip())
        return found

    def detect_courses(self, rows: Rows) -> dict[int, CourseInfo]:
        best: dict[int, CourseInfo] = {}
        last = min(self._last_idx, len(rows) - 1)
        for idx in range(self._first_idx, last + 1):
            candidate = self._courses_in_row(rows[idx])
            if len(candidate) > len(best):
                best = candidate
        return best

    def find_data_start(self, rows: Rows) -> int:
        for idx, row in enumerate(rows):
            text = " ".join(cell_text(v) for v in row if cell_text(v)).upper()
            if any(marker in text for marker in self._markers):
                return idx + 1
        return self._fallback_idx
