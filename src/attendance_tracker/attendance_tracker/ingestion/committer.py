from __future__ import annotations

import logging
from typing import Sequence

from ..attendance.model import NewAttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..core.constants import DEFAULT_MIN_CONDUCTED_PERIODS, EXISTING_PAIRS_CHUNK_SIZE
from ..database.mysql_base import chunked
from ..spreadsheets.model import AttendanceRow
from .model import CommitResult, ResolvedEntities

logger = logging.getLogger(__name__)


class BulkCommitter:
    """Insert a file's attendance rows that are new for the user.

    Rows below the minimum conducted periods are never stored. A record that
    already exists for (student, course) is left untouched and counted as a
    duplicate; the unique key plus ``INSERT IGNORE`` covers rows that appear
    between the existence check and the insert.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        min_conducted_periods: int = DEFAULT_MIN_CONDUCTED_PERIODS,
        pair_chunk_size: int = EXISTING_PAIRS_CHUNK_SIZE,
    ):
        self._attendance = attendance
        self._min_conducted = int(min_conducted_periods)
        self._chunk_size = int(pair_chunk_size)

    def commit(self, user_id: str, rows: Sequence[AttendanceRow], resolved: ResolvedEntities) -> CommitResult:
        total = len(rows)
        eligible = [r for r in rows if r.conducted_periods >= self._min_conducted]
        skipped_min = total - len(eligible)

        if not eligible:
            logger.warning(
                "No attendance rows meet the minimum of %d conducted periods (total=%d)",
                self._min_conducted,
                total,
            )
            return CommitResult(total_in_file=total, skipped_min_periods=skipped_min)

        candidates: list[NewAttendanceRecord] = []
        unresolved = 0
        for r in eligible:
            student = resolved.students.get(r.registration_no)
            course = resolved.courses.get(r.course_code)
            if student is None or course is None:
                unresolved += 1
                logger.warning("Unresolved attendance row dropped: %s / %s", r.registration_no, r.course_code)
                continue
            candidates.append(
                NewAttendanceRecord(
                    student_id=student.student_id,
                    course_id=course.course_id,
                    attended_periods=int(round(r.attended_periods)),
                    conducted_periods=int(round(r.conducted_periods)),
                    attendance_percentage=round(float(r.attendance_percentage), 1),
                )
            )

        pairs = list(dict.fromkeys((c.student_id, c.course_id) for c in candidates))
        existing: set[tuple[int, int]] = set()
        for chunk in chunked(pairs, self._chunk_size):
            existing |= self._attendance.find_existing_pairs(user_id, chunk)

        to_insert: list[NewAttendanceRecord] = []
        duplicates = 0
        for c in candidates:
            key = (c.student_id, c.course_id)
            if key in existing:
                duplicates += 1
                continue
            existing.add(key)
            to_insert.append(c)

        inserted = self._attendance.insert_ignore(user_id, to_insert) if to_insert else 0
        if inserted < len(to_insert):
            lost = len(to_insert) - inserted
            logger.info("%d attendance rows were inserted concurrently; counted as duplicates", lost)
            duplicates += lost

        return CommitResult(
            total_in_file=total,
            inserted=inserted,
            skipped_min_periods=skipped_min,
            skipped_duplicate=duplicates,
            unresolved=unresolved,
        )
