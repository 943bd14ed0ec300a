from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AttendanceCounts, AttendanceFilters, AttendanceListRow, NewAttendanceRecord, StudentSummary


class AttendanceRepository(Protocol):
    """Repository interface for attendance records.

    Every method takes the owning user id; implementations must never return
    or touch rows of another user.
    """

    def find_existing_pairs(self, user_id: str, pairs: Sequence[tuple[int, int]]) -> set[tuple[int, int]]:
        """(student_id, course_id) pairs from ``pairs`` that already have a record."""

        raise NotImplementedError

    def insert_ignore(self, user_id: str, records: Sequence[NewAttendanceRecord]) -> int:
        raise NotImplementedError

    def count_stats(
        self,
        user_id: str,
        *,
        low_threshold: float,
        critical_threshold: float,
        filters: Optional[AttendanceFilters] = None,
    ) -> AttendanceCounts:
        """Aggregate counts; ``filters=None`` means the whole dashboard (no joins)."""

        raise NotImplementedError

    def find_single_student(self, user_id: str, filters: AttendanceFilters) -> Optional[StudentSummary]:
        raise NotImplementedError

    def list_records(
        self,
        user_id: str,
        filters: AttendanceFilters,
        *,
        limit: int,
        offset: int,
    ) -> Sequence[AttendanceListRow]:
        raise NotImplementedError

    def count_records(self, user_id: str, filters: AttendanceFilters) -> int:
        raise NotImplementedError

    def delete_record(self, user_id: str, record_id: int) -> bool:
        raise NotImplementedError

    def delete_all_for_user(self, user_id: str) -> int:
        raise NotImplementedError

    def delete_below_conducted(self, user_id: str, min_conducted: int) -> int:
        raise NotImplementedError
