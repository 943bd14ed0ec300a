from __future__ import annotations

import contextlib
import logging
import math
from typing import Callable, ContextManager, Optional

from ..common.cache import StatsCache
from ..core.constants import (
    COURSES_CACHE_TTL_SECONDS,
    CRITICAL_ATTENDANCE_THRESHOLD,
    DEFAULT_PAGE_SIZE,
    LOW_ATTENDANCE_THRESHOLD,
    STATS_CACHE_TTL_SECONDS,
)
from ..core.enums import CacheOperation
from ..core.exceptions import ValidationError
from ..courses.repository import CourseRepository
from ..students.repository import StudentRepository
from .model import AttendanceFilters, AttendanceListRow
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_EXPORT_PAGE_SIZE = 1000


class AttendanceQueryService:
    """Dashboard read paths plus the user-level delete operations.

    Statistics and the course list are cached per user; every successful
    mutation here invalidates the user's entries.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        courses: CourseRepository,
        students: StudentRepository,
        *,
        cache: StatsCache,
        transaction: Callable[[], ContextManager] = contextlib.nullcontext,
        stats_ttl: float = STATS_CACHE_TTL_SECONDS,
        courses_ttl: float = COURSES_CACHE_TTL_SECONDS,
        low_threshold: float = LOW_ATTENDANCE_THRESHOLD,
        critical_threshold: float = CRITICAL_ATTENDANCE_THRESHOLD,
    ):
        self._attendance = attendance
        self._courses = courses
        self._students = students
        self._cache = cache
        self._transaction = transaction
        self._stats_ttl = float(stats_ttl)
        self._courses_ttl = float(courses_ttl)
        self._low = float(low_threshold)
        self._critical = float(critical_threshold)

    def dashboard_stats(self, user_id: str) -> dict:
        def compute() -> dict:
            counts = self._attendance.count_stats(
                user_id, low_threshold=self._low, critical_threshold=self._critical
            )
            return counts.to_dict()

        key = (CacheOperation.DASHBOARD_STATS.value, user_id)
        return self._cache.get_or_compute(key, self._stats_ttl, compute)

    def filtered_stats(self, user_id: str, filters: AttendanceFilters) -> dict:
        """Counts for the current filter set.

        The low/critical bands are fixed; ``filters.threshold`` only narrows
        listings. When a search matches exactly one student the result also
        carries that student's details.
        """

        def compute() -> dict:
            counts = self._attendance.count_stats(
                user_id,
                low_threshold=self._low,
                critical_threshold=self._critical,
                filters=filters,
            )
            result = counts.to_dict()
            result["total_courses_in_system"] = self._courses.count_for_user(user_id)

            course_details = None
            if filters.course:
                course = self._courses.get_by_code(user_id, filters.course)
                if course:
                    course_details = {"code": course.course_code, "name": course.course_name}
            result["course_details"] = course_details

            student_details = None
            student_course_info = None
            if filters.search and counts.total_students == 1:
                summary = self._attendance.find_single_student(user_id, filters)
                if summary:
                    student_details = {"name": summary.name, "registration_no": summary.registration_no}
                    n = summary.course_count
                    student_course_info = filters.course or f"{n} course{'' if n == 1 else 's'}"
            result["is_single_student"] = student_details is not None
            result["student_details"] = student_details
            result["student_course_info"] = student_course_info
            return result

        key = (CacheOperation.FILTERED_STATS.value, user_id, *filters.cache_key())
        return self._cache.get_or_compute(key, self._stats_ttl, compute)

    def list_records(
        self,
        user_id: str,
        filters: AttendanceFilters,
        *,
        page: int = 1,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> dict:
        if page < 1 or per_page < 1:
            raise ValidationError("page and per_page must be at least 1")

        total = self._attendance.count_records(user_id, filters)
        rows = self._attendance.list_records(user_id, filters, limit=per_page, offset=(page - 1) * per_page)
        return {
            "records": [r.to_dict() for r in rows],
            "total": total,
            "page": page,
            "per_page": per_page,
            "total_pages": math.ceil(total / per_page) if per_page else 0,
        }

    def records_for_export(self, user_id: str, filters: AttendanceFilters) -> list[AttendanceListRow]:
        out: list[AttendanceListRow] = []
        offset = 0
        while True:
            page = list(self._attendance.list_records(user_id, filters, limit=_EXPORT_PAGE_SIZE, offset=offset))
            out.extend(page)
            if len(page) < _EXPORT_PAGE_SIZE:
                return out
            offset += _EXPORT_PAGE_SIZE

    def list_courses(self, user_id: str) -> list[dict]:
        def compute() -> list[dict]:
            return [{"code": c.course_code, "name": c.course_name} for c in self._courses.list_for_user(user_id)]

        key = (CacheOperation.ALL_COURSES.value, user_id)
        return self._cache.get_or_compute(key, self._courses_ttl, compute)

    def delete_record(self, user_id: str, record_id: int) -> bool:
        try:
            deleted = self._attendance.delete_record(user_id, record_id)
        except Exception:
            logger.exception("Error deleting attendance record %s", record_id)
            return False
        if deleted:
            self._cache.invalidate(user_id)
        return deleted

    def clear_all_data(self, user_id: str) -> bool:
        """Remove every record, student and course of the user (in that order)."""
        try:
            with self._transaction():
                records = self._attendance.delete_all_for_user(user_id)
                students = self._students.delete_all_for_user(user_id)
                courses = self._courses.delete_all_for_user(user_id)
        except Exception:
            logger.exception("Error clearing data for user %s", user_id)
            return False

        logger.info("Cleared %d records, %d students, %d courses for user %s", records, students, courses, user_id)
        self._cache.invalidate(user_id)
        return True

    def cleanup_insufficient_records(self, user_id: str, min_conducted: int) -> int:
        removed = self._attendance.delete_below_conducted(user_id, int(min_conducted))
        if removed:
            logger.info("Cleaned up %d records with fewer than %d conducted periods", removed, min_conducted)
            self._cache.invalidate(user_id)
        return removed


def build_filters(
    *,
    course: Optional[str] = None,
    threshold: Optional[float] = None,
    search: Optional[str] = None,
    exclude_courses: tuple[str, ...] = (),
    default_threshold: float = LOW_ATTENDANCE_THRESHOLD,
) -> AttendanceFilters:
    return AttendanceFilters(
        course=(course or "").strip() or None,
        threshold=default_threshold if threshold is None else float(threshold),
        search=(search or "").strip() or None,
        exclude_courses=tuple(exclude_courses),
    )
