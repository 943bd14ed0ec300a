from __future__ import annotations

from typing import Optional, Sequence

from ..core.constants import INSERT_CHUNK_SIZE
from ..database.connection import DatabaseConnection
from ..database.mysql_base import chunked, db_cursor, fetchall, fetchone, flatten, placeholders
from .model import AttendanceCounts, AttendanceFilters, AttendanceListRow, NewAttendanceRecord, StudentSummary
from .repository import AttendanceRepository


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _where(user_id: str, filters: AttendanceFilters, *, with_threshold: bool) -> tuple[str, list[object]]:
    clauses = ["a.user_id=%s"]
    params: list[object] = [user_id]

    if filters.course:
        clauses.append("c.course_code=%s")
        params.append(filters.course)
    if filters.exclude_courses:
        clauses.append(f"c.course_code NOT IN ({placeholders(len(filters.exclude_courses))})")
        params.extend(filters.exclude_courses)
    if with_threshold and filters.threshold < 100:
        clauses.append("a.attendance_percentage < %s")
        params.append(float(filters.threshold))
    if filters.search:
        clauses.append("(s.name LIKE %s OR s.registration_no COLLATE utf8mb4_unicode_ci LIKE %s)")
        pattern = f"%{_escape_like(filters.search)}%"
        params.extend([pattern, pattern])

    return " AND ".join(clauses), params


_JOINS = """
    FROM attendance_records a
    JOIN students s ON s.id = a.student_id
    JOIN courses c ON c.id = a.course_id
"""


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_existing_pairs(self, user_id: str, pairs: Sequence[tuple[int, int]]) -> set[tuple[int, int]]:
        if not pairs:
            return set()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT student_id, course_id
                FROM attendance_records
                WHERE user_id=%s AND (student_id, course_id) IN ({placeholders(len(pairs), width=2)})
                """,
                (user_id, *flatten(pairs)),
            )
            return {(int(r["student_id"]), int(r["course_id"])) for r in fetchall(cur)}

    def insert_ignore(self, user_id: str, records: Sequence[NewAttendanceRecord]) -> int:
        inserted = 0
        with db_cursor(self._conn_factory) as (_, cur):
            for chunk in chunked(list(records), INSERT_CHUNK_SIZE):
                cur.execute(
                    f"""
                    INSERT IGNORE INTO attendance_records
                        (user_id, student_id, course_id, attended_periods, conducted_periods, attendance_percentage)
                    VALUES {placeholders(len(chunk), width=6)}
                    """,
                    tuple(
                        flatten(
                            (
                                user_id,
                                r.student_id,
                                r.course_id,
                                r.attended_periods,
                                r.conducted_periods,
                                r.attendance_percentage,
                            )
                            for r in chunk
                        )
                    ),
                )
                inserted += max(cur.rowcount, 0)
        return inserted

    def count_stats(
        self,
        user_id: str,
        *,
        low_threshold: float,
        critical_threshold: float,
        filters: Optional[AttendanceFilters] = None,
    ) -> AttendanceCounts:
        select = """
            SELECT
                COUNT(DISTINCT a.student_id) AS total_students,
                COUNT(DISTINCT a.course_id) AS total_courses,
                COALESCE(SUM(CASE WHEN a.attendance_percentage < %s THEN 1 ELSE 0 END), 0) AS low_attendance_count,
                COALESCE(SUM(CASE WHEN a.attendance_percentage < %s THEN 1 ELSE 0 END), 0) AS critical_attendance_count
        """
        if filters is None:
            sql = f"{select} FROM attendance_records a WHERE a.user_id=%s"
            params: list[object] = [float(low_threshold), float(critical_threshold), user_id]
        else:
            where, where_params = _where(user_id, filters, with_threshold=False)
            sql = f"{select} {_JOINS} WHERE {where}"
            params = [float(low_threshold), float(critical_threshold), *where_params]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            r = fetchone(cur) or {}
            return AttendanceCounts(
                total_students=int(r.get("total_students") or 0),
                total_courses=int(r.get("total_courses") or 0),
                low_attendance_count=int(r.get("low_attendance_count") or 0),
                critical_attendance_count=int(r.get("critical_attendance_count") or 0),
            )

    def find_single_student(self, user_id: str, filters: AttendanceFilters) -> Optional[StudentSummary]:
        where, params = _where(user_id, filters, with_threshold=False)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT s.name, s.registration_no, COUNT(DISTINCT a.course_id) AS course_count
                {_JOINS}
                WHERE {where}
                GROUP BY a.student_id, s.name, s.registration_no
                LIMIT 2
                """,
                tuple(params),
            )
            rows = fetchall(cur)
            if len(rows) != 1:
                return None
            r = rows[0]
            return StudentSummary(
                name=r["name"],
                registration_no=r["registration_no"],
                course_count=int(r["course_count"] or 0),
            )

    def list_records(
        self,
        user_id: str,
        filters: AttendanceFilters,
        *,
        limit: int,
        offset: int,
    ) -> Sequence[AttendanceListRow]:
        where, params = _where(user_id, filters, with_threshold=True)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    a.id, s.registration_no, s.name AS student_name,
                    c.course_code, c.course_name,
                    a.attended_periods, a.conducted_periods, a.attendance_percentage
                {_JOINS}
                WHERE {where}
                ORDER BY c.course_code ASC, a.attendance_percentage ASC, s.registration_no ASC
                LIMIT %s OFFSET %s
                """,
                (*params, int(limit), int(offset)),
            )
            return [
                AttendanceListRow(
                    record_id=int(r["id"]),
                    registration_no=r["registration_no"],
                    student_name=r["student_name"],
                    course_code=r["course_code"],
                    course_name=r["course_name"],
                    attended_periods=int(r["attended_periods"]),
                    conducted_periods=int(r["conducted_periods"]),
                    attendance_percentage=round(float(r["attendance_percentage"]), 1),
                )
                for r in fetchall(cur)
            ]

    def count_records(self, user_id: str, filters: AttendanceFilters) -> int:
        where, params = _where(user_id, filters, with_threshold=True)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n {_JOINS} WHERE {where}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def delete_record(self, user_id: str, record_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE id=%s AND user_id=%s", (int(record_id), user_id))
            return cur.rowcount > 0

    def delete_all_for_user(self, user_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE user_id=%s", (user_id,))
            return cur.rowcount

    def delete_below_conducted(self, user_id: str, min_conducted: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM attendance_records WHERE user_id=%s AND conducted_periods < %s",
                (user_id, int(min_conducted)),
            )
            return cur.rowcount
