from __future__ import annotations

from typing import Optional, Sequence

from ..core.constants import INSERT_CHUNK_SIZE
from ..database.connection import DatabaseConnection
from ..database.mysql_base import chunked, db_cursor, fetchall, fetchone, flatten, placeholders
from ..spreadsheets.model import CourseInfo
from .model import Course
from .repository import CourseRepository

_COLUMNS = "id, user_id, course_code, course_name, created_at"


def _to_course(r: dict) -> Course:
    return Course(
        course_id=int(r["id"]),
        user_id=r["user_id"],
        course_code=r["course_code"],
        course_name=r["course_name"],
        created_at=r.get("created_at"),
    )


class MySQLCourseRepository(CourseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_by_codes(self, user_id: str, codes: Sequence[str]) -> Sequence[Course]:
        if not codes:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM courses WHERE user_id=%s AND course_code IN ({placeholders(len(codes))})",
                (user_id, *codes),
            )
            return [_to_course(r) for r in fetchall(cur)]

    def insert_ignore(self, user_id: str, courses: Sequence[CourseInfo]) -> int:
        inserted = 0
        with db_cursor(self._conn_factory) as (_, cur):
            for chunk in chunked(list(courses), INSERT_CHUNK_SIZE):
                cur.execute(
                    f"""
                    INSERT IGNORE INTO courses (user_id, course_code, course_name)
                    VALUES {placeholders(len(chunk), width=3)}
                    """,
                    tuple(flatten((user_id, c.code, c.name) for c in chunk)),
                )
                inserted += max(cur.rowcount, 0)
        return inserted

    def get_by_code(self, user_id: str, code: str) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM courses WHERE user_id=%s AND course_code=%s", (user_id, code))
            r = fetchone(cur)
            return _to_course(r) if r else None

    def list_for_user(self, user_id: str) -> Sequence[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM courses WHERE user_id=%s ORDER BY course_code ASC", (user_id,))
            return [_to_course(r) for r in fetchall(cur)]

    def count_for_user(self, user_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM courses WHERE user_id=%s", (user_id,))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def delete_all_for_user(self, user_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM courses WHERE user_id=%s", (user_id,))
            return cur.rowcount
