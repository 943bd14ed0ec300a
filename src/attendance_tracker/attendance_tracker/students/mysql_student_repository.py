from __future__ import annotations

from typing import Sequence

from ..core.constants import INSERT_CHUNK_SIZE
from ..database.connection import DatabaseConnection
from ..database.mysql_base import chunked, db_cursor, fetchall, flatten, placeholders
from ..spreadsheets.model import StudentRow
from .model import Student
from .repository import StudentRepository


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_by_registration_nos(self, user_id: str, registration_nos: Sequence[str]) -> Sequence[Student]:
        if not registration_nos:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT id, user_id, admission_no, registration_no, name, created_at
                FROM students
                WHERE user_id=%s AND registration_no IN ({placeholders(len(registration_nos))})
                """,
                (user_id, *registration_nos),
            )
            return [
                Student(
                    student_id=int(r["id"]),
                    user_id=r["user_id"],
                    registration_no=r["registration_no"],
                    name=r["name"],
                    admission_no=r.get("admission_no"),
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]

    def insert_ignore(self, user_id: str, students: Sequence[StudentRow]) -> int:
        inserted = 0
        with db_cursor(self._conn_factory) as (_, cur):
            for chunk in chunked(list(students), INSERT_CHUNK_SIZE):
                cur.execute(
                    f"""
                    INSERT IGNORE INTO students (user_id, admission_no, registration_no, name)
                    VALUES {placeholders(len(chunk), width=4)}
                    """,
                    tuple(flatten((user_id, s.admission_no or None, s.registration_no, s.name) for s in chunk)),
                )
                inserted += max(cur.rowcount, 0)
        return inserted

    def delete_all_for_user(self, user_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM students WHERE user_id=%s", (user_id,))
            return cur.rowcount
