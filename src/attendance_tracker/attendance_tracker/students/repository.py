from __future__ import annotations

from typing import Protocol, Sequence

from ..spreadsheets.model import StudentRow
from .model import Student


class StudentRepository(Protocol):
    """Repository interface for Student; every call is scoped to one owning user."""

    def find_by_registration_nos(self, user_id: str, registration_nos: Sequence[str]) -> Sequence[Student]:
        raise NotImplementedError

    def insert_ignore(self, user_id: str, students: Sequence[StudentRow]) -> int:
        """Insert in one statement, skipping rows that already exist. Returns rows inserted."""

        raise NotImplementedError

    def delete_all_for_user(self, user_id: str) -> int:
        raise NotImplementedError
