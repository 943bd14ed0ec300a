from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..spreadsheets.model import CourseInfo
from .model import Course


class CourseRepository(Protocol):
    def find_by_codes(self, user_id: str, codes: Sequence[str]) -> Sequence[Course]:
        raise NotImplementedError

    def insert_ignore(self, user_id: str, courses: Sequence[CourseInfo]) -> int:
        """Insert in one statement, skipping codes that already exist. Returns rows inserted."""

        raise NotImplementedError

    def get_by_code(self, user_id: str, code: str) -> Optional[Course]:
        raise NotImplementedError

    def list_for_user(self, user_id: str) -> Sequence[Course]:
        """All courses of the user ordered by course code."""

        raise NotImplementedError

    def count_for_user(self, user_id: str) -> int:
        raise NotImplementedError

    def delete_all_for_user(self, user_id: str) -> int:
        raise NotImplementedError
