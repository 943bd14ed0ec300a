from __future__ import annotations

import logging
from typing import Sequence

from ..courses.repository import CourseRepository
from ..spreadsheets.model import CourseInfo, ParsedSheet, StudentRow
from ..students.repository import StudentRepository
from .model import ResolvedEntities

logger = logging.getLogger(__name__)


def _unique_courses(courses: Sequence[CourseInfo]) -> list[CourseInfo]:
    seen: dict[str, CourseInfo] = {}
    for c in courses:
        seen.setdefault(c.code, c)
    return list(seen.values())


def _unique_students(students: Sequence[StudentRow]) -> list[StudentRow]:
    seen: dict[str, StudentRow] = {}
    for s in students:
        if s.registration_no:
            seen.setdefault(s.registration_no, s)
    return list(seen.values())


class EntityReconciler:
    """Resolve a file's courses and students against the user's existing rows.

    Per entity type: one batched lookup, one batched ``INSERT IGNORE`` for the
    keys that were missing, then one refresh lookup so rows inserted by a
    concurrent upload are resolved as well.
    """

    def __init__(self, courses: CourseRepository, students: StudentRepository):
        self._courses = courses
        self._students = students

    def reconcile(self, user_id: str, sheet: ParsedSheet) -> ResolvedEntities:
        course_map, courses_new = self._reconcile_courses(user_id, _unique_courses(sheet.course_list()))
        student_map, students_new = self._reconcile_students(user_id, _unique_students(sheet.students))

        return ResolvedEntities(
            courses=course_map,
            students=student_map,
            courses_new=courses_new,
            courses_existing=max(len(course_map) - courses_new, 0),
            students_new=students_new,
            students_existing=max(len(student_map) - students_new, 0),
        )

    def _reconcile_courses(self, user_id: str, incoming: list[CourseInfo]):
        codes = [c.code for c in incoming]
        found = {c.course_code: c for c in self._courses.find_by_codes(user_id, codes)}
        missing = [c for c in incoming if c.code not in found]
        if not missing:
            return found, 0

        inserted = self._courses.insert_ignore(user_id, missing)
        if inserted < len(missing):
            logger.info("%d of %d new courses were created concurrently", len(missing) - inserted, len(missing))
        found = {c.course_code: c for c in self._courses.find_by_codes(user_id, codes)}
        return found, inserted

    def _reconcile_students(self, user_id: str, incoming: list[StudentRow]):
        reg_nos = [s.registration_no for s in incoming]
        found = {s.registration_no: s for s in self._students.find_by_registration_nos(user_id, reg_nos)}
        missing = [s for s in incoming if s.registration_no not in found]
        if not missing:
            return found, 0

        inserted = self._students.insert_ignore(user_id, missing)
        if inserted < len(missing):
            logger.info("%d of %d new students were created concurrently", len(missing) - inserted, len(missing))
        found = {s.registration_no: s for s in self._students.find_by_registration_nos(user_id, reg_nos)}
        return found, inserted
