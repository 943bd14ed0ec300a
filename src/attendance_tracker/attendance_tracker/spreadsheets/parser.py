from __future__ import annotations

import logging
from typing import Optional

from .column_mapper import map_columns
from .extractor import RowExtractor
from .layout import HeaderRowLayoutDetector, LayoutDetector
from .model import ParsedSheet
from .reader import read_first_sheet

logger = logging.getLogger(__name__)


class SheetParser:
    """Uploaded bytes -> courses, students and attendance tuples.

    Raises ``ValidationError`` for unsupported file types and
    ``WorkbookParseError`` when the file cannot be read at all; problems with
    individual rows are logged and skipped.
    """

    def __init__(self, *, detector: Optional[LayoutDetector] = None, extractor: Optional[RowExtractor] = None):
        self._detector = detector or HeaderRowLayoutDetector()
        self._extractor = extractor or RowExtractor()

    def parse(self, content: bytes, filename: str) -> ParsedSheet:
        rows = read_first_sheet(content, filename)

        courses = self._detector.detect_courses(rows)
        logger.info("%s: found %d courses: %s", filename, len(courses), ", ".join(c.code for c in courses.values()))

        data_start = self._detector.find_data_start(rows)
        header = self._detector.header_row(rows, data_start)
        mapping = map_columns(header, courses)
        if mapping.registration_no is None:
            logger.warning("%s: no registration number column in header row %d", filename, data_start)
        for code in mapping.unmapped_courses:
            logger.warning("%s: course %s has no Attended column; its attendance is not imported", filename, code)

        extracted = self._extractor.extract(rows, data_start, mapping, courses)
        logger.info(
            "%s: %d students, %d attendance rows, %d rows skipped",
            filename,
            len(extracted.students),
            len(extracted.attendance),
            extracted.skipped_rows,
        )

        return ParsedSheet(
            filename=filename,
            courses=courses,
            students=extracted.students,
            attendance=extracted.attendance,
            skipped_rows=extracted.skipped_rows,
            unmapped_courses=mapping.unmapped_courses,
        )
