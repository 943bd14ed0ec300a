from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass
from typing import Optional, Sequence

import pandas as pd

from ..attendance.model import AttendanceFilters, AttendanceListRow

EXPORT_COLUMNS = [
    "S.No",
    "Registration No",
    "Student Name",
    "Course Code",
    "Course Name",
    "Attended Periods",
    "Conducted Periods",
    "Attendance %",
]

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MIMETYPE = "text/csv"


@dataclass(frozen=True)
class ExportFile:
    content: bytes
    filename: str
    mimetype: str


def describe_filters(filters: AttendanceFilters) -> list[str]:
    """Human readable filter summary; excluded courses are not shown."""
    info: list[str] = []
    if filters.course:
        info.append(f"Course: {filters.course}")
    if filters.threshold < 100:
        info.append(f"Attendance below: {float(filters.threshold):.1f}%")
    if filters.search:
        info.append(f"Search: {filters.search}")
    return info


def export_filename(filter_info: Sequence[str], extension: str) -> str:
    stem = re.sub(r"[:,'\"|/\\]", "", " ".join(filter_info)).strip()
    return f"{stem or 'attendance'}.{extension}"


def to_rows(records: Sequence[AttendanceListRow]) -> list[dict]:
    return [
        {
            "S.No": i,
            "Registration No": r.registration_no,
            "Student Name": r.student_name,
            "Course Code": r.course_code,
            "Course Name": r.course_name,
            "Attended Periods": r.attended_periods,
            "Conducted Periods": r.conducted_periods,
            "Attendance %": round(float(r.attendance_percentage), 1),
        }
        for i, r in enumerate(records, start=1)
    ]


class ExportService:
    def to_excel(self, records: Sequence[AttendanceListRow], filter_info: Optional[Sequence[str]] = None) -> ExportFile:
        df = pd.DataFrame(to_rows(records), columns=EXPORT_COLUMNS)
        out = io.BytesIO()
        with pd.ExcelWriter(out, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Attendance")
        return ExportFile(
            content=out.getvalue(),
            filename=export_filename(filter_info or [], "xlsx"),
            mimetype=XLSX_MIMETYPE,
        )

    def to_csv(self, records: Sequence[AttendanceListRow], filter_info: Optional[Sequence[str]] = None) -> ExportFile:
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=EXPORT_COLUMNS)
        writer.writeheader()
        for row in to_rows(records):
            writer.writerow(row)
        return ExportFile(
            content=out.getvalue().encode("utf-8-sig"),
            filename=export_filename(filter_info or [], "csv"),
            mimetype=CSV_MIMETYPE,
        )
