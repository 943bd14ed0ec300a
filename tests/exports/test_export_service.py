from __future__ import annotations

import csv
import io

import openpyxl

from src.attendance_tracker.attendance_tracker.attendance.model import AttendanceListRow
from src.attendance_tracker.attendance_tracker.attendance.service import build_filters
from src.attendance_tracker.attendance_tracker.exports.service import (
    EXPORT_COLUMNS,
    ExportService,
    describe_filters,
    export_filename,
)

RECORDS = [
    AttendanceListRow(1, "RA2102", "Bala", "21CS301", "Data Structures", 24, 40, 60.0),
    AttendanceListRow(2, "RA2101", "Asha", "21CS301", "Data Structures", 30, 40, 75.04),
]


def test_excel_export():
    export = ExportService().to_excel(RECORDS, ["Course: 21CS301"])

    wb = openpyxl.load_workbook(io.BytesIO(export.content))
    ws = wb["Attendance"]
    rows = list(ws.iter_rows(values_only=True))
    assert list(rows[0]) == EXPORT_COLUMNS
    assert list(rows[1]) == [1, "RA2102", "Bala", "21CS301", "Data Structures", 24, 40, 60]
    assert rows[2][7] == 75.0
    assert export.filename == "Course 21CS301.xlsx"
    assert export.mimetype.endswith("spreadsheetml.sheet")


def test_csv_export_has_bom_and_header():
    export = ExportService().to_csv(RECORDS)

    assert export.content.startswith(b"\xef\xbb\xbf")
    rows = list(csv.reader(io.StringIO(export.content.decode("utf-8-sig"))))
    assert rows[0] == EXPORT_COLUMNS
    assert rows[2] == ["2", "RA2101", "Asha", "21CS301", "Data Structures", "30", "40", "75.0"]
    assert export.filename == "attendance.csv"


def test_empty_export_still_has_header():
    export = ExportService().to_excel([])

    ws = openpyxl.load_workbook(io.BytesIO(export.content)).active
    assert [c.value for c in ws[1]] == EXPORT_COLUMNS
    assert ws.max_row == 1


def test_filter_description_and_filename():
    info = describe_filters(build_filters(course="21CS301", threshold=65, search="asha"))

    assert info == ["Course: 21CS301", "Attendance below: 65.0%", "Search: asha"]
    assert export_filename(info, "xlsx") == "Course 21CS301 Attendance below 65.0% Search asha.xlsx"
    assert describe_filters(build_filters(threshold=100)) == []
