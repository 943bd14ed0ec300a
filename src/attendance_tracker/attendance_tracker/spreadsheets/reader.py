from __future__ import annotations

import csv
import io
import logging
from typing import Any

import openpyxl
import pandas as pd

from ..core.enums import SpreadsheetFormat
from ..core.exceptions import ValidationError, WorkbookParseError
from .cells import row_is_blank

logger = logging.getLogger(__name__)

Grid = list[list[Any]]


def read_first_sheet(content: bytes, filename: str) -> Grid:
    """Read the first worksheet of an upload into a 0-based grid of cell values.

    The extension selects the reader: CSV rows come back as strings, XLSX and
    XLS rows keep typed values (numbers stay numbers, empty cells are None).
    Trailing empty rows are dropped.
    """
    fmt = SpreadsheetFormat.from_filename(filename)
    if fmt is None:
        raise ValidationError(f"Invalid file type: {filename}")
    if not content:
        raise WorkbookParseError(f"Empty file: {filename}")

    if fmt == SpreadsheetFormat.CSV:
        rows = _read_csv(content, filename)
    elif fmt == SpreadsheetFormat.XLS:
        rows = _read_xls(content, filename)
    else:
        rows = _read_xlsx(content, filename)

    while rows and row_is_blank(rows[-1]):
        rows.pop()
    if not rows:
        raise WorkbookParseError(f"No usable rows in {filename}")
    return rows


def _read_csv(content: bytes, filename: str) -> Grid:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = content.decode("latin-1")
    try:
        return [list(row) for row in csv.reader(io.StringIO(text))]
    except csv.Error as exc:
        raise WorkbookParseError(f"Unreadable CSV file {filename}: {exc}") from exc


def _read_xls(content: bytes, filename: str) -> Grid:
    try:
        df = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, engine="xlrd")
    except Exception as exc:
        raise WorkbookParseError(f"Unreadable workbook: {filename}") from exc
    df = df.astype(object).where(df.notna(), None)
    return [list(row) for row in df.itertuples(index=False, name=None)]


def _read_xlsx(content: bytes, filename: str) -> Grid:
    try:
        wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as exc:
        raise WorkbookParseError(f"Unreadable workbook: {filename}") from exc

    try:
        if not wb.worksheets:
            raise WorkbookParseError(f"No worksheet in {filename}")
        ws = wb.worksheets[0]
        if len(wb.worksheets) > 1:
            logger.info("%s has %d sheets; reading only '%s'", filename, len(wb.worksheets), ws.title)
        # The stored dimension can be wrong; read every row that is actually present.
        ws.reset_dimensions()
        try:
            return [list(row) for row in ws.iter_rows(values_only=True)]
        except Exception as exc:
            raise WorkbookParseError(f"Unreadable worksheet in {filename}") from exc
    finally:
        wb.close()
