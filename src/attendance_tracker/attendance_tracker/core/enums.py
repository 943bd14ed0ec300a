from __future__ import annotations

from enum import Enum


class SpreadsheetFormat(str, Enum):
    """Upload formats the reader understands, keyed by file extension."""

    CSV = "csv"
    XLS = "xls"
    XLSX = "xlsx"

    @classmethod
    def from_filename(cls, filename: str) -> "SpreadsheetFormat | None":
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if ext == "csv":
            return cls.CSV
        if ext == "xls":
            return cls.XLS
        if ext in {"xlsx", "xlsm"}:
            return cls.XLSX
        return None


class CacheOperation(str, Enum):
    """First element of every statistics cache key."""

    DASHBOARD_STATS = "dashboard_stats"
    FILTERED_STATS = "filtered_stats"
    ALL_COURSES = "all_courses"
