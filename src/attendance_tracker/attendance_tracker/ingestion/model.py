from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Optional

from ..core.constants import (
    DEFAULT_MAX_CONDUCTED_PERIODS,
    DEFAULT_MAX_UPLOAD_FILES,
    DEFAULT_MIN_CONDUCTED_PERIODS,
    DEFAULT_UPLOAD_MAX_ATTEMPTS,
    DEFAULT_UPLOAD_RETRY_DELAY_MS,
)
from ..courses.model import Course
from ..students.model import Student


@dataclass(frozen=True)
class IngestionPolicy:
    min_conducted_periods: int = DEFAULT_MIN_CONDUCTED_PERIODS
    max_conducted_periods: int = DEFAULT_MAX_CONDUCTED_PERIODS
    max_attempts: int = DEFAULT_UPLOAD_MAX_ATTEMPTS
    retry_delay_ms: int = DEFAULT_UPLOAD_RETRY_DELAY_MS
    max_files: int = DEFAULT_MAX_UPLOAD_FILES


@dataclass(frozen=True)
class ResolvedEntities:
    """Courses and students of one file, keyed the way the sheet refers to them."""

    courses: dict[str, Course]
    students: dict[str, Student]
    courses_new: int = 0
    courses_existing: int = 0
    students_new: int = 0
    students_existing: int = 0


@dataclass(frozen=True)
class CommitResult:
    total_in_file: int
    inserted: int = 0
    skipped_min_periods: int = 0
    skipped_duplicate: int = 0
    unresolved: int = 0


@dataclass(frozen=True)
class UploadMetrics:
    courses_new: int
    courses_existing: int
    students_new: int
    students_existing: int
    total_in_file: int
    inserted: int
    skipped_min_periods: int
    skipped_duplicate: int
    processing_time_ms: int

    @property
    def changed(self) -> bool:
        return bool(self.inserted or self.courses_new or self.students_new)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    content: bytes


@dataclass(frozen=True)
class FileResult:
    name: str
    success: bool
    elapsed_ms: int = 0
    metrics: Optional[UploadMetrics] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data: dict = {"name": self.name, "success": self.success, "elapsed_ms": self.elapsed_ms}
        if self.metrics is not None:
            data.update(self.metrics.to_dict())
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class BatchResult:
    success: bool
    message: str
    files: list[FileResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    total_elapsed_ms: int = 0

    def to_dict(self) -> dict:
        if not self.success:
            return {"success": False, "error": self.message, "files": [f.to_dict() for f in self.files]}
        return {
            "success": True,
            "message": self.message,
            "files": [f.to_dict() for f in self.files if f.success],
            "errors": list(self.errors),
            "total_elapsed_ms": self.total_elapsed_ms,
        }
