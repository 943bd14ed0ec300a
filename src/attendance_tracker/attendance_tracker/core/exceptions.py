from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when caller input is invalid (file type, paging, filters)."""


class WorkbookParseError(DomainError):
    """Raised when an uploaded file cannot be read as an attendance sheet."""


class IngestionError(DomainError):
    """Raised when a parsed file could not be committed to the database."""

    def __init__(self, filename: str, message: str | None = None):
        super().__init__(message or f"Failed to process: {filename}")
        self.filename = filename
