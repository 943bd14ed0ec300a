from __future__ import annotations

from typing import Optional

from ..core.exceptions import ValidationError


def parse_positive_int(value: Optional[str], field_name: str, *, default: int) -> int:
    if value is None or str(value).strip() == "":
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError as exc:
        raise ValidationError(f"{field_name} must be an integer") from exc
    if parsed < 1:
        raise ValidationError(f"{field_name} must be at least 1")
    return parsed


def parse_threshold(value: Optional[str], *, default: float) -> float:
    if value is None or str(value).strip() == "":
        return default
    try:
        parsed = float(str(value).strip())
    except ValueError as exc:
        raise ValidationError("threshold must be a number") from exc
    if parsed < 0:
        raise ValidationError("threshold must not be negative")
    return parsed


def split_csv_param(value: Optional[str]) -> tuple[str, ...]:
    """Split a comma separated query value (``"A,B, C"``) into trimmed parts."""
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())
