from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Course:
    """Domain entity: a course as known to one owning user."""

    course_id: int
    user_id: str
    course_code: str
    course_name: str
    created_at: Optional[datetime] = None
