from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Student:
    """Domain entity: a student as known to one owning user."""

    student_id: int
    user_id: str
    registration_no: str
    name: str
    admission_no: Optional[str] = None
    created_at: Optional[datetime] = None
