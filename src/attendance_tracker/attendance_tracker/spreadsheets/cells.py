from __future__ import annotations

import math
from typing import Any, Optional, Sequence

from ..core.constants import INVALID_CELL_VALUES


def cell_at(row: Sequence[Any], idx: Optional[int]) -> Any:
    if idx is None or idx < 0 or idx >= len(row):
        return None
    return row[idx]


def cell_text(value: Any) -> str:
    """Cell value as trimmed text; whole floats lose their ``.0`` (``2101.0`` -> ``"2101"``)."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def is_blank(value: Any) -> bool:
    return cell_text(value) == ""


def is_invalid_marker(value: Any) -> bool:
    """Blank, ``-`` or ``nan`` (any case)."""
    if isinstance(value, float) and math.isnan(value):
        return True
    return cell_text(value).upper() in INVALID_CELL_VALUES


def parse_number(value: Any) -> Optional[float]:
    """Finite float for numeric cells or numeric text, otherwise None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def row_is_blank(row: Sequence[Any]) -> bool:
    return all(is_blank(v) for v in row)
