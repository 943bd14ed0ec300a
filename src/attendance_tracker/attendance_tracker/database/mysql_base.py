from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, TypeVar

from mysql.connector import errors

from .connection import DatabaseConnection

T = TypeVar("T")

# Server errors worth a retry: lock wait timeout, deadlock, gone away,
# lost connection, statement exceeded MAX_EXECUTION_TIME.
TRANSIENT_ERRNOS = frozenset({1205, 1213, 2006, 2013, 3024})


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    active = conn_factory.current_connection()
    if active is not None:
        cur = active.cursor(dictionary=dictionary)
        try:
            yield active, cur
        finally:
            cur.close()
        return

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def placeholders(count: int, *, width: int = 1) -> str:
    """``placeholders(2)`` -> ``"%s,%s"``; ``placeholders(2, width=2)`` -> ``"(%s,%s),(%s,%s)"``."""
    if width == 1:
        return ",".join(["%s"] * count)
    group = "(" + ",".join(["%s"] * width) + ")"
    return ",".join([group] * count)


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def flatten(rows: Iterable[Sequence[Any]]) -> list:
    return [value for row in rows for value in row]


def is_transient_error(exc: BaseException) -> bool:
    """True for connection/pool/timeout failures that a fresh attempt may fix."""
    if isinstance(exc, (errors.OperationalError, errors.InterfaceError, errors.PoolError)):
        return True
    if isinstance(exc, errors.Error) and getattr(exc, "errno", None) in TRANSIENT_ERRNOS:
        return True
    return False
