from __future__ import annotations

import re
from pathlib import Path

import pytest
from mysql.connector import errors

from src.attendance_tracker.attendance_tracker.database.bootstrap import iter_sql_statements, strip_create_db_and_use
from src.attendance_tracker.attendance_tracker.database.mysql_base import chunked, is_transient_error, placeholders

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_splitter_keeps_semicolons_inside_quotes_and_drops_comments():
    sql = """
    -- leading comment; with a semicolon
    CREATE TABLE t (note VARCHAR(10) DEFAULT 'a;b');
    INSERT INTO t VALUES ('it\\'s; fine'); -- trailing
    """

    statements = list(iter_sql_statements(sql))

    assert statements == [
        "CREATE TABLE t (note VARCHAR(10) DEFAULT 'a;b')",
        "INSERT INTO t VALUES ('it\\'s; fine')",
    ]


def test_schema_file_creates_three_tables():
    sql = strip_create_db_and_use(SCHEMA.read_text(encoding="utf-8"))
    statements = list(iter_sql_statements(sql))

    created = [s for s in statements if s.upper().startswith("CREATE TABLE")]
    assert len(created) == 3
    assert not any(s.upper().startswith(("USE ", "CREATE DATABASE")) for s in statements)


@pytest.mark.parametrize(
    "exc,expected",
    [
        (errors.OperationalError(msg="Lost connection"), True),
        (errors.InterfaceError(msg="gone"), True),
        (errors.PoolError(msg="Failed getting connection; pool exhausted"), True),
        (errors.DatabaseError(msg="Deadlock found", errno=1213), True),
        (errors.DatabaseError(msg="Lock wait timeout exceeded", errno=1205), True),
        (errors.IntegrityError(msg="Duplicate entry", errno=1062), False),
        (errors.ProgrammingError(msg="Unknown column", errno=1054), False),
        (ValueError("bad"), False),
    ],
)
def test_is_transient_error(exc, expected):
    assert is_transient_error(exc) is expected


def test_placeholders_and_chunks():
    assert placeholders(3) == "%s,%s,%s"
    assert placeholders(2, width=2) == "(%s,%s),(%s,%s)"
    assert [list(c) for c in chunked([1, 2, 3, 4, 5], 2)] == [[1, 2], [3, 4], [5]]


def test_identity_columns_compare_exactly():
    sql = SCHEMA.read_text(encoding="utf-8")

    assert re.search(r"registration_no VARCHAR\(\d+\) COLLATE utf8mb4_bin NOT NULL", sql)
    assert re.search(r"course_code VARCHAR\(\d+\) COLLATE utf8mb4_bin NOT NULL", sql)
