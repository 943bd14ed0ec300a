from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceQueryService
from .common.cache import TTLCache
from .common.retry import RetryPolicy, fixed_backoff
from .core import constants
from .courses.mysql_course_repository import MySQLCourseRepository
from .database.connection import DBConfig, DatabaseConnection
from .database.mysql_base import is_transient_error
from .exports.service import ExportService
from .ingestion.committer import BulkCommitter
from .ingestion.model import IngestionPolicy
from .ingestion.reconciler import EntityReconciler
from .ingestion.service import IngestionService
from .spreadsheets.extractor import RowExtractor
from .spreadsheets.layout import HeaderRowLayoutDetector
from .spreadsheets.parser import SheetParser
from .students.mysql_student_repository import MySQLStudentRepository


@dataclass(frozen=True)
class Container:
    conn: Any

    students_repo: Any
    courses_repo: Any
    attendance_repo: Any

    cache: TTLCache
    ingestion_policy: IngestionPolicy
    ingestion_service: IngestionService
    attendance_service: AttendanceQueryService
    export_service: ExportService


def build_services(
    *,
    conn: Any,
    students_repo: Any,
    courses_repo: Any,
    attendance_repo: Any,
    settings: Any = None,
    cache: TTLCache | None = None,
    sleep=None,
) -> Container:
    """Wire services on top of the given repositories.

    Split from ``build_container`` so tests can pass in-memory repositories.
    """
    policy = IngestionPolicy(
        min_conducted_periods=int(getattr(settings, "MIN_CONDUCTED_PERIODS", constants.DEFAULT_MIN_CONDUCTED_PERIODS)),
        max_conducted_periods=int(getattr(settings, "MAX_CONDUCTED_PERIODS", constants.DEFAULT_MAX_CONDUCTED_PERIODS)),
        max_attempts=int(getattr(settings, "UPLOAD_MAX_ATTEMPTS", constants.DEFAULT_UPLOAD_MAX_ATTEMPTS)),
        retry_delay_ms=int(getattr(settings, "UPLOAD_RETRY_DELAY_MS", constants.DEFAULT_UPLOAD_RETRY_DELAY_MS)),
        max_files=int(getattr(settings, "MAX_UPLOAD_FILES", constants.DEFAULT_MAX_UPLOAD_FILES)),
    )
    cache = cache if cache is not None else TTLCache()
    transaction = getattr(conn, "transaction", None)

    parser = SheetParser(
        detector=HeaderRowLayoutDetector(),
        extractor=RowExtractor(max_conducted_periods=policy.max_conducted_periods),
    )
    retry_kwargs = {"sleep": sleep} if sleep is not None else {}
    retry_policy = RetryPolicy(
        max_attempts=policy.max_attempts,
        backoff=fixed_backoff(policy.retry_delay_ms / 1000.0),
        retry_on=is_transient_error,
        **retry_kwargs,
    )
    tx_kwargs = {"transaction": transaction} if transaction is not None else {}

    ingestion_service = IngestionService(
        parser,
        EntityReconciler(courses_repo, students_repo),
        BulkCommitter(attendance_repo, min_conducted_periods=policy.min_conducted_periods),
        cache=cache,
        retry_policy=retry_policy,
        policy=policy,
        **tx_kwargs,
    )
    attendance_service = AttendanceQueryService(
        attendance_repo,
        courses_repo,
        students_repo,
        cache=cache,
        stats_ttl=float(getattr(settings, "STATS_CACHE_TTL", constants.STATS_CACHE_TTL_SECONDS)),
        courses_ttl=float(getattr(settings, "COURSES_CACHE_TTL", constants.COURSES_CACHE_TTL_SECONDS)),
        **tx_kwargs,
    )

    return Container(
        conn=conn,
        students_repo=students_repo,
        courses_repo=courses_repo,
        attendance_repo=attendance_repo,
        cache=cache,
        ingestion_policy=policy,
        ingestion_service=ingestion_service,
        attendance_service=attendance_service,
        export_service=ExportService(),
    )


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
        pool_name=str(getattr(settings, "DB_POOL_NAME", "attendance_tracker")),
        pool_size=int(getattr(settings, "DB_POOL_SIZE", 10)),
        acquire_timeout=float(getattr(settings, "DB_POOL_ACQUIRE_TIMEOUT", 10.0)),
        statement_timeout_ms=int(getattr(settings, "DB_STATEMENT_TIMEOUT_MS", 30000)),
    )
    conn = DatabaseConnection.get_instance(config)

    return build_services(
        conn=conn,
        students_repo=MySQLStudentRepository(conn),
        courses_repo=MySQLCourseRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        settings=settings,
    )
