from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from mysql.connector import errors, pooling

logger = logging.getLogger(__name__)


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    pool_name: str = "attendance_tracker"
    pool_size: int = 10
    acquire_timeout: float = 10.0
    statement_timeout_ms: int = 30000


class DatabaseConnection:
    """Singleton-like pooled connection factory.

    Connections come from a bounded ``MySQLConnectionPool``. When the pool is
    exhausted, ``connect`` waits for a free connection up to
    ``acquire_timeout`` seconds and then re-raises the ``PoolError``.

    ``transaction()`` pins one connection to the current thread; every
    ``db_cursor`` opened inside it reuses that connection and the block
    commits (or rolls back) once at the end.
    """

    _instance: Optional["DatabaseConnection"] = None
    _POLL_INTERVAL = 0.05

    def __init__(self, config: DBConfig):
        self._config = config
        self._pool: Optional[pooling.MySQLConnectionPool] = None
        self._pool_lock = threading.Lock()
        self._local = threading.local()

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def _get_pool(self) -> pooling.MySQLConnectionPool:
        with self._pool_lock:
            if self._pool is None:
                self._pool = pooling.MySQLConnectionPool(
                    pool_name=self._config.pool_name,
                    pool_size=int(self._config.pool_size),
                    host=self._config.host,
                    port=int(self._config.port),
                    user=self._config.user,
                    password=self._config.password,
                    database=self._config.database,
                    autocommit=False,
                )
                logger.info(
                    "Created connection pool %s (size=%d) for %s@%s:%s/%s",
                    self._config.pool_name,
                    self._config.pool_size,
                    self._config.user,
                    self._config.host,
                    self._config.port,
                    self._config.database,
                )
            return self._pool

    def connect(self):
        pool = self._get_pool()
        deadline = time.monotonic() + float(self._config.acquire_timeout)
        while True:
            try:
                conn = pool.get_connection()
                break
            except errors.PoolError:
                if time.monotonic() >= deadline:
                    logger.error("Connection pool exhausted for %.1fs", self._config.acquire_timeout)
                    raise
                time.sleep(self._POLL_INTERVAL)

        if self._config.statement_timeout_ms:
            cur = conn.cursor()
            try:
                cur.execute("SET SESSION MAX_EXECUTION_TIME=%s", (int(self._config.statement_timeout_ms),))
            finally:
                cur.close()
        return conn

    def current_connection(self):
        return getattr(self._local, "conn", None)

    @contextmanager
    def transaction(self) -> Iterator[object]:
        active = self.current_connection()
        if active is not None:
            yield active
            return

        conn = self.connect()
        self._local.conn = conn
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            conn.close()
