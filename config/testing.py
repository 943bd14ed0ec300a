import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_tracker"),
}

DB_POOL_NAME = os.getenv("DB_POOL_NAME", "attendance_tracker")
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
# Seconds a request waits for a free pooled connection.
DB_POOL_ACQUIRE_TIMEOUT = float(os.getenv("DB_POOL_ACQUIRE_TIMEOUT", "10"))
DB_STATEMENT_TIMEOUT_MS = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "30000"))

DEBUG = False
TESTING = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

# Ingestion
MIN_CONDUCTED_PERIODS = int(os.getenv("MIN_CONDUCTED_PERIODS", "5"))
MAX_CONDUCTED_PERIODS = int(os.getenv("MAX_CONDUCTED_PERIODS", "1000"))
UPLOAD_MAX_ATTEMPTS = int(os.getenv("UPLOAD_MAX_ATTEMPTS", "2"))
UPLOAD_RETRY_DELAY_MS = int(os.getenv("UPLOAD_RETRY_DELAY_MS", "500"))
MAX_UPLOAD_FILES = int(os.getenv("MAX_UPLOAD_FILES", "20"))
MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(16 * 1024 * 1024)))

# Cache TTLs in seconds
STATS_CACHE_TTL = float(os.getenv("STATS_CACHE_TTL", "60"))
COURSES_CACHE_TTL = float(os.getenv("COURSES_CACHE_TTL", "300"))

# Header carrying the authenticated user id, set by the upstream auth proxy
AUTH_USER_HEADER = os.getenv("AUTH_USER_HEADER", "X-User-Id")
