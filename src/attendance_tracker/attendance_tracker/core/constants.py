"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code. Anything
that is policy rather than format is also exposed as a setting.
"""

# Ingestion policy
DEFAULT_MIN_CONDUCTED_PERIODS = 5
DEFAULT_MAX_CONDUCTED_PERIODS = 1000
DEFAULT_UPLOAD_MAX_ATTEMPTS = 2
DEFAULT_UPLOAD_RETRY_DELAY_MS = 500
EXISTING_PAIRS_CHUNK_SIZE = 100
INSERT_CHUNK_SIZE = 1000

# Upload limits
DEFAULT_MAX_UPLOAD_FILES = 20
DEFAULT_MAX_CONTENT_LENGTH = 16 * 1024 * 1024

# Layout detection (1-based spreadsheet rows)
COURSE_HEADER_FIRST_ROW = 4
COURSE_HEADER_LAST_ROW = 7
FALLBACK_DATA_START_ROW = 8
COURSE_CELL_PATTERN = r"(\d{2}[A-Z0-9]{4,5})\s*-\s*(.+)"
DATA_HEADER_MARKERS = ("ADMISSION NO", "REGISTRATION NO", "STUDENT NAME")

# Row filtering
INVALID_REGISTRATION_VALUES = frozenset({"UNDEFINED", "NAN", "-"})
SUMMARY_ROW_MARKERS = ("CUMULATIVE", "TOTAL", "SUMMARY")
INVALID_CELL_VALUES = frozenset({"", "-", "NAN"})

# Statistics
LOW_ATTENDANCE_THRESHOLD = 75
CRITICAL_ATTENDANCE_THRESHOLD = 65
DEFAULT_LIST_THRESHOLD = 75
DEFAULT_PAGE_SIZE = 100
STATS_CACHE_TTL_SECONDS = 60
COURSES_CACHE_TTL_SECONDS = 300
