"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7

STANDARD_WORK_MINUTES = 8 * 60
HALF_DAY_WORK_MINUTES = 4 * 60
DEFAULT_BREAK_MINUTES = 60
DEFAULT_DAY_END_HOUR = 18

DEFAULT_WEEKLY_LIMIT = 3
SPECIAL_CUTOFF_HOUR = 18
MAX_ADVANCE_DAYS = 90

REJECT_COMMENT_MIN_LENGTH = 10
APPROVAL_COMMENT_MAX_LENGTH = 1000
PASSWORD_MIN_LENGTH = 8

DEFAULT_LIST_LIMIT = 200
DEFAULT_LOG_PAGE_SIZE = 20
MAX_LOG_PAGE_SIZE = 100
RECENT_PENDING_LIMIT = 5
USAGE_MONTHS = 12
DEFAULT_TREND_MONTHS = 6
