"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_BUSINESS_TIMEZONE = "Asia/Ho_Chi_Minh"
DATE_KEY_FORMAT = "%Y-%m-%d"

KARMA_POINTS_PER_TASK = 10
DEFAULT_LEADERBOARD_LIMIT = 10

REPORT_COMPLETED_LIST_LIMIT = 10
UPCOMING_WINDOW_DAYS = 7

SYSTEM_USER_ID = "system"
