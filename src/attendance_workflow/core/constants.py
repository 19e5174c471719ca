"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
All clock times are civil times in the business timezone (UTC+7).
"""

BUSINESS_UTC_OFFSET_HOURS = 7

# Work-day boundaries (hour, minute)
LATE_THRESHOLD = (8, 45)
LUNCH_START = (12, 0)
LUNCH_END = (13, 0)
STANDARD_END = (17, 30)
OT_START = (17, 31)

LUNCH_DEDUCTION_MINUTES = 60
OT_MIN_DURATION_MINUTES = 30
MAX_PENDING_OT_PER_MONTH = 31

MAX_REASON_LENGTH = 1000
MAX_LEAVE_RANGE_DAYS = 30

# Clock skew allowed when checking "not in the future"
FUTURE_TOLERANCE_SECONDS = 60

# Bounded operational knobs: (default, min, max)
CHECKOUT_GRACE_HOURS = (24, 1, 48)
ADJUST_REQUEST_MAX_DAYS = (7, 1, 30)

MAX_AUDIT_SESSIONS = 100
DEFAULT_HISTORY_LIMIT = 200
