"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

SCHOOL_UTC_OFFSET_HOURS = 7
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
MIN_REASON_LENGTH = 5
