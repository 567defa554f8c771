"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

ALLOWED_SESSION_DURATIONS = (15, 30, 45, 60, 90, 120)
DEFAULT_SESSION_MINUTES = 30

DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100

TOKEN_TTL_HOURS = 24
MIN_PASSWORD_LENGTH = 6

NOTIFICATION_FEED_CAPACITY = 50
GEOLOCATION_TIMEOUT_SECONDS = 5.0

NOTIFICATION_EVENT = "notification"
