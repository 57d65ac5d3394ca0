"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
Column limits mirror database/schema.sql.
"""

API_PREFIX = "/api/attendance"

MIN_CLASS_CODE_LENGTH = 2
MAX_CLASS_CODE_LENGTH = 32
MAX_CLASS_NAME_LENGTH = 150
MAX_SCHEDULE_FIELD_LENGTH = 20
MAX_REMARKS_LENGTH = 500

# Signed INT upper bound of every *_id column.
MAX_ID = 2147483647

DEFAULT_TOKEN_TTL_HOURS = 24
DEFAULT_JWT_ALGORITHM = "HS256"

STATS_PERCENT_PLACES = 2
SUMMARY_PERCENT_PLACES = 1
