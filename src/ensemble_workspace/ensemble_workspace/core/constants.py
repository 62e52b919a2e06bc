"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

import string

INVITATION_CODE_LENGTH = 8
INVITATION_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_INVITATION_CODE_ATTEMPTS = 5

NAME_MAX_LENGTH = 255

DEFAULT_UPCOMING_WINDOW = 10
MAX_OCCURRENCE_WINDOW = 200

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"
