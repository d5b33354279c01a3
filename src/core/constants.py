"""
Ticketeer - Centralized Constants
=================================

Magic numbers and fixed strings shared across the bot.
Import from this module instead of hardcoding values.
"""

# =============================================================================
# Time Constants (in seconds)
# =============================================================================

SECONDS_PER_MINUTE = 60
MS_PER_SECOND = 1000

FORM_TIMEOUT = 60                     # Default wait for an intake/close form
CHANNEL_DELETE_DELAY = 0.5            # Grace delay before a closed channel is removed
API_TIMEOUT = 10                      # External API request timeout

# =============================================================================
# Database Constants
# =============================================================================

DB_CONNECTION_TIMEOUT = 30.0          # sqlite3.connect timeout
SQLITE_BUSY_TIMEOUT = 5000            # PRAGMA busy_timeout (ms)

# =============================================================================
# Discord Limits
# =============================================================================

MODAL_MAX_INPUTS = 5                  # Text inputs allowed per modal
MODAL_TITLE_MAX = 45
TEXT_INPUT_LABEL_MAX = 45
TEXT_INPUT_PLACEHOLDER_MAX = 100
TEXT_INPUT_VALUE_MAX = 4000
SELECT_MAX_OPTIONS = 25
EMBED_FIELD_VALUE_MAX = 1024
THREAD_FETCH_LIMIT = 100              # Messages read from a staff thread
THREAD_AUTO_ARCHIVE = 10080           # 7 days, in minutes

# =============================================================================
# Custom IDs
# =============================================================================

OPEN_TICKET_SELECT_ID = "open-ticket"
CLOSE_TICKET_BUTTON_ID = "close-ticket"
OPEN_FORM_PREFIX = "collector-openticket"
CLOSE_FORM_PREFIX = "collector-closeticket"
CLOSE_REASON_INPUT_ID = "reason"
NO_CATEGORY_VALUE = "-1"

# =============================================================================
# Verification
# =============================================================================

VERIFICATION_INPUT_ID = "tbxid"
VERIFICATION_LABEL = "Transaction ID"
VERIFICATION_PLACEHOLDER = "tbx-000a0000a00000-aaa0aa"
VERIFICATION_MIN_LENGTH = 25
VERIFICATION_MAX_LENGTH = 40
TEBEX_API_BASE = "https://plugin.tebex.io"

# =============================================================================
# Transcript
# =============================================================================

EMBED_MARKER_PREFIX = "<EMBED:"
EMBED_MARKER_SUFFIX = ">"
DEFAULT_AVATAR_URL = "https://cdn.discordapp.com/embed/avatars/0.png"
