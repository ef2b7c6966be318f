"""Constants and default values for the watchlist."""
from typing import Tuple

# Market data
CHAIN_ID = "solana"
MAX_BATCH_SIZE = 30  # DexScreener accepts at most 30 comma-joined addresses

# Watchlist limits
MAX_TOTAL_TOKENS = 200  # across all groups
DEFAULT_GROUP_NAME = "Main Watchlist"
NEW_GROUP_NAME = "Group {n}"

# Display fallbacks when the upstream omits metadata
DEFAULT_SYMBOL = "?"
DEFAULT_NAME = "Unknown"
DEFAULT_PRICE = "0"

# Sorting
MANUAL_ORDER = "manual"
SORT_FIELDS: Tuple[str, ...] = ("currentMcap", "volume24h", "maxMcap", "athROI", "addedAt")
SORT_LABELS = {
    MANUAL_ORDER: "Manual",
    "currentMcap": "Market Cap",
    "volume24h": "Volume 24H",
    "maxMcap": "ATH",
    "athROI": "ATH ROI",
    "addedAt": "Added",
}
DEFAULT_SORT_FIELD = MANUAL_ORDER
DEFAULT_SORT_DIRECTION = "desc"

# Global volume leaders panel
VOLUME_LEADERS_LIMIT = 6

# Watchlist identity
WATCHLIST_ID_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
WATCHLIST_ID_LENGTH = 10
WATCHLIST_ID_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"
