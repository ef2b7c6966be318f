"""Color utilities for chart visualization."""
import zlib

from plotly.colors import qualitative

# Stable palette so a token keeps its color across refreshes and restarts
PALETTE = qualitative.Dark24 + qualitative.Light24 + qualitative.Safe


def color_for(address: str) -> str:
    """
    Get a stable color for a token address.

    Uses a CRC of the address rather than ``hash()`` so colors survive
    interpreter restarts.
    """
    return PALETTE[zlib.crc32(address.encode()) % len(PALETTE)]

