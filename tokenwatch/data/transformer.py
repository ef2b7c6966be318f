"""Tabular transformations of tracked tokens (table rows, volume leaders)."""
from typing import Iterable, List

import pandas as pd

from tokenwatch.constants import VOLUME_LEADERS_LIMIT
from tokenwatch.models import Group, TokenRecord, ath_roi, current_gain

FRAME_COLUMNS = [
    "id", "address", "symbol", "name", "currentMcap", "initialMcap", "maxMcap",
    "athROI", "gain", "maxDrawdown", "volume1h", "volume24h", "priceUsd", "dexUrl", "addedAt",
]


def tokens_frame(tokens: Iterable[TokenRecord]) -> pd.DataFrame:
    """
    Build a DataFrame of tokens in the given order.

    Derived columns (``athROI``, ``gain``) are computed from stored fields,
    never persisted.
    """
    rows = [
        {
            "id": t.id,
            "address": t.address,
            "symbol": t.symbol,
            "name": t.name,
            "currentMcap": t.current_mcap,
            "initialMcap": t.initial_mcap,
            "maxMcap": t.max_mcap,
            "athROI": ath_roi(t),
            "gain": current_gain(t),
            "maxDrawdown": t.max_drawdown,
            "volume1h": t.volume_1h,
            "volume24h": t.volume_24h,
            "priceUsd": t.price_usd,
            "dexUrl": t.dex_url,
            "addedAt": t.added_at,
        }
        for t in tokens
    ]
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def volume_leaders(groups: List[Group], window: str = "24h", limit: int = VOLUME_LEADERS_LIMIT) -> pd.DataFrame:
    """
    Top tokens by volume across every group, one row per address.

    When an address is tracked in several groups the last occurrence wins,
    matching the order groups are displayed in.

    Args:
        groups: All watchlist groups
        window: "1h" or "24h"
        limit: Number of leaders to return

    Returns:
        DataFrame with address, symbol, volume, mcap and change columns
    """
    if window not in ("1h", "24h"):
        raise ValueError(f"Unknown volume window: {window}")

    df = tokens_frame(t for g in groups for t in g.tokens)
    if df.empty:
        return pd.DataFrame(columns=["address", "symbol", "volume", "mcap", "change"])

    vol_col = "volume1h" if window == "1h" else "volume24h"
    df = df.drop_duplicates(subset="address", keep="last")
    df = df.sort_values(vol_col, ascending=False, kind="mergesort").head(limit)
    return pd.DataFrame({
        "address": df["address"].values,
        "symbol": df["symbol"].values,
        "volume": df[vol_col].values,
        "mcap": df["currentMcap"].values,
        "change": df["gain"].values,
    })
