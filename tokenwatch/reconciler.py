"""Merge fresh snapshots into tracked token records.

Running extrema only move one way: ``max_mcap`` never decreases and
``max_drawdown`` never rises above its previous value (or 0).
"""
from dataclasses import replace
from typing import List, Mapping, Optional, Tuple

from tokenwatch.constants import DEFAULT_NAME, DEFAULT_PRICE, DEFAULT_SYMBOL
from tokenwatch.models import Group, Snapshot, TokenRecord
from tokenwatch.utils import now_ms


def drawdown_pct(current: float, peak: float) -> float:
    """Percentage drop of ``current`` from ``peak``; 0 when there is no positive peak."""
    if peak <= 0:
        return 0.0
    return (current - peak) / peak * 100


def merge_snapshot(record: TokenRecord, snapshot: Snapshot, now: Optional[int] = None) -> TokenRecord:
    """
    Apply one snapshot to a record.

    A missing or zero market cap in the snapshot keeps the previous
    ``current_mcap`` so a transient upstream gap never drags the token to 0.
    """
    current = snapshot.market_cap if snapshot.market_cap else record.current_mcap
    peak = max(record.max_mcap, current)
    max_drawdown = min(record.max_drawdown or 0.0, drawdown_pct(current, peak))

    return replace(
        record,
        pair_address=snapshot.pair_address or record.pair_address,
        symbol=snapshot.symbol or DEFAULT_SYMBOL,
        name=snapshot.name or DEFAULT_NAME,
        current_mcap=current,
        max_mcap=peak,
        max_drawdown=max_drawdown,
        volume_24h=snapshot.volume_24h,
        volume_1h=snapshot.volume_1h,
        fdv=snapshot.fdv,
        price_native=snapshot.price_native or DEFAULT_PRICE,
        price_usd=snapshot.price_usd or DEFAULT_PRICE,
        image_url=snapshot.image_url,
        dex_url=snapshot.dex_url,
        last_updated=now_ms() if now is None else now,
    )


def _differs(before: TokenRecord, after: TokenRecord) -> bool:
    return replace(before, last_updated=0) != replace(after, last_updated=0)


def reconcile_groups(
    groups: List[Group],
    snapshots: Mapping[str, Snapshot],
    now: Optional[int] = None,
) -> Tuple[List[Group], int, int]:
    """
    Merge snapshots into every matching token of every group.

    Tokens without a snapshot are left exactly as they were. The input
    groups are not mutated.

    Returns:
        (new groups, tokens merged, tokens whose data actually changed)
    """
    now = now_ms() if now is None else now
    merged = 0
    changed = 0
    out: List[Group] = []
    for group in groups:
        tokens = []
        for token in group.tokens:
            snap = snapshots.get(token.address)
            if snap is None:
                tokens.append(token)
                continue
            updated = merge_snapshot(token, snap, now)
            merged += 1
            if _differs(token, updated):
                changed += 1
            tokens.append(updated)
        out.append(Group(id=group.id, name=group.name, tokens=tokens))
    return out, merged, changed
