"""Parse raw DexScreener pairs into normalized snapshots."""
import math
from typing import Any, Dict, Iterable, List, Optional

from tokenwatch.constants import DEFAULT_NAME, DEFAULT_PRICE, DEFAULT_SYMBOL
from tokenwatch.models import Snapshot
from tokenwatch.utils import setup_logger

logger = setup_logger(__name__)


def parse_float(value: Any, default: float = 0.0) -> float:
    """Parse a non-negative numeric upstream field; anything else gives ``default``."""
    if value is None:
        return default
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(parsed) or parsed < 0:
        return default
    return parsed


def _nested(pair: Dict[str, Any], *keys: str) -> Any:
    cur: Any = pair
    for key in keys:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def extract_pairs(api_response: Any) -> List[Dict[str, Any]]:
    """
    Pull the pair list out of a DexScreener response body.

    The upstream returns ``{"pairs": null}`` for unknown addresses, so a
    missing list is an empty result rather than an error.

    Raises:
        ValueError: if the body is not a JSON object
    """
    if not isinstance(api_response, dict):
        raise ValueError("Invalid API response: expected a JSON object")
    pairs = api_response.get("pairs") or []
    if not isinstance(pairs, list):
        raise ValueError("Invalid API response: 'pairs' is not a list")
    return [p for p in pairs if isinstance(p, dict)]


def pair_liquidity(pair: Dict[str, Any]) -> float:
    """Liquidity in USD; absent or unparsable counts as zero (lowest priority)."""
    return parse_float(_nested(pair, "liquidity", "usd"))


def pair_market_cap(pair: Dict[str, Any]) -> float:
    """Reported market cap, falling back to fully diluted valuation."""
    return parse_float(pair.get("marketCap")) or parse_float(pair.get("fdv"))


def base_address(pair: Dict[str, Any]) -> str:
    return str(_nested(pair, "baseToken", "address") or "")


def select_canonical_pair(pairs: Iterable[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Pick the pair with the highest USD liquidity.

    Low-liquidity pools report distorted prices, so liquidity rather than the
    reported valuation decides which pair represents the token. Ties keep the
    pair that came first in the response.
    """
    best = None
    best_liq = -1.0
    for pair in pairs:
        liq = pair_liquidity(pair)
        if liq > best_liq:
            best, best_liq = pair, liq
    return best


def group_pairs_by_token(
    pairs: Iterable[Dict[str, Any]],
    addresses: Iterable[str],
    chain_id: str,
) -> Dict[str, List[Dict[str, Any]]]:
    """Bucket same-chain pairs by the requested base token address."""
    wanted = set(addresses)
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for pair in pairs:
        if pair.get("chainId") != chain_id:
            continue
        addr = base_address(pair)
        if addr in wanted:
            grouped.setdefault(addr, []).append(pair)
    return grouped


def pair_to_snapshot(pair: Dict[str, Any]) -> Snapshot:
    """Normalize one upstream pair record."""
    base = pair.get("baseToken") or {}
    volume = pair.get("volume") or {}
    return Snapshot(
        address=str(base.get("address") or ""),
        pair_address=str(pair.get("pairAddress") or ""),
        symbol=base.get("symbol") or DEFAULT_SYMBOL,
        name=base.get("name") or DEFAULT_NAME,
        market_cap=pair_market_cap(pair),
        fdv=parse_float(pair.get("fdv")),
        volume_1h=parse_float(volume.get("h1")),
        volume_24h=parse_float(volume.get("h24")),
        price_native=str(pair.get("priceNative") or DEFAULT_PRICE),
        price_usd=str(pair.get("priceUsd") or DEFAULT_PRICE),
        liquidity_usd=pair_liquidity(pair),
        image_url=_nested(pair, "info", "imageUrl"),
        dex_url=str(pair.get("url") or ""),
    )


def snapshots_from_pairs(
    pairs: Iterable[Dict[str, Any]],
    addresses: Iterable[str],
    chain_id: str,
) -> Dict[str, Snapshot]:
    """Reduce a pair list to one snapshot per requested address via its canonical pair."""
    snapshots: Dict[str, Snapshot] = {}
    for addr, token_pairs in group_pairs_by_token(pairs, addresses, chain_id).items():
        best = select_canonical_pair(token_pairs)
        if best is not None:
            snapshots[addr] = pair_to_snapshot(best)
    return snapshots
