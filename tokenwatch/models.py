"""Watchlist data model and its JSON document form.

The document form uses the camelCase keys of the persisted watchlist
(``pairAddress``, ``initialMcap``, ...) so that stored documents stay
readable by every client sharing a watchlist id.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from tokenwatch.constants import DEFAULT_GROUP_NAME, DEFAULT_NAME, DEFAULT_PRICE, DEFAULT_SYMBOL
from tokenwatch.utils import new_record_id


def _as_float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class Snapshot:
    """One normalized market reading for a token, taken from its canonical pair."""

    address: str
    pair_address: str
    symbol: str = DEFAULT_SYMBOL
    name: str = DEFAULT_NAME
    market_cap: float = 0.0
    fdv: float = 0.0
    volume_1h: float = 0.0
    volume_24h: float = 0.0
    price_native: str = DEFAULT_PRICE
    price_usd: str = DEFAULT_PRICE
    liquidity_usd: float = 0.0
    image_url: Optional[str] = None
    dex_url: str = ""


@dataclass(frozen=True)
class TokenRecord:
    id: str
    address: str
    pair_address: str
    symbol: str
    name: str
    initial_mcap: float
    current_mcap: float
    max_mcap: float
    max_drawdown: float
    volume_24h: float
    volume_1h: float
    fdv: float
    price_native: str
    price_usd: str
    added_at: int
    last_updated: int
    image_url: Optional[str] = None
    dex_url: str = ""

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot, now: int) -> "TokenRecord":
        """Create a freshly tracked token; all extrema start at the current market cap."""
        mcap = snapshot.market_cap or 0.0
        return cls(
            id=new_record_id(),
            address=snapshot.address,
            pair_address=snapshot.pair_address,
            symbol=snapshot.symbol or DEFAULT_SYMBOL,
            name=snapshot.name or DEFAULT_NAME,
            initial_mcap=mcap,
            current_mcap=mcap,
            max_mcap=mcap,
            max_drawdown=0.0,
            volume_24h=snapshot.volume_24h,
            volume_1h=snapshot.volume_1h,
            fdv=snapshot.fdv,
            price_native=snapshot.price_native or DEFAULT_PRICE,
            price_usd=snapshot.price_usd or DEFAULT_PRICE,
            added_at=now,
            last_updated=now,
            image_url=snapshot.image_url,
            dex_url=snapshot.dex_url,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "address": self.address,
            "pairAddress": self.pair_address,
            "symbol": self.symbol,
            "name": self.name,
            "initialMcap": self.initial_mcap,
            "currentMcap": self.current_mcap,
            "maxMcap": self.max_mcap,
            "maxDrawdown": self.max_drawdown,
            "volume24h": self.volume_24h,
            "volume1h": self.volume_1h,
            "fdv": self.fdv,
            "priceNative": self.price_native,
            "priceUsd": self.price_usd,
            "addedAt": self.added_at,
            "lastUpdated": self.last_updated,
            "imageUrl": self.image_url,
            "dexUrl": self.dex_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenRecord":
        current = _as_float(data.get("currentMcap"))
        initial = _as_float(data.get("initialMcap"))
        max_mcap = max(_as_float(data.get("maxMcap")), current, initial)
        return cls(
            id=str(data.get("id") or new_record_id()),
            address=str(data.get("address") or ""),
            pair_address=str(data.get("pairAddress") or ""),
            symbol=data.get("symbol") or DEFAULT_SYMBOL,
            name=data.get("name") or DEFAULT_NAME,
            initial_mcap=initial,
            current_mcap=current,
            max_mcap=max_mcap,
            max_drawdown=min(_as_float(data.get("maxDrawdown")), 0.0),
            volume_24h=_as_float(data.get("volume24h")),
            volume_1h=_as_float(data.get("volume1h")),
            fdv=_as_float(data.get("fdv")),
            price_native=str(data.get("priceNative") or DEFAULT_PRICE),
            price_usd=str(data.get("priceUsd") or DEFAULT_PRICE),
            added_at=_as_int(data.get("addedAt")),
            last_updated=_as_int(data.get("lastUpdated")),
            image_url=data.get("imageUrl"),
            dex_url=data.get("dexUrl") or "",
        )


def ath_roi(token: TokenRecord) -> float:
    """Return on investment at the peak, in percent, derived from stored fields."""
    return (token.max_mcap - token.initial_mcap) / (token.initial_mcap or 1) * 100


def current_gain(token: TokenRecord) -> float:
    return (token.current_mcap - token.initial_mcap) / (token.initial_mcap or 1) * 100


@dataclass
class Group:
    id: str
    name: str
    tokens: List[TokenRecord] = field(default_factory=list)

    @classmethod
    def create(cls, name: str) -> "Group":
        return cls(id=new_record_id(), name=name)

    def has_address(self, address: str) -> bool:
        return any(t.address == address for t in self.tokens)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "tokens": [t.to_dict() for t in self.tokens]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Group":
        return cls(
            id=str(data.get("id") or new_record_id()),
            name=str(data.get("name") or DEFAULT_GROUP_NAME),
            tokens=[TokenRecord.from_dict(t) for t in (data.get("tokens") or []) if isinstance(t, dict)],
        )


def default_groups() -> List[Group]:
    return [Group.create(DEFAULT_GROUP_NAME)]


def groups_to_document(groups: List[Group]) -> List[Dict[str, Any]]:
    """Serialize groups into the persisted watchlist document (a JSON list)."""
    return [g.to_dict() for g in groups]


def groups_from_document(document: Any) -> List[Group]:
    """Parse a persisted document; anything that is not a list of groups yields no groups."""
    if not isinstance(document, list):
        return []
    return [Group.from_dict(g) for g in document if isinstance(g, dict)]


@dataclass
class Watchlist:
    """The unit of persistence: ordered groups under one shareable id."""

    id: str
    groups: List[Group] = field(default_factory=default_groups)

    def to_document(self) -> List[Dict[str, Any]]:
        return groups_to_document(self.groups)
