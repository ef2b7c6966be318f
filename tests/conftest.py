"""
Shared pytest fixtures for the watchlist tests.
"""
from typing import Callable, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
import requests

from tokenwatch.config import Settings
from tokenwatch.data.fetcher import BatchResult
from tokenwatch.models import Snapshot


# ============================================================================
# DexScreener data
# ============================================================================

def build_pair(
    address: str,
    liquidity: Optional[float] = 1000.0,
    market_cap: Optional[float] = 100000.0,
    chain_id: str = "solana",
    symbol: str = "TKN",
    pair_address: Optional[str] = None,
    volume_1h: float = 10.0,
    volume_24h: float = 100.0,
    fdv: Optional[float] = None,
) -> Dict:
    pair = {
        "chainId": chain_id,
        "dexId": "raydium",
        "url": f"https://dexscreener.com/solana/{pair_address or address + '-pair'}",
        "pairAddress": pair_address or f"{address}-pair",
        "baseToken": {"address": address, "name": f"{symbol} Token", "symbol": symbol},
        "quoteToken": {"address": "So11111111111111111111111111111111111111112", "symbol": "SOL"},
        "priceNative": "0.000123",
        "priceUsd": "0.0195",
        "volume": {"h1": volume_1h, "h24": volume_24h},
        "info": {"imageUrl": f"https://img.test/{address}.png"},
    }
    if liquidity is not None:
        pair["liquidity"] = {"usd": liquidity}
    if market_cap is not None:
        pair["marketCap"] = market_cap
    if fdv is not None:
        pair["fdv"] = fdv
    return pair


def build_snapshot(address: str, market_cap: float = 100000.0, **overrides) -> Snapshot:
    fields = dict(
        address=address,
        pair_address=f"{address}-pair",
        symbol=address[:4].upper(),
        name=f"{address} Token",
        market_cap=market_cap,
        fdv=market_cap,
        volume_1h=10.0,
        volume_24h=100.0,
        price_native="0.0001",
        price_usd="0.01",
        dex_url=f"https://dexscreener.com/solana/{address}-pair",
    )
    fields.update(overrides)
    return Snapshot(**fields)


@pytest.fixture
def pair_factory():
    """Build one DexScreener pair dict."""
    return build_pair


@pytest.fixture
def snapshot_factory():
    return build_snapshot


# ============================================================================
# HTTP fakes
# ============================================================================

def mock_response(status_code: int = 200, json_data=None, text: str = "") -> MagicMock:
    """A requests.Response stand-in."""
    r = MagicMock()
    r.status_code = status_code
    r.ok = 200 <= status_code < 300
    r.text = text
    if isinstance(json_data, Exception):
        r.json.side_effect = json_data
    else:
        r.json.return_value = json_data
    if r.ok:
        r.raise_for_status.return_value = None
    else:
        r.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
    return r


@pytest.fixture
def response_factory():
    return mock_response


class FakeAiohttpResponse:
    def __init__(self, status: int, body=None, error: Optional[Exception] = None):
        self.status = status
        self._body = body
        self._error = error

    async def __aenter__(self):
        if self._error is not None:
            raise self._error
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self):
        return self._body


class FakeAiohttpSession:
    """
    Minimal aiohttp.ClientSession replacement.

    ``handler(url)`` returns ``(status, body)`` or raises to simulate a
    transport failure for that request.
    """

    def __init__(self, handler: Callable[[str], tuple]):
        self.handler = handler
        self.urls: List[str] = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        try:
            status, body = self.handler(url)
        except Exception as e:
            return FakeAiohttpResponse(0, error=e)
        return FakeAiohttpResponse(status, body)


@pytest.fixture
def aiohttp_session_factory():
    return FakeAiohttpSession


# ============================================================================
# Timers, settings, adapters
# ============================================================================

class FakeTimer:
    """Stand-in for threading.Timer that only fires when told to."""

    instances: List["FakeTimer"] = []

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False
        FakeTimer.instances.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function()


@pytest.fixture
def fake_timer():
    FakeTimer.instances = []
    yield FakeTimer
    FakeTimer.instances = []


@pytest.fixture
def settings(tmp_path):
    return Settings(
        api_base="https://dex.test/tokens",
        chain_id="solana",
        max_batch=30,
        request_timeout=1,
        max_retries=2,
        retry_wait=0,
        refresh_interval=15,
        sync_debounce=2,
        supabase_url=None,
        supabase_key=None,
        supabase_table="watchlists",
        cron_secret="s3cret",
        cron_time_budget=50,
        data_dir=tmp_path / "data",
        public_url="http://127.0.0.1:8052/",
    )


@pytest.fixture
def remote_settings(settings):
    settings.supabase_url = "https://db.test"
    settings.supabase_key = "service-key"
    return settings


class FakeAdapter:
    """Market data adapter backed by a dict of snapshots."""

    def __init__(self, snapshots: Optional[Dict[str, Snapshot]] = None, failed: Optional[List[str]] = None):
        self.snapshots = dict(snapshots or {})
        self.failed = list(failed or [])
        self.fetch_one_calls: List[str] = []
        self.batch_calls: List[List[str]] = []
        self.batch_error: Optional[Exception] = None

    def fetch_one(self, address: str) -> Optional[Snapshot]:
        self.fetch_one_calls.append(address)
        return self.snapshots.get(address)

    def fetch_batch(self, addresses) -> BatchResult:
        addresses = list(addresses)
        self.batch_calls.append(addresses)
        if self.batch_error is not None:
            raise self.batch_error
        failed = [a for a in addresses if a in self.failed]
        found = {a: self.snapshots[a] for a in addresses if a in self.snapshots and a not in failed}
        return BatchResult(snapshots=found, failed=failed, requested=len(addresses))


@pytest.fixture
def adapter():
    return FakeAdapter()
