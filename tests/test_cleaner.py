"""Tests for DexScreener pair parsing and canonical pair selection."""
import pytest

from tokenwatch.data.cleaner import (
    extract_pairs,
    pair_to_snapshot,
    parse_float,
    select_canonical_pair,
    snapshots_from_pairs,
)


def test_parse_float_tolerates_garbage():
    assert parse_float("12.5") == 12.5
    assert parse_float(None) == 0.0
    assert parse_float("n/a") == 0.0
    assert parse_float({"x": 1}, default=3.0) == 3.0


def test_parse_float_rejects_non_finite_and_negative():
    assert parse_float("nan") == 0.0
    assert parse_float(float("inf")) == 0.0
    assert parse_float("-inf", default=1.0) == 1.0
    assert parse_float(-5) == 0.0
    assert parse_float("0") == 0.0


def test_nan_market_cap_falls_back_to_fdv(pair_factory):
    pair = pair_factory("MINT", market_cap=None, fdv=250000.0)
    pair["marketCap"] = "NaN"
    assert pair_to_snapshot(pair).market_cap == 250000.0


def test_extract_pairs_null_is_empty():
    assert extract_pairs({"schemaVersion": "1.0.0", "pairs": None}) == []


def test_extract_pairs_rejects_non_object():
    with pytest.raises(ValueError):
        extract_pairs(["not", "an", "object"])
    with pytest.raises(ValueError):
        extract_pairs({"pairs": "nope"})


def test_highest_liquidity_wins(pair_factory):
    low = pair_factory("MINT", liquidity=500, market_cap=9_000_000, pair_address="low")
    high = pair_factory("MINT", liquidity=5000, market_cap=100_000, pair_address="high")

    assert select_canonical_pair([low, high])["pairAddress"] == "high"
    snaps = snapshots_from_pairs([low, high], ["MINT"], "solana")
    assert snaps["MINT"].pair_address == "high"
    assert snaps["MINT"].market_cap == 100_000


def test_liquidity_tie_keeps_first(pair_factory):
    first = pair_factory("MINT", liquidity=1000, pair_address="first")
    second = pair_factory("MINT", liquidity=1000, pair_address="second")
    assert select_canonical_pair([first, second])["pairAddress"] == "first"


def test_missing_liquidity_loses_to_any_liquidity(pair_factory):
    no_liq = pair_factory("MINT", liquidity=None, pair_address="none")
    some = pair_factory("MINT", liquidity=1, pair_address="some")
    assert select_canonical_pair([no_liq, some])["pairAddress"] == "some"
    assert select_canonical_pair([no_liq])["pairAddress"] == "none"
    assert select_canonical_pair([]) is None


def test_other_chains_and_quote_side_matches_are_ignored(pair_factory):
    eth = pair_factory("MINT", chain_id="ethereum", liquidity=1_000_000)
    unrelated = pair_factory("OTHER", liquidity=50)
    snaps = snapshots_from_pairs([eth, unrelated], ["MINT"], "solana")
    assert snaps == {}


def test_market_cap_falls_back_to_fdv(pair_factory):
    pair = pair_factory("MINT", market_cap=None, fdv=250_000)
    snap = pair_to_snapshot(pair)
    assert snap.market_cap == 250_000
    assert snap.fdv == 250_000

    pair = pair_factory("MINT", market_cap=None, fdv=None)
    assert pair_to_snapshot(pair).market_cap == 0.0


def test_pair_to_snapshot_fields(pair_factory):
    pair = pair_factory("MINT", symbol="BONK", volume_1h="42.5", volume_24h=1200)
    snap = pair_to_snapshot(pair)

    assert snap.address == "MINT"
    assert snap.symbol == "BONK"
    assert snap.name == "BONK Token"
    assert snap.volume_1h == 42.5
    assert snap.volume_24h == 1200
    assert snap.price_usd == "0.0195"
    assert snap.image_url == "https://img.test/MINT.png"
    assert snap.dex_url.startswith("https://dexscreener.com/solana/")


def test_missing_metadata_uses_fallbacks():
    snap = pair_to_snapshot({"chainId": "solana", "baseToken": {"address": "MINT"}})
    assert snap.symbol == "?"
    assert snap.name == "Unknown"
    assert snap.price_usd == "0"
    assert snap.image_url is None
