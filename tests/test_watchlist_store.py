"""Tests for watchlist store mutations, invariants and views."""
from unittest.mock import MagicMock

import pytest

from conftest import FakeAdapter, build_snapshot
from tokenwatch.errors import (
    AlreadyTrackedError,
    CapacityExceededError,
    EmptyNameError,
    GroupNotFoundError,
    InvalidAddressError,
    InvalidOrderError,
    LastGroupProtectedError,
    MarketDataError,
    TokenNotFoundError,
)
from tokenwatch.models import Group, TokenRecord, Watchlist
from tokenwatch.watchlist_store import ViewOptions, WatchlistStore


@pytest.fixture
def adapter():
    return FakeAdapter({a: build_snapshot(a) for a in ("AAA", "BBB", "CCC", "DDD")})


@pytest.fixture
def on_change():
    return MagicMock()


@pytest.fixture
def store(adapter, on_change):
    return WatchlistStore(Watchlist(id="wl1"), adapter.fetch_one, on_change=on_change)


def _token(address, now=1, **snap):
    return TokenRecord.from_snapshot(build_snapshot(address, **snap), now)


def test_add_token_prepends_and_notifies(store, on_change):
    gid = store.active_group_id
    store.add_token(gid, "AAA")
    store.add_token(gid, " BBB ")

    assert [t.address for t in store.get_group(gid).tokens] == ["BBB", "AAA"]
    assert store.total_tokens() == 2
    assert on_change.call_count == 2


def test_duplicate_in_same_group_rejected_before_fetch(store, adapter):
    gid = store.active_group_id
    store.add_token(gid, "AAA")
    adapter.fetch_one_calls.clear()

    with pytest.raises(AlreadyTrackedError):
        store.add_token(gid, "AAA")
    assert adapter.fetch_one_calls == []


def test_same_address_allowed_in_another_group(store):
    first = store.active_group_id
    store.add_token(first, "AAA")
    second = store.create_group("Degens").id
    store.add_token(second, "AAA")

    assert store.total_tokens() == 2
    assert store.all_addresses() == ["AAA"]


def test_capacity_is_enforced_across_groups(store, adapter):
    g1 = store.active_group_id
    store.replace_groups([
        Group(id=g1, name="One", tokens=[_token(f"x{i}") for i in range(120)]),
        Group(id="g2", name="Two", tokens=[_token(f"y{i}") for i in range(80)]),
    ])
    assert store.total_tokens() == 200

    with pytest.raises(CapacityExceededError):
        store.add_token("g2", "AAA")
    assert adapter.fetch_one_calls == []
    assert store.total_tokens() == 200


def test_blank_address_rejected(store, adapter):
    with pytest.raises(InvalidAddressError):
        store.add_token(store.active_group_id, "   ")
    assert adapter.fetch_one_calls == []


def test_unknown_token_creates_nothing(store, on_change):
    with pytest.raises(TokenNotFoundError):
        store.add_token(store.active_group_id, "NOPE")
    assert store.total_tokens() == 0
    on_change.assert_not_called()


def test_upstream_failure_creates_nothing(on_change):
    fetch_one = MagicMock(side_effect=MarketDataError("timeout"))
    store = WatchlistStore(Watchlist(id="wl1"), fetch_one, on_change=on_change)

    with pytest.raises(MarketDataError):
        store.add_token(store.active_group_id, "AAA")
    assert store.total_tokens() == 0
    on_change.assert_not_called()


def test_remove_token_is_idempotent(store, on_change):
    gid = store.active_group_id
    token = store.add_token(gid, "AAA")
    on_change.reset_mock()

    store.remove_token(gid, token.id)
    store.remove_token(gid, token.id)
    store.remove_token("missing-group", token.id)

    assert store.total_tokens() == 0
    assert on_change.call_count == 1


def test_create_group_default_name_and_selection(store):
    group = store.create_group()
    assert group.name == "Group 2"
    assert store.active_group_id == group.id


def test_last_group_is_protected(store):
    only = store.active_group_id
    with pytest.raises(LastGroupProtectedError):
        store.delete_group(only)
    assert len(store.groups) == 1


def test_delete_active_group_falls_back_to_first(store):
    first = store.active_group_id
    second = store.create_group("Second").id

    assert store.delete_group(second) == first
    assert store.active_group_id == first
    with pytest.raises(GroupNotFoundError):
        store.get_group(second)


def test_rename_group(store):
    gid = store.active_group_id
    assert store.rename_group(gid, "  Moonshots ").name == "Moonshots"
    with pytest.raises(EmptyNameError):
        store.rename_group(gid, "   ")
    assert store.get_group(gid).name == "Moonshots"


def test_reorder_tokens(store):
    gid = store.active_group_id
    for a in ("AAA", "BBB", "CCC"):
        store.add_token(gid, a)
    ids = [t.id for t in store.get_group(gid).tokens]

    store.reorder_tokens(gid, list(reversed(ids)))
    assert [t.address for t in store.get_group(gid).tokens] == ["AAA", "BBB", "CCC"]

    with pytest.raises(InvalidOrderError):
        store.reorder_tokens(gid, ids[:2])
    with pytest.raises(InvalidOrderError):
        store.reorder_tokens(gid, ids, view=ViewOptions(sort_field="currentMcap"))
    with pytest.raises(InvalidOrderError):
        store.reorder_tokens(gid, ids, view=ViewOptions(search="AA"))


def test_move_token(store):
    gid = store.active_group_id
    for a in ("AAA", "BBB", "CCC"):
        store.add_token(gid, a)
    top = store.get_group(gid).tokens[0]

    store.move_token(gid, top.id, 1)
    assert [t.address for t in store.get_group(gid).tokens] == ["BBB", "CCC", "AAA"]
    store.move_token(gid, top.id, -5)
    assert [t.address for t in store.get_group(gid).tokens] == ["CCC", "BBB", "AAA"]


def test_sorted_view_is_stable_and_does_not_touch_order(store):
    gid = store.active_group_id
    store.replace_groups([Group(id=gid, name="Main", tokens=[
        _token("AAA", now=1, market_cap=500.0),
        _token("BBB", now=2, market_cap=900.0),
        _token("CCC", now=3, market_cap=500.0),
    ])])

    desc = [t.address for t in store.sorted_view(gid, "currentMcap", "desc")]
    asc = [t.address for t in store.sorted_view(gid, "currentMcap", "asc")]

    assert desc == ["BBB", "AAA", "CCC"]
    assert asc == ["AAA", "CCC", "BBB"]
    assert [t.address for t in store.get_group(gid).tokens] == ["AAA", "BBB", "CCC"]


def test_ath_roi_sort_uses_derived_value(store):
    gid = store.active_group_id
    flat = _token("AAA", market_cap=1000.0)
    pumped = TokenRecord.from_dict({**_token("BBB", market_cap=1000.0).to_dict(), "maxMcap": 5000.0})
    store.replace_groups([Group(id=gid, name="Main", tokens=[flat, pumped])])

    assert [t.address for t in store.sorted_view(gid, "athROI")] == ["BBB", "AAA"]


def test_filtered_view(store):
    gid = store.active_group_id
    for a in ("AAA", "BBB"):
        store.add_token(gid, a)

    assert [t.address for t in store.filtered_view(gid, "bbb")] == ["BBB"]
    assert len(store.filtered_view(gid, "")) == 2
    assert store.filtered_view(gid, "zzz").to_list() == []


def test_view_reflects_later_mutations(store):
    gid = store.active_group_id
    view = store.view(gid, ViewOptions())
    assert view.to_list() == []
    store.add_token(gid, "AAA")
    assert [t.address for t in view] == ["AAA"]


def test_invalid_sort_field(store):
    with pytest.raises(ValueError):
        store.sorted_view(store.active_group_id, "price")


def test_apply_snapshots_updates_every_group(store, on_change):
    g1 = store.active_group_id
    store.add_token(g1, "AAA")
    g2 = store.create_group().id
    store.add_token(g2, "AAA")
    on_change.reset_mock()

    merged = store.apply_snapshots({"AAA": build_snapshot("AAA", market_cap=300000.0)}, now=77)

    assert merged == 2
    for gid in (g1, g2):
        token = store.get_group(gid).tokens[0]
        assert token.current_mcap == 300000.0
        assert token.max_mcap == 300000.0
        assert token.last_updated == 77
    on_change.assert_called_once()


def test_volume_leaders_are_unique_by_address(store):
    g1 = store.active_group_id
    g2 = store.create_group().id
    store.replace_groups([
        Group(id=g1, name="One", tokens=[_token("AAA", volume_24h=50.0), _token("BBB", volume_24h=500.0)]),
        Group(id=g2, name="Two", tokens=[_token("AAA", volume_24h=50.0)]),
    ])

    leaders = store.volume_leaders("24h")

    assert list(leaders["address"]) == ["BBB", "AAA"]
