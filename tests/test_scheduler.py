"""Tests for the refresh scheduler."""
import pytest

from conftest import FakeAdapter, build_snapshot
from tokenwatch.errors import MarketDataError
from tokenwatch.models import Group, TokenRecord, Watchlist
from tokenwatch.scheduler import FAILED, IDLE, OK, PARTIAL, SKIPPED, RefreshScheduler
from tokenwatch.watchlist_store import WatchlistStore


def _store(adapter, *addresses):
    tokens = [TokenRecord.from_snapshot(build_snapshot(a), 1) for a in addresses]
    watchlist = Watchlist(id="wl1", groups=[Group(id="g1", name="Main", tokens=tokens)])
    return WatchlistStore(watchlist, adapter.fetch_one)


def test_idle_when_nothing_tracked():
    adapter = FakeAdapter()
    scheduler = RefreshScheduler(_store(adapter), adapter, interval=15)

    outcome = scheduler.tick()

    assert outcome.status == IDLE
    assert adapter.batch_calls == []


def test_tick_merges_snapshots():
    adapter = FakeAdapter({"AAA": build_snapshot("AAA", market_cap=250000.0)})
    store = _store(adapter, "AAA")
    scheduler = RefreshScheduler(store, adapter, interval=15)

    outcome = scheduler.tick()

    assert outcome.status == OK
    assert outcome.updated == 1
    assert store.get_group("g1").tokens[0].max_mcap == 250000.0
    assert scheduler.last_outcome is outcome


def test_partial_refresh_keeps_stale_tokens():
    adapter = FakeAdapter(
        {"AAA": build_snapshot("AAA", market_cap=250000.0), "BBB": build_snapshot("BBB", market_cap=1.0)},
        failed=["BBB"],
    )
    store = _store(adapter, "AAA", "BBB")
    before = store.get_group("g1").tokens[1]

    outcome = RefreshScheduler(store, adapter, interval=15).tick(manual=True)

    assert outcome.status == PARTIAL
    assert outcome.failed_addresses == ["BBB"]
    assert store.get_group("g1").tokens[1] == before
    assert "1 token" in outcome.user_message


def test_background_failure_is_silent_manual_is_not():
    adapter = FakeAdapter()
    adapter.batch_error = MarketDataError("upstream down")
    scheduler = RefreshScheduler(_store(adapter, "AAA"), adapter, interval=15)

    background = scheduler.tick()
    manual = scheduler.tick(manual=True)

    assert background.status == FAILED and background.user_message is None
    assert manual.status == FAILED
    assert manual.user_message == "Failed to refresh market data."


def test_all_chunks_failed_is_a_failure():
    adapter = FakeAdapter(failed=["AAA"])
    outcome = RefreshScheduler(_store(adapter, "AAA"), adapter, interval=15).tick(manual=True)
    assert outcome.status == FAILED


def test_ticks_never_overlap():
    seen = []

    class ReentrantAdapter(FakeAdapter):
        def fetch_batch(self, addresses):
            # a second tick arriving while this one is in flight
            seen.append(scheduler.tick())
            return super().fetch_batch(addresses)

    adapter = ReentrantAdapter({"AAA": build_snapshot("AAA")})
    scheduler = RefreshScheduler(_store(adapter, "AAA"), adapter, interval=15)

    outcome = scheduler.tick()

    assert outcome.status == OK
    assert [o.status for o in seen] == [SKIPPED]
    assert len(adapter.batch_calls) == 1
    assert scheduler.in_flight is False


def test_in_flight_flag_cleared_after_unexpected_error():
    adapter = FakeAdapter()
    adapter.batch_error = RuntimeError("bug")
    scheduler = RefreshScheduler(_store(adapter, "AAA"), adapter, interval=15)

    with pytest.raises(RuntimeError):
        scheduler.tick()
    assert scheduler.in_flight is False


def test_start_and_stop():
    adapter = FakeAdapter()
    scheduler = RefreshScheduler(_store(adapter), adapter, interval=60)
    scheduler.start()
    scheduler.stop(timeout=1)
    assert scheduler._thread is None
