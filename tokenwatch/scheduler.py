"""Periodic refresh of every tracked token, never overlapping itself."""
import threading
from dataclasses import dataclass, field
from typing import List, Optional

from tokenwatch.data.fetcher import DexScreenerClient
from tokenwatch.errors import MarketDataError
from tokenwatch.utils import setup_logger
from tokenwatch.watchlist_store import WatchlistStore

logger = setup_logger(__name__)

SKIPPED = "skipped"  # another cycle was still in flight
IDLE = "idle"  # nothing tracked
OK = "ok"
PARTIAL = "partial"  # some chunks failed
FAILED = "failed"  # nothing could be fetched


@dataclass
class RefreshOutcome:
    status: str
    manual: bool = False
    requested: int = 0
    updated: int = 0
    failed_addresses: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def user_message(self) -> Optional[str]:
        """Error text to show the user; background refreshes never produce one."""
        if not self.manual:
            return None
        if self.status == FAILED:
            return "Failed to refresh market data."
        if self.status == PARTIAL:
            return f"Could not refresh {len(self.failed_addresses)} token(s); showing last known data."
        return None


class RefreshScheduler:
    """Drives batch fetch + reconcile on a fixed interval."""

    def __init__(self, store: WatchlistStore, adapter: DexScreenerClient, interval: float):
        self.store = store
        self.adapter = adapter
        self.interval = interval
        self._in_flight = False
        self._flag_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.last_outcome: Optional[RefreshOutcome] = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def tick(self, manual: bool = False) -> RefreshOutcome:
        """
        Run one refresh cycle.

        If a cycle is already running this returns immediately with status
        ``skipped``; ticks are never queued.
        """
        with self._flag_lock:
            if self._in_flight:
                logger.debug("Refresh still in flight, skipping tick")
                return RefreshOutcome(status=SKIPPED, manual=manual)
            self._in_flight = True
        try:
            outcome = self._run(manual)
        finally:
            with self._flag_lock:
                self._in_flight = False
        self.last_outcome = outcome
        return outcome

    def _run(self, manual: bool) -> RefreshOutcome:
        if self.store.total_tokens() == 0:
            return RefreshOutcome(status=IDLE, manual=manual)

        addresses = self.store.all_addresses()
        try:
            result = self.adapter.fetch_batch(addresses)
        except MarketDataError as e:
            return self._failed(manual, addresses, str(e))

        updated = self.store.apply_snapshots(result.snapshots)
        if result.failed and not result.snapshots:
            return self._failed(manual, result.failed, "all chunks failed")

        status = PARTIAL if result.failed else OK
        level = logger.info if manual else logger.debug
        level(f"Refresh {status}: {updated} token(s) updated from {len(addresses)} address(es)")
        return RefreshOutcome(
            status=status,
            manual=manual,
            requested=len(addresses),
            updated=updated,
            failed_addresses=list(result.failed),
        )

    def _failed(self, manual: bool, addresses: List[str], error: str) -> RefreshOutcome:
        if manual:
            logger.error(f"Manual refresh failed: {error}")
        else:
            logger.debug(f"Background refresh failed, will retry next tick: {error}")
        return RefreshOutcome(
            status=FAILED,
            manual=manual,
            requested=len(addresses),
            failed_addresses=list(addresses),
            error=error,
        )

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.tick(manual=False)
            except Exception:
                logger.exception("Unexpected error in background refresh")

    def start(self) -> None:
        """Start the background loop on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="refresh-scheduler", daemon=True)
        self._thread.start()
        logger.info(f"Refresh scheduler started (every {self.interval:g}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
