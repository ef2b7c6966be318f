"""Wiring of one running watchlist session."""
from dataclasses import dataclass
from typing import Optional

from tokenwatch.config import Settings
from tokenwatch.data.fetcher import DexScreenerClient
from tokenwatch.scheduler import RefreshScheduler
from tokenwatch.storage import LocalStore, RemoteStore, is_valid_watchlist_id
from tokenwatch.sync import SyncController
from tokenwatch.utils import setup_logger
from tokenwatch.watchlist_store import WatchlistStore

logger = setup_logger(__name__)


@dataclass
class WatchlistSession:
    """Everything a running instance needs, scoped to one watchlist identity."""

    settings: Settings
    adapter: DexScreenerClient
    remote: RemoteStore
    sync: SyncController
    store: WatchlistStore
    scheduler: RefreshScheduler

    def open_watchlist(self, watchlist_id: str) -> bool:
        """
        Switch this session to another identity (a share link opened in the browser).

        The current list is saved and flushed first. Returns False when
        ``watchlist_id`` is already open or is not a valid identifier.
        """
        watchlist_id = (watchlist_id or "").strip().lstrip("#")
        if watchlist_id == self.sync.watchlist_id or not is_valid_watchlist_id(watchlist_id):
            return False

        def load():
            self.sync.persist()
            self.sync.flush()
            return self.sync.initialize(watchlist_id)

        self.store.switch_watchlist(load)
        return True

    def close(self) -> None:
        self.scheduler.stop(timeout=5)
        self.sync.flush()
        self.sync.close()


def open_session(
    settings: Settings,
    requested_id: Optional[str] = None,
    adapter: Optional[DexScreenerClient] = None,
    remote: Optional[RemoteStore] = None,
) -> WatchlistSession:
    """Resolve identity, load the watchlist and build the store and scheduler around it."""
    adapter = adapter or DexScreenerClient(settings)
    remote = remote or RemoteStore(settings)
    sync = SyncController(settings, LocalStore(settings.data_dir), remote)
    watchlist = sync.initialize(requested_id)

    store = WatchlistStore(watchlist, adapter.fetch_one, on_change=sync.persist)
    scheduler = RefreshScheduler(store, adapter, settings.refresh_interval)
    logger.info(
        f"Session ready: watchlist {watchlist.id} ({sync.mode.value}), "
        f"{store.total_tokens()} token(s) in {len(watchlist.groups)} group(s)"
    )
    return WatchlistSession(
        settings=settings,
        adapter=adapter,
        remote=remote,
        sync=sync,
        store=store,
        scheduler=scheduler,
    )
