"""Watchlist identity, startup load and debounced cloud sync.

Local state is always written first; the remote copy follows after a quiet
period of ``sync_debounce`` seconds. Remote writes are whole-document
upserts, so concurrent editors of the same id resolve by last write wins.
"""
import functools
import threading
from enum import Enum
from typing import Any, Callable, Dict, Optional

from tokenwatch.config import Settings
from tokenwatch.errors import RemoteNotConfiguredError, RemoteStoreError
from tokenwatch.models import Watchlist, default_groups, groups_from_document
from tokenwatch.storage.local import LocalStore, is_valid_watchlist_id
from tokenwatch.storage.remote import RemoteStore
from tokenwatch.utils import new_watchlist_id, now_ms, setup_logger

logger = setup_logger(__name__)


class SyncMode(str, Enum):
    INITIALIZING = "initializing"
    CLOUD_SYNCED = "cloud_synced"
    LOCAL_ONLY = "local_only"


class SyncController:
    """Owns the authoritative in-memory :class:`Watchlist` for one identity."""

    def __init__(
        self,
        settings: Settings,
        local: LocalStore,
        remote: RemoteStore,
        timer_factory: Callable[..., Any] = threading.Timer,
    ):
        self.settings = settings
        self.local = local
        self.remote = remote
        self._timer_factory = timer_factory
        self._timer = None
        self._generation = 0
        self._timer_lock = threading.Lock()
        self._save_lock = threading.Lock()

        self.watchlist: Optional[Watchlist] = None
        self.mode = SyncMode.INITIALIZING
        self.sync_paused = False
        self.last_error: Optional[str] = None
        self.last_synced_at: Optional[int] = None

    # -- identity ----------------------------------------------------------

    def resolve_identity(self, requested_id: Optional[str] = None) -> str:
        """
        Pick the watchlist id: a supplied one (share link), the remembered
        one, or a freshly generated one. The result is remembered for next time.
        """
        watchlist_id = None
        if requested_id:
            requested_id = requested_id.strip().lstrip("#")
            if is_valid_watchlist_id(requested_id):
                watchlist_id = requested_id
            else:
                logger.warning(f"Ignoring invalid watchlist id {requested_id!r}")
        if watchlist_id is None:
            watchlist_id = self.local.remembered_id()
        if watchlist_id is None:
            watchlist_id = new_watchlist_id()
            logger.info(f"Generated new watchlist id {watchlist_id}")
        self.local.remember_id(watchlist_id)
        return watchlist_id

    @property
    def watchlist_id(self) -> Optional[str]:
        return self.watchlist.id if self.watchlist else None

    @property
    def share_url(self) -> str:
        base = self.settings.public_url.split("#", 1)[0]
        return f"{base}#{self.watchlist_id}" if self.watchlist_id else base

    # -- startup -----------------------------------------------------------

    def initialize(self, requested_id: Optional[str] = None) -> Watchlist:
        """
        Load the watchlist for the resolved identity and settle the sync mode.

        Never raises for remote problems: a missing configuration or a failed
        read both leave the session in local-only mode.
        """
        watchlist_id = self.resolve_identity(requested_id)
        groups = groups_from_document(self.local.load(watchlist_id)) or default_groups()
        self.watchlist = Watchlist(id=watchlist_id, groups=groups)
        self.mode = SyncMode.INITIALIZING
        seed_remote = False

        try:
            remote_doc = self.remote.read(watchlist_id)
        except RemoteNotConfiguredError:
            logger.info("Cloud sync not configured; running local-only")
            self.mode = SyncMode.LOCAL_ONLY
        except RemoteStoreError as e:
            logger.warning(f"Cloud load failed for {watchlist_id}, falling back to local-only: {e}")
            self.mode = SyncMode.LOCAL_ONLY
            self.last_error = "Cloud sync unavailable; working locally."
        else:
            remote_groups = groups_from_document(remote_doc)
            if remote_groups:
                self.watchlist.groups = remote_groups
                logger.info(f"Loaded watchlist {watchlist_id} from cloud ({len(remote_groups)} groups)")
            else:
                logger.info(f"No cloud copy of {watchlist_id} yet; it will be created on first sync")
                seed_remote = True
            self.mode = SyncMode.CLOUD_SYNCED

        self._save_local()
        if seed_remote:
            self._arm()
        return self.watchlist

    # -- persistence path --------------------------------------------------

    def persist(self) -> None:
        """Called after every mutation: save locally now, and debounce the cloud write."""
        self._save_local()
        if self.mode is SyncMode.CLOUD_SYNCED:
            self._arm()

    def _save_local(self) -> None:
        with self._save_lock:
            watchlist = self.watchlist
            if watchlist is None:
                return
            try:
                self.local.save(watchlist.id, watchlist.to_document())
            except OSError as e:
                logger.error(f"Local save failed for {watchlist.id}: {e}")

    def _arm(self) -> None:
        """(Re)start the debounce window; only the last mutation in a burst writes."""
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._timer = self._timer_factory(
                self.settings.sync_debounce, functools.partial(self._on_timer, self._generation)
            )
            self._timer.daemon = True
            self._timer.start()

    def _on_timer(self, generation: int) -> None:
        with self._timer_lock:
            if generation != self._generation:
                return
            self._timer = None
        self._write_remote()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def flush(self) -> bool:
        """Write a pending change immediately. Returns True if a write succeeded."""
        with self._timer_lock:
            timer, self._timer = self._timer, None
        if timer is None:
            return False
        timer.cancel()
        return self._write_remote()

    def _write_remote(self) -> bool:
        if self.watchlist is None or self.mode is not SyncMode.CLOUD_SYNCED:
            return False
        try:
            self.remote.write(self.watchlist.id, self.watchlist.to_document())
        except RemoteStoreError as e:
            logger.warning(f"Cloud sync paused for {self.watchlist.id}: {e}")
            self.sync_paused = True
            self.last_error = "Cloud sync paused; changes are saved locally."
            return False
        self.sync_paused = False
        self.last_error = None
        self.last_synced_at = now_ms()
        logger.info(f"Synced watchlist {self.watchlist.id} to cloud")
        return True

    def close(self) -> None:
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def status(self) -> Dict[str, Any]:
        return {
            "watchlist_id": self.watchlist_id,
            "mode": self.mode.value,
            "sync_paused": self.sync_paused,
            "error": self.last_error,
            "last_synced_at": self.last_synced_at,
            "share_url": self.share_url,
        }
