"""Local and remote persistence of watchlist documents."""
from tokenwatch.storage.local import LocalStore, is_valid_watchlist_id
from tokenwatch.storage.remote import RemoteStore

__all__ = ["LocalStore", "RemoteStore", "is_valid_watchlist_id"]
