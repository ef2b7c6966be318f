"""Exception types raised by the watchlist core."""


class WatchlistError(Exception):
    """Local validation failure on a watchlist mutation."""


class AlreadyTrackedError(WatchlistError):
    pass


class CapacityExceededError(WatchlistError):
    pass


class TokenNotFoundError(WatchlistError):
    """No trading pair on the target chain references the address."""


class EmptyNameError(WatchlistError):
    pass


class LastGroupProtectedError(WatchlistError):
    pass


class GroupNotFoundError(WatchlistError):
    pass


class InvalidAddressError(WatchlistError):
    pass


class InvalidOrderError(WatchlistError):
    """Reorder payload is not a permutation, or the view is sorted/filtered."""


class MarketDataError(Exception):
    """Transient upstream failure (network, timeout, non-2xx, bad body)."""


class RemoteStoreError(Exception):
    """Transient failure talking to the remote watchlist store."""


class RemoteNotConfiguredError(RemoteStoreError):
    """Remote store credentials are missing; callers should stay local-only."""
