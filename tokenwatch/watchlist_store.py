"""In-memory watchlist store: groups of tokens plus their mutation operations.

Every mutation takes the store lock, validates, and swaps in new state in a
single step, so readers never observe a half-applied change.
"""
import threading
from dataclasses import dataclass
from typing import Callable, Iterator, List, Mapping, Optional, Sequence

from tokenwatch.constants import (
    DEFAULT_SORT_DIRECTION,
    DEFAULT_SORT_FIELD,
    MANUAL_ORDER,
    MAX_TOTAL_TOKENS,
    NEW_GROUP_NAME,
)
from tokenwatch.data.transformer import volume_leaders
from tokenwatch.errors import (
    AlreadyTrackedError,
    CapacityExceededError,
    EmptyNameError,
    GroupNotFoundError,
    InvalidAddressError,
    InvalidOrderError,
    LastGroupProtectedError,
    TokenNotFoundError,
)
from tokenwatch.models import Group, Snapshot, TokenRecord, Watchlist, ath_roi
from tokenwatch.reconciler import reconcile_groups
from tokenwatch.utils import now_ms, setup_logger

logger = setup_logger(__name__)

_SORT_KEYS = {
    "currentMcap": lambda t: t.current_mcap,
    "volume24h": lambda t: t.volume_24h,
    "maxMcap": lambda t: t.max_mcap,
    "athROI": ath_roi,
    "addedAt": lambda t: t.added_at,
}


@dataclass(frozen=True)
class ViewOptions:
    """How a group is projected for display."""

    sort_field: str = DEFAULT_SORT_FIELD
    direction: str = DEFAULT_SORT_DIRECTION
    search: str = ""

    @property
    def is_default(self) -> bool:
        """Manual order with no search term: the only mode that allows reordering."""
        return self.sort_field == MANUAL_ORDER and not self.search.strip()


def matches_search(token: TokenRecord, term: str) -> bool:
    """Case-insensitive substring match on symbol, name or address."""
    needle = term.strip().lower()
    if not needle:
        return True
    return (
        needle in token.symbol.lower()
        or needle in token.name.lower()
        or needle in token.address.lower()
    )


class TokenView:
    """
    Read-only ordered projection of one group's tokens.

    Nothing is computed until iteration, and every iteration re-reads the
    group's current canonical order, so a view can be iterated repeatedly.
    """

    def __init__(
        self,
        source: Callable[[], List[TokenRecord]],
        search: str = "",
        sort_field: str = MANUAL_ORDER,
        direction: str = DEFAULT_SORT_DIRECTION,
    ):
        if sort_field != MANUAL_ORDER and sort_field not in _SORT_KEYS:
            raise ValueError(f"Unknown sort field: {sort_field}")
        if direction not in ("asc", "desc"):
            raise ValueError(f"Unknown sort direction: {direction}")
        self._source = source
        self.search = search
        self.sort_field = sort_field
        self.direction = direction

    def __iter__(self) -> Iterator[TokenRecord]:
        tokens = [t for t in self._source() if matches_search(t, self.search)]
        if self.sort_field != MANUAL_ORDER:
            # sorted() is stable in both directions, so ties keep canonical order
            tokens = sorted(tokens, key=_SORT_KEYS[self.sort_field], reverse=self.direction == "desc")
        return iter(tokens)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def to_list(self) -> List[TokenRecord]:
        return list(self)


class WatchlistStore:
    """Owns mutations of a :class:`Watchlist`'s groups and enforces its invariants."""

    def __init__(
        self,
        watchlist: Watchlist,
        fetch_one: Callable[[str], Optional[Snapshot]],
        on_change: Optional[Callable[[], None]] = None,
        capacity: int = MAX_TOTAL_TOKENS,
    ):
        self._watchlist = watchlist
        self._fetch_one = fetch_one
        self._on_change = on_change
        self.capacity = capacity
        self._lock = threading.RLock()
        if not self._watchlist.groups:
            raise ValueError("A watchlist needs at least one group")
        self.active_group_id = self._watchlist.groups[0].id

    # -- reads -------------------------------------------------------------

    @property
    def watchlist_id(self) -> str:
        return self._watchlist.id

    @property
    def groups(self) -> List[Group]:
        """Shallow copy of the group list (groups themselves are replaced, not edited, on change)."""
        with self._lock:
            return list(self._watchlist.groups)

    def get_group(self, group_id: str) -> Group:
        with self._lock:
            for group in self._watchlist.groups:
                if group.id == group_id:
                    return group
        raise GroupNotFoundError(f"Group {group_id} does not exist")

    @property
    def active_group(self) -> Group:
        with self._lock:
            try:
                return self.get_group(self.active_group_id)
            except GroupNotFoundError:
                self.active_group_id = self._watchlist.groups[0].id
                return self._watchlist.groups[0]

    def total_tokens(self) -> int:
        with self._lock:
            return sum(len(g.tokens) for g in self._watchlist.groups)

    def all_addresses(self) -> List[str]:
        """Deduplicated union of tracked addresses across every group, first-seen order."""
        with self._lock:
            return list(dict.fromkeys(t.address for g in self._watchlist.groups for t in g.tokens))

    def sorted_view(self, group_id: str, field: str = MANUAL_ORDER, direction: str = DEFAULT_SORT_DIRECTION) -> TokenView:
        self.get_group(group_id)
        return TokenView(lambda: self.get_group(group_id).tokens, sort_field=field, direction=direction)

    def filtered_view(self, group_id: str, search_term: str) -> TokenView:
        self.get_group(group_id)
        return TokenView(lambda: self.get_group(group_id).tokens, search=search_term or "")

    def view(self, group_id: str, options: ViewOptions) -> TokenView:
        """Filter then sort, as shown to the user."""
        self.get_group(group_id)
        return TokenView(
            lambda: self.get_group(group_id).tokens,
            search=options.search,
            sort_field=options.sort_field,
            direction=options.direction,
        )

    def volume_leaders(self, window: str = "24h"):
        return volume_leaders(self.groups, window)

    # -- mutations ---------------------------------------------------------

    def _replace_group(self, updated: Group) -> None:
        self._watchlist.groups = [updated if g.id == updated.id else g for g in self._watchlist.groups]

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def _check_can_add(self, group_id: str, address: str) -> None:
        if self.total_tokens() >= self.capacity:
            raise CapacityExceededError(f"Total watchlist limit of {self.capacity} tokens reached.")
        if self.get_group(group_id).has_address(address):
            raise AlreadyTrackedError("Token already in this group.")

    def add_token(self, group_id: str, address: str) -> TokenRecord:
        """
        Fetch and track a new token at the top of ``group_id``.

        Raises:
            InvalidAddressError, CapacityExceededError, AlreadyTrackedError,
            GroupNotFoundError: before any network call
            TokenNotFoundError: no pair on the target chain
            MarketDataError: transient upstream failure (nothing is created)
        """
        address = (address or "").strip()
        if not address:
            raise InvalidAddressError("Enter a token address.")
        with self._lock:
            self._check_can_add(group_id, address)

        # The lock is not held across the network call; state is re-validated after.
        snapshot = self._fetch_one(address)
        if snapshot is None:
            raise TokenNotFoundError(f"No trading pair found for {address}.")

        with self._lock:
            self._check_can_add(group_id, snapshot.address)
            token = TokenRecord.from_snapshot(snapshot, now_ms())
            group = self.get_group(group_id)
            self._replace_group(Group(id=group.id, name=group.name, tokens=[token] + group.tokens))
        logger.info(f"Added {token.symbol} ({token.address}) to group '{group.name}'")
        self._notify()
        return token

    def remove_token(self, group_id: str, token_id: str) -> None:
        """Remove a token; unknown groups or tokens are a no-op."""
        with self._lock:
            try:
                group = self.get_group(group_id)
            except GroupNotFoundError:
                return
            tokens = [t for t in group.tokens if t.id != token_id]
            if len(tokens) == len(group.tokens):
                return
            self._replace_group(Group(id=group.id, name=group.name, tokens=tokens))
        self._notify()

    def create_group(self, name: Optional[str] = None) -> Group:
        with self._lock:
            name = (name or "").strip() or NEW_GROUP_NAME.format(n=len(self._watchlist.groups) + 1)
            group = Group.create(name)
            self._watchlist.groups = self._watchlist.groups + [group]
            self.active_group_id = group.id
        self._notify()
        return group

    def delete_group(self, group_id: str) -> str:
        """
        Delete a group, refusing to remove the last one.

        Returns:
            The id of the group that is active afterwards
        """
        with self._lock:
            self.get_group(group_id)
            if len(self._watchlist.groups) <= 1:
                raise LastGroupProtectedError("At least one group must remain.")
            self._watchlist.groups = [g for g in self._watchlist.groups if g.id != group_id]
            if self.active_group_id == group_id:
                self.active_group_id = self._watchlist.groups[0].id
            active = self.active_group_id
        self._notify()
        return active

    def rename_group(self, group_id: str, new_name: str) -> Group:
        name = (new_name or "").strip()
        if not name:
            raise EmptyNameError("Group name cannot be empty.")
        with self._lock:
            group = self.get_group(group_id)
            renamed = Group(id=group.id, name=name, tokens=group.tokens)
            self._replace_group(renamed)
        self._notify()
        return renamed

    def select_group(self, group_id: str) -> Group:
        with self._lock:
            group = self.get_group(group_id)
            self.active_group_id = group.id
            return group

    def reorder_tokens(self, group_id: str, new_order: Sequence[str], view: Optional[ViewOptions] = None) -> None:
        """
        Replace a group's canonical order with a permutation of its token ids.

        Raises:
            InvalidOrderError: when the current view is sorted or filtered, or
                ``new_order`` is not a permutation of the group's ids
        """
        if view is not None and not view.is_default:
            raise InvalidOrderError("Manual reordering needs the unsorted, unfiltered view.")
        with self._lock:
            group = self.get_group(group_id)
            by_id = {t.id: t for t in group.tokens}
            if len(new_order) != len(by_id) or set(new_order) != set(by_id):
                raise InvalidOrderError("New order must contain every token of the group exactly once.")
            self._replace_group(Group(id=group.id, name=group.name, tokens=[by_id[i] for i in new_order]))
        self._notify()

    def move_token(self, group_id: str, token_id: str, offset: int, view: Optional[ViewOptions] = None) -> None:
        """Shift one token up (negative) or down (positive) in the canonical order."""
        with self._lock:
            ids = [t.id for t in self.get_group(group_id).tokens]
        if token_id not in ids:
            return
        idx = ids.index(token_id)
        target = max(0, min(len(ids) - 1, idx + offset))
        if target == idx:
            return
        ids.insert(target, ids.pop(idx))
        self.reorder_tokens(group_id, ids, view)

    def apply_snapshots(self, snapshots: Mapping[str, Snapshot], now: Optional[int] = None) -> int:
        """
        Reconcile fetched snapshots into every group.

        Returns:
            Number of tokens merged
        """
        if not snapshots:
            return 0
        with self._lock:
            groups, merged, _ = reconcile_groups(self._watchlist.groups, snapshots, now)
            if merged:
                self._watchlist.groups = groups
        if merged:
            self._notify()
        return merged

    def replace_groups(self, groups: List[Group], notify: bool = False) -> None:
        """Adopt a whole new group list (used when loading a stored document)."""
        if not groups:
            raise ValueError("A watchlist needs at least one group")
        with self._lock:
            self._watchlist.groups = list(groups)
            if not any(g.id == self.active_group_id for g in groups):
                self.active_group_id = groups[0].id
        if notify:
            self._notify()

    def replace_watchlist(self, watchlist: Watchlist) -> None:
        """Switch to a different watchlist identity, e.g. one opened from a share link."""
        if not watchlist.groups:
            raise ValueError("A watchlist needs at least one group")
        with self._lock:
            self._watchlist = watchlist
            self.active_group_id = watchlist.groups[0].id
        logger.info(f"Switched to watchlist {watchlist.id}")

    def switch_watchlist(self, load: Callable[[], Watchlist]) -> Watchlist:
        """
        Swap in the watchlist returned by ``load``.

        The store lock is held while ``load`` runs, so no mutation can land on
        the outgoing watchlist after it was saved for the last time.
        """
        with self._lock:
            watchlist = load()
            self.replace_watchlist(watchlist)
        return watchlist


__all__ = ["TokenView", "ViewOptions", "WatchlistStore", "matches_search"]
