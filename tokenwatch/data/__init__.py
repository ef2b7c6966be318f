"""Market data fetching, pair cleaning, and tabular transformation modules."""
from tokenwatch.data.cleaner import pair_to_snapshot, select_canonical_pair, snapshots_from_pairs
from tokenwatch.data.fetcher import BatchResult, DexScreenerClient, chunk_addresses
from tokenwatch.data.transformer import tokens_frame, volume_leaders

__all__ = [
    "BatchResult",
    "DexScreenerClient",
    "chunk_addresses",
    "pair_to_snapshot",
    "select_canonical_pair",
    "snapshots_from_pairs",
    "tokens_frame",
    "volume_leaders",
]
