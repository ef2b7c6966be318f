"""Market data fetching from the DexScreener API with retry logic and batching."""
import asyncio
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import aiohttp
import requests

from tokenwatch.config import Settings
from tokenwatch.data.cleaner import extract_pairs, snapshots_from_pairs
from tokenwatch.errors import MarketDataError
from tokenwatch.models import Snapshot
from tokenwatch.utils import setup_logger

logger = setup_logger(__name__)

RETRY_STATUSES = (429, 500, 502, 503, 504)


@dataclass
class BatchResult:
    """Outcome of a batch fetch: snapshots found plus addresses whose chunk failed."""

    snapshots: Dict[str, Snapshot] = field(default_factory=dict)
    failed: List[str] = field(default_factory=list)
    requested: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed

    def __contains__(self, address: str) -> bool:
        return address in self.snapshots

    def get(self, address: str) -> Optional[Snapshot]:
        return self.snapshots.get(address)


def chunk_addresses(addresses: Iterable[str], size: int) -> List[List[str]]:
    """Deduplicate (keeping first-seen order) and split into chunks of at most ``size``."""
    unique = [a for a in dict.fromkeys(addresses) if a]
    return [unique[i:i + size] for i in range(0, len(unique), size)]


class DexScreenerClient:
    """Market Data Adapter over the DexScreener token endpoint."""

    def __init__(self, settings: Settings, http: Optional[requests.Session] = None):
        self.settings = settings
        self.http = http or requests.Session()

    def _url(self, addresses: List[str]) -> str:
        return f"{self.settings.api_base.rstrip('/')}/{','.join(addresses)}"

    def fetch_one(self, address: str) -> Optional[Snapshot]:
        """
        Fetch the canonical snapshot for a single address.

        Returns:
            Snapshot, or None when no pair on the target chain references the address

        Raises:
            MarketDataError: after retries are exhausted on transport or server errors
        """
        url = self._url([address])
        cur_wait = self.settings.retry_wait
        last_err = None

        for attempt in range(1, self.settings.max_retries + 1):
            try:
                r = self.http.get(url, timeout=self.settings.request_timeout)

                logger.debug(f"{address}: API request (attempt {attempt}/{self.settings.max_retries}) - Status: {r.status_code}")

                if r.status_code in RETRY_STATUSES:
                    last_err = f"HTTP {r.status_code}"
                    logger.warning(f"{address}: HTTP {r.status_code} (try {attempt}/{self.settings.max_retries}) -> sleep {cur_wait:.1f}s")
                    if attempt < self.settings.max_retries:
                        time.sleep(cur_wait)
                    continue

                if r.status_code == 404:
                    logger.info(f"{address}: 404 from upstream, treating as not found")
                    return None

                r.raise_for_status()
                pairs = extract_pairs(r.json())
                snapshot = snapshots_from_pairs(pairs, [address], self.settings.chain_id).get(address)
                if snapshot is None:
                    logger.info(f"{address}: no {self.settings.chain_id} pair found")
                return snapshot

            except (requests.exceptions.RequestException, ValueError) as e:
                last_err = e
                logger.error(f"{address}: Request error (try {attempt}/{self.settings.max_retries}) -> {e}")
                if attempt < self.settings.max_retries:
                    time.sleep(cur_wait)

        error_msg = f"{address}: failed after {self.settings.max_retries} retries. last_err={last_err}"
        logger.error(error_msg)
        raise MarketDataError(error_msg)

    async def _fetch_chunk_async(self, session: aiohttp.ClientSession, chunk: List[str]) -> Dict[str, Snapshot]:
        """Fetch one chunk; any failure propagates so the caller can isolate it."""
        timeout = aiohttp.ClientTimeout(total=self.settings.request_timeout)
        async with session.get(self._url(chunk), timeout=timeout) as r:
            if r.status != 200:
                raise MarketDataError(f"HTTP {r.status} for chunk of {len(chunk)}")
            js = await r.json()
        return snapshots_from_pairs(extract_pairs(js), chunk, self.settings.chain_id)

    async def fetch_batch_async(
        self,
        addresses: Iterable[str],
        session: Optional[aiohttp.ClientSession] = None,
    ) -> BatchResult:
        """
        Fetch many addresses, one request per chunk of ``max_batch``.

        Chunks are awaited independently; a failed chunk only drops its own
        addresses into ``BatchResult.failed``.
        """
        chunks = chunk_addresses(addresses, self.settings.max_batch)
        result = BatchResult(requested=sum(len(c) for c in chunks))
        if not chunks:
            return result

        if session is None:
            async with aiohttp.ClientSession() as own_session:
                return await self._gather_chunks(own_session, chunks, result)
        return await self._gather_chunks(session, chunks, result)

    async def _gather_chunks(self, session, chunks: List[List[str]], result: BatchResult) -> BatchResult:
        tasks = [self._fetch_chunk_async(session, chunk) for chunk in chunks]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        for idx, (chunk, outcome) in enumerate(zip(chunks, outcomes)):
            if isinstance(outcome, BaseException):
                logger.warning(f"Chunk {idx + 1}/{len(chunks)} failed ({len(chunk)} addresses): {outcome}")
                result.failed.extend(chunk)
                continue
            result.snapshots.update(outcome)

        logger.debug(
            f"Batch fetch: {len(result.snapshots)}/{result.requested} snapshots, "
            f"{len(result.failed)} in failed chunks"
        )
        return result

    def fetch_batch(self, addresses: Iterable[str]) -> BatchResult:
        """Synchronous wrapper around :meth:`fetch_batch_async`."""
        return asyncio.run(self.fetch_batch_async(addresses))
