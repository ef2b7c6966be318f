"""Server-side refresh of every stored watchlist.

Runs outside any interactive session, on a recurring trigger, so tracked
tokens keep their running extrema while nobody has the dashboard open.
"""
import hmac
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from tokenwatch.config import Settings
from tokenwatch.data.fetcher import DexScreenerClient
from tokenwatch.errors import MarketDataError, RemoteStoreError
from tokenwatch.models import groups_from_document, groups_to_document
from tokenwatch.reconciler import reconcile_groups
from tokenwatch.storage.remote import RemoteStore
from tokenwatch.utils import now_ms, setup_logger

logger = setup_logger(__name__)


def authorize(header: Optional[str], secret: Optional[str]) -> bool:
    """Check an ``Authorization`` header against ``Bearer <secret>``.

    Without a configured secret every request is rejected.
    """
    if not secret or not header:
        return False
    return hmac.compare_digest(header.encode(), f"Bearer {secret}".encode())


@dataclass
class JobReport:
    processed: int = 0  # documents fetched and reconciled
    updated: int = 0  # documents written back
    skipped: int = 0  # empty or malformed documents
    failed: List[str] = field(default_factory=list)  # watchlist ids that errored
    deferred: int = 0  # not reached within the time budget

    def to_dict(self) -> dict:
        return {
            "success": True,
            "processed": self.processed,
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": list(self.failed),
            "deferred": self.deferred,
        }


def run_refresh_job(
    remote: RemoteStore,
    adapter: DexScreenerClient,
    settings: Settings,
    now: Optional[int] = None,
    clock: Callable[[], float] = time.monotonic,
) -> JobReport:
    """
    Refresh and write back every stored watchlist.

    A document is written only if some token's data changed beyond its
    ``lastUpdated`` stamp. Failures of one document do not stop the others.

    Raises:
        RemoteNotConfiguredError: remote credentials missing
        RemoteStoreError: the listing itself failed
    """
    rows = remote.list_all()
    report = JobReport()
    deadline = clock() + settings.cron_time_budget
    logger.info(f"Refresh job starting: {len(rows)} watchlist(s)")

    for index, row in enumerate(rows):
        if clock() >= deadline:
            report.deferred = len(rows) - index
            logger.warning(f"Time budget exhausted, deferring {report.deferred} watchlist(s)")
            break

        watchlist_id = row.get("id")
        groups = groups_from_document(row.get("data"))
        addresses = list(dict.fromkeys(t.address for g in groups for t in g.tokens))
        if not watchlist_id or not addresses:
            report.skipped += 1
            continue

        try:
            result = adapter.fetch_batch(addresses)
            if result.failed:
                logger.warning(f"{watchlist_id}: {len(result.failed)} address(es) not refreshed")
            new_groups, merged, changed = reconcile_groups(
                groups, result.snapshots, now_ms() if now is None else now
            )
            report.processed += 1
            if changed:
                remote.write(watchlist_id, groups_to_document(new_groups))
                report.updated += 1
                logger.info(f"{watchlist_id}: {changed} of {merged} token(s) changed, saved")
        except (MarketDataError, RemoteStoreError) as e:
            logger.error(f"Refresh job failed for {watchlist_id}: {e}")
            report.failed.append(watchlist_id)

    logger.info(
        f"Refresh job done: processed={report.processed} updated={report.updated} "
        f"skipped={report.skipped} failed={len(report.failed)} deferred={report.deferred}"
    )
    return report
