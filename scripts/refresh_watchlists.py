"""Refresh every stored watchlist once (for cron / scheduled task runners).

Usage:
    python scripts/refresh_watchlists.py

Exit code is non-zero when the remote store is unavailable or any
watchlist failed to refresh.
"""
import json
import os
import sys

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tokenwatch.config import Settings
from tokenwatch.data.fetcher import DexScreenerClient
from tokenwatch.errors import RemoteStoreError
from tokenwatch.jobs.refresh_job import run_refresh_job
from tokenwatch.storage.remote import RemoteStore
from tokenwatch.utils import setup_logger

logger = setup_logger("refresh_watchlists")


def main() -> int:
    settings = Settings.from_env()
    try:
        report = run_refresh_job(RemoteStore(settings), DexScreenerClient(settings), settings)
    except RemoteStoreError as e:
        logger.error(f"Refresh job aborted: {e}")
        return 1
    print(json.dumps(report.to_dict()))
    return 1 if report.failed else 0


if __name__ == "__main__":
    sys.exit(main())
