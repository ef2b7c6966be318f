"""Remote watchlist store over the Supabase PostgREST interface.

Documents are stored whole in a ``watchlists`` table with columns
``id`` (text, primary key), ``data`` (jsonb) and ``updated_at``.
Writes are full-document upserts: the last write wins.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from tokenwatch.config import Settings
from tokenwatch.errors import RemoteNotConfiguredError, RemoteStoreError
from tokenwatch.utils import setup_logger

logger = setup_logger(__name__)


def _error_message(r: requests.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return r.text[:200]
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)[:200]


class RemoteStore:
    """Key-value blob store keyed by watchlist id."""

    def __init__(self, settings: Settings, http: Optional[requests.Session] = None):
        self.settings = settings
        self.http = http or requests.Session()

    @property
    def configured(self) -> bool:
        return self.settings.remote_configured

    def _table_url(self) -> str:
        if not self.configured:
            raise RemoteNotConfiguredError("Supabase environment variables not configured")
        return f"{self.settings.supabase_url}/rest/v1/{self.settings.supabase_table}"

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.settings.supabase_key or "",
            "Authorization": f"Bearer {self.settings.supabase_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    def _request(self, method: str, params: Optional[Dict[str, str]] = None, **kwargs) -> requests.Response:
        url = self._table_url()
        try:
            r = self.http.request(
                method, url, params=params, timeout=self.settings.request_timeout, **kwargs
            )
        except requests.exceptions.RequestException as e:
            raise RemoteStoreError(f"{method} {self.settings.supabase_table} failed: {e}") from e
        if not r.ok:
            msg = _error_message(r)
            logger.error(f"Supabase {method} error {r.status_code}: {msg}")
            raise RemoteStoreError(f"Database error ({r.status_code}): {msg}")
        return r

    def read(self, watchlist_id: str) -> Optional[Any]:
        """
        Fetch the stored document for ``watchlist_id``.

        Returns:
            The document, or None if the id has never been written

        Raises:
            RemoteNotConfiguredError: credentials missing
            RemoteStoreError: transport failure, non-2xx status, or malformed body
        """
        r = self._request(
            "GET",
            params={"id": f"eq.{watchlist_id}", "select": "data"},
            headers=self._headers(),
        )
        try:
            rows = r.json()
        except ValueError as e:
            raise RemoteStoreError(f"Malformed response reading {watchlist_id}: {e}") from e
        if isinstance(rows, list) and rows and isinstance(rows[0], dict):
            return rows[0].get("data")
        return None

    def write(self, watchlist_id: str, document: Any) -> None:
        """Upsert the whole document, replacing whatever was stored under the id."""
        self._request(
            "POST",
            headers=self._headers({
                "Content-Type": "application/json",
                "Prefer": "resolution=merge-duplicates",
            }),
            json={
                "id": watchlist_id,
                "data": document,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
        )
        logger.debug(f"Upserted watchlist {watchlist_id}")

    def list_all(self) -> List[Dict[str, Any]]:
        """Every stored watchlist as ``{"id": ..., "data": ...}`` rows."""
        r = self._request("GET", params={"select": "id,data"}, headers=self._headers())
        try:
            rows = r.json()
        except ValueError as e:
            raise RemoteStoreError(f"Malformed watchlist listing: {e}") from e
        if not isinstance(rows, list):
            raise RemoteStoreError("Malformed watchlist listing: expected a list")
        return [row for row in rows if isinstance(row, dict)]
