"""Local durable store: JSON files acting as the offline cache of each watchlist."""
import json
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Any, List, Optional

from tokenwatch.constants import WATCHLIST_ID_PATTERN
from tokenwatch.utils import setup_logger

logger = setup_logger(__name__)

_ID_RE = re.compile(WATCHLIST_ID_PATTERN)


def is_valid_watchlist_id(watchlist_id: Optional[str]) -> bool:
    return bool(watchlist_id) and bool(_ID_RE.fullmatch(watchlist_id))


class LocalStore:
    """
    One slot remembers the last watchlist id; one file per id holds its document.

    Layout under ``base_dir``::

        watchlist_id.json        {"id": "<id>"}
        watchlist_<id>.json      [ {group}, ... ]
    """

    ID_FILE = "watchlist_id.json"

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._write_lock = threading.Lock()

    def _document_path(self, watchlist_id: str) -> Path:
        if not is_valid_watchlist_id(watchlist_id):
            raise ValueError(f"Invalid watchlist id: {watchlist_id!r}")
        return self.base_dir / f"watchlist_{watchlist_id}.json"

    def _write_json(self, path: Path, payload: Any) -> None:
        with self._write_lock:
            fd, tmp = tempfile.mkstemp(dir=self.base_dir, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f)
                os.replace(tmp, path)
            except Exception:
                if os.path.exists(tmp):
                    os.remove(tmp)
                raise

    def _read_json(self, path: Path) -> Any:
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable local file {path.name}: {e}")
            return None

    def remembered_id(self) -> Optional[str]:
        data = self._read_json(self.base_dir / self.ID_FILE)
        if isinstance(data, dict) and is_valid_watchlist_id(data.get("id")):
            return data["id"]
        return None

    def remember_id(self, watchlist_id: str) -> None:
        if not is_valid_watchlist_id(watchlist_id):
            raise ValueError(f"Invalid watchlist id: {watchlist_id!r}")
        self._write_json(self.base_dir / self.ID_FILE, {"id": watchlist_id})

    def load(self, watchlist_id: str) -> Optional[List[Any]]:
        """Return the cached document for ``watchlist_id`` or None if there is none."""
        data = self._read_json(self._document_path(watchlist_id))
        return data if isinstance(data, list) else None

    def save(self, watchlist_id: str, document: List[Any]) -> None:
        self._write_json(self._document_path(watchlist_id), document)
