"""Configuration settings for the watchlist."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from tokenwatch.constants import CHAIN_ID, MAX_BATCH_SIZE

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

# Market data (DexScreener) Configuration
DEXSCREENER_API_BASE = os.getenv("DEXSCREENER_API_BASE", "https://api.dexscreener.com/latest/dex/tokens")
TARGET_CHAIN = os.getenv("TOKENWATCH_CHAIN_ID", CHAIN_ID)

# Retry Configuration
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "15"))
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "3"))
RETRY_WAIT = float(os.getenv("RETRY_WAIT", "1.5"))  # Wait time on rate limit / 5xx

# Refresh and sync timing
REFRESH_INTERVAL_SECONDS = float(os.getenv("REFRESH_INTERVAL_SECONDS", "15"))
SYNC_DEBOUNCE_SECONDS = float(os.getenv("SYNC_DEBOUNCE_SECONDS", "2"))

# Remote persistence (Supabase PostgREST)
SUPABASE_URL: Optional[str] = (os.getenv("SUPABASE_URL") or "").rstrip("/") or None
SUPABASE_KEY: Optional[str] = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or None
SUPABASE_TABLE = os.getenv("SUPABASE_TABLE", "watchlists")

# Recurring batch job
CRON_SECRET: Optional[str] = os.getenv("CRON_SECRET") or None
CRON_TIME_BUDGET_SECONDS = float(os.getenv("CRON_TIME_BUDGET_SECONDS", "50"))

# Local durable store
DATA_DIR = Path(os.getenv("TOKENWATCH_DATA_DIR", str(PROJECT_ROOT / "watchlist_data")))
DATA_DIR.mkdir(parents=True, exist_ok=True)

# Logging Configuration
LOG_DIR = PROJECT_ROOT / "logs"
LOG_DIR.mkdir(exist_ok=True)

# Dash App Configuration
DASH_PORT = int(os.getenv("PORT", "8052"))  # Use PORT env var for cloud deployment
DASH_DEBUG = os.getenv("DASH_DEBUG", "False").lower() == "true"  # Disable debug in production
PUBLIC_URL = os.getenv("PUBLIC_URL", f"http://127.0.0.1:{DASH_PORT}/")


@dataclass
class Settings:
    """Session-scoped configuration injected into every service.

    Module-level values above are only defaults; services never read them
    directly, so tests and the batch job can build their own ``Settings``.
    """

    api_base: str = DEXSCREENER_API_BASE
    chain_id: str = TARGET_CHAIN
    max_batch: int = MAX_BATCH_SIZE
    request_timeout: float = REQUEST_TIMEOUT
    max_retries: int = MAX_RETRIES
    retry_wait: float = RETRY_WAIT
    refresh_interval: float = REFRESH_INTERVAL_SECONDS
    sync_debounce: float = SYNC_DEBOUNCE_SECONDS
    supabase_url: Optional[str] = SUPABASE_URL
    supabase_key: Optional[str] = SUPABASE_KEY
    supabase_table: str = SUPABASE_TABLE
    cron_secret: Optional[str] = CRON_SECRET
    cron_time_budget: float = CRON_TIME_BUDGET_SECONDS
    data_dir: Path = DATA_DIR
    public_url: str = PUBLIC_URL

    @property
    def remote_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current environment."""
        data_dir = Path(os.getenv("TOKENWATCH_DATA_DIR", str(DATA_DIR)))
        return cls(
            api_base=os.getenv("DEXSCREENER_API_BASE", DEXSCREENER_API_BASE),
            chain_id=os.getenv("TOKENWATCH_CHAIN_ID", TARGET_CHAIN),
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", str(REQUEST_TIMEOUT))),
            max_retries=int(os.getenv("MAX_RETRIES", str(MAX_RETRIES))),
            retry_wait=float(os.getenv("RETRY_WAIT", str(RETRY_WAIT))),
            refresh_interval=float(os.getenv("REFRESH_INTERVAL_SECONDS", str(REFRESH_INTERVAL_SECONDS))),
            sync_debounce=float(os.getenv("SYNC_DEBOUNCE_SECONDS", str(SYNC_DEBOUNCE_SECONDS))),
            supabase_url=(os.getenv("SUPABASE_URL") or "").rstrip("/") or None,
            supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY") or None,
            supabase_table=os.getenv("SUPABASE_TABLE", SUPABASE_TABLE),
            cron_secret=os.getenv("CRON_SECRET") or None,
            cron_time_budget=float(os.getenv("CRON_TIME_BUDGET_SECONDS", str(CRON_TIME_BUDGET_SECONDS))),
            data_dir=data_dir,
            public_url=os.getenv("PUBLIC_URL", PUBLIC_URL),
        )
