"""Utility functions for the watchlist."""
import logging
import secrets
import time
import uuid
from datetime import datetime

from tokenwatch.config import LOG_DIR
from tokenwatch.constants import WATCHLIST_ID_ALPHABET, WATCHLIST_ID_LENGTH


def setup_logger(name: str = __name__) -> logging.Logger:
    """Set up and return a logger instance."""
    log_file = LOG_DIR / f"tokenwatch_{datetime.now().strftime('%Y%m%d')}.log"

    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    # File handler
    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(logging.INFO)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)

    # Formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    file_handler.setFormatter(formatter)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def new_record_id() -> str:
    """Opaque unique id for tokens and groups."""
    return str(uuid.uuid4())


def new_watchlist_id() -> str:
    """Short random identifier suitable for a shareable link fragment."""
    return "".join(secrets.choice(WATCHLIST_ID_ALPHABET) for _ in range(WATCHLIST_ID_LENGTH))


def format_currency(value: float) -> str:
    """
    Compact dollar formatting used across the dashboard.

    Examples: 1_250_000 -> "$1.25M", 4_200 -> "$4.2K", 12 -> "$12.00"
    """
    value = float(value or 0)
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"${value / 1_000:.1f}K"
    return f"${value:.2f}"
