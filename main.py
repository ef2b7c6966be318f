"""Main entry point for the Solana Token Watchlist dashboard."""
import argparse
import os

from tokenwatch.app.app import create_app, run_app
from tokenwatch.config import Settings
from tokenwatch.session import open_session
from tokenwatch.utils import setup_logger

logger = setup_logger(__name__)


def main():
    """Open the watchlist session, start background refresh and serve the dashboard."""
    parser = argparse.ArgumentParser(description="Solana token watchlist dashboard")
    parser.add_argument(
        "--watchlist-id",
        default=os.getenv("WATCHLIST_ID"),
        help="Open a shared watchlist by id (defaults to the remembered one)",
    )
    args = parser.parse_args()

    settings = Settings.from_env()
    if not settings.remote_configured:
        logger.warning(
            "SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not set - "
            "watchlist will be saved locally only"
        )

    session = open_session(settings, args.watchlist_id)
    session.scheduler.start()

    # Create and run app
    app = create_app(session)
    try:
        run_app(app)
    finally:
        session.close()


if __name__ == "__main__":
    main()
