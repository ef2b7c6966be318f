"""Main Dash application setup."""
from dash import Dash

from tokenwatch.app import callbacks, layout
from tokenwatch.app.api import create_api_blueprint
from tokenwatch.config import DASH_DEBUG, DASH_PORT
from tokenwatch.session import WatchlistSession
from tokenwatch.utils import setup_logger

logger = setup_logger(__name__)


def create_app(session: WatchlistSession) -> Dash:
    """
    Create and configure the Dash application.

    The HTTP API blueprint is mounted on the same Flask server, so one
    process serves the dashboard, ``/api/watchlist`` and ``/api/cron``.

    Args:
        session: Opened watchlist session

    Returns:
        Configured Dash application
    """
    app = Dash(__name__, title="Solana Token Watchlist")

    # Set layout
    app.layout = layout.create_layout(session.settings.refresh_interval)

    # Register callbacks
    callbacks.register_callbacks(app, session)

    app.server.register_blueprint(
        create_api_blueprint(session.remote, session.adapter, session.settings)
    )
    return app


def run_app(app: Dash) -> None:
    """Run the Dash application."""
    logger.info(f"Starting Dash… open http://127.0.0.1:{DASH_PORT}/")
    # use_reloader would start a second process with its own scheduler thread
    app.run(debug=DASH_DEBUG, port=DASH_PORT, use_reloader=False)
