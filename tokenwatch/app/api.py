"""HTTP endpoints served next to the dashboard on the same Flask server."""
from flask import Blueprint, jsonify, request

from tokenwatch.config import Settings
from tokenwatch.data.fetcher import DexScreenerClient
from tokenwatch.errors import RemoteNotConfiguredError, RemoteStoreError
from tokenwatch.jobs.refresh_job import authorize, run_refresh_job
from tokenwatch.storage.local import is_valid_watchlist_id
from tokenwatch.storage.remote import RemoteStore
from tokenwatch.utils import setup_logger

logger = setup_logger(__name__)

NOT_CONFIGURED = "Supabase environment variables not configured"


def create_api_blueprint(remote: RemoteStore, adapter: DexScreenerClient, settings: Settings) -> Blueprint:
    """
    Build the ``/api`` blueprint.

    Routes:
        GET  /api/watchlist?id=  stored document or null
        POST /api/watchlist?id=  upsert the JSON body (a list of groups)
        GET  /api/cron           run the server-side refresh job (bearer secret)
    """
    api_bp = Blueprint("api_bp", __name__)

    @api_bp.route("/api/watchlist", methods=["GET"])
    def get_watchlist():
        watchlist_id = request.args.get("id")
        if not watchlist_id:
            return jsonify({"error": "ID required"}), 400
        if not is_valid_watchlist_id(watchlist_id):
            return jsonify({"error": "Invalid watchlist id"}), 400
        try:
            document = remote.read(watchlist_id)
        except RemoteNotConfiguredError:
            logger.error("Watchlist read requested but remote store is not configured")
            return jsonify({"error": NOT_CONFIGURED}), 500
        except RemoteStoreError as e:
            return jsonify({"error": str(e)}), 502
        return jsonify(document)

    @api_bp.route("/api/watchlist", methods=["POST"])
    def save_watchlist():
        watchlist_id = request.args.get("id")
        if not watchlist_id:
            return jsonify({"error": "ID required"}), 400
        if not is_valid_watchlist_id(watchlist_id):
            return jsonify({"error": "Invalid watchlist id"}), 400
        body = request.get_json(silent=True)
        if not isinstance(body, list):
            return jsonify({"error": "Body must be a list of groups"}), 400
        try:
            remote.write(watchlist_id, body)
        except RemoteNotConfiguredError:
            logger.error("Watchlist save requested but remote store is not configured")
            return jsonify({"error": NOT_CONFIGURED}), 500
        except RemoteStoreError as e:
            return jsonify({"error": str(e)}), 502
        return jsonify({"success": True})

    @api_bp.route("/api/cron", methods=["GET"])
    def cron():
        if not authorize(request.headers.get("Authorization"), settings.cron_secret):
            logger.warning(f"Rejected cron request from {request.remote_addr}")
            return "Unauthorized", 401
        try:
            report = run_refresh_job(remote, adapter, settings)
        except RemoteNotConfiguredError:
            return NOT_CONFIGURED, 500
        except RemoteStoreError as e:
            logger.error(f"Cron listing failed: {e}")
            return jsonify({"error": str(e)}), 502
        return jsonify(report.to_dict())

    return api_bp
