"""Dash application callbacks."""
from typing import Dict, Optional

from dash import Input, Output, State, ctx, html

from tokenwatch.app.layout import ACTIVE_BUTTON_STYLE, BUTTON_STYLE, sort_button_id
from tokenwatch.constants import (
    DEFAULT_SORT_DIRECTION,
    DEFAULT_SORT_FIELD,
    MAX_TOTAL_TOKENS,
    SORT_LABELS,
)
from tokenwatch.errors import MarketDataError, WatchlistError
from tokenwatch.models import TokenRecord, ath_roi
from tokenwatch.scheduler import SKIPPED
from tokenwatch.session import WatchlistSession
from tokenwatch.sync import SyncMode
from tokenwatch.utils import format_currency, setup_logger
from tokenwatch.visualization import create_volume_leaders_chart
from tokenwatch.watchlist_store import ViewOptions

logger = setup_logger(__name__)

SYNC_LABELS = {
    SyncMode.INITIALIZING: ("Connecting…", "#6c757d"),
    SyncMode.CLOUD_SYNCED: ("☁ Cloud synced", "#28a745"),
    SyncMode.LOCAL_ONLY: ("💾 Local only", "#fd7e14"),
}


def register_callbacks(app, session: WatchlistSession) -> None:
    """
    Register all Dash callbacks with the app.

    Args:
        app: Dash application instance
        session: Running watchlist session (store, sync and scheduler)
    """
    store = session.store
    sort_fields = list(SORT_LABELS)

    @app.callback(
        Output("view-state", "data"),
        *[Input(sort_button_id(f), "n_clicks") for f in sort_fields],
        Input("btn-sort-dir", "n_clicks"),
        State("view-state", "data"),
        prevent_initial_call=True
    )
    def update_view_state(*args):
        """Sort buttons pick the field; the direction button toggles asc/desc."""
        state = dict(args[-1] or {})
        trig = ctx.triggered_id
        if trig == "btn-sort-dir":
            state["direction"] = "asc" if state.get("direction", DEFAULT_SORT_DIRECTION) == "desc" else "desc"
        else:
            for field in sort_fields:
                if trig == sort_button_id(field):
                    state["sort_field"] = field
        return state

    @app.callback(
        Output("revision", "data"),
        Output("message", "children"),
        Output("group-select", "options"),
        Output("group-select", "value"),
        Output("address-input", "value"),
        Output("group-name-input", "value"),
        Output("token-table", "selected_rows"),
        Input("btn-add", "n_clicks"),
        Input("address-input", "n_submit"),
        Input("btn-group-create", "n_clicks"),
        Input("btn-group-rename", "n_clicks"),
        Input("btn-group-delete", "n_clicks"),
        Input("group-select", "value"),
        Input("btn-move-up", "n_clicks"),
        Input("btn-move-down", "n_clicks"),
        Input("btn-refresh", "n_clicks"),
        Input("token-table", "data_timestamp"),
        Input("url", "hash"),
        State("address-input", "value"),
        State("group-name-input", "value"),
        State("view-state", "data"),
        State("search-input", "value"),
        State("token-table", "selected_rows"),
        State("token-table", "data"),
        State("token-table", "data_previous"),
        State("revision", "data"),
    )
    def handle_action(
        n_add, n_submit, n_create, n_rename, n_delete, selected_group,
        n_up, n_down, n_refresh, data_ts, url_hash,
        address, group_name, view_state, search, selected_rows, rows, rows_previous, revision
    ):
        """Apply one user action to the store and report its outcome."""
        trig = ctx.triggered_id
        message = None
        address_value = address
        name_value = group_name
        selection = selected_rows or []
        group_id = store.active_group_id

        try:
            if trig in ("url", None) and url_hash:
                if session.open_watchlist(url_hash):
                    message = _message(f"Opened shared watchlist {session.sync.watchlist_id}.", error=False)
                    selection = []
            elif trig in ("btn-add", "address-input"):
                token = store.add_token(group_id, address)
                message = _message(f"Added {token.symbol}.", error=False)
                address_value = ""
            elif trig == "btn-group-create":
                store.create_group(group_name)
                name_value = ""
                selection = []
            elif trig == "btn-group-rename":
                store.rename_group(group_id, group_name)
                name_value = ""
            elif trig == "btn-group-delete":
                store.delete_group(group_id)
                selection = []
            elif trig == "group-select" and selected_group and selected_group != group_id:
                store.select_group(selected_group)
                selection = []
            elif trig in ("btn-move-up", "btn-move-down") and selection and rows:
                token_id = rows[selection[0]]["id"]
                offset = -1 if trig == "btn-move-up" else 1
                store.move_token(group_id, token_id, offset, _view_options(view_state, search))
                ids = [t.id for t in store.active_group.tokens]
                selection = [ids.index(token_id)] if token_id in ids else []
            elif trig == "btn-refresh":
                outcome = session.scheduler.tick(manual=True)
                if outcome.status == SKIPPED:
                    message = _message("A refresh is already in progress.", error=False)
                elif outcome.user_message:
                    message = _message(outcome.user_message)
                else:
                    message = _message(f"Refreshed {outcome.updated} token(s).", error=False)
            elif trig == "token-table" and rows_previous is not None:
                current_ids = {r["id"] for r in rows or []}
                for row in rows_previous:
                    if row["id"] not in current_ids:
                        store.remove_token(group_id, row["id"])
                selection = []
        except (WatchlistError, MarketDataError) as e:
            logger.info(f"Action {trig} rejected: {e}")
            message = _message(str(e))

        options = [{"label": f"{g.name} ({len(g.tokens)})", "value": g.id} for g in store.groups]
        return (
            (revision or 0) + 1,
            message,
            options,
            store.active_group_id,
            address_value,
            name_value,
            selection,
        )

    @app.callback(
        Output("token-table", "data"),
        Output("token-count", "children"),
        Output("sync-status", "children"),
        Output("sync-status", "style"),
        Output("share-link", "href"),
        Output("share-link", "children"),
        Output("leaders-1h", "figure"),
        Output("leaders-24h", "figure"),
        Output("btn-move-up", "disabled"),
        Output("btn-move-down", "disabled"),
        Output("btn-sort-dir", "children"),
        *[Output(sort_button_id(f), "style") for f in sort_fields],
        Input("revision", "data"),
        Input("view-state", "data"),
        Input("search-input", "value"),
        Input("render-interval", "n_intervals"),
    )
    def render(revision, view_state, search, n_intervals):
        """Re-render the active group's view, header and volume leaders."""
        options = _view_options(view_state, search)
        try:
            tokens = store.view(store.active_group_id, options).to_list()
        except ValueError as e:
            logger.warning(f"Invalid view options {view_state}: {e}")
            options = ViewOptions(search=search or "")
            tokens = store.view(store.active_group_id, options).to_list()

        status = session.sync.status()
        label, color = SYNC_LABELS[session.sync.mode]
        if status["sync_paused"]:
            label, color = "⚠ Sync paused", "#dc3545"
        if status["error"]:
            label = f"{label} · {status['error']}"

        reorder_disabled = not options.is_default
        direction_label = "↓ Desc" if options.direction == "desc" else "↑ Asc"
        sort_styles = [
            ACTIVE_BUTTON_STYLE if f == options.sort_field else BUTTON_STYLE for f in sort_fields
        ]
        return (
            [_token_row(t) for t in tokens],
            f"{store.total_tokens()}/{MAX_TOTAL_TOKENS} tracked",
            label,
            {"fontSize": "13px", "color": color},
            status["share_url"],
            "🔗 Share link",
            create_volume_leaders_chart(store.volume_leaders("1h"), "1h"),
            create_volume_leaders_chart(store.volume_leaders("24h"), "24h"),
            reorder_disabled,
            reorder_disabled,
            direction_label,
            *sort_styles,
        )


def _view_options(view_state: Optional[Dict], search: Optional[str]) -> ViewOptions:
    view_state = view_state or {}
    return ViewOptions(
        sort_field=view_state.get("sort_field", DEFAULT_SORT_FIELD),
        direction=view_state.get("direction", DEFAULT_SORT_DIRECTION),
        search=search or "",
    )


def _token_row(token: TokenRecord) -> Dict:
    """One table row; currency values are pre-formatted, percentages stay numeric."""
    return {
        "id": token.id,
        "symbol": token.symbol,
        "name": token.name,
        "currentMcap": format_currency(token.current_mcap),
        "initialMcap": format_currency(token.initial_mcap),
        "maxMcap": format_currency(token.max_mcap),
        "athROI": ath_roi(token),
        "maxDrawdown": token.max_drawdown,
        "volume1h": format_currency(token.volume_1h),
        "volume24h": format_currency(token.volume_24h),
        "priceUsd": f"${token.price_usd}",
        "dexUrl": f"[DexScreener]({token.dex_url})" if token.dex_url else "",
    }


def _message(text: str, error: bool = True) -> html.Span:
    return html.Span(text, style={"color": "#dc3545" if error else "#28a745", "fontWeight": "500"})

