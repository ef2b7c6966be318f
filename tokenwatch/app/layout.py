"""Dash application layout."""
from dash import dash_table, dcc, html

from tokenwatch.constants import DEFAULT_SORT_DIRECTION, DEFAULT_SORT_FIELD, SORT_LABELS

BUTTON_STYLE = {
    "padding": "8px 16px",
    "margin": "4px",
    "border": "1px solid #dee2e6",
    "borderRadius": "6px",
    "backgroundColor": "#ffffff",
    "color": "#495057",
    "fontSize": "14px",
    "fontWeight": "500",
    "cursor": "pointer",
    "boxShadow": "0 1px 3px rgba(0,0,0,0.1)"
}

ACTIVE_BUTTON_STYLE = {
    **BUTTON_STYLE,
    "backgroundColor": "#007bff",
    "color": "#ffffff",
    "borderColor": "#007bff",
    "boxShadow": "0 2px 6px rgba(0,123,255,0.3)"
}

DANGER_BUTTON_STYLE = {
    **BUTTON_STYLE,
    "color": "#dc3545",
    "borderColor": "#f5c6cb"
}

SECTION_LABEL_STYLE = {
    "fontWeight": "600",
    "fontSize": "13px",
    "color": "#6c757d",
    "textTransform": "uppercase",
    "letterSpacing": "0.5px",
    "marginBottom": "4px"
}

PANEL_STYLE = {
    "padding": "16px",
    "backgroundColor": "#ffffff",
    "borderRadius": "8px",
    "boxShadow": "0 2px 4px rgba(0,0,0,0.08)",
    "marginBottom": "12px"
}

INPUT_STYLE = {
    "padding": "8px 12px",
    "border": "1px solid #ced4da",
    "borderRadius": "6px",
    "fontSize": "14px"
}

TABLE_COLUMNS = [
    {"name": "Token", "id": "symbol"},
    {"name": "Name", "id": "name"},
    {"name": "MCap", "id": "currentMcap"},
    {"name": "Initial", "id": "initialMcap"},
    {"name": "ATH", "id": "maxMcap"},
    {
        "name": "ATH ROI",
        "id": "athROI",
        "type": "numeric",
        "format": dash_table.Format.Format(
            scheme=dash_table.Format.Scheme.fixed,
            precision=1,
            symbol=dash_table.Format.Symbol.yes,
            symbol_suffix="%"
        )
    },
    {
        "name": "Max DD",
        "id": "maxDrawdown",
        "type": "numeric",
        "format": dash_table.Format.Format(
            scheme=dash_table.Format.Scheme.fixed,
            precision=1,
            symbol=dash_table.Format.Symbol.yes,
            symbol_suffix="%"
        )
    },
    {"name": "Vol 1H", "id": "volume1h"},
    {"name": "Vol 24H", "id": "volume24h"},
    {"name": "Price", "id": "priceUsd"},
    {"name": "Chart", "id": "dexUrl", "presentation": "markdown"},
]


def create_layout(refresh_interval: float) -> html.Div:
    """
    Create the Dash application layout.

    Args:
        refresh_interval: Seconds between view re-renders

    Returns:
        HTML Div containing the full layout
    """
    return html.Div(
        style={
            "fontFamily": "-apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif",
            "padding": "20px",
            "maxWidth": "100%",
            "backgroundColor": "#f8f9fa"
        },
        children=[
            dcc.Location(id="url", refresh=False),
            dcc.Store(id="view-state", data={"sort_field": DEFAULT_SORT_FIELD, "direction": DEFAULT_SORT_DIRECTION}),
            dcc.Store(id="revision", data=0),
            dcc.Interval(id="render-interval", interval=int(refresh_interval * 1000), n_intervals=0),

            _create_header_div(),
            _create_add_token_div(),
            _create_group_controls_div(),
            _create_view_controls_div(),

            html.Div(id="message", style={"minHeight": "20px", "margin": "8px 0", "fontSize": "14px"}),

            html.Div(
                style=PANEL_STYLE,
                children=[
                    html.Div(
                        style={"display": "flex", "gap": "4px", "marginBottom": "8px"},
                        children=[
                            html.Button("▲ Move up", id="btn-move-up", style=BUTTON_STYLE),
                            html.Button("▼ Move down", id="btn-move-down", style=BUTTON_STYLE),
                        ]
                    ),
                    dash_table.DataTable(
                        id="token-table",
                        columns=TABLE_COLUMNS,
                        data=[],
                        row_deletable=True,
                        row_selectable="single",
                        selected_rows=[],
                        markdown_options={"link_target": "_blank"},
                        style_table={"overflowX": "auto"},
                        style_cell={
                            "textAlign": "right",
                            "padding": "8px 12px",
                            "fontSize": "14px",
                            "fontFamily": "inherit"
                        },
                        style_cell_conditional=[
                            {"if": {"column_id": c}, "textAlign": "left"} for c in ("symbol", "name", "dexUrl")
                        ],
                        style_header={
                            "backgroundColor": "#f8f9fa",
                            "fontWeight": "600",
                            "color": "#2c3e50",
                            "border": "1px solid #dee2e6"
                        },
                        style_data_conditional=[
                            {"if": {"filter_query": "{athROI} > 0", "column_id": "athROI"}, "color": "#28a745"},
                            {"if": {"filter_query": "{maxDrawdown} < -50", "column_id": "maxDrawdown"}, "color": "#dc3545"},
                        ],
                    ),
                ]
            ),

            html.Div(
                style={"display": "flex", "gap": "12px", "flexWrap": "wrap"},
                children=[
                    html.Div(style={**PANEL_STYLE, "flex": "1", "minWidth": "320px"},
                             children=[dcc.Graph(id="leaders-1h")]),
                    html.Div(style={**PANEL_STYLE, "flex": "1", "minWidth": "320px"},
                             children=[dcc.Graph(id="leaders-24h")]),
                ]
            ),
        ]
    )


def _create_header_div() -> html.Div:
    """Title, tracked-token count, sync status and share link."""
    return html.Div(
        style={**PANEL_STYLE, "display": "flex", "alignItems": "center", "gap": "24px", "flexWrap": "wrap"},
        children=[
            html.H2("Solana Token Watchlist", style={"margin": "0", "color": "#2c3e50", "fontWeight": "600"}),
            html.Span(id="token-count", style={"fontWeight": "600", "color": "#495057"}),
            html.Span(id="sync-status", style={"fontSize": "13px"}),
            html.A(id="share-link", href="", target="_blank", style={"fontSize": "13px", "color": "#007bff"}),
            html.Button("⟳ Refresh", id="btn-refresh", style={**BUTTON_STYLE, "marginLeft": "auto"}),
        ]
    )


def _create_add_token_div() -> html.Div:
    return html.Div(
        style=PANEL_STYLE,
        children=[
            html.Div("Add token", style=SECTION_LABEL_STYLE),
            html.Div(
                style={"display": "flex", "gap": "8px"},
                children=[
                    dcc.Input(
                        id="address-input",
                        type="text",
                        placeholder="Paste a Solana token address…",
                        debounce=False,
                        style={**INPUT_STYLE, "flex": "1"}
                    ),
                    html.Button("Add", id="btn-add", style=ACTIVE_BUTTON_STYLE),
                ]
            ),
        ]
    )


def _create_group_controls_div() -> html.Div:
    return html.Div(
        style={**PANEL_STYLE, "display": "flex", "gap": "12px", "alignItems": "flex-end", "flexWrap": "wrap"},
        children=[
            html.Div(
                style={"minWidth": "240px"},
                children=[
                    html.Div("Group", style=SECTION_LABEL_STYLE),
                    dcc.Dropdown(id="group-select", clearable=False, searchable=False),
                ]
            ),
            dcc.Input(id="group-name-input", type="text", placeholder="Group name", style=INPUT_STYLE),
            html.Button("New group", id="btn-group-create", style=BUTTON_STYLE),
            html.Button("Rename", id="btn-group-rename", style=BUTTON_STYLE),
            html.Button("Delete group", id="btn-group-delete", style=DANGER_BUTTON_STYLE),
        ]
    )


def _create_view_controls_div() -> html.Div:
    """Sort buttons, direction toggle and search box."""
    return html.Div(
        style={**PANEL_STYLE, "display": "flex", "gap": "24px", "flexWrap": "wrap", "alignItems": "flex-end"},
        children=[
            html.Div(
                style={"display": "flex", "flexDirection": "column", "gap": "8px"},
                children=[
                    html.Div("Sort", style=SECTION_LABEL_STYLE),
                    html.Div(
                        style={"display": "flex", "flexWrap": "wrap", "gap": "4px"},
                        children=[
                            html.Button(label, id=sort_button_id(field), style=BUTTON_STYLE)
                            for field, label in SORT_LABELS.items()
                        ] + [html.Button(id="btn-sort-dir", style=BUTTON_STYLE)]
                    ),
                ]
            ),
            html.Div(
                style={"display": "flex", "flexDirection": "column", "gap": "8px"},
                children=[
                    html.Div("Search", style=SECTION_LABEL_STYLE),
                    dcc.Input(id="search-input", type="text", placeholder="Symbol, name or address", style=INPUT_STYLE),
                ]
            ),
        ]
    )


def sort_button_id(field: str) -> str:
    return f"btn-sort-{field}"
