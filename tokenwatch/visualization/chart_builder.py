"""Chart building utilities for visualization."""
import pandas as pd
import plotly.graph_objects as go

from tokenwatch.utils import format_currency
from tokenwatch.visualization.colors import color_for

WINDOW_TITLES = {
    "1h": "Top Volume (1H)",
    "24h": "Top Volume (24H)",
}


def create_volume_leaders_chart(leaders: pd.DataFrame, window: str) -> go.Figure:
    """
    Horizontal bar chart of the volume leaders for one window.

    Args:
        leaders: Output of ``volume_leaders`` (address, symbol, volume, mcap, change)
        window: "1h" or "24h"

    Returns:
        Plotly Figure; an annotated empty figure when nothing is tracked
    """
    fig = go.Figure()
    title = WINDOW_TITLES.get(window, f"Top Volume ({window})")

    if leaders is None or leaders.empty:
        fig.add_annotation(
            text="Add tokens to see volume leaders",
            showarrow=False,
            font=dict(color="#6c757d", size=13),
        )
        fig.update_layout(
            title=title,
            xaxis=dict(visible=False),
            yaxis=dict(visible=False),
            margin=dict(t=40, r=20, l=20, b=20),
        )
        return fig

    # Plotly draws the first category at the bottom; reverse so rank 1 is on top
    ranked = leaders.iloc[::-1]
    fig.add_trace(
        go.Bar(
            x=ranked["volume"],
            y=ranked["symbol"],
            orientation="h",
            marker=dict(color=[color_for(a) for a in ranked["address"]]),
            text=[format_currency(v) for v in ranked["volume"]],
            textposition="auto",
            customdata=list(zip(
                [format_currency(m) for m in ranked["mcap"]],
                ranked["change"],
            )),
            hovertemplate=(
                "<b>%{y}</b><br>"
                "Volume: %{text}<br>"
                "MCap: %{customdata[0]}<br>"
                "Change: %{customdata[1]:.1f}%<extra></extra>"
            ),
        )
    )
    fig.update_layout(
        title=title,
        xaxis=dict(title="Volume (USD)"),
        yaxis=dict(type="category"),
        showlegend=False,
        margin=dict(t=40, r=30, l=80, b=40),
        height=300,
    )
    return fig
