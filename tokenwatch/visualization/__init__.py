"""Visualization modules for charts and colors."""
from tokenwatch.visualization.chart_builder import create_volume_leaders_chart
from tokenwatch.visualization.colors import color_for

__all__ = [
    "color_for",
    "create_volume_leaders_chart",
]
