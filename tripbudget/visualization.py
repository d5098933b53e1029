"""Plotly figures for the Streamlit front end.

Each function turns an already computed value (contributions, an AI
chart configuration) into a ``plotly.graph_objects.Figure`` that the
app renders with ``st.plotly_chart``. Nothing here fetches data.

AI chart configurations are untrusted: rows that are not dicts, and
values that are not numbers, are dropped instead of raising.
"""

from decimal import Decimal
from typing import Optional, Sequence

import plotly.graph_objects as go

from tripbudget.models.charts import ChartConfiguration
from tripbudget.models.dashboard import MemberContribution


SUPPORTED_CHART_TYPES = ("pie", "bar", "line")

COLORS = ["#0088FE", "#00C49F", "#FFBB28", "#FF8042", "#8884d8"]


def _empty_figure(title: str = "No data to display") -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=title)
    return fig


def _as_number(value) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def create_contributions_chart(
    contributions: Sequence[MemberContribution],
    currency_symbol: str = "₹",
    title: Optional[str] = None,
) -> go.Figure:
    """Bar chart of how much each member has spent."""
    if not contributions:
        return _empty_figure()

    fig = go.Figure(go.Bar(
        x=[c.name for c in contributions],
        y=[float(c.total_spent) for c in contributions],
        marker_color=COLORS[0],
    ))
    fig.update_layout(
        title=title or "Contributions by member",
        xaxis_title="Member",
        yaxis_title=f"Spent ({currency_symbol})",
    )
    return fig


def chart_points(config: ChartConfiguration, label_key: str = "name") -> tuple[list[str], list[float]]:
    """
    Labels and values of an AI chart, skipping unusable rows.

    Returns:
        (labels, values) of equal length, both empty when nothing is plottable
    """
    value_key = config.value_key(label_key)
    labels, values = [], []
    for row in config.rows():
        number = _as_number(row.get(value_key))
        if number is None:
            continue
        labels.append(str(row.get(label_key, "")))
        values.append(number)
    return labels, values


def create_ai_chart(config: ChartConfiguration) -> Optional[go.Figure]:
    """
    Render one AI chart suggestion.

    Returns:
        The figure, or None when the chart type is not supported
    """
    if config.kind not in SUPPORTED_CHART_TYPES:
        return None

    title = config.title or config.description
    labels, values = chart_points(config)
    if not values:
        return _empty_figure(title)

    if config.kind == "pie":
        trace = go.Pie(labels=labels, values=values, marker={"colors": COLORS})
    elif config.kind == "bar":
        trace = go.Bar(x=labels, y=values, marker_color=COLORS[0])
    else:
        trace = go.Scatter(x=labels, y=values, mode="lines+markers", line={"color": COLORS[0]})

    fig = go.Figure(trace)
    fig.update_layout(title=title)
    return fig
