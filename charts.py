# Report charts
# Plotly figures over the derived report tables

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

METRIC_LABELS = {
    'crude_rate': 'Crude rate per 100,000',
    'standardised_incidence_ratio': 'Standardised incidence ratio',
}


def totals_bar_chart(totals: pd.DataFrame, title: str = "Total Incidence by Cancer Site") -> go.Figure:
    """Column chart of ranked site totals."""
    fig = px.bar(
        totals,
        x='cancer_site',
        y='total_incidence',
        title=title,
        text='total_incidence'
    )
    fig.update_layout(
        xaxis_title="Cancer Site",
        yaxis_title="Total Incidence",
        height=400
    )
    return fig


def incidence_trend_chart(trend: pd.DataFrame, title: str = "Yearly Incidence") -> go.Figure:
    """Line chart of yearly incidence, one line per site."""
    fig = px.line(
        trend,
        x='year',
        y='incidence_count',
        color='cancer_site',
        markers=True,
        title=title
    )
    fig.update_layout(
        xaxis_title="Year",
        yaxis_title="Incidence (both sexes)",
        legend_title="Cancer Site"
    )
    return fig


def adjusted_rate_chart(series: pd.DataFrame, metric: str, title: str = None) -> go.Figure:
    """Line chart of one sex-weighted metric over time."""
    if metric not in METRIC_LABELS:
        raise ValueError(f"Unknown metric {metric!r}; expected one of {sorted(METRIC_LABELS)}")

    label = METRIC_LABELS[metric]
    rows = series[series['metric'] == metric]
    fig = px.line(
        rows,
        x='year',
        y='value',
        color='cancer_site',
        markers=True,
        title=title or f"{label} (sex-weighted)"
    )
    fig.update_layout(
        xaxis_title="Year",
        yaxis_title=label,
        legend_title="Cancer Site"
    )
    if metric == 'standardised_incidence_ratio':
        fig.add_hline(y=100, line_dash="dash", line_color="grey")
    return fig
