from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

METRIC_TITLES = {"sales": "Sales", "quantity": "Units Sold"}
METRIC_FORMATS = {"sales": "$~s", "quantity": "~s"}


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def ranking_bar_chart(rows: List[Dict[str, Any]], label: str, metric: str = "sales") -> alt.Chart:
    df = pd.DataFrame(rows, columns=["rank", label, "quantity", "sales", "sales_share"])
    hover = alt.selection_point(fields=[label], on="mouseover", empty="all")
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X(f"{metric}:Q", title=METRIC_TITLES[metric], axis=alt.Axis(format=METRIC_FORMATS[metric], gridDash=[4, 4])),
            y=alt.Y(f"{label}:N", sort="-x", title=None),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.6)),
            tooltip=[
                alt.Tooltip("rank:O", title="Rank"),
                alt.Tooltip(f"{label}:N"),
                alt.Tooltip("quantity:Q", title="Units", format=","),
                alt.Tooltip("sales:Q", title="Sales", format="$,.2f"),
            ],
        )
        .add_params(hover)
    )


def distribution_chart(rows: List[Dict[str, Any]], label: str) -> alt.Chart:
    df = pd.DataFrame(rows, columns=["rank", label, "quantity", "sales", "sales_share"])
    return (
        alt.Chart(df)
        .mark_arc(innerRadius=50)
        .encode(
            theta=alt.Theta("sales:Q"),
            color=alt.Color(f"{label}:N"),
            tooltip=[
                alt.Tooltip(f"{label}:N"),
                alt.Tooltip("sales:Q", format="$,.2f"),
                alt.Tooltip("sales_share:Q", title="Share", format=".1%"),
            ],
        )
    )


def heatmap_chart(frame: pd.DataFrame) -> alt.Chart:
    # Color is driven by the normalized intensity so zero cells render neutral.
    return (
        alt.Chart(frame)
        .mark_rect()
        .encode(
            x=alt.X("period:O", title="Month"),
            y=alt.Y("sales_rep:N", title="Sales Rep"),
            color=alt.Color("intensity:Q", scale=alt.Scale(domain=[0, 1], scheme="blues"), title="Intensity"),
            tooltip=[
                alt.Tooltip("sales_rep:N", title="Rep"),
                alt.Tooltip("period:O", title="Month"),
                alt.Tooltip("sales:Q", title="Sales", format="$,.2f"),
                alt.Tooltip("intensity:Q", format=".0%"),
            ],
        )
    )
