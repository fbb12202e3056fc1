from __future__ import annotations

from typing import Any, Dict, Literal

from sales_core.charts import ranking_bar_chart, to_vega_spec
from sales_core.filters import FilterSpec
from sales_core.models import Aggregates
from sales_core.ranking import ranked_rows

Metric = Literal["sales", "quantity"]
View = Literal["product", "city", "sales_rep"]


def compute_performance(
    filters: FilterSpec,
    ctx: Dict[str, Any],
    *,
    metric: Metric = "sales",
    view: View = "product",
    top_n: int = 5,
) -> Dict[str, Any]:
    agg: Aggregates = ctx.get("aggregates") or Aggregates()
    if agg.is_empty:
        return {"filters": filters.to_dict(), "metric": metric, "view": view, "top": [], "options": [], "charts": {}}

    summary = agg.group(view)
    top = ranked_rows(summary, top_n, metric, label=view)
    return {
        "filters": filters.to_dict(),
        "metric": metric,
        "view": view,
        "top": top,
        "options": sorted(summary),
        "charts": {"ranking": to_vega_spec(ranking_bar_chart(top, view, metric))},
    }
