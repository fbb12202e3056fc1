from __future__ import annotations

from typing import Any, Dict, Literal

from sales_core.charts import distribution_chart, ranking_bar_chart, to_vega_spec
from sales_core.data import round_half_up
from sales_core.filters import FilterSpec
from sales_core.models import Aggregates
from sales_core.ranking import ranked_rows

GroupKey = Literal["product", "city", "sales_rep"]


def kpis(agg: Aggregates) -> Dict[str, Any]:
    return {
        "total_sales": round_half_up(agg.total_sales),
        "total_quantity": agg.total_quantity,
        "transaction_count": agg.transaction_count,
        "average_order_value": round_half_up(agg.average_order_value),
        "distinct_cities": agg.distinct_cities,
    }


def compute_overview(
    filters: FilterSpec,
    ctx: Dict[str, Any],
    *,
    top_n: int = 5,
    group_key: GroupKey = "product",
) -> Dict[str, Any]:
    agg: Aggregates = ctx.get("aggregates") or Aggregates()
    rejected = ctx.get("rejected", ())

    if agg.is_empty:
        return {
            "filters": filters.to_dict(),
            "source": ctx.get("source"),
            "empty": True,
            "kpis": kpis(agg),
            "top_products": [],
            "rep_ranking": [],
            "distribution": [],
            "group_key": group_key,
            "rejected_count": len(rejected),
            "charts": {},
        }

    top_products = ranked_rows(agg.by_product, top_n, "quantity", label="product")
    rep_ranking = ranked_rows(agg.by_rep, len(agg.by_rep), "sales", label="sales_rep")
    group = agg.group(group_key)
    distribution = ranked_rows(group, len(group), "sales", label=group_key)

    return {
        "filters": filters.to_dict(),
        "source": ctx.get("source"),
        "empty": False,
        "kpis": kpis(agg),
        "top_products": top_products,
        "rep_ranking": rep_ranking,
        "distribution": distribution,
        "group_key": group_key,
        "rejected_count": len(rejected),
        "charts": {
            "top_products": to_vega_spec(ranking_bar_chart(top_products, "product", "quantity")),
            "rep_ranking": to_vega_spec(ranking_bar_chart(rep_ranking, "sales_rep", "sales")),
            "distribution": to_vega_spec(distribution_chart(distribution, group_key)),
        },
    }
