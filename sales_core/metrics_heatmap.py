from __future__ import annotations

from typing import Any, Dict

from sales_core.charts import heatmap_chart, to_vega_spec
from sales_core.data import round_half_up
from sales_core.filters import FilterSpec
from sales_core.pivot import INTENSITY_FLOOR, build_pivot, intensity_matrix, pivot_frame


def compute_heatmap(filters: FilterSpec, ctx: Dict[str, Any]) -> Dict[str, Any]:
    pivot = build_pivot(ctx.get("filtered", ()))
    if not pivot.rows:
        return {
            "filters": filters.to_dict(),
            "rows": [],
            "periods": [],
            "values": [],
            "intensity": [],
            "max_value": 0.0,
            "charts": {},
        }

    return {
        "filters": filters.to_dict(),
        "rows": list(pivot.rows),
        "periods": list(pivot.periods),
        "values": [[round_half_up(pivot.value(rep, p)) for p in pivot.periods] for rep in pivot.rows],
        "intensity": intensity_matrix(pivot),
        "max_value": round_half_up(max(pivot.max_value, INTENSITY_FLOOR)),
        "charts": {"heatmap": to_vega_spec(heatmap_chart(pivot_frame(pivot)))},
    }
