from __future__ import annotations

from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List

import pandas as pd

from sales_core.models import ZERO, PivotTable, Transaction

# Smallest denominator used when scaling cells, so an all-zero pivot maps to 0.
INTENSITY_FLOOR = Decimal("1")


def build_pivot(records: Iterable[Transaction]) -> PivotTable:
    """Accumulate sales per (sales rep, year-month), zero-filling absent cells."""
    sums: Dict[str, Dict[str, Decimal]] = {}
    periods = set()
    for t in records:
        period = t.period
        periods.add(period)
        row = sums.setdefault(t.sales_rep, {})
        row[period] = row.get(period, ZERO) + t.line_total

    axis = tuple(sorted(periods))
    rows = tuple(sorted(sums))
    cells = MappingProxyType(
        {rep: MappingProxyType({p: sums[rep].get(p, ZERO) for p in axis}) for rep in rows}
    )
    return PivotTable(rows=rows, periods=axis, cells=cells)


def color_scale(pivot: PivotTable) -> Callable[[Decimal | int | float], float]:
    """Linear intensity scale: ``v / max(max cell, 1)`` clamped to [0, 1]."""
    max_value = max(pivot.max_value, INTENSITY_FLOOR)

    def intensity(value: Decimal | int | float) -> float:
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"cell value is not a number: {value!r}") from None
        if not amount.is_finite():
            raise ValueError(f"cell value must be finite, got {value!r}")
        ratio = amount / max_value
        return float(min(max(ratio, ZERO), Decimal("1")))

    return intensity


def intensity_matrix(pivot: PivotTable) -> List[List[float]]:
    scale = color_scale(pivot)
    return [[scale(pivot.value(rep, p)) for p in pivot.periods] for rep in pivot.rows]


def pivot_frame(pivot: PivotTable) -> pd.DataFrame:
    """Long-form frame (one row per cell) used to draw the heatmap."""
    scale = color_scale(pivot)
    rows = [
        {
            "sales_rep": rep,
            "period": p,
            "sales": float(pivot.value(rep, p)),
            "intensity": scale(pivot.value(rep, p)),
        }
        for rep in pivot.rows
        for p in pivot.periods
    ]
    return pd.DataFrame(rows, columns=["sales_rep", "period", "sales", "intensity"])
