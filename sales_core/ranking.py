from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Dict, List, Tuple, Union

from sales_core.data import round_half_up
from sales_core.models import GroupSummary, GroupTotals

RankKey = Union[str, Callable[[GroupTotals], Union[int, Decimal, float]]]


def _key_fn(key: RankKey) -> Callable[[GroupTotals], Union[int, Decimal, float]]:
    if callable(key):
        return key
    if key == "quantity":
        return lambda g: g.quantity
    if key == "sales":
        return lambda g: g.sales
    raise ValueError(f"Unknown ranking key: {key}")


def top_n(summary: GroupSummary, n: int, key: RankKey = "sales") -> List[Tuple[str, GroupTotals]]:
    """Return the ``n`` largest groups by ``key``, ties broken by group name."""
    if n < 0:
        raise ValueError(f"n must not be negative, got {n}")
    value_of = _key_fn(key)
    ordered = sorted(summary.items(), key=lambda kv: (-value_of(kv[1]), kv[0]))
    return ordered[:n]


def ranked_rows(
    summary: GroupSummary,
    n: int,
    key: RankKey = "sales",
    *,
    label: str = "key",
) -> List[Dict[str, Any]]:
    total = sum((g.sales for g in summary.values()), Decimal("0"))
    rows = []
    for rank, (name, totals) in enumerate(top_n(summary, n, key), start=1):
        rows.append(
            {
                "rank": rank,
                label: name,
                "quantity": totals.quantity,
                "sales": round_half_up(totals.sales),
                "sales_share": round_half_up(totals.sales / total, 4) if total else 0.0,
            }
        )
    return rows
