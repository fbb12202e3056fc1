from __future__ import annotations

from decimal import Decimal
from typing import Callable, Dict, Iterable, List

from sales_core.models import (
    GROUP_KEYS,
    ZERO,
    Aggregates,
    GroupSummary,
    GroupTotals,
    Transaction,
    freeze_summary,
)


def _fold(groups: Dict[str, List], key: str, quantity: int, sales: Decimal) -> None:
    acc = groups.get(key)
    if acc is None:
        groups[key] = [quantity, sales]
    else:
        acc[0] += quantity
        acc[1] += sales


def _freeze(groups: Dict[str, List]) -> GroupSummary:
    return freeze_summary({k: GroupTotals(quantity=q, sales=s) for k, (q, s) in groups.items()})


def _selector(group_key: str) -> Callable[[Transaction], str]:
    try:
        return GROUP_KEYS[group_key]
    except KeyError:
        raise ValueError(f"Unknown group key: {group_key}") from None


def summarize_by(records: Iterable[Transaction], group_key: str) -> GroupSummary:
    select = _selector(group_key)
    groups: Dict[str, List] = {}
    for t in records:
        _fold(groups, select(t), t.quantity, t.line_total)
    return _freeze(groups)


def aggregate(records: Iterable[Transaction]) -> Aggregates:
    """Fold a record sequence into totals and per-product/city/rep summaries.

    One pass over the input. Money stays ``Decimal`` throughout; rounding is
    left to presentation and export.
    """
    total_sales = ZERO
    total_quantity = 0
    count = 0
    by_product: Dict[str, List] = {}
    by_city: Dict[str, List] = {}
    by_rep: Dict[str, List] = {}

    for t in records:
        line = t.line_total
        total_sales += line
        total_quantity += t.quantity
        count += 1
        _fold(by_product, t.product, t.quantity, line)
        _fold(by_city, t.city, t.quantity, line)
        _fold(by_rep, t.sales_rep, t.quantity, line)

    return Aggregates(
        total_sales=total_sales,
        total_quantity=total_quantity,
        transaction_count=count,
        average_order_value=(total_sales / count) if count else ZERO,
        distinct_cities=len(by_city),
        by_product=_freeze(by_product),
        by_city=_freeze(by_city),
        by_rep=_freeze(by_rep),
    )
