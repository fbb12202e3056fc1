from __future__ import annotations

from decimal import Decimal

import pytest

from sales_core.aggregate import aggregate
from sales_core.models import GroupTotals, freeze_summary
from sales_core.ranking import ranked_rows, top_n

SUMMARY = freeze_summary(
    {
        "Gadget": GroupTotals(quantity=5, sales=Decimal("100")),
        "Widget": GroupTotals(quantity=15, sales=Decimal("75")),
        "Anvil": GroupTotals(quantity=5, sales=Decimal("300")),
        "Bolt": GroupTotals(quantity=9, sales=Decimal("100")),
    }
)


def test_example_top_product_by_quantity(example_records):
    agg = aggregate(example_records)
    assert top_n(agg.by_product, 1, "quantity") == [("Widget", GroupTotals(quantity=15, sales=Decimal("75")))]


def test_sorted_descending_with_lexical_tie_break():
    assert [k for k, _ in top_n(SUMMARY, 4, "quantity")] == ["Widget", "Bolt", "Anvil", "Gadget"]
    assert [k for k, _ in top_n(SUMMARY, 4, "sales")] == ["Anvil", "Bolt", "Gadget", "Widget"]


@pytest.mark.parametrize("n, expected", [(0, 0), (2, 2), (4, 4), (50, 4)])
def test_length_is_min_of_n_and_size(n, expected):
    assert len(top_n(SUMMARY, n, "sales")) == expected


def test_negative_n_is_rejected():
    with pytest.raises(ValueError):
        top_n(SUMMARY, -1)


def test_unknown_key_is_rejected():
    with pytest.raises(ValueError):
        top_n(SUMMARY, 2, "margin")


def test_callable_key():
    avg_price = lambda g: g.sales / g.quantity  # noqa: E731
    assert top_n(SUMMARY, 1, avg_price)[0][0] == "Anvil"


def test_empty_summary():
    assert top_n(freeze_summary({}), 3, "sales") == []


def test_ranked_rows_shape():
    rows = ranked_rows(SUMMARY, 2, "sales", label="product")
    assert rows == [
        {"rank": 1, "product": "Anvil", "quantity": 5, "sales": 300.0, "sales_share": 0.5217},
        {"rank": 2, "product": "Bolt", "quantity": 9, "sales": 100.0, "sales_share": 0.1739},
    ]
