from __future__ import annotations

from decimal import Decimal

import pytest

from sales_core.aggregate import aggregate, summarize_by
from sales_core.filters import FilterSpec, apply_filter
from sales_core.models import GroupTotals


def test_example_scenario_totals(example_records):
    agg = aggregate(apply_filter(example_records, FilterSpec()))
    assert agg.total_sales == Decimal("115")
    assert agg.total_quantity == 17
    assert agg.transaction_count == 3
    assert agg.distinct_cities == 2
    assert agg.average_order_value == Decimal("115") / 3
    assert agg.by_product["Widget"] == GroupTotals(quantity=15, sales=Decimal("75"))
    assert agg.by_city["LA"] == GroupTotals(quantity=2, sales=Decimal("40"))
    assert agg.by_rep["Alice"] == GroupTotals(quantity=12, sales=Decimal("90"))


def test_empty_input_is_a_valid_state():
    agg = aggregate([])
    assert agg.is_empty
    assert agg.total_sales == 0
    assert agg.average_order_value == 0
    assert agg.distinct_cities == 0
    assert dict(agg.by_product) == {}


def test_conservation_across_groups(mixed_records):
    agg = aggregate(mixed_records)
    for summary in (agg.by_product, agg.by_city, agg.by_rep):
        assert sum(g.sales for g in summary.values()) == agg.total_sales
        assert sum(g.quantity for g in summary.values()) == agg.total_quantity


def test_aggregate_is_deterministic_and_order_independent(mixed_records):
    first = aggregate(mixed_records)
    again = aggregate(mixed_records)
    reversed_ = aggregate(tuple(reversed(mixed_records)))
    assert first == again
    assert dict(first.by_product) == dict(reversed_.by_product)
    assert first.total_sales == reversed_.total_sales


def test_decimal_accumulation_has_no_drift(make_tx):
    records = [make_tx(str(i), "2023-01-01", "NY", "Penny", "Alice", 1, "0.10") for i in range(1000)]
    agg = aggregate(records)
    assert agg.total_sales == Decimal("100.00")
    assert agg.average_order_value == Decimal("0.10")


def test_zero_quantity_still_counts_as_transaction(mixed_records):
    agg = aggregate(mixed_records)
    assert agg.transaction_count == 6
    assert agg.by_rep["Carol"].quantity == 1


def test_group_summaries_are_read_only(example_records):
    agg = aggregate(example_records)
    with pytest.raises(TypeError):
        agg.by_product["Widget"] = GroupTotals()


def test_summarize_by_selects_group_key(mixed_records):
    by_city = summarize_by(mixed_records, "city")
    assert by_city == aggregate(mixed_records).by_city
    assert set(summarize_by(mixed_records, "sales_rep")) == {"Alice", "Bob", "Carol"}
    with pytest.raises(ValueError):
        summarize_by(mixed_records, "category")


def test_group_lookup_by_name(example_records):
    agg = aggregate(example_records)
    assert agg.group("product") is agg.by_product
    assert agg.group("sales_rep") is agg.by_rep
    with pytest.raises(ValueError):
        agg.group("region")
