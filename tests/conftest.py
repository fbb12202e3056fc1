"""Shared fixtures.

Settings are read from ``SALES_*`` environment variables. Each test starts
from a clean environment so a developer's shell (for example a real
``SALES_FEED_URL``) never leaks into the suite.
"""

from __future__ import annotations

import os
from decimal import Decimal
from datetime import date

import pytest

from sales_core.models import Transaction


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("SALES_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def example_raw() -> list[dict]:
    return [
        {"id": "1", "date": "2023-01-05", "city": "NY", "product": "Widget", "sku": "W-1",
         "salesRep": "Alice", "quantity": 10, "price": "5.00"},
        {"id": "2", "date": "2023-01-20", "city": "NY", "product": "Widget", "sku": "W-1",
         "salesRep": "Bob", "quantity": 5, "price": "5.00"},
        {"id": "3", "date": "2023-02-01", "city": "LA", "product": "Gadget", "sku": "G-1",
         "salesRep": "Alice", "quantity": 2, "price": "20.00"},
    ]


def make_tx(tx_id: str, day: str, city: str, product: str, rep: str, qty: int, price: str, sku: str = "") -> Transaction:
    return Transaction(
        transaction_id=tx_id,
        date=date.fromisoformat(day),
        city=city,
        product=product,
        sku=sku or f"SKU-{product}",
        sales_rep=rep,
        quantity=qty,
        price=Decimal(price),
    )


@pytest.fixture
def example_records() -> tuple[Transaction, ...]:
    return (
        make_tx("1", "2023-01-05", "NY", "Widget", "Alice", 10, "5.00", "W-1"),
        make_tx("2", "2023-01-20", "NY", "Widget", "Bob", 5, "5.00", "W-1"),
        make_tx("3", "2023-02-01", "LA", "Gadget", "Alice", 2, "20.00", "G-1"),
    )


@pytest.fixture
def mixed_records() -> tuple[Transaction, ...]:
    return (
        make_tx("a1", "2023-01-02", "NY", "Widget", "Alice", 3, "9.99"),
        make_tx("a2", "2023-01-15", "LA", "Gadget", "Bob", 7, "12.50"),
        make_tx("a3", "2023-02-03", "SF", "Widget", "Carol", 1, "9.99"),
        make_tx("a4", "2023-02-28", "NY", "Doohickey", "Alice", 4, "0.10"),
        make_tx("a5", "2023-03-01", "LA", "Gadget", "Carol", 0, "12.50"),
        make_tx("a6", "2023-03-31", "SF", "Widget", "Bob", 12, "8.75"),
    )


@pytest.fixture(name="make_tx")
def _make_tx_fixture():
    return make_tx
