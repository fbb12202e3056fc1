from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Tuple

ZERO = Decimal("0")


def parse_date(value: object) -> date:
    """Coerce an ISO date string, ``date`` or ``datetime`` into a ``date``.

    Datetime-like strings (``2023-01-05T10:30:00``) keep only their date part.
    Raises ``ValueError`` for anything else.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        s = value.strip()
        if not s:
            raise ValueError("empty date")
        try:
            return date.fromisoformat(s)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(s[:-1] + "+00:00" if s.endswith("Z") else s).date()
        except ValueError:
            raise ValueError(f"unparseable date: {value!r}") from None
    # pandas.Timestamp and similar expose to_pydatetime()
    to_py = getattr(value, "to_pydatetime", None)
    if callable(to_py):
        return to_py().date()
    raise ValueError(f"unparseable date: {value!r}")

# Fixed column order of the transaction export.
EXPORT_COLUMNS: Tuple[str, ...] = (
    "transaction_id",
    "date",
    "city",
    "product",
    "sku",
    "sales_rep",
    "quantity",
    "price",
)


@dataclass(frozen=True)
class Transaction:
    transaction_id: str
    date: date
    city: str
    product: str
    sku: str
    sales_rep: str
    quantity: int
    price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    @property
    def period(self) -> str:
        """Year-month bucket (``YYYY-MM``) used as the pivot column key."""
        return self.date.isoformat()[:7]


@dataclass(frozen=True)
class GroupTotals:
    quantity: int = 0
    sales: Decimal = ZERO


GroupSummary = Mapping[str, GroupTotals]

# Selectable grouping dimensions. Keys are compared by exact string equality.
GROUP_KEYS: Dict[str, Callable[[Transaction], str]] = {
    "product": lambda t: t.product,
    "city": lambda t: t.city,
    "sales_rep": lambda t: t.sales_rep,
}


def freeze_summary(totals: Dict[str, GroupTotals]) -> GroupSummary:
    return MappingProxyType(dict(totals))


@dataclass(frozen=True)
class Aggregates:
    total_sales: Decimal = ZERO
    total_quantity: int = 0
    transaction_count: int = 0
    average_order_value: Decimal = ZERO
    distinct_cities: int = 0
    by_product: GroupSummary = field(default_factory=lambda: freeze_summary({}))
    by_city: GroupSummary = field(default_factory=lambda: freeze_summary({}))
    by_rep: GroupSummary = field(default_factory=lambda: freeze_summary({}))

    @property
    def is_empty(self) -> bool:
        return self.transaction_count == 0

    def group(self, group_key: str) -> GroupSummary:
        if group_key == "product":
            return self.by_product
        if group_key == "city":
            return self.by_city
        if group_key == "sales_rep":
            return self.by_rep
        raise ValueError(f"Unknown group key: {group_key}")


@dataclass(frozen=True)
class PivotTable:
    """Sales accumulated per sales rep (rows) and year-month (columns).

    ``cells`` is zero-filled: every row holds every period in ``periods``.
    """

    rows: Tuple[str, ...] = ()
    periods: Tuple[str, ...] = ()
    cells: Mapping[str, Mapping[str, Decimal]] = field(default_factory=lambda: MappingProxyType({}))

    def value(self, row: str, period: str) -> Decimal:
        return self.cells.get(row, {}).get(period, ZERO)

    @property
    def max_value(self) -> Decimal:
        values = [v for row in self.cells.values() for v in row.values()]
        return max(values) if values else ZERO
