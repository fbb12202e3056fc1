from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from sales_core.errors import InvalidFilterError
from sales_core.models import Transaction, parse_date


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar-date range. A ``None`` bound is open."""

    start: Optional[date] = None
    end: Optional[date] = None

    def __post_init__(self) -> None:
        for name in ("start", "end"):
            value = getattr(self, name)
            if isinstance(value, datetime):
                # Records carry calendar dates; a datetime bound would not compare.
                object.__setattr__(self, name, value.date())
            elif value is not None and not isinstance(value, date):
                raise InvalidFilterError(f"date range {name} must be a date, got {value!r}")
        if self.start is not None and self.end is not None and self.start > self.end:
            raise InvalidFilterError(f"date range start {self.start} is after end {self.end}")

    def contains(self, day: date) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True


@dataclass(frozen=True)
class FilterSpec:
    city: Optional[str] = None
    product: Optional[str] = None
    sales_rep: Optional[str] = None
    date_range: Optional[DateRange] = None

    @property
    def is_empty(self) -> bool:
        return self.city is None and self.product is None and self.sales_rep is None and self.date_range is None

    def to_dict(self) -> Dict[str, Any]:
        dr = self.date_range
        return {
            "city": self.city,
            "product": self.product,
            "sales_rep": self.sales_rep,
            "start_date": dr.start.isoformat() if dr and dr.start else None,
            "end_date": dr.end.isoformat() if dr and dr.end else None,
        }


def _as_label(value: object) -> Optional[str]:
    if value is None:
        return None
    s = str(value)
    return s if s != "" else None


def _as_bound(value: object, name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    try:
        return parse_date(value)
    except ValueError as exc:
        raise InvalidFilterError(f"invalid {name}: {exc}") from None


def build_filter(raw: Mapping[str, Any]) -> FilterSpec:
    """Build a ``FilterSpec`` from UI/API input.

    ``None`` or ``""`` means "match all" for every field. Date bounds may be
    given flat (``start_date``/``end_date``) or nested under ``date_range``.
    Label values are kept verbatim; matching is exact.
    """
    nested = raw.get("date_range") or {}
    if isinstance(nested, DateRange):
        date_range: Optional[DateRange] = nested
    elif isinstance(nested, Mapping):
        start = _as_bound(raw.get("start_date", nested.get("start")), "start date")
        end = _as_bound(raw.get("end_date", nested.get("end")), "end date")
        date_range = DateRange(start, end) if start is not None or end is not None else None
    else:
        raise InvalidFilterError(f"date_range must be a mapping, got {nested!r}")

    return FilterSpec(
        city=_as_label(raw.get("city")),
        product=_as_label(raw.get("product")),
        sales_rep=_as_label(raw.get("sales_rep", raw.get("salesRep"))),
        date_range=date_range,
    )


def matches(record: Transaction, spec: FilterSpec) -> bool:
    if spec.city is not None and record.city != spec.city:
        return False
    if spec.product is not None and record.product != spec.product:
        return False
    if spec.sales_rep is not None and record.sales_rep != spec.sales_rep:
        return False
    if spec.date_range is not None and not spec.date_range.contains(record.date):
        return False
    return True


def apply_filter(records: Iterable[Transaction], spec: FilterSpec) -> Tuple[Transaction, ...]:
    if spec.is_empty:
        return tuple(records)
    return tuple(r for r in records if matches(r, spec))
