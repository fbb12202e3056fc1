from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from sales_core.aggregate import aggregate
from sales_core.config import Settings, load_settings
from sales_core.errors import InvalidRecordError
from sales_core.feed import load_raw_records
from sales_core.filters import FilterSpec, apply_filter, build_filter
from sales_core.models import Transaction, parse_date

logger = logging.getLogger(__name__)

# Source field names seen in feeds and CSV exports -> canonical field.
FIELD_ALIASES = {
    "id": "transaction_id",
    "transactionId": "transaction_id",
    "transaction_id": "transaction_id",
    "date": "date",
    "transaction_date": "date",
    "city": "city",
    "product": "product",
    "name": "product",
    "sku": "sku",
    "salesRep": "sales_rep",
    "sales_rep": "sales_rep",
    "rep": "sales_rep",
    "quantity": "quantity",
    "qty": "quantity",
    "sold": "quantity",
    "price": "price",
    "unit_price": "price",
}

LABEL_FIELDS = ("city", "product", "sales_rep")

_THOUSANDS_RE = re.compile(r"^[+-]?\d{1,3}(,\d{3})+(\.\d*)?$")


@dataclass(frozen=True)
class RejectedRecord:
    index: int
    record: Mapping[str, Any]
    reasons: Tuple[str, ...]


@dataclass(frozen=True)
class IngestResult:
    records: Tuple[Transaction, ...] = ()
    rejected: Tuple[RejectedRecord, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.rejected


def round_half_up(value: object, ndigits: int = 2) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def format_currency(value: object, decimals: int = 2) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"${round_half_up(value, decimals):,.{decimals}f}"


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _canonical_fields(raw: Mapping[str, Any]) -> Dict[str, Any]:
    # Canonical names first, so an alias never overrides an explicit canonical column.
    out: Dict[str, Any] = {str(k): v for k, v in raw.items() if FIELD_ALIASES.get(str(k)) == str(k)}
    for key, value in raw.items():
        canonical = FIELD_ALIASES.get(str(key))
        if canonical and canonical not in out:
            out[canonical] = value
    return out


def _to_decimal(value: object) -> Decimal:
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    s = str(value).strip().replace("$", "")
    if "," in s:
        # Commas are accepted only as thousands separators ("1,250.00").
        if not _THOUSANDS_RE.match(s):
            raise ValueError(f"not a number: {value!r}")
        s = s.replace(",", "")
    try:
        d = Decimal(s)
    except InvalidOperation:
        raise ValueError(f"not a number: {value!r}") from None
    if not d.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return d


def _parse_quantity(value: object) -> int:
    d = _to_decimal(value)
    if d != d.to_integral_value():
        raise ValueError(f"quantity must be a whole number, got {value!r}")
    if d < 0:
        raise ValueError(f"quantity must not be negative, got {value!r}")
    return int(d)


def _parse_price(value: object) -> Decimal:
    d = _to_decimal(value)
    if d < 0:
        raise ValueError(f"price must not be negative, got {value!r}")
    return d


def parse_transaction(raw: Mapping[str, Any]) -> Transaction:
    """Validate one raw record and build a ``Transaction``.

    Every problem with the record is collected so the caller sees all of them
    at once; ``InvalidRecordError.reasons`` lists them in field order.
    """
    fields = _canonical_fields(raw)
    reasons: List[str] = []

    tx_id = fields.get("transaction_id")
    if _is_missing(tx_id) or not str(tx_id).strip():
        reasons.append("missing transaction_id")

    tx_date = None
    if _is_missing(fields.get("date")):
        reasons.append("missing date")
    else:
        try:
            tx_date = parse_date(fields["date"])
        except ValueError as exc:
            reasons.append(str(exc))

    labels: Dict[str, str] = {}
    for name in LABEL_FIELDS:
        value = fields.get(name)
        if _is_missing(value) or not str(value).strip():
            reasons.append(f"missing {name}")
        else:
            labels[name] = str(value)

    quantity = 0
    if _is_missing(fields.get("quantity")):
        reasons.append("missing quantity")
    else:
        try:
            quantity = _parse_quantity(fields["quantity"])
        except ValueError as exc:
            reasons.append(str(exc))

    price = Decimal("0")
    if _is_missing(fields.get("price")):
        reasons.append("missing price")
    else:
        try:
            price = _parse_price(fields["price"])
        except ValueError as exc:
            reasons.append(str(exc))

    if reasons:
        raise InvalidRecordError(reasons, raw)

    sku = fields.get("sku")
    return Transaction(
        transaction_id=str(tx_id),
        date=tx_date,
        city=labels["city"],
        product=labels["product"],
        sku="" if _is_missing(sku) else str(sku),
        sales_rep=labels["sales_rep"],
        quantity=quantity,
        price=price,
    )


def ingest_records(raw_records: Iterable[Mapping[str, Any]]) -> IngestResult:
    """Validate a raw record collection, keeping the good and collecting the bad.

    A record that fails validation (or repeats an earlier ``transaction_id``)
    is rejected on its own; the rest of the collection is still processed.
    """
    accepted: List[Transaction] = []
    rejected: List[RejectedRecord] = []
    seen_ids = set()

    for idx, raw in enumerate(raw_records):
        if not isinstance(raw, Mapping):
            rejected.append(RejectedRecord(idx, {"value": raw}, ("record is not a mapping",)))
            continue
        try:
            tx = parse_transaction(raw)
        except InvalidRecordError as exc:
            rejected.append(RejectedRecord(idx, raw, tuple(exc.reasons)))
            continue
        if tx.transaction_id in seen_ids:
            rejected.append(RejectedRecord(idx, raw, (f"duplicate transaction_id {tx.transaction_id!r}",)))
            continue
        seen_ids.add(tx.transaction_id)
        accepted.append(tx)

    for rej in rejected:
        logger.warning("Rejected record #%d: %s", rej.index, "; ".join(rej.reasons))
    logger.info("Ingested %d records (%d rejected)", len(accepted), len(rejected))
    return IngestResult(records=tuple(accepted), rejected=tuple(rejected))


def records_from_frame(df: pd.DataFrame) -> IngestResult:
    if df.empty:
        return IngestResult()
    return ingest_records(df.to_dict(orient="records"))


def load_transactions_csv(path: str | Path) -> IngestResult:
    # Read every column as text so prices keep their exact decimal digits.
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df = df.replace({"": None})
    return records_from_frame(df)


def dataset_options(records: Iterable[Transaction]) -> Dict[str, Any]:
    records = list(records)
    dates = [t.date for t in records]
    return {
        "cities": sorted({t.city for t in records}),
        "products": sorted({t.product for t in records}),
        "sales_reps": sorted({t.sales_rep for t in records}),
        "min_date": min(dates).isoformat() if dates else None,
        "max_date": max(dates).isoformat() if dates else None,
    }


# ---------------- Public API (Streamlit + FastAPI use) ----------------
def load_dashboard_data(settings: Optional[Settings] = None) -> Dict[str, Any]:
    settings = settings or load_settings()
    feed = load_raw_records(settings)
    result = ingest_records(feed.records)
    return {
        "source": feed.source,
        "records": result.records,
        "rejected": result.rejected,
        "options": dataset_options(result.records),
    }


def prepare_context(filters: Mapping[str, Any] | FilterSpec | None, data_ctx: Mapping[str, Any]) -> Dict[str, Any]:
    records: Tuple[Transaction, ...] = tuple(data_ctx.get("records", ()))
    filt = filters if isinstance(filters, FilterSpec) else build_filter(filters or {})
    filtered = apply_filter(records, filt)
    return {
        "filters": filt,
        "source": data_ctx.get("source"),
        "records": records,
        "filtered": filtered,
        "aggregates": aggregate(filtered),
        "rejected": tuple(data_ctx.get("rejected", ())),
    }
