from __future__ import annotations

from datetime import date
from typing import Callable, Dict, Iterable, List, Sequence

import pandas as pd

from sales_core.models import EXPORT_COLUMNS, Transaction

# Column name -> accessor. ``line_total`` and ``period`` are derived on demand.
COLUMN_GETTERS: Dict[str, Callable[[Transaction], object]] = {
    "transaction_id": lambda t: t.transaction_id,
    "date": lambda t: t.date,
    "city": lambda t: t.city,
    "product": lambda t: t.product,
    "sku": lambda t: t.sku,
    "sales_rep": lambda t: t.sales_rep,
    "quantity": lambda t: t.quantity,
    "price": lambda t: t.price,
    "line_total": lambda t: t.line_total,
    "period": lambda t: t.period,
}


def _plain(value: object) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _rows(records: Iterable[Transaction], columns: Sequence[str]) -> List[List[str]]:
    getters = [COLUMN_GETTERS[c] for c in columns]
    return [[_plain(get(t)) for get in getters] for t in records]


def to_delimited_text(
    records: Iterable[Transaction],
    columns: Sequence[str] = EXPORT_COLUMNS,
    *,
    delimiter: str = ",",
    quoting: bool = True,
) -> str:
    """Serialize records to delimited text: a header line, then one line per record.

    Every line ends with ``\\n``. With ``quoting`` (the default) a field holding
    the delimiter, a double quote or a line break is quoted CSV-style. With
    ``quoting=False`` fields are joined verbatim, so such values corrupt the
    row layout.
    """
    columns = list(columns)
    unknown = [c for c in columns if c not in COLUMN_GETTERS]
    if unknown:
        raise ValueError(f"Unknown export columns: {', '.join(unknown)}")
    if len(delimiter) != 1:
        raise ValueError(f"delimiter must be a single character, got {delimiter!r}")

    rows = _rows(records, columns)
    if not quoting:
        lines = [delimiter.join(columns)] + [delimiter.join(r) for r in rows]
        return "".join(f"{line}\n" for line in lines)

    frame = pd.DataFrame(rows, columns=columns, dtype=object)
    return frame.to_csv(sep=delimiter, index=False, lineterminator="\n")
