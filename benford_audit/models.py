"""Input records and the standard transaction frame layout."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Union

import polars as pl

from benford_audit.digits import leading_digit


# Column layout shared by ingest, the engine, and the test fixtures
TRANSACTION_SCHEMA: dict[str, pl.DataType] = {
    "amount": pl.Float64,
    "vendor": pl.Utf8,
    "date": pl.Date,
    "category": pl.Utf8,
}


@dataclass(frozen=True)
class Transaction:
    """A single cleaned transaction record."""
    amount: float
    vendor: Optional[str] = None
    date: Optional[date] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class CleaningReport:
    """Outcome of the ingest cleaning pass.

    `column_pairs` holds (standard alias, source column) in mapping order;
    read it through the `column_mapping` view.
    """
    total_rows: int
    valid_rows: int
    removed_rows: int
    column_pairs: tuple[tuple[str, str], ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def column_mapping(self) -> Mapping[str, str]:
        return MappingProxyType(dict(self.column_pairs))

    @property
    def removed_share(self) -> float:
        if self.total_rows == 0:
            return 0.0
        return self.removed_rows / self.total_rows


@dataclass(frozen=True, eq=False)
class PreparedTransactions:
    """Rows that went through prepare_transactions().

    `frame` has columns index, amount, vendor, date, category, digit and
    only holds records with a usable positive amount. `excluded` counts the
    records dropped on the way.
    """
    frame: pl.DataFrame
    excluded: int = 0


TransactionInput = Union[
    PreparedTransactions,
    pl.DataFrame,
    Iterable[Union[Transaction, Mapping[str, Any]]],
]


def to_frame(transactions: TransactionInput) -> pl.DataFrame:
    """Coerce engine input to a DataFrame with the standard columns.

    Accepts an existing DataFrame (missing optional columns are added as
    nulls, extra columns are dropped) or an iterable of Transaction objects /
    dicts. Row order is kept.
    """
    if isinstance(transactions, pl.DataFrame):
        if "amount" not in transactions.columns:
            raise ValueError("Transaction frame has no 'amount' column")
        missing = [
            pl.lit(None, dtype=dtype).alias(name)
            for name, dtype in TRANSACTION_SCHEMA.items()
            if name not in transactions.columns
        ]
        df = transactions.with_columns(missing) if missing else transactions
        return df.select([
            pl.col("amount").cast(pl.Float64, strict=False),
            pl.col("vendor").cast(pl.Utf8),
            pl.col("date"),
            pl.col("category").cast(pl.Utf8),
        ])

    rows = []
    for t in transactions:
        raw = asdict(t) if isinstance(t, Transaction) else dict(t)
        row = {name: raw.get(name) for name in TRANSACTION_SCHEMA}
        row["amount"] = _coerce_amount(row["amount"])
        if isinstance(row["date"], datetime):
            row["date"] = row["date"].date()
        elif not isinstance(row["date"], date):
            row["date"] = None
        for name in ("vendor", "category"):
            if row[name] is not None:
                row[name] = str(row[name])
        rows.append(row)
    return pl.DataFrame(rows, schema=TRANSACTION_SCHEMA)


def _coerce_amount(value: Any) -> Optional[float]:
    """Convert an amount to float; unconvertible values become None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def prepare_transactions(transactions: TransactionInput) -> PreparedTransactions:
    """Index rows, attach leading digits, and drop malformed records.

    Records with a missing, non-finite, or non-positive amount are excluded
    and counted. Any caller-supplied index or digit column is recomputed;
    only a PreparedTransactions value passes through unchanged.
    """
    if isinstance(transactions, PreparedTransactions):
        return transactions

    df = to_frame(transactions).with_row_index("index")
    digits = [
        leading_digit(a) if a is not None and a > 0 else None
        for a in df.get_column("amount").to_list()
    ]
    df = df.with_columns(pl.Series("digit", digits, dtype=pl.Int64))
    valid = df.filter(pl.col("digit").is_not_null())
    return PreparedTransactions(frame=valid, excluded=df.height - valid.height)
