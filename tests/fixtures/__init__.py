"""Synthetic transaction data generators for the analysis tests."""
from datetime import date

import polars as pl

from benford_audit.models import TRANSACTION_SCHEMA


def make_transactions_df(rows: list[dict]) -> pl.DataFrame:
    """Create a transaction DataFrame in the standard engine layout.

    Each row may set: amount, vendor, date, category. Missing keys fall back
    to defaults (vendor/category None, a fixed date).
    """
    defaults = {
        "amount": 1000.0,
        "vendor": None,
        "date": date(2024, 6, 15),
        "category": None,
    }
    full_rows = []
    for r in rows:
        row = dict(defaults)
        row.update({k: v for k, v in r.items() if k in defaults})
        if row["amount"] is not None:
            row["amount"] = float(row["amount"])
        full_rows.append(row)

    return pl.DataFrame(full_rows, schema=TRANSACTION_SCHEMA)


def benford_amounts(n: int, scale: float = 100.0) -> list[float]:
    """Amounts 10**u * scale for u evenly spaced over [0, 1).

    Their leading digits match Benford's distribution to within 1/n.
    """
    return [10 ** (i / n) * scale for i in range(n)]


def uniform_digit_amounts(repeats: int = 1) -> list[float]:
    """One amount per leading digit 1-9 (100, 200, ... 900), repeated."""
    return [float(d * 100) for _ in range(repeats) for d in range(1, 10)]


def vendor_rows(vendor: str, amounts: list[float]) -> list[dict]:
    return [{"vendor": vendor, "amount": a} for a in amounts]
