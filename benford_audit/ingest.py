"""Data ingestion module - loads transaction files and cleans them for analysis."""
import os
from typing import Optional

import polars as pl

from benford_audit.config import MAX_REMOVED_SHARE, MIN_SAMPLE_SIZE, RELIABLE_SAMPLE_SIZE
from benford_audit.models import TRANSACTION_SCHEMA, CleaningReport


DATA_DIR = os.environ.get("BENFORD_DATA_DIR", "data")

# Known column name patterns for auto-detection, exact (lower-case) first
_AMOUNT_PATTERNS = ["amount", "amt", "transaction_amount", "total_amount", "price",
                    "cost", "value", "total", "sum", "expense"]
_VENDOR_PATTERNS = ["vendor", "vendor_name", "supplier", "company", "merchant", "payee"]
_DATE_PATTERNS = ["date", "transaction_date", "invoice_date", "posted", "created", "time"]
_CATEGORY_PATTERNS = ["category", "type", "class", "department", "tag"]

_COLUMN_PATTERNS = [
    ("amount", _AMOUNT_PATTERNS),
    ("vendor", _VENDOR_PATTERNS),
    ("date", _DATE_PATTERNS),
    ("category", _CATEGORY_PATTERNS),
]

_DATE_FORMATS = ["%Y-%m-%d", "%Y%m%d", "%m/%d/%Y", "%Y/%m/%d"]

_SUPPORTED_EXTENSIONS = (".csv", ".json", ".parquet", ".xlsx", ".xls")


def _match_column(columns_lower: dict[str, str], patterns: list[str],
                  used: set[str]) -> Optional[str]:
    """Find the first column whose name equals, then contains, a pattern."""
    for p in patterns:
        if p in columns_lower and columns_lower[p] not in used:
            return columns_lower[p]
    for p in patterns:
        for lower, original in columns_lower.items():
            if p in lower and original not in used:
                return original
    return None


def detect_transaction_columns(columns: list[str]) -> dict[str, str]:
    """Auto-detect transaction column names and map to standard aliases.

    Returns a dict mapping standard names (amount, vendor, date, category)
    to actual column names. Only "amount" is required; optional fields that
    cannot be matched are left out. A column is never mapped twice.
    """
    cols_lower = {c.lower().strip(): c for c in columns}
    mapping: dict[str, str] = {}

    for alias, patterns in _COLUMN_PATTERNS:
        match = _match_column(cols_lower, patterns, set(mapping.values()))
        if match:
            mapping[alias] = match

    if "amount" not in mapping:
        print("WARNING: Could not detect an amount column")
        print(f"  Available columns: {columns}")

    return mapping


def clean_amount_expr(expr: pl.Expr) -> pl.Expr:
    """Parse a raw amount column into Float64.

    Strips currency symbols, thousands separators and whitespace; amounts
    written in parentheses, e.g. "(1,200.00)", become negative. Values that
    still fail to parse become null.
    """
    text = expr.cast(pl.Utf8).str.strip_chars()
    negative = text.str.contains(r"\(") & text.str.contains(r"\)")
    value = text.str.replace_all(r"[₹$€£¥,\s()]", "").cast(pl.Float64, strict=False)
    return pl.when(negative).then(-value).otherwise(value)


def clean_text_expr(expr: pl.Expr) -> pl.Expr:
    """Strip whitespace; empty strings become null."""
    text = expr.cast(pl.Utf8).str.strip_chars()
    return pl.when(text == "").then(None).otherwise(text)


def clean_date_expr(expr: pl.Expr, dtype: pl.DataType) -> pl.Expr:
    """Cast a column to Date, trying common formats for string input."""
    if dtype == pl.Date:
        return expr
    if dtype == pl.Datetime:
        return expr.dt.date()
    text = expr.cast(pl.Utf8).str.strip_chars()
    return pl.coalesce([
        text.str.strptime(pl.Date, fmt, strict=False) for fmt in _DATE_FORMATS
    ])


def resolve_path(path: str) -> str:
    """Return path as given if it exists, otherwise look for it under DATA_DIR."""
    if os.path.exists(path) or os.path.isabs(path):
        return path
    return os.path.join(DATA_DIR, path)


def read_table(path: str) -> pl.DataFrame:
    """Read a CSV, JSON (array of objects), Parquet or Excel file into a DataFrame.

    CSV columns are read as strings so that formatted amounts such as
    "$1,234.50" survive until cleaning.
    """
    path = resolve_path(path)
    if not os.path.exists(path):
        raise FileNotFoundError(f"Transaction file not found at {path}")

    ext = os.path.splitext(path)[1].lower()
    if ext == ".csv":
        df = pl.read_csv(path, infer_schema_length=0)
    elif ext == ".json":
        df = pl.read_json(path)
    elif ext == ".parquet":
        df = pl.read_parquet(path)
    elif ext in (".xlsx", ".xls"):
        # First sheet only
        df = pl.read_excel(path)
    else:
        raise ValueError(
            f"Unsupported file extension: {ext or '(none)'} "
            f"(expected one of {', '.join(_SUPPORTED_EXTENSIONS)})"
        )

    print(f"Loaded {path}: {len(df)} rows, {len(df.columns)} columns")
    return df


def clean_transactions(
    raw: pl.DataFrame,
    mapping: Optional[dict[str, str]] = None,
) -> tuple[pl.DataFrame, CleaningReport]:
    """Map raw columns to the standard layout and drop unusable rows.

    Args:
        raw: Source rows with arbitrary column names.
        mapping: Standard alias -> source column. Detected automatically when
            omitted; explicit entries override detection.

    Returns:
        Tuple of (clean DataFrame with amount/vendor/date/category, CleaningReport).

    Raises:
        ValueError: If no amount column is mapped or a mapped column is missing.
    """
    col_map = detect_transaction_columns(raw.columns)
    col_map.update({k: v for k, v in (mapping or {}).items() if v})

    if "amount" not in col_map:
        raise ValueError("Amount column is required but not mapped")
    missing = [c for c in col_map.values() if c not in raw.columns]
    if missing:
        raise ValueError(f"Mapped columns not found in data: {missing}")

    schema = raw.schema
    exprs = [clean_amount_expr(pl.col(col_map["amount"])).alias("amount")]
    for alias in ("vendor", "category"):
        if alias in col_map:
            exprs.append(clean_text_expr(pl.col(col_map[alias])).alias(alias))
        else:
            exprs.append(pl.lit(None, dtype=pl.Utf8).alias(alias))
    if "date" in col_map:
        exprs.append(
            clean_date_expr(pl.col(col_map["date"]), schema[col_map["date"]]).alias("date")
        )
    else:
        exprs.append(pl.lit(None, dtype=pl.Date).alias("date"))

    cleaned = (
        raw
        .select(exprs)
        .filter(
            pl.col("amount").is_not_null()
            & pl.col("amount").is_finite()
            & (pl.col("amount") > 0)
        )
        .select(list(TRANSACTION_SCHEMA))
    )

    total = len(raw)
    valid = len(cleaned)
    removed = total - valid

    warnings: list[str] = []
    if valid < MIN_SAMPLE_SIZE:
        warnings.append(
            f"Dataset has fewer than {MIN_SAMPLE_SIZE} valid entries. Analysis may not be reliable."
        )
    elif valid < RELIABLE_SAMPLE_SIZE:
        warnings.append(
            f"Dataset has fewer than {RELIABLE_SAMPLE_SIZE} entries. "
            "Benford's Law analysis works better with larger datasets."
        )
    if total and removed > total * MAX_REMOVED_SHARE:
        warnings.append(
            f"More than {MAX_REMOVED_SHARE:.0%} of rows were removed during cleaning ({removed}/{total})"
        )

    print(f"Cleaning: {valid}/{total} rows kept, mapping: {col_map}")
    for w in warnings:
        print(f"  WARNING: {w}")

    report = CleaningReport(
        total_rows=total,
        valid_rows=valid,
        removed_rows=removed,
        column_pairs=tuple(col_map.items()),
        warnings=tuple(warnings),
    )
    return cleaned, report


def load_transactions(
    path: str,
    mapping: Optional[dict[str, str]] = None,
) -> tuple[pl.DataFrame, CleaningReport]:
    """Load and clean a transaction file.

    Returns:
        Tuple of (clean DataFrame, CleaningReport)
    """
    return clean_transactions(read_table(path), mapping)
