"""Transaction-level flagging heuristics.

Each transaction is checked independently of the vendor analysis:
- Extreme amounts: far above the dataset's typical magnitude, measured as a
  robust z-score on log10(amount)
- Duplicate amounts: one vendor booking the same exact amount repeatedly
- Overrepresented digits: the row's leading digit is more than twice as
  common in the dataset as Benford predicts
- High-digit amounts: material amounts that start with 7, 8 or 9
- Round numbers: material amounts that are exact multiples of 100

A transaction is only flagged when at least one heuristic fires, so flags
are never "low" risk.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import polars as pl

from benford_audit.config import (
    HIGH_DIGIT_AMOUNT_FLOOR,
    HIGH_DIGITS,
    MIN_SAMPLE_SIZE,
    OUTLIER_MAD_MULTIPLIER,
    OVERREPRESENTED_DIGIT_FACTOR,
    ROUND_MATERIALITY_FLOOR,
    ROUND_NUMBER_UNIT,
)
from benford_audit.digits import digit_frequencies
from benford_audit.models import TransactionInput, prepare_transactions
from benford_audit.risk import RiskLevel, max_risk
from benford_audit.vendors import duplicate_threshold


class FlagKind(str, Enum):
    ROUND_NUMBER = "round_number"
    EXTREME_AMOUNT = "extreme_amount"
    DUPLICATE_AMOUNT = "duplicate_amount"
    OVERREPRESENTED_DIGIT = "overrepresented_digit"
    HIGH_DIGIT_AMOUNT = "high_digit_amount"


_FLAG_RISK = {
    FlagKind.ROUND_NUMBER: RiskLevel.MEDIUM,
    FlagKind.EXTREME_AMOUNT: RiskLevel.HIGH,
    FlagKind.DUPLICATE_AMOUNT: RiskLevel.HIGH,
    FlagKind.OVERREPRESENTED_DIGIT: RiskLevel.HIGH,
    FlagKind.HIGH_DIGIT_AMOUNT: RiskLevel.HIGH,
}


@dataclass(frozen=True)
class FlagReason:
    """One heuristic that fired on a transaction.

    For duplicates `observed`/`threshold` are occurrence counts, for
    overrepresented digits they are dataset percentages; otherwise they are
    amounts. `digit` is set for the digit-based reasons.
    """
    kind: FlagKind
    observed: float
    threshold: float
    digit: Optional[int] = None

    @property
    def risk(self) -> RiskLevel:
        return _FLAG_RISK[self.kind]

    def describe(self) -> str:
        if self.kind is FlagKind.ROUND_NUMBER:
            return (
                f"Large round number (multiple of {self.threshold:,.0f} "
                f"above {ROUND_MATERIALITY_FLOOR:,})"
            )
        if self.kind is FlagKind.EXTREME_AMOUNT:
            return f"Unusually high amount (outlier bound {self.threshold:,.2f})"
        if self.kind is FlagKind.OVERREPRESENTED_DIGIT:
            return (
                f"Overrepresented first digit ({self.digit}): {self.observed:.1f}% "
                f"of amounts vs. limit {self.threshold:.1f}%"
            )
        if self.kind is FlagKind.HIGH_DIGIT_AMOUNT:
            return (
                f"High amount with suspicious first digit ({self.digit}, "
                f"above {self.threshold:,.0f})"
            )
        return f"Identical amount repeated {int(self.observed)} times by the same vendor"


@dataclass(frozen=True)
class FlaggedTransaction:
    index: int
    amount: float
    vendor: Optional[str]
    first_digit: int
    reasons: tuple[FlagReason, ...]
    risk_level: RiskLevel

    @property
    def reason(self) -> str:
        return "; ".join(r.describe() for r in self.reasons)

    @property
    def kinds(self) -> tuple[FlagKind, ...]:
        return tuple(r.kind for r in self.reasons)


def outlier_bound(amounts: pl.Series) -> Optional[float]:
    """Upper log10 bound: median + OUTLIER_MAD_MULTIPLIER * median absolute deviation.

    Returns None when the sample is too small or the spread is zero.
    """
    if amounts.len() < MIN_SAMPLE_SIZE:
        return None
    logs = amounts.log10()
    center = logs.median()
    spread = (logs - center).abs().median()
    if not spread:
        return None
    return center + OUTLIER_MAD_MULTIPLIER * spread


def overrepresented_digits(digits: list[int]) -> dict[int, FlagReason]:
    """Digits whose dataset share exceeds OVERREPRESENTED_DIGIT_FACTOR x Benford.

    Empty below MIN_SAMPLE_SIZE digits, where single rows swing the shares.
    """
    if len(digits) < MIN_SAMPLE_SIZE:
        return {}
    reasons = {}
    for f in digit_frequencies(digits):
        limit = f.expected * OVERREPRESENTED_DIGIT_FACTOR
        if f.observed > limit:
            reasons[f.digit] = FlagReason(
                kind=FlagKind.OVERREPRESENTED_DIGIT,
                observed=f.observed,
                threshold=limit,
                digit=f.digit,
            )
    return reasons


def combine_risk(reasons: list[FlagReason]) -> RiskLevel:
    """Highest risk among reasons, one notch higher when several fire."""
    risk = max_risk(*(r.risk for r in reasons))
    if len(reasons) > 1:
        risk = risk.escalate()
    return risk


def flag_transactions(transactions: TransactionInput) -> list[FlaggedTransaction]:
    """Flag transactions that trip at least one heuristic.

    Sorted by risk desc, amount desc, then original index.
    """
    df = prepare_transactions(transactions).frame
    if df.is_empty():
        return []

    bound = outlier_bound(df.get_column("amount"))
    digit_reasons = overrepresented_digits(df.get_column("digit").to_list())
    has_vendor = pl.col("vendor").is_not_null() & (pl.col("vendor") != "")

    scored = df.with_columns([
        (
            ((pl.col("amount") % ROUND_NUMBER_UNIT) == 0)
            & (pl.col("amount") > ROUND_MATERIALITY_FLOOR)
        ).alias("is_round"),
        (
            pl.col("amount").log10() > bound if bound is not None else pl.lit(False)
        ).alias("is_extreme"),
        (
            pl.col("digit").is_in(list(HIGH_DIGITS))
            & (pl.col("amount") > HIGH_DIGIT_AMOUNT_FLOOR)
        ).alias("is_high_digit"),
        pl.when(has_vendor)
        .then(pl.col("amount").count().over(["vendor", "amount"]))
        .otherwise(0)
        .alias("repeat_count"),
        pl.when(has_vendor)
        .then(pl.col("amount").count().over("vendor"))
        .otherwise(0)
        .alias("vendor_count"),
    ])

    flagged: list[FlaggedTransaction] = []
    for row in scored.iter_rows(named=True):
        reasons: list[FlagReason] = []
        digit = int(row["digit"])

        if row["is_extreme"]:
            reasons.append(FlagReason(
                kind=FlagKind.EXTREME_AMOUNT,
                observed=row["amount"],
                threshold=10 ** bound,
            ))

        if row["vendor_count"]:
            needed = duplicate_threshold(row["vendor_count"])
            if row["repeat_count"] >= needed:
                reasons.append(FlagReason(
                    kind=FlagKind.DUPLICATE_AMOUNT,
                    observed=float(row["repeat_count"]),
                    threshold=float(needed),
                ))

        if digit in digit_reasons:
            reasons.append(digit_reasons[digit])

        if row["is_high_digit"]:
            reasons.append(FlagReason(
                kind=FlagKind.HIGH_DIGIT_AMOUNT,
                observed=row["amount"],
                threshold=float(HIGH_DIGIT_AMOUNT_FLOOR),
                digit=digit,
            ))

        if row["is_round"]:
            reasons.append(FlagReason(
                kind=FlagKind.ROUND_NUMBER,
                observed=row["amount"],
                threshold=float(ROUND_NUMBER_UNIT),
            ))

        if not reasons:
            continue

        flagged.append(FlaggedTransaction(
            index=int(row["index"]),
            amount=row["amount"],
            vendor=row["vendor"],
            first_digit=digit,
            reasons=tuple(reasons),
            risk_level=combine_risk(reasons),
        ))

    return sorted(flagged, key=lambda f: (-f.risk_level.rank, -f.amount, f.index))
