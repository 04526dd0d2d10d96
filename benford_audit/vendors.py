"""Per-vendor Benford analysis and suspicious-pattern detection.

Each vendor with enough transactions gets its own digit table, MAD,
Chi-square, and risk level, plus structured pattern variants:
- Round numbers (too many multiples of 100)
- High-digit concentration (7-9 leading far more than Benford's ~15.5%)
- Single-digit dominance (one leading digit takes most of the volume)
- Duplicate amounts (one exact amount repeated beyond chance)
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

import polars as pl

from benford_audit.config import (
    DOMINANT_DIGIT_SHARE,
    DUPLICATE_MAX_SHARE,
    DUPLICATE_MIN_OCCURRENCES,
    HIGH_DIGIT_SHARE_THRESHOLD,
    HIGH_DIGITS,
    MIN_VENDOR_TRANSACTIONS,
    ROUND_NUMBER_UNIT,
    ROUND_SHARE_THRESHOLD,
)
from benford_audit.digits import BENFORD_EXPECTED, DIGITS, DigitFrequency, digit_frequencies
from benford_audit.models import TransactionInput, prepare_transactions
from benford_audit.risk import Assessment, RiskLevel, classify, max_risk
from benford_audit.scoring import chi_square, mean_absolute_deviation

# Combined Benford share of leading digits 7-9 (log10(10/7), ~0.155)
HIGH_DIGIT_EXPECTED = sum(BENFORD_EXPECTED[d] for d in HIGH_DIGITS) / 100


class PatternKind(str, Enum):
    ROUND_NUMBERS = "round_numbers"
    HIGH_DIGIT_CONCENTRATION = "high_digit_concentration"
    SINGLE_DIGIT_DOMINANCE = "single_digit_dominance"
    DUPLICATE_AMOUNTS = "duplicate_amounts"


_PATTERN_RISK_FLOOR = {
    PatternKind.ROUND_NUMBERS: RiskLevel.MEDIUM,
    PatternKind.HIGH_DIGIT_CONCENTRATION: RiskLevel.MEDIUM,
    PatternKind.SINGLE_DIGIT_DOMINANCE: RiskLevel.MEDIUM,
    PatternKind.DUPLICATE_AMOUNTS: RiskLevel.HIGH,
}


@dataclass(frozen=True)
class SuspiciousPattern:
    """A vendor-level heuristic that fired, with the values that tripped it.

    `observed` and `threshold` are shares (0-1) except for duplicates,
    where they are occurrence counts.
    """
    kind: PatternKind
    observed: float
    threshold: float
    digit: Optional[int] = None
    amount: Optional[float] = None

    @property
    def risk_floor(self) -> RiskLevel:
        return _PATTERN_RISK_FLOOR[self.kind]

    def describe(self) -> str:
        if self.kind is PatternKind.ROUND_NUMBERS:
            return (
                f"{self.observed * 100:.1f}% of amounts are round numbers "
                f"(multiples of {ROUND_NUMBER_UNIT})"
            )
        if self.kind is PatternKind.HIGH_DIGIT_CONCENTRATION:
            return (
                f"High digits (7-9) represent {self.observed * 100:.1f}% of transactions "
                f"(expected {HIGH_DIGIT_EXPECTED * 100:.1f}%)"
            )
        if self.kind is PatternKind.SINGLE_DIGIT_DOMINANCE:
            return (
                f"Digit {self.digit} dominates with {self.observed * 100:.1f}% "
                f"(expected {BENFORD_EXPECTED[self.digit]:.1f}%)"
            )
        return f"Amount {self.amount:,.2f} repeated {int(self.observed)} times"


@dataclass(frozen=True)
class VendorAnalysis:
    vendor: str
    transaction_count: int
    mad: float
    chi_square: float
    assessment: Assessment
    risk_level: RiskLevel
    suspicious_patterns: tuple[SuspiciousPattern, ...]
    digit_counts: tuple[int, ...]  # digits 1-9, in order

    @property
    def digit_distribution(self) -> Mapping[int, int]:
        return MappingProxyType(dict(zip(DIGITS, self.digit_counts)))

    @property
    def pattern_kinds(self) -> tuple[PatternKind, ...]:
        return tuple(p.kind for p in self.suspicious_patterns)

    @property
    def pattern_descriptions(self) -> list[str]:
        return [p.describe() for p in self.suspicious_patterns]


def duplicate_threshold(vendor_count: int) -> int:
    """Occurrences of one exact amount needed before a vendor's repeats look non-random.

    Small vendors need DUPLICATE_MIN_OCCURRENCES; larger ones need the
    same amount on at least DUPLICATE_MAX_SHARE of their volume.
    """
    return max(DUPLICATE_MIN_OCCURRENCES, math.ceil(vendor_count * DUPLICATE_MAX_SHARE))


def detect_patterns(
    frequencies: list[DigitFrequency],
    transaction_count: int,
    round_share: float,
    max_repeat: int,
    repeated_amount: Optional[float],
) -> list[SuspiciousPattern]:
    """Evaluate the fixed vendor heuristics, in a stable order."""
    patterns: list[SuspiciousPattern] = []

    if round_share > ROUND_SHARE_THRESHOLD:
        patterns.append(SuspiciousPattern(
            kind=PatternKind.ROUND_NUMBERS,
            observed=round_share,
            threshold=ROUND_SHARE_THRESHOLD,
        ))

    high_share = sum(f.observed_fraction for f in frequencies if f.digit in HIGH_DIGITS)
    if high_share > HIGH_DIGIT_SHARE_THRESHOLD:
        patterns.append(SuspiciousPattern(
            kind=PatternKind.HIGH_DIGIT_CONCENTRATION,
            observed=high_share,
            threshold=HIGH_DIGIT_SHARE_THRESHOLD,
        ))

    # Lowest digit wins ties
    dominant = max(frequencies, key=lambda f: (f.count, -f.digit))
    if dominant.observed_fraction > DOMINANT_DIGIT_SHARE:
        patterns.append(SuspiciousPattern(
            kind=PatternKind.SINGLE_DIGIT_DOMINANCE,
            observed=dominant.observed_fraction,
            threshold=DOMINANT_DIGIT_SHARE,
            digit=dominant.digit,
        ))

    threshold = duplicate_threshold(transaction_count)
    if max_repeat >= threshold:
        patterns.append(SuspiciousPattern(
            kind=PatternKind.DUPLICATE_AMOUNTS,
            observed=float(max_repeat),
            threshold=float(threshold),
            amount=repeated_amount,
        ))

    return patterns


def _vendor_rows(df: pl.DataFrame) -> pl.DataFrame:
    return df.filter(pl.col("vendor").is_not_null() & (pl.col("vendor") != ""))


def _repeat_stats(vendor_rows: pl.DataFrame) -> pl.DataFrame:
    """Per vendor: the highest count of one exact amount, and that amount."""
    return (
        vendor_rows
        .group_by(["vendor", "amount"])
        .agg(pl.len().alias("repeat_count"))
        .group_by("vendor")
        .agg([
            pl.col("repeat_count").max().alias("max_repeat"),
            pl.col("amount")
            .filter(pl.col("repeat_count") == pl.col("repeat_count").max())
            .min()
            .alias("repeated_amount"),
        ])
    )


def analyze_vendors(transactions: TransactionInput) -> list[VendorAnalysis]:
    """Score every vendor with at least MIN_VENDOR_TRANSACTIONS transactions.

    Vendors are matched by exact, case-sensitive name; rows without a
    vendor are skipped. Results are ordered most actionable first: risk
    desc, transaction count desc, then vendor name.
    """
    df = prepare_transactions(transactions).frame
    vendor_rows = _vendor_rows(df)
    if vendor_rows.is_empty():
        return []

    groups = (
        vendor_rows
        .group_by("vendor")
        .agg([
            pl.len().alias("transaction_count"),
            pl.col("digit"),
            ((pl.col("amount") % ROUND_NUMBER_UNIT) == 0).mean().alias("round_share"),
        ])
        .filter(pl.col("transaction_count") >= MIN_VENDOR_TRANSACTIONS)
        .join(_repeat_stats(vendor_rows), on="vendor", how="left")
        .sort("vendor")
    )

    analyses: list[VendorAnalysis] = []
    for row in groups.iter_rows(named=True):
        frequencies = digit_frequencies(row["digit"])
        mad = mean_absolute_deviation(frequencies)
        chi = chi_square(frequencies)
        assessment, risk = classify(mad, chi)

        patterns = detect_patterns(
            frequencies,
            transaction_count=row["transaction_count"],
            round_share=float(row["round_share"]),
            max_repeat=int(row["max_repeat"]),
            repeated_amount=row["repeated_amount"],
        )
        risk = max_risk(risk, *(p.risk_floor for p in patterns))

        analyses.append(VendorAnalysis(
            vendor=row["vendor"],
            transaction_count=row["transaction_count"],
            mad=mad,
            chi_square=chi,
            assessment=assessment,
            risk_level=risk,
            suspicious_patterns=tuple(patterns),
            digit_counts=tuple(f.count for f in frequencies),
        ))

    return sorted(
        analyses,
        key=lambda a: (-a.risk_level.rank, -a.transaction_count, a.vendor),
    )
