"""Main analysis entry point: runs the full Benford pipeline over a dataset.

The dataset-level digit table, deviation scores, and classification are
combined with the vendor analysis and transaction flags into one frozen
BenfordResult, together with warnings about dataset quality.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from benford_audit.config import (
    MAD_SUSPICIOUS,
    MAX_FLAGGED_SHARE,
    MAX_REMOVED_SHARE,
    MIN_SAMPLE_SIZE,
    RELIABLE_SAMPLE_SIZE,
)
from benford_audit.digits import DigitFrequency, digit_frequencies
from benford_audit.flagging import FlaggedTransaction, flag_transactions
from benford_audit.models import CleaningReport, TransactionInput, prepare_transactions
from benford_audit.risk import Assessment, RiskLevel, classify
from benford_audit.scoring import chi_square, mean_absolute_deviation
from benford_audit.vendors import VendorAnalysis, analyze_vendors


class InputEmptyError(ValueError):
    """No usable transactions were supplied."""


@dataclass(frozen=True)
class BenfordResult:
    total_analyzed: int
    digit_frequencies: tuple[DigitFrequency, ...]
    chi_square: float
    mad: float
    overall_assessment: Assessment
    risk_level: RiskLevel
    suspicious_vendors: tuple[VendorAnalysis, ...]
    flagged_transactions: tuple[FlaggedTransaction, ...]
    warnings: tuple[str, ...]
    excluded_records: int = 0

    @property
    def is_compliant(self) -> bool:
        return self.overall_assessment in (Assessment.COMPLIANT, Assessment.ACCEPTABLE)

    @property
    def needs_investigation(self) -> bool:
        return self.risk_level in (RiskLevel.HIGH, RiskLevel.CRITICAL)


def analyze(
    transactions: TransactionInput,
    cleaning: Optional[CleaningReport] = None,
) -> BenfordResult:
    """Run Benford's Law analysis over a set of transactions.

    Args:
        transactions: Transaction objects, dicts with an "amount" key (and
            optional vendor/date/category), or a polars DataFrame with those
            columns. Row order defines each transaction's index.
        cleaning: Optional report from the ingest step; used to warn when a
            large share of the source rows was dropped.

    Returns:
        A frozen BenfordResult. Identical input always gives an equal result.

    Raises:
        InputEmptyError: If there are no transactions, or none has a usable
            positive amount.
    """
    prepared = prepare_transactions(transactions)
    df, excluded = prepared.frame, prepared.excluded
    if df.is_empty():
        if excluded:
            raise InputEmptyError(
                f"No valid amounts found for analysis ({excluded} malformed records)"
            )
        raise InputEmptyError("No transactions supplied for analysis")

    frequencies = digit_frequencies(df.get_column("digit").to_list())
    total = sum(f.count for f in frequencies)
    mad = mean_absolute_deviation(frequencies)
    chi = chi_square(frequencies)
    assessment, risk = classify(mad, chi)

    vendors = analyze_vendors(prepared)
    flagged = flag_transactions(prepared)

    return BenfordResult(
        total_analyzed=total,
        digit_frequencies=tuple(frequencies),
        chi_square=chi,
        mad=mad,
        overall_assessment=assessment,
        risk_level=risk,
        suspicious_vendors=tuple(vendors),
        flagged_transactions=tuple(flagged),
        warnings=tuple(_quality_warnings(total, excluded, mad, vendors, flagged, cleaning)),
        excluded_records=excluded,
    )


def _quality_warnings(
    total: int,
    excluded: int,
    mad: float,
    vendors: list[VendorAnalysis],
    flagged: list[FlaggedTransaction],
    cleaning: Optional[CleaningReport],
) -> list[str]:
    warnings: list[str] = []

    if excluded:
        warnings.append(
            f"{excluded} records with missing, zero, or negative amounts were excluded from analysis."
        )

    if cleaning is not None and cleaning.removed_share > MAX_REMOVED_SHARE:
        warnings.append(
            f"More than {MAX_REMOVED_SHARE:.0%} of rows were removed during cleaning "
            f"({cleaning.removed_rows}/{cleaning.total_rows})."
        )

    if total < MIN_SAMPLE_SIZE:
        warnings.append(
            f"Sample size is very small ({total} < {MIN_SAMPLE_SIZE}). "
            "Results are not statistically meaningful."
        )
    elif total < RELIABLE_SAMPLE_SIZE:
        warnings.append(
            f"Sample size is small ({total} < {RELIABLE_SAMPLE_SIZE}). "
            "Consider collecting more data for better accuracy."
        )

    if mad >= MAD_SUSPICIOUS:
        warnings.append(
            "Data shows significant deviation from Benford's Law. Consider investigating further."
        )

    patterned = sum(1 for v in vendors if v.suspicious_patterns)
    if patterned:
        warnings.append(f"{patterned} vendors show suspicious patterns.")

    if len(flagged) > total * MAX_FLAGGED_SHARE:
        warnings.append(
            f"High number of flagged transactions detected ({len(flagged)} of {total})."
        )

    return warnings
