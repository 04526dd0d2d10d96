"""Deviation scoring against Benford's Law: MAD and Chi-square."""
from __future__ import annotations

from typing import Sequence

from benford_audit.config import CHI_SQUARE_BANDS
from benford_audit.digits import DigitFrequency, total_count


def mean_absolute_deviation(frequencies: Sequence[DigitFrequency]) -> float:
    """Mean Absolute Deviation on the fraction scale (0.006 = close conformity).

    Averages |observed - expected| over the nine digits using proportions,
    not percentages, so the value lines up with Nigrini's first-digit bands.
    """
    if not frequencies:
        return 0.0
    return sum(
        abs(f.observed_fraction - f.expected_fraction) for f in frequencies
    ) / len(frequencies)


def chi_square(frequencies: Sequence[DigitFrequency]) -> float:
    """Pearson Chi-square of observed digit counts vs. Benford counts (df=8)."""
    total = total_count(frequencies)
    if total == 0:
        return 0.0

    statistic = 0.0
    for f in frequencies:
        expected_count = f.expected_fraction * total
        if expected_count > 0:
            statistic += (f.count - expected_count) ** 2 / expected_count
    return statistic


def chi_square_significance(statistic: float) -> str:
    """Approximate p-value band for a df=8 Chi-square statistic."""
    for critical, band in CHI_SQUARE_BANDS:
        if statistic > critical:
            return band
    return "> 0.05"


def most_deviant_digit(frequencies: Sequence[DigitFrequency]) -> int:
    """Digit whose observed share strays furthest from Benford (ties -> lower digit)."""
    best = frequencies[0]
    for f in frequencies[1:]:
        if f.deviation > best.deviation:
            best = f
    return best.digit
