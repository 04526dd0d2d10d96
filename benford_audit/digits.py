"""Leading-digit extraction and Benford frequency tables.

Natural financial data follows Benford's Law: the leading digit d appears
with probability log10(1 + 1/d), so "1" leads ~30.1% of amounts and "9"
only ~4.6%. Fabricated amounts tend to spread more evenly.
"""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

DIGITS = range(1, 10)

# Expected Benford share per leading digit, as a percentage
BENFORD_EXPECTED: Mapping[int, float] = MappingProxyType(
    {d: math.log10(1 + 1 / d) * 100 for d in DIGITS}
)


@dataclass(frozen=True)
class DigitFrequency:
    """Observed vs. expected share for one leading digit."""
    digit: int
    count: int
    observed: float   # percentage
    expected: float   # percentage
    deviation: float  # absolute percentage-point difference

    @property
    def observed_fraction(self) -> float:
        return self.observed / 100

    @property
    def expected_fraction(self) -> float:
        return self.expected / 100


def leading_digit(amount: float) -> Optional[int]:
    """Extract the first significant digit from an amount.

    Reads the shortest round-trip decimal form of the float, so 0.0047
    yields 4 and 1.5e+20 yields 1. Returns None for zero, NaN, infinity,
    and values that are not numbers.
    """
    try:
        value = abs(float(amount))
    except (TypeError, ValueError):
        return None
    if value == 0 or not math.isfinite(value):
        return None
    for char in repr(value):
        if char == "e":
            break
        if char in "123456789":
            return int(char)
    return None


def digit_frequencies(digits: Iterable[int]) -> list[DigitFrequency]:
    """Tally leading digits and compare them with Benford's distribution.

    Always returns nine entries, digit 1 first. Values outside 1-9 are
    ignored.
    """
    counts = Counter(d for d in digits if d in DIGITS)
    total = sum(counts.values())

    frequencies = []
    for digit in DIGITS:
        count = counts.get(digit, 0)
        observed = count / total * 100 if total else 0.0
        expected = BENFORD_EXPECTED[digit]
        frequencies.append(DigitFrequency(
            digit=digit,
            count=count,
            observed=observed,
            expected=expected,
            deviation=abs(observed - expected),
        ))
    return frequencies


def amount_frequencies(amounts: Iterable[float]) -> list[DigitFrequency]:
    """Shortcut: extract leading digits from amounts and tally them."""
    return digit_frequencies(
        d for d in (leading_digit(a) for a in amounts) if d is not None
    )


def total_count(frequencies: Iterable[DigitFrequency]) -> int:
    return sum(f.count for f in frequencies)
