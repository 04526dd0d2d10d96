"""Synthetic transaction generator for demos and tests.

Natural vendors draw amounts whose magnitudes are log-uniform, which makes
their leading digits follow Benford's Law. Suspicious vendors mix round
amounts, mid-digit (4-6) amounts, and amounts just below approval limits.
"""
from __future__ import annotations

import random
from datetime import date, timedelta
from typing import Optional

from benford_audit.models import Transaction

VENDOR_NAMES = [
    "ABC Corporation", "XYZ Industries", "Global Supplies Inc", "TechCorp Solutions",
    "Office Depot", "Professional Services LLC", "Metro Transit", "City Utilities",
    "QuickMart", "Premier Catering", "Elite Consulting", "Standard Equipment",
    "Digital Solutions", "Corporate Travel", "Express Delivery", "Quality Supplies",
]

SUSPICIOUS_VENDORS = [
    "Shell Company A", "Round Numbers Ltd", "Digit Manipulation Corp",
    "Fraudulent Patterns Inc", "Artificial Vendor Co",
]

CATEGORIES = [
    "Office Supplies", "Travel", "Utilities", "Consulting", "Equipment",
    "Software", "Meals", "Transportation", "Professional Services", "Maintenance",
]

# Named generator settings for demos, from a quick check to a heavily fabricated ledger
SAMPLE_PRESETS = {
    "small": {
        "total": 100,
        "suspicious_vendor_share": 0.15,
        "months": 6,
        "include_natural_patterns": True,
    },
    "medium": {
        "total": 500,
        "suspicious_vendor_share": 0.20,
        "months": 12,
        "include_natural_patterns": True,
    },
    "large": {
        "total": 1000,
        "suspicious_vendor_share": 0.25,
        "months": 24,
        "include_natural_patterns": True,
    },
    "fraudulent": {
        "total": 300,
        "suspicious_vendor_share": 0.60,
        "months": 6,
        "include_natural_patterns": False,
    },
}

_ROUND_BASES = [1000, 2000, 3000, 4000, 5000, 10000, 15000, 20000, 25000, 30000]
_LIMIT_BASES = [1000, 5000, 10000, 25000, 50000]


def natural_amount(rng: random.Random, low_exp: float = 1.0, high_exp: float = 5.0) -> float:
    """Amount between 10**low_exp and 10**high_exp with log-uniform magnitude."""
    return round(10 ** rng.uniform(low_exp, high_exp), 2)


def suspicious_amount(rng: random.Random) -> float:
    """Amount drawn from one of three fabrication styles."""
    style = rng.random()
    if style < 0.4:
        return float(rng.choice(_ROUND_BASES))
    if style < 0.7:
        digit = rng.choice([4, 5, 6])
        magnitude = 10 ** rng.randint(2, 5)
        return round(digit * magnitude + rng.random() * magnitude * 0.99, 2)
    return round(rng.choice(_LIMIT_BASES) - rng.random() * 100, 2)


def generate_sample_transactions(
    total: int = 500,
    suspicious_vendor_share: float = 0.15,
    months: int = 12,
    include_natural_patterns: bool = True,
    seed: Optional[int] = None,
    end_date: date = date(2024, 12, 31),
) -> list[Transaction]:
    """Generate a synthetic transaction list.

    Args:
        total: Number of transactions.
        suspicious_vendor_share: Fraction of transactions assigned to
            suspicious vendors with fabricated-looking amounts.
        months: Date range, ending at end_date.
        include_natural_patterns: When False, the remaining transactions use
            uniformly distributed amounts instead of Benford-like ones.
        seed: Seed for a private random.Random; same seed, same output.
    """
    rng = random.Random(seed)
    span_days = max(1, months * 30)
    suspicious_count = round(total * suspicious_vendor_share)

    transactions = []
    for i in range(total):
        if i < suspicious_count:
            vendor = rng.choice(SUSPICIOUS_VENDORS)
            amount = suspicious_amount(rng)
        else:
            vendor = rng.choice(VENDOR_NAMES)
            if include_natural_patterns:
                amount = natural_amount(rng)
            else:
                amount = round(rng.uniform(10, 100000), 2)
        transactions.append(Transaction(
            amount=amount,
            vendor=vendor,
            date=end_date - timedelta(days=rng.randrange(span_days)),
            category=rng.choice(CATEGORIES),
        ))

    rng.shuffle(transactions)
    return transactions


def generate_preset(name: str, seed: Optional[int] = None) -> list[Transaction]:
    """Generate transactions with one of the SAMPLE_PRESETS settings.

    Raises:
        ValueError: If the preset name is unknown.
    """
    if name not in SAMPLE_PRESETS:
        raise ValueError(
            f"Unknown sample preset: {name} (expected one of {', '.join(SAMPLE_PRESETS)})"
        )
    return generate_sample_transactions(seed=seed, **SAMPLE_PRESETS[name])
