"""Risk classification from Benford deviation scores.

One policy is applied at every level (dataset and vendor):

    MAD (fraction)   assessment          base risk
    < 0.006          compliant           low
    < 0.012          acceptable          low
    < 0.022          suspicious          medium
    >= 0.022         highly_suspicious   high

A Chi-square above the df=8 critical value (15.51) escalates the risk one
notch for every assessment except compliant.
"""
from __future__ import annotations

from enum import Enum

from benford_audit.config import (
    CHI_SQUARE_CRITICAL,
    MAD_ACCEPTABLE,
    MAD_COMPLIANT,
    MAD_SUSPICIOUS,
)


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]

    def escalate(self) -> "RiskLevel":
        """Next level up, capped at critical."""
        return _RISK_ORDER[min(self.rank + 1, len(_RISK_ORDER) - 1)]


class Assessment(str, Enum):
    COMPLIANT = "compliant"
    ACCEPTABLE = "acceptable"
    SUSPICIOUS = "suspicious"
    HIGHLY_SUSPICIOUS = "highly_suspicious"


_RISK_ORDER = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.CRITICAL]
_RISK_RANK = {level: i for i, level in enumerate(_RISK_ORDER)}


def max_risk(*levels: RiskLevel) -> RiskLevel:
    return max(levels, key=lambda level: level.rank)


def assess_mad(mad: float) -> tuple[Assessment, RiskLevel]:
    """Map a MAD value alone to its assessment band and base risk."""
    if mad < MAD_COMPLIANT:
        return Assessment.COMPLIANT, RiskLevel.LOW
    if mad < MAD_ACCEPTABLE:
        return Assessment.ACCEPTABLE, RiskLevel.LOW
    if mad < MAD_SUSPICIOUS:
        return Assessment.SUSPICIOUS, RiskLevel.MEDIUM
    return Assessment.HIGHLY_SUSPICIOUS, RiskLevel.HIGH


def classify(mad: float, chi_square: float) -> tuple[Assessment, RiskLevel]:
    """Classify a digit distribution from its MAD and Chi-square statistic."""
    assessment, risk = assess_mad(mad)
    if assessment is not Assessment.COMPLIANT and chi_square > CHI_SQUARE_CRITICAL:
        risk = risk.escalate()
    return assessment, risk
