"""Benford's Law Expense Audit Engine.

Scores cleaned financial transactions against the first-digit distribution
predicted by Benford's Law, at dataset, vendor, and transaction level, and
produces risk signals and JSON/CSV reports for human review.
"""

__version__ = "1.0.0"
