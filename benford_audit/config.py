"""Thresholds and constants for Benford analysis.

All values are fixed so that an analysis run depends only on its input.
"""

# === Sample size ===
MIN_SAMPLE_SIZE = 10          # below this the statistics are not meaningful
RELIABLE_SAMPLE_SIZE = 100    # below this the signal is unreliable

# === Chi-square (df=8) critical values ===
CHI_SQUARE_DF = 8
CHI_SQUARE_CRITICAL = 15.51   # p = 0.05
CHI_SQUARE_BANDS = [
    (26.12, "< 0.001"),
    (20.09, "< 0.01"),
    (CHI_SQUARE_CRITICAL, "< 0.05"),
]

# === MAD bands (fraction scale, Nigrini first-digit) ===
MAD_COMPLIANT = 0.006
MAD_ACCEPTABLE = 0.012
MAD_SUSPICIOUS = 0.022

# === Vendor analysis ===
MIN_VENDOR_TRANSACTIONS = 5
ROUND_SHARE_THRESHOLD = 0.30
HIGH_DIGITS = (7, 8, 9)
HIGH_DIGIT_SHARE_THRESHOLD = 0.20
DOMINANT_DIGIT_SHARE = 0.50

# === Transaction flagging ===
ROUND_NUMBER_UNIT = 100
ROUND_MATERIALITY_FLOOR = 1000
OUTLIER_MAD_MULTIPLIER = 3.0
DUPLICATE_MIN_OCCURRENCES = 4
DUPLICATE_MAX_SHARE = 0.05
OVERREPRESENTED_DIGIT_FACTOR = 2.0   # observed share vs. Benford share
HIGH_DIGIT_AMOUNT_FLOOR = 5000

# === Dataset quality ===
MAX_REMOVED_SHARE = 0.5
MAX_FLAGGED_SHARE = 0.1
