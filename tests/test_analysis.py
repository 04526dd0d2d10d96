"""Integration tests for the full analyze() pipeline."""
import polars as pl
import pytest

from benford_audit.analysis import BenfordResult, InputEmptyError, analyze
from benford_audit.config import CHI_SQUARE_CRITICAL, MIN_VENDOR_TRANSACTIONS
from benford_audit.flagging import FlagKind
from benford_audit.models import CleaningReport, Transaction, prepare_transactions
from benford_audit.risk import Assessment, RiskLevel
from benford_audit.sample_data import generate_sample_transactions
from benford_audit.vendors import PatternKind
from tests.fixtures import (
    benford_amounts,
    make_transactions_df,
    uniform_digit_amounts,
    vendor_rows,
)


def _amount_rows(amounts):
    return [{"amount": a} for a in amounts]


class TestBenfordConformingData:
    """Data that follows Benford's Law should come back clean."""

    def test_compliant_low_risk_no_flags(self):
        """Benford-distributed amounts are compliant with nothing to report."""
        result = analyze(_amount_rows(benford_amounts(1000)))

        assert isinstance(result, BenfordResult)
        assert result.total_analyzed == 1000
        assert result.overall_assessment is Assessment.COMPLIANT
        assert result.risk_level is RiskLevel.LOW
        assert result.flagged_transactions == ()
        assert result.suspicious_vendors == ()
        assert result.warnings == ()
        assert result.is_compliant
        assert not result.needs_investigation

    def test_observed_percentages_sum_to_100(self):
        """The digit table accounts for every analyzed amount."""
        result = analyze(_amount_rows(benford_amounts(250)))
        assert sum(f.observed for f in result.digit_frequencies) == pytest.approx(100.0)
        assert sum(f.count for f in result.digit_frequencies) == result.total_analyzed

    def test_generated_natural_sample_passes(self):
        """Synthetic log-uniform amounts conform to Benford's Law."""
        transactions = generate_sample_transactions(
            total=5000, suspicious_vendor_share=0.0, seed=7,
        )
        result = analyze(transactions)
        assert result.overall_assessment in (Assessment.COMPLIANT, Assessment.ACCEPTABLE)


class TestUniformDigits:
    """One amount per leading digit is far from Benford."""

    def test_nine_uniform_amounts(self):
        """100..900 is highly suspicious, though too small for Chi-square significance."""
        result = analyze(_amount_rows(uniform_digit_amounts()))

        assert result.total_analyzed == 9
        for f in result.digit_frequencies:
            assert f.observed == pytest.approx(11.1, abs=0.05)
        assert result.digit_frequencies[0].deviation == pytest.approx(19.0, abs=0.1)
        assert result.overall_assessment is Assessment.HIGHLY_SUSPICIOUS
        assert result.chi_square == pytest.approx(3.61, abs=0.05)
        assert result.risk_level is RiskLevel.HIGH
        assert result.needs_investigation
        assert not result.is_compliant

    def test_nine_uniform_amounts_warnings(self):
        """Small samples and large deviations are both called out."""
        result = analyze(_amount_rows(uniform_digit_amounts()))
        assert any("very small" in w for w in result.warnings)
        assert any("significant deviation" in w for w in result.warnings)

    def test_repeated_uniform_amounts_escalate(self):
        """Five copies of 100..900 pass the Chi-square critical value and go critical."""
        result = analyze(_amount_rows(uniform_digit_amounts(5)))

        assert result.total_analyzed == 45
        assert result.chi_square > CHI_SQUARE_CRITICAL
        assert result.overall_assessment is Assessment.HIGHLY_SUSPICIOUS
        assert result.risk_level is RiskLevel.CRITICAL
        assert any("Sample size is small" in w for w in result.warnings)


class TestVendorScenarios:
    """Vendor-level scenarios through the full pipeline."""

    def test_round_number_vendor(self):
        """A vendor billing multiples of 500 is reported with a round-number pattern."""
        rows = _amount_rows(benford_amounts(500))
        rows += vendor_rows("Acme Corp", [500.0 * (i + 1) for i in range(20)])
        result = analyze(rows)

        acme = [v for v in result.suspicious_vendors if v.vendor == "Acme Corp"]
        assert len(acme) == 1
        assert PatternKind.ROUND_NUMBERS in acme[0].pattern_kinds
        assert acme[0].risk_level.rank >= RiskLevel.MEDIUM.rank
        assert "1 vendors show suspicious patterns." in result.warnings

    def test_duplicate_amounts_flagged_critical(self):
        """Five 2500.00 bookings from one vendor are critical flags."""
        rows = _amount_rows(benford_amounts(100))
        rows += vendor_rows("Dup Supplies", [2500.0] * 5)
        result = analyze(rows)

        dup_flags = [f for f in result.flagged_transactions if f.vendor == "Dup Supplies"]
        assert sorted(f.index for f in dup_flags) == [100, 101, 102, 103, 104]
        for f in dup_flags:
            assert FlagKind.DUPLICATE_AMOUNT in f.kinds
            assert f.risk_level is RiskLevel.CRITICAL
        assert result.flagged_transactions[0].risk_level is RiskLevel.CRITICAL

    def test_small_vendor_not_reported(self):
        """Vendors under the minimum count are left out of the vendor list."""
        rows = _amount_rows(benford_amounts(200))
        rows += vendor_rows("Tiny LLC", [9100.0] * (MIN_VENDOR_TRANSACTIONS - 1))
        result = analyze(rows)
        assert all(v.vendor != "Tiny LLC" for v in result.suspicious_vendors)


class TestInputHandling:
    """Tests for input validation, exclusion, and purity."""

    def test_empty_input_raises(self):
        """An empty list cannot be analyzed."""
        with pytest.raises(InputEmptyError):
            analyze([])

    def test_empty_frame_raises(self):
        """An empty DataFrame cannot be analyzed."""
        with pytest.raises(InputEmptyError):
            analyze(make_transactions_df([]))

    def test_all_malformed_raises(self):
        """Input with no usable amount raises with a clear message."""
        rows = [{"amount": -5.0}, {"amount": None}, {"amount": "abc"}, {"amount": 0}]
        with pytest.raises(InputEmptyError, match="No valid amounts"):
            analyze(rows)

    def test_input_error_is_value_error(self):
        """Callers catching ValueError also catch empty input."""
        assert issubclass(InputEmptyError, ValueError)

    def test_malformed_records_excluded_with_warning(self):
        """Bad records are counted, skipped, and reported first among warnings."""
        rows = [{"amount": -5.0}, {"amount": None}] + _amount_rows(benford_amounts(200))
        result = analyze(rows)

        assert result.excluded_records == 2
        assert result.total_analyzed == 200
        assert result.warnings[0].startswith("2 records")

    def test_caller_frame_with_engine_columns_is_validated(self):
        """A frame that already has index/digit columns still gets its amounts checked."""
        amounts = [-250.0, 0.0] + benford_amounts(100)
        df = pl.DataFrame({
            "index": list(range(len(amounts))),
            "amount": amounts,
            "vendor": [None] * len(amounts),
            "digit": [9] * len(amounts),
        })
        result = analyze(df)

        assert result.excluded_records == 2
        assert result.total_analyzed == 100
        assert result.digit_frequencies[8].count < 10

    def test_prepared_transactions_pass_through(self):
        """Prepared input is reused as-is, keeping its exclusion count."""
        prepared = prepare_transactions([{"amount": None}] + _amount_rows(benford_amounts(50)))
        assert prepare_transactions(prepared) is prepared
        assert analyze(prepared).excluded_records == 1

    def test_accepts_transaction_objects(self):
        """Transaction dataclasses are valid input."""
        transactions = [Transaction(amount=a, vendor="Natural") for a in benford_amounts(150)]
        result = analyze(transactions)
        assert result.total_analyzed == 150
        assert [v.vendor for v in result.suspicious_vendors] == ["Natural"]

    def test_accepts_dataframe(self):
        """A DataFrame and the equivalent dicts give the same result."""
        df = make_transactions_df(_amount_rows(benford_amounts(300)))
        assert analyze(df) == analyze(_amount_rows(benford_amounts(300)))

    def test_pure_and_deterministic(self):
        """Analyzing the same input twice gives equal results."""
        rows = _amount_rows(benford_amounts(300))
        rows += vendor_rows("Dup Supplies", [2500.0] * 5)
        rows += vendor_rows("Acme Corp", [500.0 * (i + 1) for i in range(20)])
        assert analyze(rows) == analyze(rows)

    def test_result_is_hashable(self):
        """The frozen result, vendors and flags included, hashes consistently."""
        rows = _amount_rows(benford_amounts(300))
        rows += vendor_rows("Dup Supplies", [2500.0] * 5)
        assert hash(analyze(rows)) == hash(analyze(rows))

    def test_cleaning_removal_warning(self):
        """Losing most source rows during cleaning is reported."""
        cleaning = CleaningReport(total_rows=1000, valid_rows=300, removed_rows=700)
        result = analyze(_amount_rows(benford_amounts(300)), cleaning)
        assert any("removed during cleaning" in w for w in result.warnings)

    def test_cleaning_within_limits_no_warning(self):
        """A small cleaning loss is not worth a warning."""
        cleaning = CleaningReport(total_rows=310, valid_rows=300, removed_rows=10)
        result = analyze(_amount_rows(benford_amounts(300)), cleaning)
        assert result.warnings == ()

    def test_many_flags_warning(self):
        """More than 10% flagged transactions triggers a warning."""
        rows = _amount_rows(benford_amounts(50))
        rows += _amount_rows([2000.0 + 100 * i for i in range(20)])
        result = analyze(rows)
        assert any("High number of flagged transactions" in w for w in result.warnings)
