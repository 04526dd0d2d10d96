"""Report generation module.

Turns a BenfordResult into the JSON report consumed by dashboards and the
summary/export layers, writes CSV tables of vendors and flagged
transactions, and renders a plain-text console summary. Human-readable
pattern and flag text is produced here from the structured variants.
"""
from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any, Optional

import polars as pl

from benford_audit import __version__
from benford_audit.analysis import BenfordResult
from benford_audit.flagging import FlaggedTransaction
from benford_audit.models import CleaningReport
from benford_audit.risk import Assessment
from benford_audit.scoring import chi_square_significance, most_deviant_digit
from benford_audit.vendors import VendorAnalysis


# Plain-language interpretation per assessment band
ASSESSMENT_SUMMARIES: dict[Assessment, str] = {
    Assessment.COMPLIANT: (
        "Leading digits closely follow Benford's Law; no digit-level indication of "
        "fabricated amounts"
    ),
    Assessment.ACCEPTABLE: (
        "Leading digits broadly follow Benford's Law with minor deviations; review "
        "flagged vendors and transactions"
    ),
    Assessment.SUSPICIOUS: (
        "Leading digits deviate noticeably from Benford's Law; amounts may be "
        "estimated, rounded, or manipulated and warrant review"
    ),
    Assessment.HIGHLY_SUSPICIOUS: (
        "Leading digits deviate strongly from Benford's Law; prioritize investigation "
        "of the flagged vendors and transactions"
    ),
}


def build_vendor_entry(vendor: VendorAnalysis) -> dict:
    """Serialize one vendor analysis with rendered pattern descriptions."""
    return {
        "vendor": vendor.vendor,
        "transaction_count": vendor.transaction_count,
        "mad": round(vendor.mad, 6),
        "chi_square": round(vendor.chi_square, 4),
        "assessment": vendor.assessment.value,
        "risk_level": vendor.risk_level.value,
        "suspicious_patterns": vendor.pattern_descriptions,
        "pattern_types": [k.value for k in vendor.pattern_kinds],
        "digit_distribution": {str(d): c for d, c in vendor.digit_distribution.items()},
    }


def build_flag_entry(flag: FlaggedTransaction) -> dict:
    """Serialize one flagged transaction with its rendered reason."""
    return {
        "index": flag.index,
        "amount": round(flag.amount, 2),
        "vendor": flag.vendor,
        "first_digit": flag.first_digit,
        "reason": flag.reason,
        "flag_types": [k.value for k in flag.kinds],
        "risk_level": flag.risk_level.value,
    }


def build_report(
    result: BenfordResult,
    cleaning: Optional[CleaningReport] = None,
    source: Optional[str] = None,
) -> dict:
    """Assemble the complete analysis report.

    Args:
        result: Output of analyze().
        cleaning: Optional ingest report, included as a "data_quality" block.
        source: Optional input file name recorded in the report.

    Returns:
        The report dict ready for JSON serialization.
    """
    report: dict[str, Any] = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "tool_version": __version__,
        "source": source,
        "summary": {
            "total_analyzed": result.total_analyzed,
            "excluded_records": result.excluded_records,
            "mad": round(result.mad, 6),
            "chi_square": round(result.chi_square, 4),
            "chi_square_p_value": chi_square_significance(result.chi_square),
            "most_deviant_digit": most_deviant_digit(result.digit_frequencies),
            "overall_assessment": result.overall_assessment.value,
            "risk_level": result.risk_level.value,
            "interpretation": ASSESSMENT_SUMMARIES[result.overall_assessment],
            "is_compliant": result.is_compliant,
            "needs_investigation": result.needs_investigation,
            "vendors_analyzed": len(result.suspicious_vendors),
            "transactions_flagged": len(result.flagged_transactions),
        },
        "digit_frequencies": [
            {
                "digit": f.digit,
                "count": f.count,
                "observed": round(f.observed, 2),
                "expected": round(f.expected, 2),
                "deviation": round(f.deviation, 2),
            }
            for f in result.digit_frequencies
        ],
        "vendors": [build_vendor_entry(v) for v in result.suspicious_vendors],
        "flagged_transactions": [build_flag_entry(f) for f in result.flagged_transactions],
        "warnings": list(result.warnings),
    }
    if cleaning is not None:
        report["data_quality"] = {
            "total_rows": cleaning.total_rows,
            "valid_rows": cleaning.valid_rows,
            "removed_rows": cleaning.removed_rows,
            "column_mapping": dict(cleaning.column_mapping),
            "warnings": list(cleaning.warnings),
        }
    return report


def write_report(report: dict, path: str) -> None:
    """Write the report dict to a JSON file.

    Args:
        report: The complete report dict from build_report().
        path: File path to write the JSON output to.
    """
    with open(path, "w") as f:
        json.dump(report, f, indent=2, default=_json_serializer)
    summary = report["summary"]
    print(f"Report written to {path}")
    print(f"  Assessment: {summary['overall_assessment']} (risk: {summary['risk_level']})")
    print(f"  Transactions flagged: {summary['transactions_flagged']}")


def write_csv_exports(result: BenfordResult, out_dir: str) -> dict[str, str]:
    """Write vendors.csv and flagged_transactions.csv into out_dir.

    Returns:
        Mapping of table name to written file path.
    """
    os.makedirs(out_dir, exist_ok=True)

    vendors = pl.DataFrame(
        [
            {
                "vendor": v.vendor,
                "transaction_count": v.transaction_count,
                "mad": v.mad,
                "chi_square": v.chi_square,
                "assessment": v.assessment.value,
                "risk_level": v.risk_level.value,
                "suspicious_patterns": "; ".join(v.pattern_descriptions),
            }
            for v in result.suspicious_vendors
        ],
        schema={
            "vendor": pl.Utf8,
            "transaction_count": pl.Int64,
            "mad": pl.Float64,
            "chi_square": pl.Float64,
            "assessment": pl.Utf8,
            "risk_level": pl.Utf8,
            "suspicious_patterns": pl.Utf8,
        },
    )
    flagged = pl.DataFrame(
        [build_flag_entry(f) | {"flag_types": ",".join(k.value for k in f.kinds)}
         for f in result.flagged_transactions],
        schema={
            "index": pl.Int64,
            "amount": pl.Float64,
            "vendor": pl.Utf8,
            "first_digit": pl.Int64,
            "reason": pl.Utf8,
            "flag_types": pl.Utf8,
            "risk_level": pl.Utf8,
        },
    )

    paths = {
        "vendors": os.path.join(out_dir, "vendors.csv"),
        "flagged_transactions": os.path.join(out_dir, "flagged_transactions.csv"),
    }
    vendors.write_csv(paths["vendors"])
    flagged.write_csv(paths["flagged_transactions"])
    print(f"CSV exports written to {out_dir}: {len(vendors)} vendors, {len(flagged)} flagged")
    return paths


def format_summary(result: BenfordResult, top: int = 10) -> str:
    """Render a console summary: digit table, top vendors, top flags, warnings."""
    lines = [
        f"Transactions analyzed: {result.total_analyzed:,}",
        f"MAD: {result.mad:.4f}   Chi-square: {result.chi_square:.2f} "
        f"(p {chi_square_significance(result.chi_square)})",
        f"Assessment: {result.overall_assessment.value}   Risk: {result.risk_level.value}",
        "",
        "Digit  Count  Observed  Expected  Deviation",
    ]
    for f in result.digit_frequencies:
        lines.append(
            f"{f.digit:>5}  {f.count:>5}  {f.observed:>7.1f}%  {f.expected:>7.1f}%  {f.deviation:>8.1f}"
        )

    if result.suspicious_vendors:
        lines += ["", f"Vendors (top {min(top, len(result.suspicious_vendors))}):"]
        for v in result.suspicious_vendors[:top]:
            patterns = "; ".join(v.pattern_descriptions) or "-"
            lines.append(
                f"  [{v.risk_level.value}] {v.vendor} ({v.transaction_count} txns, "
                f"MAD {v.mad:.4f}): {patterns}"
            )

    if result.flagged_transactions:
        lines += ["", f"Flagged transactions (top {min(top, len(result.flagged_transactions))}):"]
        for t in result.flagged_transactions[:top]:
            lines.append(
                f"  [{t.risk_level.value}] #{t.index} {t.amount:,.2f} "
                f"{t.vendor or '-'}: {t.reason}"
            )

    if result.warnings:
        lines += ["", "Warnings:"]
        lines += [f"  - {w}" for w in result.warnings]

    return "\n".join(lines)


def _json_serializer(obj: Any) -> Any:
    """Handle non-JSON-serializable types during report serialization.

    Converts date/datetime objects to ISO format strings and numpy/polars
    scalar types to native Python types.

    Raises:
        TypeError: If the object type is not recognized.
    """
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    if hasattr(obj, "item"):
        return obj.item()
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")
