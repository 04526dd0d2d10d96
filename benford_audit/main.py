"""Main orchestration module - runs the full Benford audit pipeline.

Loads a transaction file (or generates a synthetic sample), runs the
Benford analysis, prints a summary, and writes the JSON report and
optional CSV exports.
"""
from __future__ import annotations

import argparse
import sys
import time
from typing import Optional

from benford_audit import __version__
from benford_audit.analysis import analyze
from benford_audit.ingest import load_transactions
from benford_audit.models import CleaningReport
from benford_audit.output import build_report, format_summary, write_csv_exports, write_report
from benford_audit.sample_data import SAMPLE_PRESETS, generate_preset, generate_sample_transactions


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for the audit pipeline.

    Returns:
        Parsed arguments with input, sample, preset, column overrides, output,
        csv_dir, and seed attributes.
    """
    parser = argparse.ArgumentParser(
        description="Benford's Law Expense Audit Engine"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--input",
        help="Transaction file (.csv, .json, .parquet, .xlsx); relative paths also "
             "searched under $BENFORD_DATA_DIR",
    )
    source.add_argument(
        "--sample", type=int, metavar="N",
        help="Analyze N synthetic transactions instead of a file",
    )
    source.add_argument(
        "--preset", choices=sorted(SAMPLE_PRESETS),
        help="Analyze a named synthetic sample instead of a file",
    )
    parser.add_argument("--amount-col", help="Source column holding the amount")
    parser.add_argument("--vendor-col", help="Source column holding the vendor name")
    parser.add_argument("--date-col", help="Source column holding the transaction date")
    parser.add_argument("--category-col", help="Source column holding the category")
    parser.add_argument(
        "--output", default="benford_report.json",
        help="Output JSON file path (default: benford_report.json)",
    )
    parser.add_argument(
        "--csv-dir", default=None,
        help="Also write vendors.csv and flagged_transactions.csv to this directory",
    )
    parser.add_argument(
        "--seed", type=int, default=42,
        help="Random seed for --sample and --preset (default: 42)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Run the full audit pipeline.

    Returns:
        Process exit status: 0 on success, 1 when the input cannot be
        loaded or contains no usable transactions.
    """
    args = parse_args(argv)

    print("=" * 60)
    print(f"Benford's Law Expense Audit Engine v{__version__}")
    print("=" * 60)
    start_time = time.time()

    print("\n[1/3] Loading transactions...")
    t = time.time()
    cleaning: Optional[CleaningReport] = None
    try:
        if args.sample is not None:
            transactions = generate_sample_transactions(total=args.sample, seed=args.seed)
            source = f"synthetic sample (n={args.sample}, seed={args.seed})"
            print(f"  Generated {len(transactions)} synthetic transactions")
        elif args.preset is not None:
            transactions = generate_preset(args.preset, seed=args.seed)
            source = f"synthetic sample (preset={args.preset}, seed={args.seed})"
            print(f"  Generated {len(transactions)} synthetic transactions")
        else:
            mapping = {
                "amount": args.amount_col,
                "vendor": args.vendor_col,
                "date": args.date_col,
                "category": args.category_col,
            }
            transactions, cleaning = load_transactions(args.input, mapping)
            source = args.input
    except (FileNotFoundError, ValueError) as e:
        print(f"  ERROR: {e}")
        return 1
    print(f"  Loaded in {time.time() - t:.1f}s")

    print("\n[2/3] Running Benford analysis...")
    t = time.time()
    try:
        result = analyze(transactions, cleaning)
    except ValueError as e:
        print(f"  ERROR: {e}")
        return 1
    print(f"  Analysis completed in {time.time() - t:.2f}s\n")
    print(format_summary(result))

    print("\n[3/3] Writing report...")
    report = build_report(result, cleaning=cleaning, source=source)
    write_report(report, args.output)
    if args.csv_dir:
        write_csv_exports(result, args.csv_dir)

    print(f"\nCompleted in {time.time() - start_time:.1f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
