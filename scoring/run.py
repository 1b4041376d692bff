#!/usr/bin/env python3
"""
CLI entry point for batch churn risk scoring.

Usage:
    # Score a snapshot export
    python -m scoring.run data/snapshots.csv

    # Write scores and show the tier/level summary
    python -m scoring.run data/snapshots.csv -o scored.csv --summary

    # Use tuned deltas
    python -m scoring.run data/snapshots.csv --config configs/tuned.yaml

    # Check accuracy against observed churn (needs IS_CHURNED column)
    python -m scoring.run data/history.csv --evaluate --threshold 60
"""

import argparse
import sys
from pathlib import Path

import pandas as pd
from pandera.errors import SchemaError

from .config import ScoringConfig
from .evaluation import evaluate_predictions
from .scorer import RiskScorer


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Subscriber churn risk batch scoring",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m scoring.run data/snapshots.csv
  python -m scoring.run data/snapshots.csv -o scored.csv --summary
  python -m scoring.run data/history.csv --evaluate --threshold 60
        """,
    )

    parser.add_argument(
        "input",
        help="CSV file with one snapshot row per subscriber",
    )
    parser.add_argument(
        "-o", "--output",
        help="Write scored rows to this CSV file",
    )
    parser.add_argument(
        "--config",
        help="YAML file with ScoringConfig overrides",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print counts and average score by tier and risk level",
    )
    parser.add_argument(
        "--min-level",
        default="HIGH",
        help="Lowest risk level to list (default: HIGH)",
    )
    parser.add_argument(
        "--evaluate",
        action="store_true",
        help="Compare scores with the IS_CHURNED column",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=60.0,
        help="Score at or above which churn is predicted (default: 60)",
    )

    args = parser.parse_args(argv)

    path = Path(args.input)
    if not path.exists():
        print(f"Input not found: {args.input}")
        return 1

    config = ScoringConfig.from_yaml(args.config) if args.config else ScoringConfig()
    scorer = RiskScorer(config)

    try:
        result = scorer.score(pd.read_csv(path))
    except (ValueError, SchemaError) as e:
        print(f"ERROR: {e}")
        return 1

    print(f"Scored {len(result.df)} subscribers from {path.name}\n")
    print("Risk distribution:")
    for level, count in result.risk_distribution().items():
        print(f"  {level:<9} {count}")

    flagged = result.get_high_risk(args.min_level)
    if not flagged.empty:
        print(f"\nAt or above {args.min_level}:")
        print(flagged[["USER_ID", "TIER", "RISK_SCORE", "RISK_LEVEL"]].to_string(index=False))

    if args.summary:
        print("\nSummary by tier and risk level:\n")
        print(result.summary().to_string())
        print("\nComponent breakdown:\n")
        print(result.component_breakdown().to_string())

    if args.evaluate:
        try:
            metrics = evaluate_predictions(result.df, args.threshold)
        except ValueError as e:
            print(f"ERROR: {e}")
            return 1
        print(f"\nEvaluation at threshold {args.threshold:g}:")
        print(f"  Accuracy:  {metrics['accuracy']:.1%}")
        print(f"  Precision: {metrics['precision']:.1%}")
        print(f"  Recall:    {metrics['recall']:.1%}")
        print(f"  F1:        {metrics['f1']:.3f}")

    if args.output:
        result.df.to_csv(args.output, index=False)
        print(f"\nScores saved to: {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
