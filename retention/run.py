#!/usr/bin/env python3
"""
CLI entry point for retention workflows.

Usage:
    # Re-score every active subscription in an account export
    python -m retention.run data/accounts.csv rescore

    # Re-score, then run the automated campaigns
    python -m retention.run data/accounts.csv rescore campaign

    # Run one action for specific customers
    python -m retention.run data/accounts.csv campaign --action EMAIL --customers u1 u2

    # Print the churn prevention report
    python -m retention.run data/accounts.csv report
"""

import argparse
import json
import sys
from pathlib import Path

import pandas as pd

from .config import RetentionConfig
from .logging_config import setup_logging
from .orchestrator import RetentionOrchestrator
from .store import InMemoryChurnStore

COMMANDS = ["rescore", "campaign", "report", "stats"]


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Subscriber retention workflows",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m retention.run data/accounts.csv rescore campaign
  python -m retention.run data/accounts.csv campaign --action CREDIT --customers u1
  python -m retention.run data/accounts.csv report --audit-log logs/retention.jsonl
        """,
    )

    parser.add_argument(
        "accounts",
        help="CSV account export (one row per user)",
    )
    parser.add_argument(
        "commands",
        nargs="+",
        choices=COMMANDS,
        help="Workflows to run, in order",
    )
    parser.add_argument(
        "--config",
        help="YAML file with RetentionConfig overrides",
    )
    parser.add_argument(
        "--audit-log",
        help="JSON-lines file for retention attempts",
    )
    parser.add_argument(
        "--action",
        help="Run this action for --customers instead of the automated campaign",
    )
    parser.add_argument(
        "--customers",
        nargs="*",
        default=[],
        help="Customer ids for --action",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Log level (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        help="Also write logs to this rotating file",
    )

    args = parser.parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    path = Path(args.accounts)
    if not path.exists():
        print(f"Accounts file not found: {args.accounts}")
        return 1

    config = RetentionConfig.from_yaml(args.config) if args.config else RetentionConfig()
    if args.audit_log:
        config.audit_log_path = args.audit_log

    try:
        store = InMemoryChurnStore.from_frame(pd.read_csv(path))
    except (ValueError, KeyError) as e:
        print(f"ERROR: {e}")
        return 1

    orchestrator = RetentionOrchestrator(store, config=config)

    for command in args.commands:
        print(f"\n{'=' * 60}")
        print(f"Running: {command}")
        print("=" * 60)

        if command == "rescore":
            result = orchestrator.update_all_risk_scores()
        elif command == "campaign" and args.action:
            result = orchestrator.run_retention_campaign(args.action, args.customers)
        elif command == "campaign":
            result = orchestrator.run_automated_campaigns()
        elif command == "stats":
            result = orchestrator.get_retention_stats()
        else:
            result = orchestrator.generate_churn_prevention_report()

        print(json.dumps(result, indent=2, default=str))

    return 0


if __name__ == "__main__":
    sys.exit(main())
