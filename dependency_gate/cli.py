"""
Command-line interface for the dependency gate.
"""

import argparse
import logging
import os
import sys
from datetime import datetime
from pathlib import Path

from .config import DEFAULT_POLICY_PATH, DEFAULT_WATCHLIST_PATH
from .evidence import CargoEvidenceSource, FileEvidenceSource
from .registry import DEFAULT_REGISTRY_URL, CratesIoFetcher
from .runner import run_audit, run_watch


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dependency-gate",
        description="Enforce advisory policy and dependency freshness for a Cargo workspace",
    )
    parser.add_argument(
        "--root",
        default=".",
        help="Workspace root that cargo runs in and config paths resolve against. Default: ."
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    audit = subparsers.add_parser(
        "audit",
        help="Fail on vulnerabilities and unreviewed or expired advisory exceptions"
    )
    audit.add_argument(
        "--policy",
        default=None,
        help=f"Allowlist policy JSON. Default: <root>/{DEFAULT_POLICY_PATH}"
    )
    audit.add_argument(
        "--audit-json",
        default=None,
        help="Read a saved `cargo audit --json` report instead of running cargo"
    )
    audit.add_argument(
        "--today",
        default=None,
        help="Evaluation date (YYYY-MM-DD). Default: today (UTC)"
    )

    watch = subparsers.add_parser(
        "watch",
        help="Compare watched crates against the latest crates.io releases"
    )
    watch.add_argument(
        "--watchlist",
        default=None,
        help=f"Watch-list JSON. Default: <root>/{DEFAULT_WATCHLIST_PATH}"
    )
    watch.add_argument(
        "--metadata-json",
        default=None,
        help="Read saved `cargo metadata --format-version 1` output instead of running cargo"
    )
    watch.add_argument(
        "--no-fail",
        action="store_true",
        help="Advisory mode: report outdated or missing crates without failing"
    )
    watch.add_argument(
        "--registry-url",
        default=DEFAULT_REGISTRY_URL,
        help=f"Crates API endpoint. Default: {DEFAULT_REGISTRY_URL}"
    )
    watch.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Per-request registry timeout in seconds. Default: 30"
    )
    watch.add_argument(
        "--summary-path",
        default=os.environ.get("GITHUB_STEP_SUMMARY"),
        help="Append a markdown summary here. Default: $GITHUB_STEP_SUMMARY"
    )
    watch.add_argument(
        "--output-dir",
        default=None,
        help="Also write the outcome table as CSV into this directory"
    )
    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    root = Path(args.root)

    if args.command == "audit":
        today = None
        if args.today:
            try:
                today = datetime.strptime(args.today, "%Y-%m-%d").date()
            except ValueError:
                parser.error("Invalid --today format. Use YYYY-MM-DD")
        policy_path = Path(args.policy) if args.policy else root / DEFAULT_POLICY_PATH
        if args.audit_json:
            source = FileEvidenceSource(audit_path=Path(args.audit_json))
        else:
            source = CargoEvidenceSource(root)
        status = run_audit(policy_path, source, today=today)
    else:
        watchlist_path = Path(args.watchlist) if args.watchlist else root / DEFAULT_WATCHLIST_PATH
        if args.metadata_json:
            source = FileEvidenceSource(metadata_path=Path(args.metadata_json))
        else:
            source = CargoEvidenceSource(root)
        fetcher = CratesIoFetcher(base_url=args.registry_url, timeout=args.timeout)
        status = run_watch(
            watchlist_path,
            source,
            fetcher,
            advisory_mode=args.no_fail,
            summary_path=Path(args.summary_path) if args.summary_path else None,
            output_dir=Path(args.output_dir) if args.output_dir else None,
        )

    sys.exit(status)


if __name__ == "__main__":
    main()
