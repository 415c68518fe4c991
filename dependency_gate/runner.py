"""
Orchestration for the audit gate and the dependency watch.

Both runners return a process exit status instead of exiting, so they can be
driven from tests with fake evidence sources and fetchers.
"""

from __future__ import annotations

import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from . import advisories, watcher
from .config import load_policy, load_watchlist
from .errors import BackendExecutionError, ConfigError
from .interfaces import EvidenceSource, Fetcher
from .reporting import (
    AUDIT_TOOL,
    WATCH_TOOL,
    export_outcomes_csv,
    render,
    render_audit,
    write_step_summary,
)
from .time_utils import utc_now, utc_today


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def _fail(tool: str, message: str) -> int:
    print(f"{tool}: {message}", file=sys.stderr)
    return EXIT_FAILURE


def run_audit(
    policy_path: Path,
    source: EvidenceSource,
    today: Optional[date] = None,
) -> int:
    """Run the advisory policy gate.

    Args:
        policy_path: Allowlist policy JSON
        source: Evidence backend providing the scan report
        today: Evaluation date (defaults to the current UTC date)

    Returns:
        0 when the report satisfies the policy, 1 otherwise
    """
    today = today or utc_today()
    try:
        policy = load_policy(policy_path)
        report = source.advisory_report()
    except (ConfigError, BackendExecutionError) as e:
        return _fail(AUDIT_TOOL, str(e))

    violations = advisories.evaluate(report, policy, today)
    rendered = render_audit(violations, advisories.summarize(report, policy, today))
    stream = sys.stderr if violations else sys.stdout
    for line in rendered.lines:
        print(line, file=stream)
    return EXIT_FAILURE if violations else EXIT_OK


def run_watch(
    watchlist_path: Path,
    source: EvidenceSource,
    fetcher: Fetcher,
    advisory_mode: bool = False,
    summary_path: Optional[Path] = None,
    output_dir: Optional[Path] = None,
    now: Optional[datetime] = None,
) -> int:
    """Run the dependency freshness watch.

    In advisory mode every row and violation is still printed, but the exit
    status is 0 unless the configuration or evidence cannot be read.
    """
    try:
        watched = load_watchlist(watchlist_path)
        resolved = watcher.resolve_versions(source.dependency_graph())
    except (ConfigError, BackendExecutionError) as e:
        return _fail(WATCH_TOOL, str(e))

    outcomes = watcher.check(watched, resolved, fetcher.fetch_latest, advisory_mode)
    violations = watcher.collect_violations(outcomes)
    rendered = render(violations, outcomes, advisory_mode)

    # Table rows go to stdout; warnings and failures go to stderr.
    row_count = len(outcomes) + 1
    for line in rendered.lines[:row_count]:
        print(line)
    tail_stream = sys.stderr if violations else sys.stdout
    for line in rendered.lines[row_count:]:
        print(line, file=tail_stream)

    # Artifacts are additive; failing to write one does not change the verdict.
    if summary_path:
        try:
            write_step_summary(summary_path, outcomes, violations, advisory_mode, now or utc_now())
        except OSError as e:
            print(f"{WATCH_TOOL}: cannot write summary to {summary_path} ({e})", file=sys.stderr)
    if output_dir is not None and rendered.summary_table is not None:
        try:
            csv_file = export_outcomes_csv(rendered.summary_table, output_dir)
        except OSError as e:
            print(f"{WATCH_TOOL}: cannot write outcome table to {output_dir} ({e})", file=sys.stderr)
        else:
            logger.info("Outcome table saved to %s", csv_file)

    if violations and not advisory_mode:
        return EXIT_FAILURE
    return EXIT_OK
