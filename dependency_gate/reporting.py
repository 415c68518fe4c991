"""
Reporting and export utilities.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from .advisories import AuditSummary
from .models import ComparisonOutcome, DependencyOutcome, Violation
from .time_utils import format_timestamp


logger = logging.getLogger(__name__)

WATCH_TOOL = "dependency-watch"
AUDIT_TOOL = "audit-rust"

NOT_FOUND = "not-found"
NOT_APPLICABLE = "n/a"
FETCH_ERROR = "fetch-error"

SUMMARY_COLUMNS = ["name", "group", "current", "latest", "outcome"]


@dataclass
class RenderedReport:
    """Printable lines plus the structured per-dependency table."""

    lines: List[str]
    summary_table: Optional[pd.DataFrame] = None


def mode_name(advisory_mode: bool) -> str:
    return "advisory" if advisory_mode else "strict"


def display_versions(result: DependencyOutcome):
    """Return (current, latest) with sentinels for values that are absent."""
    if result.outcome is ComparisonOutcome.MISSING:
        return NOT_FOUND, NOT_APPLICABLE
    current = result.current_version or NOT_FOUND
    if result.outcome is ComparisonOutcome.FETCH_ERROR:
        return current, FETCH_ERROR
    return current, result.latest_version or NOT_APPLICABLE


def outcomes_frame(outcomes: Sequence[DependencyOutcome]) -> pd.DataFrame:
    rows = []
    for result in outcomes:
        current, latest = display_versions(result)
        rows.append({
            "name": result.dependency.name,
            "group": result.dependency.group,
            "current": current,
            "latest": latest,
            "outcome": result.outcome.value,
        })
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def format_violations(violations: Iterable[Violation]) -> List[str]:
    return [f"  - {v.message}" for v in violations]


def render(
    violations: Sequence[Violation],
    outcomes: Sequence[DependencyOutcome],
    advisory_mode: bool = False,
) -> RenderedReport:
    """Render the freshness table and the violation block.

    Every watched dependency gets a row whatever its outcome. Violations
    follow as a bulleted block, headed as warnings in advisory mode.
    """
    table = outcomes_frame(outcomes)
    lines = [f"{WATCH_TOOL}: mode={mode_name(advisory_mode)}"]
    for row in table.itertuples(index=False):
        lines.append(
            f"  - {row.name:<12} group={row.group:<10} current={row.current:<12} "
            f"latest={row.latest:<12} outcome={row.outcome}"
        )

    if violations:
        if advisory_mode:
            lines.append(f"{WATCH_TOOL}: advisory warnings:")
        else:
            lines.append(f"{WATCH_TOOL}: strict check failed")
        lines.extend(format_violations(violations))
        if advisory_mode:
            lines.append(f"{WATCH_TOOL}: completed with warnings (non-blocking)")
    else:
        lines.append(f"{WATCH_TOOL}: PASS")

    return RenderedReport(lines=lines, summary_table=table)


def render_audit(violations: Sequence[Violation], summary: AuditSummary) -> RenderedReport:
    if violations:
        lines = [f"{AUDIT_TOOL}: policy check failed."]
        lines.extend(format_violations(violations))
        return RenderedReport(lines=lines)

    return RenderedReport(lines=[
        f"{AUDIT_TOOL}: PASS (vulnerabilities={summary.vulnerabilities}, "
        f"advisory_warnings={summary.advisory_warnings}, date={summary.today.isoformat()}, "
        f"max_review_window_days={summary.max_review_window_days})"
    ])


def build_step_summary(
    outcomes: Sequence[DependencyOutcome],
    violations: Sequence[Violation],
    advisory_mode: bool,
    timestamp: datetime,
) -> str:
    lines = [
        "## Dependency Watch",
        "",
        f"- Mode: {mode_name(advisory_mode)}",
        f"- Timestamp (UTC): {format_timestamp(timestamp)}",
        "",
        "| Crate | Group | Current | Latest | Outcome |",
        "|---|---|---|---|---|",
    ]
    for row in outcomes_frame(outcomes).itertuples(index=False):
        lines.append(
            f"| {row.name} | {row.group} | {row.current} | {row.latest} | {row.outcome} |"
        )

    if violations:
        lines.extend(["", "### Failures"])
        lines.extend(f"- {v.message}" for v in violations)

    return "\n".join(lines) + "\n"


def write_step_summary(
    summary_path: Path,
    outcomes: Sequence[DependencyOutcome],
    violations: Sequence[Violation],
    advisory_mode: bool,
    timestamp: datetime,
) -> Path:
    """Append the markdown summary block; existing content is kept."""
    summary_path = Path(summary_path)
    with open(summary_path, "a", encoding="utf-8") as f:
        f.write(build_step_summary(outcomes, violations, advisory_mode, timestamp))
    logger.info("Appended summary to %s", summary_path)
    return summary_path


def export_outcomes_csv(table: pd.DataFrame, output_dir: Path) -> Path:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    outcomes_file = output_dir / "dependency_watch_outcomes.csv"
    table.to_csv(outcomes_file, index=False, columns=SUMMARY_COLUMNS)
    return outcomes_file
