#!/usr/bin/env python3
"""
Example script showing how to use dependency-gate from Python.
"""

from datetime import date
from pathlib import Path

from dependency_gate.advisories import evaluate
from dependency_gate.evidence import CargoEvidenceSource
from dependency_gate.models import (
    AdvisoryReport,
    AdvisoryWarning,
    AllowlistEntry,
    PolicyConfig,
    WatchedDependency,
)
from dependency_gate.registry import CratesIoFetcher
from dependency_gate.reporting import render
from dependency_gate.versions import compare_versions, max_version
from dependency_gate.watcher import check, collect_violations, resolve_versions


def example_version_precedence():
    """Example: Version precedence."""
    print("="*60)
    print("Example 1: Version Precedence")
    print("="*60)

    print(f"1.0.0-2 vs 1.0.0-11: {compare_versions('1.0.0-2', '1.0.0-11')}")
    print(f"1.0.0-rc.1 vs 1.0.0: {compare_versions('1.0.0-rc.1', '1.0.0')}")
    print(f"Highest of 1.9.0, 1.10.0, 1.10.0-rc.2: {max_version(['1.9.0', '1.10.0', '1.10.0-rc.2'])}")


def example_policy_evaluation():
    """Example: Evaluate an advisory report against an allowlist."""
    print("\n" + "="*60)
    print("Example 2: Advisory Policy Evaluation")
    print("="*60)

    report = AdvisoryReport(
        unmaintained=(
            AdvisoryWarning("unmaintained", "RUSTSEC-2021-0139", "ansi_term"),
            AdvisoryWarning("unmaintained", "RUSTSEC-2024-0370", "proc-macro-error"),
        ),
    )
    policy = PolicyConfig(
        allow=(
            AllowlistEntry("RUSTSEC-2021-0139", date(2024, 2, 1)),
            AllowlistEntry("RUSTSEC-2020-0071", date(2024, 2, 1)),
        ),
        max_review_window_days=45,
    )

    for violation in evaluate(report, policy, today=date(2024, 1, 15)):
        print(f"  - [{violation.kind.value}] {violation.message}")


def example_freshness_watch():
    """Example: Check watched crates in a Cargo workspace (needs cargo and network)."""
    print("\n" + "="*60)
    print("Example 3: Dependency Freshness")
    print("="*60)

    source = CargoEvidenceSource(Path("."))
    resolved = resolve_versions(source.dependency_graph())
    watchlist = [
        WatchedDependency("serde", "core", fail_on_update=False),
        WatchedDependency("tokio", "runtime", fail_on_update=True),
    ]

    outcomes = check(watchlist, resolved, CratesIoFetcher().fetch_latest, advisory_mode=True)
    rendered = render(collect_violations(outcomes), outcomes, advisory_mode=True)
    print("\n".join(rendered.lines))
    print(rendered.summary_table)


if __name__ == "__main__":
    example_version_precedence()
    example_policy_evaluation()
    example_freshness_watch()
