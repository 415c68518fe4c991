"""
Advisory policy evaluation.

Vulnerabilities are never waivable. Lesser warnings (unmaintained, unsound,
notice) pass only when the policy carries a reviewed exception whose review_by
date lies within [today, today + max_review_window_days]. Allowlist entries for
advisories no longer reported are themselves violations.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List

from .models import AdvisoryReport, PolicyConfig, Violation, ViolationKind
from .time_utils import review_deadline


@dataclass(frozen=True)
class AuditSummary:
    vulnerabilities: int
    advisory_warnings: int
    today: date
    max_review_window_days: int


def summarize(report: AdvisoryReport, policy: PolicyConfig, today: date) -> AuditSummary:
    return AuditSummary(
        vulnerabilities=len(report.vulnerabilities),
        advisory_warnings=len(report.warnings),
        today=today,
        max_review_window_days=policy.max_review_window_days,
    )


def evaluate(report: AdvisoryReport, policy: PolicyConfig, today: date) -> List[Violation]:
    """Collect every policy violation in the report.

    Args:
        report: Parsed advisory scan report
        policy: Allowlist policy for this run
        today: Evaluation date; callers pass it in so results are reproducible

    Returns:
        Violations in report order, followed by stale allowlist entries in
        policy order
    """
    violations: List[Violation] = []

    for vuln in report.vulnerabilities:
        violations.append(Violation(
            kind=ViolationKind.VULNERABILITY,
            subject=vuln.id,
            message=f"vulnerability {vuln.id} {vuln.package_name} {vuln.package_version}".rstrip(),
        ))

    window = policy.max_review_window_days
    deadline = review_deadline(today, window)

    for warning in report.warnings:
        package = warning.package_name or "unknown-package"
        advisory_id = warning.advisory_id
        if not advisory_id:
            violations.append(Violation(
                kind=ViolationKind.MISSING_ADVISORY_ID,
                subject=package,
                message=f"warning without advisory id for {package}",
            ))
            continue

        entry = policy.entry_for(advisory_id)
        if entry is None:
            violations.append(Violation(
                kind=ViolationKind.UNREVIEWED_ADVISORY,
                subject=advisory_id,
                message=f"unreviewed advisory {advisory_id} ({package})",
            ))
            continue

        if entry.review_by is None:
            violations.append(Violation(
                kind=ViolationKind.MISSING_REVIEW_DATE,
                subject=advisory_id,
                message=f"policy entry {advisory_id} missing review_by date",
            ))
            continue

        if entry.review_by > deadline:
            violations.append(Violation(
                kind=ViolationKind.REVIEW_WINDOW_EXCEEDED,
                subject=advisory_id,
                message=(
                    f"policy entry {advisory_id} review_by {entry.review_by.isoformat()} "
                    f"exceeds {window} day window ({deadline.isoformat()})"
                ),
            ))
        if entry.review_by < today:
            violations.append(Violation(
                kind=ViolationKind.EXCEPTION_EXPIRED,
                subject=advisory_id,
                message=f"policy entry {advisory_id} expired on {entry.review_by.isoformat()}",
            ))

    present = report.advisory_ids
    for entry in policy.allow:
        if entry.advisory_id not in present:
            violations.append(Violation(
                kind=ViolationKind.STALE_ALLOWLIST_ENTRY,
                subject=entry.advisory_id,
                message=(
                    f"stale allowlist entry {entry.advisory_id} "
                    "is no longer present in audit output"
                ),
            ))

    return violations
