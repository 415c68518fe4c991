"""
Freshness checks for watched dependencies.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Set

from .errors import FetchError
from .models import (
    ComparisonOutcome,
    DependencyOutcome,
    PackageRecord,
    ResolvedVersionSet,
    Violation,
    ViolationKind,
    WatchedDependency,
)
from .versions import compare_versions, max_version, try_parse_version


logger = logging.getLogger(__name__)

REGISTRY_SOURCE_PREFIX = "registry+"


def is_registry_source(source) -> bool:
    """Path and git dependencies have no registry "latest" to compare against."""
    return not source or source.startswith(REGISTRY_SOURCE_PREFIX)


def resolve_versions(packages: Iterable[PackageRecord]) -> ResolvedVersionSet:
    """Group registry-sourced package versions by name."""
    versions: Dict[str, Set[str]] = {}
    for pkg in packages:
        if not is_registry_source(pkg.source):
            logger.debug("Skipping %s %s from %s", pkg.name, pkg.version, pkg.source)
            continue
        versions.setdefault(pkg.name, set()).add(pkg.version)
    return versions


def check_dependency(
    dep: WatchedDependency,
    resolved: ResolvedVersionSet,
    fetch_latest: Callable[[str], str],
    advisory_mode: bool = False,
) -> DependencyOutcome:
    """Compute the outcome for a single watched dependency."""
    present = sorted(resolved.get(dep.name, ()))
    current = max_version(present)
    if current is None:
        detail = None
        if present:
            detail = f"no comparable version among {', '.join(present)}"
        return DependencyOutcome(dep, ComparisonOutcome.MISSING, detail=detail)

    try:
        latest = fetch_latest(dep.name)
    except FetchError as e:
        logger.warning("Failed to fetch latest version for %s: %s", dep.name, e)
        return DependencyOutcome(
            dep, ComparisonOutcome.FETCH_ERROR, current_version=current, detail=str(e)
        )
    except Exception as e:
        logger.warning("Unexpected error fetching latest version for %s: %s", dep.name, e)
        return DependencyOutcome(
            dep,
            ComparisonOutcome.FETCH_ERROR,
            current_version=current,
            detail=f"{type(e).__name__}: {e}",
        )

    if try_parse_version(latest) is None:
        logger.warning("Registry returned unparsable version %r for %s", latest, dep.name)
        return DependencyOutcome(
            dep,
            ComparisonOutcome.FETCH_ERROR,
            current_version=current,
            detail=f"unparsable latest version {latest!r}",
        )

    if compare_versions(latest, current) > 0:
        if dep.fail_on_update and not advisory_mode:
            outcome = ComparisonOutcome.OUTDATED_FAIL
        else:
            outcome = ComparisonOutcome.OUTDATED_WARN
    else:
        outcome = ComparisonOutcome.UP_TO_DATE

    return DependencyOutcome(dep, outcome, current_version=current, latest_version=latest)


def check(
    watchlist: Iterable[WatchedDependency],
    resolved: ResolvedVersionSet,
    fetch_latest: Callable[[str], str],
    advisory_mode: bool = False,
) -> List[DependencyOutcome]:
    """Check every watched dependency, one registry lookup at a time, in order."""
    return [
        check_dependency(dep, resolved, fetch_latest, advisory_mode)
        for dep in watchlist
    ]


def collect_violations(outcomes: Iterable[DependencyOutcome]) -> List[Violation]:
    """Turn failing outcomes into violations, preserving order."""
    violations: List[Violation] = []
    for result in outcomes:
        if not result.is_violation:
            continue
        name = result.dependency.name
        if result.outcome is ComparisonOutcome.MISSING:
            message = f"crate '{name}' was not found in current Cargo graph"
            if result.detail:
                message = f"{message} ({result.detail})"
            violations.append(Violation(ViolationKind.MISSING_DEPENDENCY, name, message))
        elif result.outcome is ComparisonOutcome.FETCH_ERROR:
            violations.append(Violation(
                ViolationKind.FETCH_FAILED,
                name,
                f"failed to fetch latest version for '{name}' ({result.detail})",
            ))
        else:
            violations.append(Violation(
                ViolationKind.OUTDATED_DEPENDENCY,
                name,
                f"{name} is outdated ({result.current_version} -> {result.latest_version}); "
                "fail_on_update is enabled",
            ))
    return violations
