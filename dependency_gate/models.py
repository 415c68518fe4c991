"""
Core data models for the dependency gate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, FrozenSet, Optional, Set, Tuple


@dataclass(frozen=True)
class SemanticVersion:
    """A parsed version. Build metadata is not kept."""

    major: int
    minor: int
    patch: int
    prerelease: Tuple[str, ...] = ()

    def __str__(self) -> str:
        core = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            return f"{core}-{'.'.join(self.prerelease)}"
        return core


@dataclass(frozen=True)
class AllowlistEntry:
    """A time-boxed exception for one advisory."""

    advisory_id: str
    review_by: Optional[date]


@dataclass(frozen=True)
class PolicyConfig:
    """Advisory allowlist and the longest review window it may grant."""

    allow: Tuple[AllowlistEntry, ...]
    max_review_window_days: int = 45

    def entry_for(self, advisory_id: str) -> Optional[AllowlistEntry]:
        for entry in self.allow:
            if entry.advisory_id == advisory_id:
                return entry
        return None


@dataclass(frozen=True)
class Vulnerability:
    id: str
    package_name: str
    package_version: str


@dataclass(frozen=True)
class AdvisoryWarning:
    """An unmaintained/unsound/notice warning from the scan report."""

    category: str
    advisory_id: Optional[str]
    package_name: Optional[str]


@dataclass(frozen=True)
class AdvisoryReport:
    vulnerabilities: Tuple[Vulnerability, ...] = ()
    unmaintained: Tuple[AdvisoryWarning, ...] = ()
    unsound: Tuple[AdvisoryWarning, ...] = ()
    notice: Tuple[AdvisoryWarning, ...] = ()

    @property
    def warnings(self) -> Tuple[AdvisoryWarning, ...]:
        return self.unmaintained + self.unsound + self.notice

    @property
    def advisory_ids(self) -> FrozenSet[str]:
        return frozenset(w.advisory_id for w in self.warnings if w.advisory_id)


@dataclass(frozen=True)
class PackageRecord:
    """One package from the dependency-graph descriptor."""

    name: str
    version: str
    source: Optional[str] = None


@dataclass(frozen=True)
class WatchedDependency:
    name: str
    group: str = "unknown"
    fail_on_update: bool = False


ResolvedVersionSet = Dict[str, Set[str]]


class ComparisonOutcome(str, Enum):
    """Freshness outcome for one watched dependency in one run."""

    UP_TO_DATE = "up-to-date"
    OUTDATED_WARN = "outdated-warn"
    OUTDATED_FAIL = "outdated-fail"
    MISSING = "missing"
    FETCH_ERROR = "fetch-error"


class ViolationKind(str, Enum):
    VULNERABILITY = "vulnerability"
    MISSING_ADVISORY_ID = "missing-advisory-id"
    UNREVIEWED_ADVISORY = "unreviewed-advisory"
    MISSING_REVIEW_DATE = "missing-review-date"
    REVIEW_WINDOW_EXCEEDED = "review-window-exceeded"
    EXCEPTION_EXPIRED = "exception-expired"
    STALE_ALLOWLIST_ENTRY = "stale-allowlist-entry"
    OUTDATED_DEPENDENCY = "outdated-dependency"
    MISSING_DEPENDENCY = "missing-dependency"
    FETCH_FAILED = "fetch-failed"


@dataclass(frozen=True)
class Violation:
    """A single policy failure, reported alongside all others."""

    kind: ViolationKind
    subject: str
    message: str


@dataclass(frozen=True)
class DependencyOutcome:
    """Computed freshness state for a watched dependency."""

    dependency: WatchedDependency
    outcome: ComparisonOutcome
    current_version: Optional[str] = None
    latest_version: Optional[str] = None
    detail: Optional[str] = field(default=None, compare=False)

    @property
    def is_outdated(self) -> bool:
        return self.outcome in (ComparisonOutcome.OUTDATED_WARN, ComparisonOutcome.OUTDATED_FAIL)

    @property
    def is_violation(self) -> bool:
        if self.outcome in (ComparisonOutcome.MISSING, ComparisonOutcome.FETCH_ERROR):
            return True
        return self.is_outdated and self.dependency.fail_on_update
