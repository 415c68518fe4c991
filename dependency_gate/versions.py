"""
Version parsing and precedence.

Versions follow ``MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]``. Build metadata is
accepted and discarded; it never takes part in ordering. Anything that does not
match the grammar raises ``VersionParseError`` instead of being read as 0.0.0.
"""

from __future__ import annotations

import functools
import re
from typing import Iterable, Optional, Sequence, Union

import semver

from .errors import VersionParseError
from .models import SemanticVersion


_VERSION_RE = re.compile(
    r"(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z.-]+))?(?:\+.*)?",
    re.ASCII,
)

VersionLike = Union[str, SemanticVersion]


def parse_version(text: str) -> SemanticVersion:
    """Parse a version string into a SemanticVersion.

    Raises:
        VersionParseError: if ``text`` does not match the grammar or carries an
            empty prerelease identifier (``1.0.0-a..b``).
    """
    if not isinstance(text, str):
        raise VersionParseError(f"version must be a string, got {type(text).__name__}")
    match = _VERSION_RE.fullmatch(text)
    if not match:
        raise VersionParseError(f"invalid version: {text!r}")

    prerelease: Sequence[str] = ()
    if match.group(4):
        prerelease = match.group(4).split(".")
        if any(not ident for ident in prerelease):
            raise VersionParseError(f"empty prerelease identifier in {text!r}")

    return SemanticVersion(
        major=int(match.group(1)),
        minor=int(match.group(2)),
        patch=int(match.group(3)),
        prerelease=tuple(prerelease),
    )


def try_parse_version(text: str) -> Optional[SemanticVersion]:
    try:
        return parse_version(text)
    except VersionParseError:
        return None


def to_semver(version: SemanticVersion) -> semver.Version:
    """Convert to a semver.Version for precedence comparison.

    Numeric prerelease identifiers are normalized (``01`` -> ``1``) so that
    identifiers that are numerically equal also compare equal.
    """
    prerelease = ".".join(
        str(int(ident)) if ident.isdigit() else ident
        for ident in version.prerelease
    )
    return semver.Version(
        version.major,
        version.minor,
        version.patch,
        prerelease=prerelease or None,
    )


def _coerce(value: VersionLike) -> SemanticVersion:
    if isinstance(value, SemanticVersion):
        return value
    return parse_version(value)


def compare_versions(a: VersionLike, b: VersionLike) -> int:
    """Return -1, 0 or 1 as ``a`` has lower, equal or higher precedence than ``b``."""
    return to_semver(_coerce(a)).compare(to_semver(_coerce(b)))


version_key = functools.cmp_to_key(compare_versions)


def max_version(versions: Iterable[str]) -> Optional[str]:
    """Return the highest-precedence version string, skipping unparseable ones.

    Ties keep the first string seen, so ``1.0.0`` and ``1.0.0+build`` resolve to
    whichever came first.
    """
    best: Optional[str] = None
    best_parsed: Optional[SemanticVersion] = None
    for candidate in versions:
        parsed = try_parse_version(candidate)
        if parsed is None:
            continue
        if best_parsed is None or compare_versions(parsed, best_parsed) > 0:
            best, best_parsed = candidate, parsed
    return best
