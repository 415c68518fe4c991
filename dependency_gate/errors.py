"""
Error types raised by the dependency gate.
"""

from __future__ import annotations


class DependencyGateError(Exception):
    """Base class for dependency gate failures."""


class ConfigError(DependencyGateError):
    """A policy or watch-list file is missing or malformed."""


class BackendExecutionError(DependencyGateError):
    """An evidence backend could not be invoked or produced unreadable output."""


class FetchError(DependencyGateError):
    """The registry lookup for a single package failed."""


class VersionParseError(ValueError):
    """A version string does not follow MAJOR.MINOR.PATCH[-PRE][+BUILD]."""
