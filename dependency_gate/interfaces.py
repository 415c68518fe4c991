"""
Interfaces for evidence backends and registry lookups.
"""

from __future__ import annotations

from typing import List, Protocol

from .models import AdvisoryReport, PackageRecord


class EvidenceSource(Protocol):
    """Provide the advisory scan report and the resolved dependency graph."""

    def advisory_report(self) -> AdvisoryReport:
        ...

    def dependency_graph(self) -> List[PackageRecord]:
        ...


class Fetcher(Protocol):
    """Look up the latest published version of a package."""

    def fetch_latest(self, name: str) -> str:
        ...
