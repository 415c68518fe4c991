"""
Evidence backends: the advisory scan report and the dependency graph.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .errors import BackendExecutionError
from .models import AdvisoryReport, AdvisoryWarning, PackageRecord, Vulnerability


logger = logging.getLogger(__name__)

WARNING_CATEGORIES = ("unmaintained", "unsound", "notice")


def _as_dict(value: Any, field_name: str) -> Dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise BackendExecutionError(f"audit report field {field_name} must be an object")
    return value


def _as_list(value: Any, field_name: str) -> List:
    if value is None:
        return []
    if not isinstance(value, list):
        raise BackendExecutionError(f"audit report field {field_name} must be a list")
    return value


def parse_advisory_report(payload: Any) -> AdvisoryReport:
    """Build an AdvisoryReport from ``cargo audit --json`` output.

    Raises:
        BackendExecutionError: the payload does not have the report shape
    """
    if not isinstance(payload, dict):
        raise BackendExecutionError("audit report must be a JSON object")

    vuln_section = _as_dict(payload.get("vulnerabilities"), "vulnerabilities")
    vulnerabilities = []
    for index, raw in enumerate(_as_list(vuln_section.get("list"), "vulnerabilities.list")):
        raw = _as_dict(raw, f"vulnerabilities.list[{index}]")
        advisory = _as_dict(raw.get("advisory"), f"vulnerabilities.list[{index}].advisory")
        package = _as_dict(raw.get("package"), f"vulnerabilities.list[{index}].package")
        vulnerabilities.append(Vulnerability(
            id=str(raw.get("id") or advisory.get("id") or ""),
            package_name=str(package.get("name") or ""),
            package_version=str(package.get("version") or ""),
        ))

    warnings_section = _as_dict(payload.get("warnings"), "warnings")
    warnings: Dict[str, List[AdvisoryWarning]] = {}
    for category in WARNING_CATEGORIES:
        parsed = []
        for index, raw in enumerate(_as_list(warnings_section.get(category), f"warnings.{category}")):
            raw = _as_dict(raw, f"warnings.{category}[{index}]")
            advisory = _as_dict(raw.get("advisory"), f"warnings.{category}[{index}].advisory")
            package = _as_dict(raw.get("package"), f"warnings.{category}[{index}].package")
            parsed.append(AdvisoryWarning(
                category=category,
                advisory_id=advisory.get("id") or None,
                package_name=package.get("name") or None,
            ))
        warnings[category] = parsed

    return AdvisoryReport(
        vulnerabilities=tuple(vulnerabilities),
        unmaintained=tuple(warnings["unmaintained"]),
        unsound=tuple(warnings["unsound"]),
        notice=tuple(warnings["notice"]),
    )


def parse_dependency_graph(payload: Any) -> List[PackageRecord]:
    """Extract package records from ``cargo metadata`` output."""
    if not isinstance(payload, dict):
        raise BackendExecutionError("dependency graph must be a JSON object")
    packages = payload.get("packages")
    if not isinstance(packages, list):
        raise BackendExecutionError("dependency graph is missing the packages list")

    records = []
    for index, pkg in enumerate(packages):
        if not isinstance(pkg, dict) or not pkg.get("name") or not pkg.get("version"):
            raise BackendExecutionError(f"dependency graph packages[{index}] lacks name/version")
        records.append(PackageRecord(
            name=pkg["name"],
            version=pkg["version"],
            source=pkg.get("source"),
        ))
    return records


def _decode_json(raw: str, what: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise BackendExecutionError(f"{what} produced unparsable output ({e})") from e


class CargoEvidenceSource:
    """Collect evidence by running cargo in a workspace."""

    def __init__(
        self,
        root: Path,
        cargo: str = "cargo",
        timeout: Optional[float] = None,
    ):
        """Initialize the cargo backend.

        Args:
            root: Workspace directory cargo runs in
            cargo: cargo executable name or path
            timeout: Seconds before a cargo invocation is abandoned (None waits)
        """
        self.root = Path(root)
        self.cargo = cargo
        self.timeout = timeout

    def _run(self, args: Sequence[str], accept_nonzero: bool = False) -> str:
        if shutil.which(self.cargo) is None:
            raise BackendExecutionError(f"required command {self.cargo!r} is unavailable")
        cmd = [self.cargo, *args]
        description = " ".join(cmd)
        logger.info("Running %s in %s", description, self.root)
        try:
            result = subprocess.run(
                cmd,
                cwd=self.root,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            raise BackendExecutionError(f"failed to execute {description} ({e})") from e

        if result.returncode != 0 and not (accept_nonzero and result.stdout.strip()):
            stderr = result.stderr.strip() or f"exit status {result.returncode}"
            raise BackendExecutionError(f"failed to execute {description} ({stderr})")
        return result.stdout

    def advisory_report(self) -> AdvisoryReport:
        # cargo audit exits 1 when it finds vulnerabilities but still prints the report.
        raw = self._run(["audit", "--json"], accept_nonzero=True)
        return parse_advisory_report(_decode_json(raw, "cargo audit --json"))

    def dependency_graph(self) -> List[PackageRecord]:
        raw = self._run(["metadata", "--format-version", "1", "--locked"])
        return parse_dependency_graph(
            _decode_json(raw, "cargo metadata --format-version 1 --locked")
        )


class FileEvidenceSource:
    """Read pre-generated evidence from JSON files."""

    def __init__(self, audit_path: Optional[Path] = None, metadata_path: Optional[Path] = None):
        self.audit_path = Path(audit_path) if audit_path else None
        self.metadata_path = Path(metadata_path) if metadata_path else None

    @staticmethod
    def _load(path: Optional[Path], what: str) -> Any:
        if path is None:
            raise BackendExecutionError(f"no {what} file configured")
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise BackendExecutionError(f"cannot read {what} file {path} ({e})") from e
        return _decode_json(raw, str(path))

    def advisory_report(self) -> AdvisoryReport:
        return parse_advisory_report(self._load(self.audit_path, "audit report"))

    def dependency_graph(self) -> List[PackageRecord]:
        return parse_dependency_graph(self._load(self.metadata_path, "dependency graph"))
