"""Tests for evidence parsing and the cargo backend."""

import json
import subprocess
from pathlib import Path

import pytest

from dependency_gate import evidence
from dependency_gate.errors import BackendExecutionError
from dependency_gate.evidence import (
    CargoEvidenceSource,
    FileEvidenceSource,
    parse_advisory_report,
    parse_dependency_graph,
)
from dependency_gate.models import PackageRecord


AUDIT_REPORT = {
    "vulnerabilities": {
        "found": True,
        "count": 1,
        "list": [
            {
                "advisory": {"id": "RUSTSEC-2023-0044"},
                "package": {"name": "openssl", "version": "0.10.50"},
            }
        ],
    },
    "warnings": {
        "unmaintained": [
            {"advisory": {"id": "RUSTSEC-2021-0139"}, "package": {"name": "ansi_term"}}
        ],
        "notice": [{"advisory": None, "package": {"name": "mystery"}}],
    },
}


def test_parse_advisory_report():
    report = parse_advisory_report(AUDIT_REPORT)

    [vuln] = report.vulnerabilities
    assert (vuln.id, vuln.package_name, vuln.package_version) == (
        "RUSTSEC-2023-0044", "openssl", "0.10.50"
    )
    assert [w.advisory_id for w in report.warnings] == ["RUSTSEC-2021-0139", None]
    assert report.unsound == ()
    assert report.advisory_ids == frozenset({"RUSTSEC-2021-0139"})


def test_parse_advisory_report_rejects_bad_shape():
    with pytest.raises(BackendExecutionError):
        parse_advisory_report({"vulnerabilities": {"list": "nope"}})
    with pytest.raises(BackendExecutionError):
        parse_advisory_report([])


def test_parse_dependency_graph():
    records = parse_dependency_graph({
        "packages": [
            {"name": "serde", "version": "1.0.190", "source": "registry+https://x"},
            {"name": "app", "version": "0.1.0", "source": None},
        ]
    })

    assert records == [
        PackageRecord("serde", "1.0.190", "registry+https://x"),
        PackageRecord("app", "0.1.0", None),
    ]
    with pytest.raises(BackendExecutionError):
        parse_dependency_graph({"resolve": {}})


def test_file_evidence_source(tmp_path: Path):
    audit_file = tmp_path / "audit.json"
    audit_file.write_text(json.dumps(AUDIT_REPORT), encoding="utf-8")
    metadata_file = tmp_path / "metadata.json"
    metadata_file.write_text("garbage", encoding="utf-8")

    source = FileEvidenceSource(audit_path=audit_file, metadata_path=metadata_file)

    assert len(source.advisory_report().vulnerabilities) == 1
    with pytest.raises(BackendExecutionError, match="unparsable"):
        source.dependency_graph()


class _Completed:
    def __init__(self, returncode, stdout="", stderr=""):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


def test_cargo_source_accepts_audit_exit_code_with_report(monkeypatch, tmp_path: Path):
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append((cmd, kwargs["cwd"]))
        return _Completed(1, stdout=json.dumps(AUDIT_REPORT))

    monkeypatch.setattr(evidence.shutil, "which", lambda name: "/usr/bin/cargo")
    monkeypatch.setattr(evidence.subprocess, "run", fake_run)

    report = CargoEvidenceSource(tmp_path).advisory_report()

    assert calls == [(["cargo", "audit", "--json"], tmp_path)]
    assert len(report.vulnerabilities) == 1


def test_cargo_source_metadata_failure(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(evidence.shutil, "which", lambda name: "/usr/bin/cargo")
    monkeypatch.setattr(
        evidence.subprocess,
        "run",
        lambda cmd, **kwargs: _Completed(101, stderr="error: lock file needs update"),
    )

    with pytest.raises(BackendExecutionError, match="lock file needs update"):
        CargoEvidenceSource(tmp_path).dependency_graph()


def test_cargo_source_timeout(monkeypatch, tmp_path: Path):
    def fake_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr(evidence.shutil, "which", lambda name: "/usr/bin/cargo")
    monkeypatch.setattr(evidence.subprocess, "run", fake_run)

    with pytest.raises(BackendExecutionError, match="failed to execute cargo metadata"):
        CargoEvidenceSource(tmp_path, timeout=5).dependency_graph()


def test_cargo_source_missing_executable(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(evidence.shutil, "which", lambda name: None)

    with pytest.raises(BackendExecutionError, match="unavailable"):
        CargoEvidenceSource(tmp_path).advisory_report()
