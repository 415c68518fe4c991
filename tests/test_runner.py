"""End-to-end tests for the runners and the CLI with fake backends."""

import json
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from dependency_gate import cli
from dependency_gate.errors import BackendExecutionError, FetchError
from dependency_gate.models import AdvisoryReport, AdvisoryWarning, PackageRecord, Vulnerability
from dependency_gate.runner import run_audit, run_watch


REGISTRY = "registry+https://github.com/rust-lang/crates.io-index"


class FakeSource:
    def __init__(self, report=None, packages=None, error=None):
        self.report = report or AdvisoryReport()
        self.packages = packages or []
        self.error = error

    def advisory_report(self):
        if self.error:
            raise self.error
        return self.report

    def dependency_graph(self):
        if self.error:
            raise self.error
        return self.packages


class FakeFetcher:
    def __init__(self, latest):
        self.latest = latest

    def fetch_latest(self, name):
        if name not in self.latest:
            raise FetchError("crates.io request failed (404)")
        return self.latest[name]


@pytest.fixture
def watch_file(tmp_path: Path) -> Path:
    path = tmp_path / "dependency-watch.json"
    path.write_text(json.dumps({
        "dependencies": [
            {"name": "x", "group": "core", "fail_on_update": True},
            {"name": "absent", "group": "misc"},
        ]
    }), encoding="utf-8")
    return path


@pytest.fixture
def policy_file(tmp_path: Path) -> Path:
    path = tmp_path / "rustsec-policy.json"
    path.write_text(json.dumps({
        "allow": [{"id": "ADV-1", "review_by": "2024-01-20"}],
        "metadata": {"max_review_window_days": 45},
    }), encoding="utf-8")
    return path


def _packages():
    return [PackageRecord("x", "1.2.0", REGISTRY)]


def test_watch_strict_mode_fails(watch_file, capsys):
    status = run_watch(watch_file, FakeSource(packages=_packages()), FakeFetcher({"x": "1.3.0"}))

    out, err = capsys.readouterr()
    assert status == 1
    assert "outcome=outdated-fail" in out
    assert out.count("absent") == 1
    assert "x is outdated (1.2.0 -> 1.3.0); fail_on_update is enabled" in err
    assert "crate 'absent' was not found in current Cargo graph" in err


def test_watch_advisory_mode_passes_and_warns(watch_file, tmp_path, capsys):
    summary = tmp_path / "summary.md"
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    status = run_watch(
        watch_file,
        FakeSource(packages=_packages()),
        FakeFetcher({"x": "1.3.0"}),
        advisory_mode=True,
        summary_path=summary,
        output_dir=tmp_path / "out",
        now=now,
    )

    out, err = capsys.readouterr()
    assert status == 0
    assert "mode=advisory" in out
    assert "outcome=outdated-warn" in out
    assert "advisory warnings:" in err
    assert "x is outdated (1.2.0 -> 1.3.0)" in err
    assert "| x | core | 1.2.0 | 1.3.0 | outdated-warn |" in summary.read_text(encoding="utf-8")
    assert (tmp_path / "out" / "dependency_watch_outcomes.csv").exists()


def test_watch_up_to_date_passes(tmp_path, capsys):
    path = tmp_path / "watch.json"
    path.write_text(json.dumps({"dependencies": [{"name": "x", "fail_on_update": True}]}), encoding="utf-8")

    status = run_watch(path, FakeSource(packages=_packages()), FakeFetcher({"x": "1.2.0"}))

    assert status == 0
    assert "dependency-watch: PASS" in capsys.readouterr().out


def test_watch_unreadable_input_fails_even_in_advisory_mode(watch_file, tmp_path, capsys):
    source = FakeSource(error=BackendExecutionError("failed to execute cargo metadata (boom)"))

    assert run_watch(watch_file, source, FakeFetcher({}), advisory_mode=True) == 1
    assert run_watch(tmp_path / "missing.json", FakeSource(), FakeFetcher({}), advisory_mode=True) == 1
    err = capsys.readouterr().err
    assert "dependency-watch: failed to execute cargo metadata (boom)" in err
    assert "dependency-watch: missing config at" in err


def test_audit_pass(policy_file, capsys):
    report = AdvisoryReport(unmaintained=(AdvisoryWarning("unmaintained", "ADV-1", "demo"),))

    status = run_audit(policy_file, FakeSource(report=report), today=date(2024, 1, 1))

    assert status == 0
    assert "audit-rust: PASS (vulnerabilities=0, advisory_warnings=1, date=2024-01-01" in capsys.readouterr().out


def test_audit_reports_every_violation(policy_file, capsys):
    report = AdvisoryReport(
        vulnerabilities=(Vulnerability("V-1", "openssl", "0.10.0"),),
        notice=(AdvisoryWarning("notice", "ADV-2", "demo"),),
    )

    status = run_audit(policy_file, FakeSource(report=report), today=date(2024, 1, 1))

    err = capsys.readouterr().err
    assert status == 1
    assert "vulnerability V-1 openssl 0.10.0" in err
    assert "unreviewed advisory ADV-2 (demo)" in err
    assert "stale allowlist entry ADV-1" in err


def test_audit_backend_failure(policy_file, capsys):
    source = FakeSource(error=BackendExecutionError("failed to execute cargo audit --json (no cargo)"))

    assert run_audit(policy_file, source, today=date(2024, 1, 1)) == 1
    assert "audit-rust: failed to execute cargo audit --json" in capsys.readouterr().err


def test_cli_audit_with_saved_report(tmp_path, policy_file):
    audit_json = tmp_path / "audit.json"
    audit_json.write_text(json.dumps({
        "vulnerabilities": {"list": []},
        "warnings": {"unmaintained": [{"advisory": {"id": "ADV-1"}, "package": {"name": "demo"}}]},
    }), encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main([
            "audit", "--policy", str(policy_file), "--audit-json", str(audit_json), "--today", "2024-01-01",
        ])

    assert excinfo.value.code == 0


def test_cli_watch_no_fail(tmp_path, watch_file, monkeypatch):
    metadata_json = tmp_path / "metadata.json"
    metadata_json.write_text(json.dumps({
        "packages": [{"name": "x", "version": "1.2.0", "source": REGISTRY}]
    }), encoding="utf-8")
    monkeypatch.delenv("GITHUB_STEP_SUMMARY", raising=False)
    monkeypatch.setattr(cli, "CratesIoFetcher", lambda **kwargs: FakeFetcher({"x": "1.3.0"}))

    with pytest.raises(SystemExit) as strict:
        cli.main(["watch", "--watchlist", str(watch_file), "--metadata-json", str(metadata_json)])
    with pytest.raises(SystemExit) as advisory:
        cli.main([
            "watch", "--watchlist", str(watch_file), "--metadata-json", str(metadata_json), "--no-fail",
        ])

    assert strict.value.code == 1
    assert advisory.value.code == 0


def test_cli_rejects_bad_date(policy_file):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["audit", "--policy", str(policy_file), "--today", "01-01-2024"])

    assert excinfo.value.code == 2


def test_watch_unwritable_artifacts_do_not_change_exit_status(watch_file, tmp_path, capsys):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    status = run_watch(
        watch_file,
        FakeSource(packages=_packages()),
        FakeFetcher({"x": "1.3.0"}),
        advisory_mode=True,
        summary_path=tmp_path,
        output_dir=blocker / "out",
    )

    err = capsys.readouterr().err
    assert status == 0
    assert f"dependency-watch: cannot write summary to {tmp_path}" in err
    assert "dependency-watch: cannot write outcome table to" in err
