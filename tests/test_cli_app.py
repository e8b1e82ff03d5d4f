"""Tests for CLI application wiring."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from conftest import BACKEND_ENV
from ReadinessEngine.cli.app import app
from ReadinessEngine.recovery import HealthStatus


def _json_block(output: str) -> Any:
    return json.loads(output[output.index("{") : output.rindex("}") + 1])


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def lifecycle_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name, value in BACKEND_ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.setenv("READINESS_AUTH_MODE", "synthetic")
    monkeypatch.delenv("READINESS_CONFIG", raising=False)
    monkeypatch.delenv("READINESS_RUN_ID", raising=False)


def test_version(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(app, ["--results-root", str(tmp_path), "version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.stdout
    assert (tmp_path / "logs" / "cli.log").exists()


def test_categories_lists_registry(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(app, ["--results-root", str(tmp_path), "categories"])
    assert result.exit_code == 0
    assert "security" in result.stdout
    assert "Total weight: 100" in result.stdout
    assert "Tests: 35 automated, 2 manual, 1 hybrid" in result.stdout


def test_categories_from_custom_registry(runner: CliRunner, tmp_path: Path) -> None:
    registry_path = tmp_path / "categories.yaml"
    registry_path.write_text(
        """
categories:
  - id: api
    name: Public API
    weight: 60
    critical_path: true
    tests:
      - id: contract
        kind: automated
  - id: docs
    weight: 40
    tests:
      - id: review
        kind: manual
""",
        encoding="utf-8",
    )
    result = runner.invoke(
        app, ["--results-root", str(tmp_path), "--registry", str(registry_path), "categories"]
    )
    assert result.exit_code == 0
    assert "Public API" in result.stdout
    assert "Tests: 1 automated, 1 manual, 0 hybrid" in result.stdout


def test_score_ready(runner: CliRunner, tmp_path: Path) -> None:
    scores = tmp_path / "scores.yaml"
    scores.write_text(
        """
categories:
  - category_id: security
    score: 100
    passed: 10
    total: 10
  - category_id: performance
    score: 100
    passed: 4
    total: 4
""",
        encoding="utf-8",
    )
    result = runner.invoke(app, ["--results-root", str(tmp_path), "score", str(scores)])
    assert result.exit_code == 0
    payload = _json_block(result.stdout)
    assert payload["overall"] == 100
    assert payload["ready_for_production"] is True


def test_score_not_ready(runner: CliRunner, tmp_path: Path) -> None:
    scores = tmp_path / "scores.json"
    scores.write_text(
        json.dumps([{"categoryId": "security", "score": 80, "passed": 8, "total": 10, "criticalFailures": 1}]),
        encoding="utf-8",
    )
    result = runner.invoke(app, ["--results-root", str(tmp_path), "score", str(scores)])
    assert result.exit_code == 1
    payload = _json_block(result.stdout)
    assert payload["ready_for_production"] is False
    assert len(payload["blockers"]) == 2


def test_score_rejects_malformed_file(runner: CliRunner, tmp_path: Path) -> None:
    scores = tmp_path / "scores.yaml"
    scores.write_text("categories:\n  - score: 100\n", encoding="utf-8")
    result = runner.invoke(app, ["--results-root", str(tmp_path), "score", str(scores)])
    assert result.exit_code != 0


def test_setup_then_teardown(
    runner: CliRunner, tmp_path: Path, lifecycle_env: None, passing_results: dict[str, Any]
) -> None:
    root = tmp_path / "results"
    setup = runner.invoke(app, ["--results-root", str(root), "setup"])
    assert setup.exit_code == 0, setup.output
    assert "auth_state: ok" in setup.stdout
    assert "initialise_database: skipped" in setup.stdout

    manifest = json.loads((root / "setup-manifest.json").read_text(encoding="utf-8"))
    run_id = manifest["run_id"]
    (root / "results.json").write_text(json.dumps(passing_results), encoding="utf-8")

    teardown = runner.invoke(app, ["--results-root", str(root), "teardown"])
    assert teardown.exit_code == 0, teardown.output
    assert "Overall score: 100%" in teardown.stdout
    assert "NOT READY" not in teardown.stdout
    assert "READY FOR PRODUCTION" in teardown.stdout
    # teardown reuses the run id recorded by setup
    assert (root / "archive" / f"run-{run_id}" / "summary.md").exists()


def test_each_setup_starts_a_new_run(
    runner: CliRunner, tmp_path: Path, lifecycle_env: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    run_ids = iter(["first", "second"])
    monkeypatch.setattr(sys.modules["ReadinessEngine.cli.app"], "default_run_id", lambda: next(run_ids))
    root = tmp_path / "results"

    first = runner.invoke(app, ["--results-root", str(root), "setup"])
    assert first.exit_code == 0, first.output
    assert "Run first prepared" in first.stdout
    second = runner.invoke(app, ["--results-root", str(root), "setup"])
    assert second.exit_code == 0, second.output
    assert "Run second prepared" in second.stdout

    teardown = runner.invoke(app, ["--results-root", str(root), "teardown"])
    assert teardown.exit_code == 1
    assert (root / "archive" / "run-second" / "summary.md").exists()
    assert not (root / "archive" / "run-first").exists()


def test_setup_fails_on_missing_environment(
    runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    for name in BACKEND_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("READINESS_CONFIG", raising=False)
    result = runner.invoke(app, ["--results-root", str(tmp_path), "setup"])
    assert result.exit_code == 1
    assert "setup failed at step 'validate_environment'" in result.stdout
    assert "READINESS_BACKEND_URL" in result.stdout


def test_teardown_without_results_is_not_ready(runner: CliRunner, tmp_path: Path, lifecycle_env: None) -> None:
    result = runner.invoke(app, ["--results-root", str(tmp_path), "--run-id", "r1", "teardown"])
    assert result.exit_code == 1
    assert "results unavailable" in result.stdout
    assert (tmp_path / "reports" / "summary.md").exists()


def test_teardown_reports_blockers(
    runner: CliRunner, tmp_path: Path, lifecycle_env: None, mixed_results: dict[str, Any]
) -> None:
    (tmp_path / "results.json").write_text(json.dumps(mixed_results), encoding="utf-8")
    result = runner.invoke(app, ["--results-root", str(tmp_path), "--run-id", "r2", "teardown"])
    assert result.exit_code == 1
    assert "Overall score: 64%" in result.stdout
    assert "blocker: Critical category 'Security' [security] failed (50%)" in result.stdout


def test_recover_success(runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[str] = []

    def fake_probe(url: str, **kwargs: Any):
        seen.append(url)
        return lambda: HealthStatus(True)

    monkeypatch.setattr(sys.modules["ReadinessEngine.cli.app"], "http_health_probe", fake_probe)
    result = runner.invoke(
        app,
        ["--results-root", str(tmp_path), "recover", "http://app.test/health", "--timeout", "5", "--interval", "0.1"],
    )
    assert result.exit_code == 0, result.output
    payload = _json_block(result.stdout)
    assert payload["recovered"] is True
    assert payload["attempts"] == 1
    assert seen == ["http://app.test/health"]


def test_recover_timeout(runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        sys.modules["ReadinessEngine.cli.app"],
        "http_health_probe",
        lambda url, **kwargs: (lambda: HealthStatus(False, "HTTP 503")),
    )
    result = runner.invoke(
        app,
        ["--results-root", str(tmp_path), "recover", "http://app.test/health", "--timeout", "0.2", "--interval", "0.05"],
    )
    assert result.exit_code == 1
    payload = _json_block(result.stdout)
    assert payload["recovered"] is False
    assert payload["cancelled"] is False
    assert payload["last_error"] == "HTTP 503"
    assert payload["attempts"] >= 2


def test_recover_rejects_non_positive_interval(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["--results-root", str(tmp_path), "recover", "http://app.test/health", "--interval", "0"]
    )
    assert result.exit_code != 0


def test_invalid_config_file_exits(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(app, ["--config", str(tmp_path / "missing.toml"), "version"])
    assert result.exit_code == 1
    assert "[error]" in result.stdout
