from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402

from ReadinessEngine.cli.config import EngineConfig  # noqa: E402
from ReadinessEngine.scoring import CategoryRegistry, default_registry  # noqa: E402

# Disable OTEL export during tests to avoid noisy connection errors when a collector
# is not running. Individual tests can override as needed.
os.environ.setdefault("OTEL_METRICS_EXPORTER", "none")
os.environ.setdefault("OTEL_TRACES_EXPORTER", "none")
os.environ.setdefault("OTEL_SDK_DISABLED", "true")
os.environ.setdefault("READINESS_ENABLE_OTEL", "0")
os.environ.pop("OTEL_EXPORTER_OTLP_ENDPOINT", None)

BACKEND_ENV = {
    "READINESS_BACKEND_URL": "http://backend.test",
    "READINESS_BACKEND_KEY": "anon-key",
}


def make_spec(
    title: str,
    status: str,
    *,
    error: Optional[str] = None,
    annotations: Iterable[Mapping[str, str]] = (),
    attachments: Iterable[Mapping[str, str]] = (),
    tags: Iterable[str] = (),
    category: Optional[str] = None,
) -> dict[str, Any]:
    """Build a spec entry shaped like the Playwright JSON reporter output."""

    final_status = {"expected": "passed", "flaky": "passed", "skipped": "skipped"}.get(status, "failed")
    final: dict[str, Any] = {"status": final_status, "attachments": list(attachments)}
    if error:
        final["error"] = {"message": error, "stack": f"Error: {error}\n    at check.ts:1:1"}
    results = [final]
    if status == "flaky":
        results.insert(0, {"status": "failed", "error": {"message": "first attempt"}, "attachments": []})
    test: dict[str, Any] = {
        "status": status,
        "annotations": list(annotations),
        "results": results,
    }
    if category:
        test["category"] = category
    return {"title": title, "tags": list(tags), "tests": [test]}


@pytest.fixture(autouse=True)
def _restore_engine_logger():
    """CLI tests install non-propagating handlers; undo that so caplog keeps working."""

    yield
    logger = logging.getLogger("ReadinessEngine")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def registry() -> CategoryRegistry:
    return default_registry()


@pytest.fixture
def engine_config(tmp_path: Path) -> EngineConfig:
    return EngineConfig(
        results_root=tmp_path / "results",
        run_id="test-run",
        auth_mode="synthetic",
        fixture_seed="seed-1",
    )


@pytest.fixture
def backend_env() -> dict[str, str]:
    return dict(BACKEND_ENV)


@pytest.fixture
def mixed_results() -> dict[str, Any]:
    """Security half failing (one critical), UX passing with a flaky and a skipped check."""

    return {
        "config": {"version": "1.44.0"},
        "suites": [
            {
                "title": "01-security/authentication-authorization.test.ts",
                "file": "01-security/authentication-authorization.test.ts",
                "specs": [
                    make_spec("rejects invalid tokens", "expected"),
                    make_spec(
                        "blocks SQL injection in search",
                        "unexpected",
                        error="Expected status 400, received 200",
                        annotations=[{"type": "critical"}],
                        attachments=[{"name": "screenshot", "contentType": "image/png"}],
                    ),
                ],
                "suites": [],
            },
            {
                "title": "05-ux-usability/user-experience.test.ts",
                "specs": [],
                "suites": [
                    {
                        "title": "navigation",
                        "specs": [
                            make_spec("keyboard navigation", "expected"),
                            make_spec("mobile menu", "flaky"),
                            make_spec("offline banner", "skipped"),
                        ],
                    }
                ],
            },
            {
                "title": "misc/smoke.test.ts",
                "specs": [make_spec("homepage loads", "expected")],
            },
        ],
    }


@pytest.fixture
def passing_results() -> dict[str, Any]:
    """Every critical-path category executed and passed."""

    return {
        "suites": [
            {
                "title": "03-reliability-availability/system-reliability.test.ts",
                "specs": [make_spec("recovers from worker restart", "expected")],
            },
            {
                "title": "04-compliance-legal/gdpr-compliance.test.ts",
                "specs": [make_spec("exports personal data on request", "expected")],
            },
            {
                "title": "01-security/input-validation.test.ts",
                "specs": [
                    make_spec("escapes html", "expected"),
                    make_spec("rejects path traversal", "expected"),
                ],
            },
            {
                "title": "02-scalability-performance/performance-optimization.test.ts",
                "specs": [
                    make_spec(
                        "core web vitals",
                        "expected",
                        attachments=[{"name": "trace", "contentType": "application/zip"}],
                    )
                ],
            },
        ]
    }
