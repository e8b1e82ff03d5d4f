"""Helpers for computing the readiness run directory structure."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


def default_run_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")


@dataclass(frozen=True)
class RunPaths:
    """Locations used by a single readiness run.

    Concurrent runs sharing a results root must use distinct ``run_id`` values.
    """

    root: Path
    run_id: str
    archive_base: Optional[Path] = None

    @classmethod
    def create(
        cls,
        root: Path,
        run_id: Optional[str] = None,
        archive_base: Optional[Path] = None,
    ) -> "RunPaths":
        return cls(
            root=Path(root),
            run_id=run_id or default_run_id(),
            archive_base=Path(archive_base) if archive_base is not None else None,
        )

    @property
    def results_dir(self) -> Path:
        return self.root

    @property
    def reports_dir(self) -> Path:
        return self.root / "reports"

    @property
    def fixtures_dir(self) -> Path:
        return self.root / "fixtures"

    @property
    def auth_dir(self) -> Path:
        return self.root / ".auth"

    @property
    def logs_dir(self) -> Path:
        return self.root / "logs"

    @property
    def archive_root(self) -> Path:
        return self.archive_base or self.root / "archive"

    @property
    def archive_dir(self) -> Path:
        return self.archive_root / f"run-{self.run_id}"

    @property
    def raw_results_path(self) -> Path:
        return self.root / "results.json"

    @property
    def monitoring_context_path(self) -> Path:
        return self.root / "monitoring-context.json"

    @property
    def users_fixture_path(self) -> Path:
        return self.fixtures_dir / "users.json"

    @property
    def scenarios_fixture_path(self) -> Path:
        return self.fixtures_dir / "scenarios.json"

    @property
    def machine_report_path(self) -> Path:
        return self.reports_dir / "production-readiness.json"

    @property
    def human_report_path(self) -> Path:
        return self.reports_dir / "summary.md"

    @property
    def metrics_path(self) -> Path:
        return self.reports_dir / "final-metrics.json"

    @property
    def setup_manifest_path(self) -> Path:
        return self.root / "setup-manifest.json"

    def auth_state_path(self, role: str) -> Path:
        return self.auth_dir / f"{role}.json"

    def ensure(self) -> None:
        for path in (
            self.results_dir,
            self.reports_dir,
            self.fixtures_dir,
            self.auth_dir,
            self.logs_dir,
            self.archive_root,
        ):
            path.mkdir(parents=True, exist_ok=True)
