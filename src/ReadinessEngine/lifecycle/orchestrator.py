"""Setup and teardown hooks around a production readiness run."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Iterator, Mapping, Optional, Sequence, TypeVar

from ..scoring.aggregator import compute_readiness
from ..scoring.models import ProductionReadinessScore, TestKind
from ..scoring.registry import CategoryRegistry, default_registry
from .auth import Authenticator, PasswordAuthenticator, SyntheticAuthenticator, build_storage_state
from .database import CommandDatabaseInitializer, DatabaseInitializer
from .exceptions import AuthStateError, FixtureError, MissingConfigurationError, SetupError
from .fixtures import FixtureUser, build_scenarios, build_users
from .metrics import MetricsEmitter
from .paths import RunPaths
from .reporting import (
    CategoryTally,
    CheckOutcome,
    derive_recommendations,
    flatten_results,
    render_report,
    render_unavailable_report,
    require_critical_coverage,
    scores_from_tally,
    tally_by_category,
    write_reports,
)
from .utils import copy_existing, missing_env, read_json, write_json

if TYPE_CHECKING:
    from ..cli.config import EngineConfig

logger = logging.getLogger(__name__)

BACKEND_URL_ENV = "READINESS_BACKEND_URL"
BACKEND_KEY_ENV = "READINESS_BACKEND_KEY"

T = TypeVar("T")


@dataclass(frozen=True)
class StepResult:
    """Outcome of one lifecycle step."""

    name: str
    status: str
    detail: Optional[str] = None

    def to_dict(self) -> Mapping[str, Any]:
        return {"name": self.name, "status": self.status, "detail": self.detail}


@dataclass(frozen=True)
class SetupSummary:
    run_id: str
    steps: tuple[StepResult, ...]
    roles: tuple[str, ...] = ()
    auth_states: tuple[Path, ...] = ()
    database_initialised: bool = False

    def to_dict(self) -> Mapping[str, Any]:
        return {
            "run_id": self.run_id,
            "steps": [dict(step.to_dict()) for step in self.steps],
            "roles": list(self.roles),
            "auth_states": [str(path) for path in self.auth_states],
            "database_initialised": self.database_initialised,
        }


@dataclass(frozen=True)
class TeardownSummary:
    """Result of teardown. ``readiness`` is ``None`` when no verdict could be computed."""

    run_id: str
    readiness: Optional[ProductionReadinessScore]
    steps: tuple[StepResult, ...]
    errors: tuple[str, ...] = ()
    reports: tuple[Path, ...] = ()
    archived: tuple[Path, ...] = ()
    final_metrics: Mapping[str, Any] = field(default_factory=dict)

    @property
    def ready_for_production(self) -> bool:
        return self.readiness is not None and self.readiness.ready_for_production

    def step(self, name: str) -> Optional[StepResult]:
        return next((step for step in self.steps if step.name == name), None)


class _StepRecorder:
    """Runs teardown steps in isolation and keeps their outcomes."""

    def __init__(self) -> None:
        self.steps: list[StepResult] = []
        self.errors: list[str] = []

    def run(self, name: str, func: Callable[[], T]) -> Optional[T]:
        try:
            result = func()
        except Exception as exc:
            logger.exception("Teardown step failed", extra={"step": name})
            self.steps.append(StepResult(name, "failed", str(exc)))
            self.errors.append(f"{name}: {exc}")
            return None
        self.steps.append(StepResult(name, "ok"))
        return result

    def skip(self, name: str, reason: str) -> None:
        logger.info("Teardown step skipped", extra={"step": name, "reason": reason})
        self.steps.append(StepResult(name, "skipped", reason))


class LifecycleOrchestrator:
    """Owns the external state of a readiness run.

    ``setup()`` runs once before any check executes and raises ``SetupError``
    subclasses on fatal problems. ``teardown()`` runs once afterwards, whatever
    the outcome, and never raises.
    """

    def __init__(
        self,
        config: "EngineConfig",
        *,
        registry: Optional[CategoryRegistry] = None,
        paths: Optional[RunPaths] = None,
        database_initializer: Optional[DatabaseInitializer] = None,
        authenticator: Optional[Authenticator] = None,
        metrics: Optional[MetricsEmitter] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._config = config
        self._registry = registry or default_registry()
        self._paths = paths or RunPaths.create(
            config.results_root, config.run_id, archive_base=config.archive_dir
        )
        self._database_initializer = database_initializer
        self._authenticator = authenticator
        self._metrics = metrics or MetricsEmitter()
        self._env = os.environ if env is None else env

    @property
    def paths(self) -> RunPaths:
        return self._paths

    @property
    def registry(self) -> CategoryRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def setup(self) -> SetupSummary:
        steps: list[StepResult] = []
        logger.info("Starting readiness setup", extra={"run_id": self._paths.run_id})

        try:
            self._paths.ensure()
        except OSError as exc:
            raise SetupError(f"Could not create results directories: {exc}", step="create_directories") from exc
        steps.append(StepResult("create_directories", "ok"))

        missing = missing_env(self._config.required_env, self._env)
        if missing:
            logger.error("Required environment variables are missing", extra={"missing": missing})
            raise MissingConfigurationError(missing)
        steps.append(StepResult("validate_environment", "ok"))

        users = self._generate_fixtures()
        steps.append(StepResult("generate_fixtures", "ok"))

        try:
            write_json(self._paths.monitoring_context_path, self._monitoring_context())
        except OSError as exc:
            raise SetupError(f"Could not write monitoring context: {exc}", step="monitoring_context") from exc
        steps.append(StepResult("monitoring_context", "ok"))

        db_step = self._initialise_database()
        steps.append(db_step)

        auth_states = self._write_auth_states(users)
        steps.append(StepResult("auth_state", "ok"))

        summary = SetupSummary(
            run_id=self._paths.run_id,
            steps=tuple(steps),
            roles=tuple(user.role for user in users),
            auth_states=tuple(auth_states),
            database_initialised=db_step.status == "ok",
        )
        try:
            write_json(self._paths.setup_manifest_path, summary.to_dict())
        except OSError as exc:
            raise SetupError(f"Could not write setup manifest: {exc}", step="setup_manifest") from exc
        logger.info("Readiness setup complete", extra={"run_id": self._paths.run_id})
        return summary

    def _generate_fixtures(self) -> list[FixtureUser]:
        try:
            users = build_users(self._config.fixture_seed, self._config.auth_roles)
            write_json(self._paths.users_fixture_path, [user.to_dict() for user in users])
            write_json(self._paths.scenarios_fixture_path, build_scenarios(self._config.baseline_users))
        except (OSError, ValueError) as exc:
            raise FixtureError(f"Fixture generation failed: {exc}", step="generate_fixtures") from exc
        return users

    def _monitoring_context(self) -> Mapping[str, Any]:
        return {
            "run_id": self._paths.run_id,
            "started_at": datetime.now(timezone.utc).isoformat(),
            "metrics": {"response_times": [], "error_rates": [], "resource_usage": []},
        }

    def _resolve_database_initializer(self) -> Optional[DatabaseInitializer]:
        if self._database_initializer is not None:
            return self._database_initializer
        if self._config.database_init_command:
            return CommandDatabaseInitializer(
                self._config.database_init_command,
                log_path=self._paths.logs_dir / "database-init.log",
            )
        return None

    def _initialise_database(self) -> StepResult:
        initializer = self._resolve_database_initializer()
        if initializer is None:
            return StepResult("initialise_database", "skipped", "no initialiser configured")
        try:
            initializer()
        except Exception as exc:
            logger.warning("Database initialisation failed; continuing", extra={"error": str(exc)})
            return StepResult("initialise_database", "failed", str(exc))
        return StepResult("initialise_database", "ok")

    def _resolve_authenticator(self) -> Authenticator:
        if self._authenticator is not None:
            return self._authenticator
        if self._config.auth_mode == "synthetic":
            return SyntheticAuthenticator(self._config.fixture_seed)
        backend_url = self._env.get(BACKEND_URL_ENV, "")
        access_key = self._env.get(BACKEND_KEY_ENV, "")
        if not backend_url or not access_key:
            raise AuthStateError(
                f"Password sign-in needs {BACKEND_URL_ENV} and {BACKEND_KEY_ENV}", step="auth_state"
            )
        return PasswordAuthenticator(backend_url, access_key)

    def _write_auth_states(self, users: Sequence[FixtureUser]) -> list[Path]:
        authenticator = self._resolve_authenticator()
        written: list[Path] = []
        for user in users:
            try:
                session = authenticator(user)
            except AuthStateError:
                raise
            except Exception as exc:
                raise AuthStateError(
                    f"Could not authenticate role '{user.role}': {exc}", step="auth_state"
                ) from exc
            state = build_storage_state(session, user, self._config.app_origin)
            try:
                written.append(write_json(self._paths.auth_state_path(user.role), state))
            except OSError as exc:
                raise AuthStateError(
                    f"Could not write auth state for role '{user.role}': {exc}", step="auth_state"
                ) from exc
        return written

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def teardown(self) -> TeardownSummary:
        recorder = _StepRecorder()
        logger.info("Starting readiness teardown", extra={"run_id": self._paths.run_id})

        raw = recorder.run("load_results", self._load_results)
        if recorder.steps[-1].status == "ok" and raw is None:
            recorder.steps[-1] = StepResult("load_results", "skipped", "results file not found")

        readiness: Optional[ProductionReadinessScore] = None
        reports: Sequence[Path] = ()
        outcomes: Sequence[CheckOutcome] = ()
        tallies: Mapping[str, CategoryTally] = {}
        if raw is not None:
            classified = recorder.run("classify_results", lambda: self._classify(raw))
            if classified is not None:
                outcomes, tallies = classified
                result = recorder.run("write_reports", lambda: self._score_and_report(raw, tallies))
                if result is not None:
                    readiness, reports = result
                recorder.run(
                    "derive_recommendations", lambda: self._log_recommendations(outcomes, readiness)
                )
            else:
                recorder.skip("derive_recommendations", "results could not be classified")
        else:
            recorder.skip("classify_results", "no results")
            recorder.skip("derive_recommendations", "no results")
        if readiness is None:
            load_step = recorder.steps[0]
            if load_step.status == "skipped":
                reason = "results file not found"
            elif load_step.status == "failed":
                reason = f"results file could not be read ({load_step.detail})"
            else:
                reason = "results could not be scored"
            written = recorder.run("write_unavailable_report", lambda: self._write_unavailable(reason))
            reports = written or ()

        archived = recorder.run("archive", self._archive) or ()
        recorder.run("cleanup", self._cleanup)
        final_metrics = recorder.run(
            "final_metrics", lambda: self._final_metrics(readiness, outcomes, tallies)
        ) or {}

        summary = TeardownSummary(
            run_id=self._paths.run_id,
            readiness=readiness,
            steps=tuple(recorder.steps),
            errors=tuple(recorder.errors),
            reports=tuple(reports),
            archived=tuple(archived),
            final_metrics=final_metrics,
        )
        logger.info(
            "Readiness teardown complete",
            extra={
                "run_id": self._paths.run_id,
                "ready_for_production": summary.ready_for_production,
                "errors": len(summary.errors),
            },
        )
        return summary

    def _load_results(self) -> Optional[Mapping[str, Any]]:
        raw = read_json(self._paths.raw_results_path)
        if raw is not None and not isinstance(raw, Mapping):
            raise ValueError("results file does not contain a JSON object")
        return raw

    def _classify(
        self, raw: Mapping[str, Any]
    ) -> tuple[list[CheckOutcome], dict[str, CategoryTally]]:
        outcomes = flatten_results(raw)
        return outcomes, tally_by_category(outcomes, self._registry)

    def _log_recommendations(
        self,
        outcomes: Sequence[CheckOutcome],
        readiness: Optional[ProductionReadinessScore],
    ) -> list[str]:
        recommendations = derive_recommendations(
            outcomes, readiness, self._registry, thresholds=self._config.thresholds
        )
        for line in recommendations:
            logger.info("Recommendation", extra={"recommendation": line})
        return recommendations

    def _score_and_report(
        self, raw: Mapping[str, Any], tallies: Mapping[str, CategoryTally]
    ) -> tuple[ProductionReadinessScore, list[Path]]:
        readiness = compute_readiness(
            scores_from_tally(tallies), self._registry, thresholds=self._config.thresholds
        )
        readiness = require_critical_coverage(readiness, self._registry, tallies)
        machine, human = render_report(
            raw, readiness, self._registry, thresholds=self._config.thresholds
        )
        written = write_reports(self._paths, machine, human)
        self._metrics.emit("readiness.overall_score", readiness.overall, run_id=self._paths.run_id)
        self._metrics.emit(
            "readiness.ready", 1.0 if readiness.ready_for_production else 0.0, run_id=self._paths.run_id
        )
        for score in readiness.categories:
            self._metrics.emit(
                "readiness.category_score", score.score, run_id=self._paths.run_id, category=score.category_id
            )
        return readiness, written

    def _write_unavailable(self, reason: str) -> list[Path]:
        human = render_unavailable_report(reason, datetime.now(timezone.utc).isoformat())
        return write_reports(self._paths, None, human)

    def _archive(self) -> Sequence[Path]:
        sources = (
            self._paths.machine_report_path,
            self._paths.human_report_path,
            self._paths.raw_results_path,
            self._paths.setup_manifest_path,
            self._paths.users_fixture_path,
            self._paths.scenarios_fixture_path,
        )
        archived = copy_existing(sources, self._paths.archive_dir)
        logger.info(
            "Archived run artifacts",
            extra={"archive_dir": str(self._paths.archive_dir), "count": len(archived)},
        )
        return archived

    def _cleanup(self) -> None:
        self._paths.monitoring_context_path.unlink(missing_ok=True)

    def _final_metrics(
        self,
        readiness: Optional[ProductionReadinessScore],
        outcomes: Sequence[CheckOutcome],
        tallies: Mapping[str, CategoryTally],
    ) -> Mapping[str, Any]:
        by_kind = self._registry.tests_by_kind()
        payload = {
            "run_id": self._paths.run_id,
            "categories_covered": sum(1 for tally in tallies.values() if tally.total),
            "categories_registered": len(self._registry),
            "automated_tests": by_kind[TestKind.AUTOMATED],
            "manual_tests": by_kind[TestKind.MANUAL],
            "hybrid_tests": by_kind[TestKind.HYBRID],
            "checks_executed": sum(1 for outcome in outcomes if outcome.status != "skipped"),
            "flaky_checks": sum(1 for outcome in outcomes if outcome.flaky),
            "retries": sum(outcome.retries for outcome in outcomes),
            "overall_score": readiness.overall if readiness else None,
            "ready_for_production": readiness.ready_for_production if readiness else False,
            "emitted": [dict(point.to_dict()) for point in self._metrics.flush()],
        }
        write_json(self._paths.metrics_path, payload)
        return payload


@contextmanager
def readiness_run(orchestrator: LifecycleOrchestrator) -> Iterator[LifecycleOrchestrator]:
    """Run ``setup()`` on entry and ``teardown()`` on exit, even when the body fails."""

    orchestrator.setup()
    try:
        yield orchestrator
    finally:
        orchestrator.teardown()


__all__ = [
    "BACKEND_KEY_ENV",
    "BACKEND_URL_ENV",
    "LifecycleOrchestrator",
    "SetupSummary",
    "StepResult",
    "TeardownSummary",
    "readiness_run",
]
