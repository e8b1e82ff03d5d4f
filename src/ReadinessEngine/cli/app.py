"""CLI application entrypoint built with Typer."""

from __future__ import annotations

import json
import signal
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Mapping, NoReturn, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from ReadinessEngine.lifecycle.exceptions import SetupError
from ReadinessEngine.lifecycle.orchestrator import LifecycleOrchestrator, TeardownSummary
from ReadinessEngine.lifecycle.paths import RunPaths, default_run_id
from ReadinessEngine.lifecycle.telemetry import configure_otel
from ReadinessEngine.lifecycle.utils import read_json
from ReadinessEngine.recovery import http_health_probe, wait_for_recovery
from ReadinessEngine.scoring import (
    CategoryRegistry,
    CategoryScore,
    TestKind,
    compute_readiness,
    default_registry,
    load_registry,
)

from .config import EngineConfig, load_engine_config
from .logging import configure_logging, progress_spinner

CLI_VERSION = "0.1.0"
EXIT_CANCELLED = 130

app = typer.Typer(help="Production readiness evaluation engine")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _config(ctx: typer.Context) -> EngineConfig:
    return ctx.obj["config"]


def _registry(ctx: typer.Context) -> CategoryRegistry:
    return ctx.obj["registry"]


def _fail(message: str, code: int = 1) -> NoReturn:
    typer.echo(f"[error] {message}")
    raise typer.Exit(code=code)


def _run_paths(config: EngineConfig, *, resume: bool = False) -> RunPaths:
    """Paths for the run named by ``--run-id``.

    Without one, ``resume`` picks up the run id recorded by the last setup and
    anything else starts a fresh run.
    """

    run_id = config.run_id
    if run_id is None and resume:
        current = RunPaths.create(config.results_root, "pending")
        try:
            manifest = read_json(current.setup_manifest_path)
        except (OSError, ValueError):
            manifest = None
        if isinstance(manifest, Mapping) and manifest.get("run_id"):
            run_id = str(manifest["run_id"])
    return RunPaths.create(
        config.results_root, run_id or default_run_id(), archive_base=config.archive_dir
    )


def _orchestrator(ctx: typer.Context, *, resume: bool = False) -> LifecycleOrchestrator:
    config = _config(ctx)
    return LifecycleOrchestrator(
        config, registry=_registry(ctx), paths=_run_paths(config, resume=resume)
    )


def _print_verdict(summary: TeardownSummary) -> None:
    readiness = summary.readiness
    if readiness is None:
        typer.echo("NOT READY FOR PRODUCTION (results unavailable)")
    else:
        typer.echo(f"Overall score: {readiness.overall}%")
        typer.echo("READY FOR PRODUCTION" if readiness.ready_for_production else "NOT READY FOR PRODUCTION")
        for blocker in readiness.blockers:
            typer.echo(f"  blocker: {blocker}")
        for warning in readiness.warnings:
            typer.echo(f"  warning: {warning}")
    for error in summary.errors:
        typer.echo(f"[warn] teardown step failed: {error}")
    for path in summary.reports:
        typer.echo(f"Report: {path}")


def _load_scores(path: Path) -> list[CategoryScore]:
    try:
        payload: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise typer.BadParameter(f"Unable to read scores from {path}: {exc}")
    if isinstance(payload, Mapping):
        payload = payload.get("categories", payload.get("category_scores"))
    if not isinstance(payload, list):
        raise typer.BadParameter("Scores file must contain a list of category scores")
    try:
        return [CategoryScore.from_mapping(entry) for entry in payload]
    except (KeyError, TypeError, ValueError) as exc:
        raise typer.BadParameter(f"Invalid category score entry: {exc}")


@contextmanager
def _interrupt_sets(event: threading.Event) -> Iterator[None]:
    """Route Ctrl-C to ``event`` for the duration of the block."""

    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGINT, lambda signum, frame: event.set())
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


# ---------------------------------------------------------------------------
# Typer callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", help="Path to configuration file (TOML, YAML, or JSON)."),
    results_root: Optional[Path] = typer.Option(None, "--results-root", help="Override the results directory."),
    run_id: Optional[str] = typer.Option(None, "--run-id", help="Identifier used for the run archive."),
    registry: Optional[Path] = typer.Option(None, "--registry", help="YAML category registry to use instead of the built-in one."),
    log_format: Optional[str] = typer.Option(None, "--log-format", help="Log format (text or json)."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging."),
) -> None:
    """Resolve configuration and configure logging."""

    overrides = {
        "results_root": results_root,
        "run_id": run_id,
        "log_format": log_format,
        "verbose": verbose,
    }
    overrides = {k: v for k, v in overrides.items() if v not in {None, False, ""}}
    try:
        resolved = load_engine_config(config, overrides=overrides)
        categories = load_registry(registry) if registry else default_registry()
    except (OSError, ValueError) as exc:
        _fail(str(exc))

    logger = configure_logging(
        resolved.results_root / "logs" / "cli.log", resolved.log_format, resolved.verbose
    )
    configure_otel()
    ctx.obj = {"config": resolved, "registry": categories, "logger": logger}


# ---------------------------------------------------------------------------
# Lifecycle commands
# ---------------------------------------------------------------------------


@app.command()
def setup(ctx: typer.Context) -> None:
    """Prepare directories, fixtures, and auth state before checks run."""

    orchestrator = _orchestrator(ctx)
    try:
        with progress_spinner("Preparing readiness run"):
            summary = orchestrator.setup()
    except SetupError as exc:
        where = f" at step '{exc.step}'" if exc.step else ""
        _fail(f"setup failed{where}: {exc}")
    for step in summary.steps:
        detail = f" ({step.detail})" if step.detail else ""
        typer.echo(f"{step.name}: {step.status}{detail}")
    typer.echo(f"Run {summary.run_id} prepared under {orchestrator.paths.root}")


@app.command()
def teardown(ctx: typer.Context) -> None:
    """Score results, write reports, and archive the run.

    Exits 0 only when the run is ready for production.
    """

    orchestrator = _orchestrator(ctx, resume=True)
    with progress_spinner("Scoring readiness run"):
        summary = orchestrator.teardown()
    _print_verdict(summary)
    if not summary.ready_for_production:
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Scoring commands
# ---------------------------------------------------------------------------


@app.command()
def score(
    ctx: typer.Context,
    scores_file: Path = typer.Argument(..., help="YAML or JSON list of category scores."),
) -> None:
    """Compute the release verdict from precomputed category scores."""

    scores = _load_scores(scores_file)
    readiness = compute_readiness(scores, _registry(ctx), thresholds=_config(ctx).thresholds)
    typer.echo(json.dumps(readiness.to_dict(), indent=2, sort_keys=True))
    if not readiness.ready_for_production:
        raise typer.Exit(code=1)


@app.command()
def categories(ctx: typer.Context) -> None:
    """List the registered categories."""

    registry = _registry(ctx)
    table = Table(title="Readiness categories")
    table.add_column("Id", no_wrap=True)
    table.add_column("Name")
    table.add_column("Weight", justify="right")
    table.add_column("Critical")
    table.add_column("Tests", justify="right")
    for category in registry:
        table.add_row(
            category.id,
            category.name,
            f"{category.weight:g}",
            "yes" if category.critical_path else "no",
            str(len(category.tests)),
        )
    Console().print(table)
    by_kind = registry.tests_by_kind()
    typer.echo(f"Total weight: {registry.total_weight:g}")
    typer.echo(
        "Tests: "
        + ", ".join(f"{by_kind[kind]} {kind.value}" for kind in TestKind)
    )


@app.command()
def recover(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Health endpoint to poll."),
    timeout: float = typer.Option(300.0, "--timeout", help="Recovery time objective in seconds."),
    interval: float = typer.Option(5.0, "--interval", help="Seconds between probe attempts."),
    request_timeout: float = typer.Option(10.0, "--request-timeout", help="Per-request timeout in seconds."),
) -> None:
    """Poll URL until it reports healthy or the timeout elapses."""

    if timeout <= 0 or interval <= 0:
        raise typer.BadParameter("--timeout and --interval must be positive")
    cancel = threading.Event()
    probe = http_health_probe(url, request_timeout=request_timeout)
    with _interrupt_sets(cancel):
        result = wait_for_recovery(probe, timeout=timeout, poll_interval=interval, cancel=cancel)
    typer.echo(
        json.dumps(
            {
                "url": url,
                "recovered": result.recovered,
                "elapsed": round(result.elapsed, 3),
                "attempts": result.attempts,
                "last_error": result.last_error,
                "cancelled": result.cancelled,
            },
            indent=2,
            sort_keys=True,
        )
    )
    if result.cancelled:
        raise typer.Exit(code=EXIT_CANCELLED)
    if not result.recovered:
        raise typer.Exit(code=1)


@app.command()
def version() -> None:
    """Print the CLI version."""

    typer.echo(CLI_VERSION)


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    """Entrypoint for the CLI."""

    app()
