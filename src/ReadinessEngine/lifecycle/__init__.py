"""Setup/teardown lifecycle and reporting for readiness runs."""

from .auth import PasswordAuthenticator, SyntheticAuthenticator, build_storage_state
from .database import CommandDatabaseInitializer
from .exceptions import (
    AuthStateError,
    DatabaseInitError,
    FixtureError,
    MissingConfigurationError,
    ReadinessError,
    SetupError,
)
from .fixtures import FixtureUser, LoadProfile, build_scenarios, build_users
from .metrics import MetricPoint, MetricsEmitter
from .orchestrator import (
    LifecycleOrchestrator,
    SetupSummary,
    StepResult,
    TeardownSummary,
    readiness_run,
)
from .paths import RunPaths
from .reporting import (
    CategoryTally,
    CheckOutcome,
    HumanReport,
    MachineReport,
    classify_category,
    derive_recommendations,
    flatten_results,
    render_report,
    render_unavailable_report,
    require_critical_coverage,
    scores_from_tally,
    tally_by_category,
    write_reports,
)
from .telemetry import configure_otel

__all__ = [
    "AuthStateError",
    "CategoryTally",
    "CheckOutcome",
    "CommandDatabaseInitializer",
    "DatabaseInitError",
    "FixtureError",
    "FixtureUser",
    "HumanReport",
    "LifecycleOrchestrator",
    "LoadProfile",
    "MachineReport",
    "MetricPoint",
    "MetricsEmitter",
    "MissingConfigurationError",
    "PasswordAuthenticator",
    "ReadinessError",
    "RunPaths",
    "SetupError",
    "SetupSummary",
    "StepResult",
    "SyntheticAuthenticator",
    "TeardownSummary",
    "build_scenarios",
    "build_storage_state",
    "build_users",
    "classify_category",
    "configure_otel",
    "derive_recommendations",
    "flatten_results",
    "readiness_run",
    "render_report",
    "render_unavailable_report",
    "require_critical_coverage",
    "scores_from_tally",
    "tally_by_category",
    "write_reports",
]
