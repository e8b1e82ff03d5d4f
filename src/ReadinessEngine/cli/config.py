"""Configuration loading for the readiness CLI and orchestrator."""

from __future__ import annotations

import json
import os
import shlex
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from ReadinessEngine.scoring.registry import DEFAULT_THRESHOLDS, ReadinessThresholds

DEFAULT_RESULTS_ROOT = Path("test-results") / "production-readiness"
DEFAULT_REQUIRED_ENV = ("READINESS_BACKEND_URL", "READINESS_BACKEND_KEY")
DEFAULT_AUTH_ROLES = ("admin", "user", "viewer")
AUTH_MODES = frozenset({"password", "synthetic"})
LOG_FORMATS = frozenset({"text", "json"})
TRUTHY = frozenset({"1", "true", "yes", "on"})


def _expand(path: Optional[str | Path], base: Optional[Path]) -> Optional[Path]:
    if path is None:
        return None
    candidate = Path(path).expanduser()
    if not candidate.is_absolute() and base is not None:
        candidate = (base / candidate).resolve()
    return candidate


@dataclass(frozen=True)
class EngineConfig:
    """Resolved settings for one readiness invocation."""

    results_root: Path = DEFAULT_RESULTS_ROOT
    run_id: Optional[str] = None
    archive_dir: Optional[Path] = None
    required_env: tuple[str, ...] = DEFAULT_REQUIRED_ENV
    auth_roles: tuple[str, ...] = DEFAULT_AUTH_ROLES
    auth_mode: str = "password"
    app_origin: str = "http://localhost:5173"
    fixture_seed: str = "production-readiness"
    baseline_users: int = 50
    database_init_command: tuple[str, ...] = ()
    log_format: str = "text"
    verbose: bool = False
    thresholds: ReadinessThresholds = DEFAULT_THRESHOLDS
    config_path: Optional[Path] = None
    raw_overrides: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.auth_mode not in AUTH_MODES:
            raise ValueError(f"auth_mode must be one of {sorted(AUTH_MODES)}, got '{self.auth_mode}'")
        if self.log_format not in LOG_FORMATS:
            raise ValueError("log_format must be 'text' or 'json'")
        if self.baseline_users <= 0:
            raise ValueError("baseline_users must be positive")


def _as_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    return tuple(str(item) for item in value)


def _as_command(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return tuple(shlex.split(value))
    return tuple(str(item) for item in value)


def _parse_thresholds(data: Optional[Mapping[str, Any]]) -> ReadinessThresholds:
    if not data:
        return DEFAULT_THRESHOLDS
    known = {item.name for item in fields(ReadinessThresholds)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown threshold keys: {', '.join(unknown)}")
    return replace(DEFAULT_THRESHOLDS, **{key: int(value) for key, value in data.items()})


def _read_file(path: Path) -> Mapping[str, Any]:
    suffix = path.suffix.lower()
    content = path.read_bytes()
    if suffix in {".toml", ".tml"}:
        data = tomllib.loads(content.decode("utf-8"))
    elif suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(content) or {}
    elif suffix == ".json":
        data = json.loads(content)
    else:
        raise ValueError(f"Unsupported config format: {path.suffix}")
    if not isinstance(data, Mapping):
        raise ValueError(f"Config file {path} must contain a mapping")
    # Allow the settings to live under a [readiness] table.
    return data.get("readiness", data)


def _load_file_config(path: Path) -> EngineConfig:
    data = _read_file(path)
    base_dir = path.parent
    defaults = EngineConfig()
    return EngineConfig(
        results_root=_expand(data.get("results_root"), base_dir) or defaults.results_root,
        archive_dir=_expand(data.get("archive_dir"), base_dir),
        required_env=_as_tuple(data["required_env"]) if "required_env" in data else defaults.required_env,
        auth_roles=_as_tuple(data.get("auth_roles")) or defaults.auth_roles,
        auth_mode=str(data.get("auth_mode", defaults.auth_mode)).lower(),
        app_origin=str(data.get("app_origin", defaults.app_origin)),
        fixture_seed=str(data.get("fixture_seed", defaults.fixture_seed)),
        baseline_users=int(data.get("baseline_users", defaults.baseline_users)),
        database_init_command=_as_command(data.get("database_init_command")),
        log_format=str(data.get("log_format", defaults.log_format)).lower(),
        verbose=bool(data.get("verbose", False)),
        thresholds=_parse_thresholds(data.get("thresholds")),
        config_path=path,
    )


def _apply_env_overrides(config: EngineConfig, env: Mapping[str, str]) -> EngineConfig:
    updates: Dict[str, Any] = {}
    if env.get("READINESS_RESULTS_ROOT"):
        updates["results_root"] = _expand(env["READINESS_RESULTS_ROOT"], None)
    if env.get("READINESS_RUN_ID"):
        updates["run_id"] = env["READINESS_RUN_ID"]
    if env.get("READINESS_AUTH_MODE"):
        updates["auth_mode"] = env["READINESS_AUTH_MODE"].strip().lower()
    if env.get("READINESS_DB_INIT_COMMAND"):
        updates["database_init_command"] = _as_command(env["READINESS_DB_INIT_COMMAND"])
    if env.get("READINESS_LOG_FORMAT"):
        updates["log_format"] = env["READINESS_LOG_FORMAT"].strip().lower()
    if env.get("READINESS_VERBOSE"):
        updates["verbose"] = env["READINESS_VERBOSE"].strip().lower() in TRUTHY
    return replace(config, **updates) if updates else config


def _apply_cli_overrides(config: EngineConfig, overrides: Mapping[str, Any]) -> EngineConfig:
    updates: Dict[str, Any] = {}
    if overrides.get("results_root"):
        updates["results_root"] = _expand(overrides["results_root"], None)
    if overrides.get("run_id"):
        updates["run_id"] = overrides["run_id"]
    if overrides.get("auth_mode"):
        updates["auth_mode"] = str(overrides["auth_mode"]).lower()
    if overrides.get("log_format"):
        updates["log_format"] = str(overrides["log_format"]).lower()
    if overrides.get("verbose"):
        updates["verbose"] = True
    updates["raw_overrides"] = dict(overrides)
    return replace(config, **updates)


def load_engine_config(
    config_path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> EngineConfig:
    """Resolve configuration from file, environment, and CLI overrides.

    CLI overrides win over the environment, which wins over the file.
    """

    env = os.environ if env is None else env
    overrides = dict(overrides or {})

    path = config_path or (Path(env["READINESS_CONFIG"]) if env.get("READINESS_CONFIG") else None)
    if path is not None:
        path = Path(path).expanduser()
        if not path.exists():
            raise ValueError(f"Config file not found: {path}")
        config = _load_file_config(path)
    else:
        config = EngineConfig()

    config = _apply_env_overrides(config, env)
    return _apply_cli_overrides(config, overrides)


__all__ = ["EngineConfig", "load_engine_config"]
