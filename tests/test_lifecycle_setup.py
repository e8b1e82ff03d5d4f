from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

import httpx
import pytest

from ReadinessEngine.cli.config import EngineConfig
from ReadinessEngine.lifecycle import (
    AuthStateError,
    CommandDatabaseInitializer,
    DatabaseInitError,
    FixtureError,
    FixtureUser,
    LifecycleOrchestrator,
    MissingConfigurationError,
    PasswordAuthenticator,
    SetupError,
    SyntheticAuthenticator,
    build_scenarios,
    build_storage_state,
    build_users,
)
from ReadinessEngine.lifecycle.fixtures import MALICIOUS_PAYLOADS


class DummyDatabase:
    def __init__(self, error: Exception | None = None) -> None:
        self.calls = 0
        self._error = error

    def __call__(self) -> None:
        self.calls += 1
        if self._error is not None:
            raise self._error


class RecordingAuthenticator:
    def __init__(self) -> None:
        self.roles: list[str] = []

    def __call__(self, user: FixtureUser) -> dict[str, str]:
        self.roles.append(user.role)
        return {"access_token": f"token-{user.role}"}


def _read(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))


def test_setup_materialises_run_state(engine_config: EngineConfig, backend_env: dict[str, str]) -> None:
    database = DummyDatabase()
    orchestrator = LifecycleOrchestrator(engine_config, database_initializer=database, env=backend_env)
    summary = orchestrator.setup()
    paths = orchestrator.paths

    assert [step.name for step in summary.steps] == [
        "create_directories",
        "validate_environment",
        "generate_fixtures",
        "monitoring_context",
        "initialise_database",
        "auth_state",
    ]
    assert all(step.status == "ok" for step in summary.steps)
    assert summary.database_initialised is True
    assert database.calls == 1
    assert summary.roles == ("admin", "user", "viewer")

    for directory in (paths.reports_dir, paths.fixtures_dir, paths.auth_dir, paths.archive_root):
        assert directory.is_dir()

    users = _read(paths.users_fixture_path)
    assert [user["role"] for user in users] == ["admin", "user", "viewer"]
    assert "users:manage" in users[0]["permissions"]
    assert users[2]["permissions"] == ["tasks:read", "goals:read"]

    scenarios = _read(paths.scenarios_fixture_path)
    profiles = {profile["name"]: profile for profile in scenarios["load_profiles"]}
    assert profiles["peak"]["virtual_users"] == 10 * profiles["baseline"]["virtual_users"]
    assert scenarios["malicious_payloads"] == list(MALICIOUS_PAYLOADS)

    context = _read(paths.monitoring_context_path)
    assert context["run_id"] == "test-run"
    assert context["metrics"] == {"response_times": [], "error_rates": [], "resource_usage": []}

    state = _read(paths.auth_state_path("admin"))
    assert state["cookies"] == []
    assert state["origins"][0]["origin"] == engine_config.app_origin

    manifest = _read(paths.setup_manifest_path)
    assert manifest["run_id"] == "test-run"
    assert len(summary.auth_states) == 3


def test_setup_is_idempotent(engine_config: EngineConfig, backend_env: dict[str, str]) -> None:
    orchestrator = LifecycleOrchestrator(engine_config, env=backend_env)
    first = orchestrator.setup()
    second = orchestrator.setup()
    assert first.roles == second.roles
    users = _read(orchestrator.paths.users_fixture_path)
    assert users[0]["password"] == build_users("seed-1", ["admin"])[0].password


def test_missing_environment_is_enumerated(engine_config: EngineConfig) -> None:
    orchestrator = LifecycleOrchestrator(engine_config, env={"READINESS_BACKEND_URL": " "})
    with pytest.raises(MissingConfigurationError) as excinfo:
        orchestrator.setup()
    assert excinfo.value.missing == ("READINESS_BACKEND_KEY", "READINESS_BACKEND_URL")
    assert excinfo.value.step == "validate_environment"
    assert "READINESS_BACKEND_KEY" in str(excinfo.value)
    # validation happens before fixtures are generated
    assert not orchestrator.paths.users_fixture_path.exists()


def test_database_failure_is_not_fatal(engine_config: EngineConfig, backend_env: dict[str, str]) -> None:
    orchestrator = LifecycleOrchestrator(
        engine_config,
        database_initializer=DummyDatabase(DatabaseInitError("schema already current")),
        env=backend_env,
    )
    summary = orchestrator.setup()
    step = next(step for step in summary.steps if step.name == "initialise_database")
    assert step.status == "failed"
    assert "schema already current" in step.detail
    assert summary.database_initialised is False
    assert orchestrator.paths.auth_state_path("viewer").exists()


def test_database_step_skipped_without_command(engine_config: EngineConfig, backend_env: dict[str, str]) -> None:
    summary = LifecycleOrchestrator(engine_config, env=backend_env).setup()
    step = next(step for step in summary.steps if step.name == "initialise_database")
    assert step.status == "skipped"


def test_configured_database_command_runs(engine_config: EngineConfig, backend_env: dict[str, str]) -> None:
    config = replace(engine_config, database_init_command=("/bin/true",))
    orchestrator = LifecycleOrchestrator(config, env=backend_env)
    summary = orchestrator.setup()
    assert summary.database_initialised is True
    assert (orchestrator.paths.logs_dir / "database-init.log").exists()


def test_command_database_initializer_raises_on_failure(tmp_path: Path) -> None:
    initializer = CommandDatabaseInitializer(["/bin/false"], log_path=tmp_path / "db.log")
    with pytest.raises(DatabaseInitError):
        initializer()
    with pytest.raises(DatabaseInitError):
        CommandDatabaseInitializer([str(tmp_path / "missing-binary")])()
    with pytest.raises(ValueError):
        CommandDatabaseInitializer([])


def test_unknown_role_fails_fixture_generation(engine_config: EngineConfig, backend_env: dict[str, str]) -> None:
    config = replace(engine_config, auth_roles=("admin", "superuser"))
    with pytest.raises(FixtureError) as excinfo:
        LifecycleOrchestrator(config, env=backend_env).setup()
    assert excinfo.value.step == "generate_fixtures"


def test_authenticator_failure_aborts_setup(engine_config: EngineConfig, backend_env: dict[str, str]) -> None:
    def broken(user: FixtureUser) -> dict:
        raise RuntimeError("identity provider offline")

    orchestrator = LifecycleOrchestrator(engine_config, authenticator=broken, env=backend_env)
    with pytest.raises(AuthStateError) as excinfo:
        orchestrator.setup()
    assert excinfo.value.step == "auth_state"
    assert "identity provider offline" in str(excinfo.value)


def test_injected_authenticator_is_used_per_role(engine_config: EngineConfig, backend_env: dict[str, str]) -> None:
    authenticator = RecordingAuthenticator()
    orchestrator = LifecycleOrchestrator(engine_config, authenticator=authenticator, env=backend_env)
    orchestrator.setup()
    assert authenticator.roles == ["admin", "user", "viewer"]
    state = _read(orchestrator.paths.auth_state_path("user"))
    token_entry = state["origins"][0]["localStorage"][0]
    assert json.loads(token_entry["value"]) == {"access_token": "token-user"}


def test_password_authenticator_posts_credentials() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["apikey"] = request.headers["apikey"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"access_token": "abc", "token_type": "bearer"})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    authenticator = PasswordAuthenticator("http://backend.test/", "anon-key", client=client)
    user = build_users("seed", ["viewer"])[0]
    session = authenticator(user)

    assert session["access_token"] == "abc"
    assert seen["url"] == "http://backend.test/auth/v1/token?grant_type=password"
    assert seen["apikey"] == "anon-key"
    assert seen["body"] == {"email": user.email, "password": user.password}


def test_password_authenticator_rejection() -> None:
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(400, json={})))
    authenticator = PasswordAuthenticator("http://backend.test", "anon-key", client=client)
    with pytest.raises(AuthStateError):
        authenticator(build_users("seed", ["admin"])[0])


def test_password_mode_requires_backend_credentials(engine_config: EngineConfig) -> None:
    config = replace(engine_config, auth_mode="password", required_env=())
    with pytest.raises(AuthStateError):
        LifecycleOrchestrator(config, env={}).setup()


def test_fixtures_are_deterministic() -> None:
    first = build_users("seed-a")
    assert first == build_users("seed-a")
    assert [user.password for user in first] != [user.password for user in build_users("seed-b")]
    assert build_scenarios(10)["load_profiles"][2]["virtual_users"] == 200


def test_synthetic_sessions_are_stable() -> None:
    user = build_users("seed", ["admin"])[0]
    authenticator = SyntheticAuthenticator("seed")
    assert authenticator(user) == authenticator(user)
    state = build_storage_state(authenticator(user), user, "http://localhost:5173")
    names = [entry["name"] for entry in state["origins"][0]["localStorage"]]
    assert names == ["readiness-auth-token", "readiness-role"]


def test_unwritable_manifest_fails_with_step_name(engine_config: EngineConfig, backend_env: dict[str, str]) -> None:
    orchestrator = LifecycleOrchestrator(engine_config, env=backend_env)
    # a directory in the manifest's place makes the write fail
    orchestrator.paths.setup_manifest_path.mkdir(parents=True)
    with pytest.raises(SetupError) as excinfo:
        orchestrator.setup()
    assert excinfo.value.step == "setup_manifest"
    assert "setup manifest" in str(excinfo.value)


def test_password_authenticator_closes_owned_client(monkeypatch: pytest.MonkeyPatch) -> None:
    opened: list[httpx.Client] = []
    base = httpx.Client

    class RecordingClient(base):
        def __init__(self, **kwargs) -> None:
            kwargs["transport"] = httpx.MockTransport(lambda request: httpx.Response(200, json={"access_token": "t"}))
            super().__init__(**kwargs)
            opened.append(self)

    monkeypatch.setattr(httpx, "Client", RecordingClient)
    authenticator = PasswordAuthenticator("http://backend.test", "anon-key")
    assert authenticator(build_users("seed", ["viewer"])[0]) == {"access_token": "t"}
    assert len(opened) == 1
    assert opened[0].is_closed
