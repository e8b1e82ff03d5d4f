"""Exception types for the readiness run lifecycle."""

from __future__ import annotations

from typing import Iterable


class ReadinessError(RuntimeError):
    """Base class for readiness lifecycle failures."""


class SetupError(ReadinessError):
    """Raised when a fatal setup step fails and the run must not proceed."""

    def __init__(self, message: str, *, step: str | None = None) -> None:
        super().__init__(message)
        self.step = step


class MissingConfigurationError(SetupError):
    """Raised when required environment configuration is absent."""

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing = tuple(sorted(missing))
        super().__init__(
            "Missing required environment variables: " + ", ".join(self.missing),
            step="validate_environment",
        )


class FixtureError(SetupError):
    """Raised when test fixtures cannot be generated or persisted."""


class AuthStateError(SetupError):
    """Raised when a pre-authenticated session cannot be materialised."""


class DatabaseInitError(ReadinessError):
    """Raised by database initialisers; setup records it as a warning."""
