"""Database initialisation for the system under test."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Mapping, Optional, Protocol, Sequence

from .exceptions import DatabaseInitError

logger = logging.getLogger(__name__)


class DatabaseInitializer(Protocol):
    def __call__(self) -> None: ...


class CommandDatabaseInitializer:
    """Runs a migration/seed command and raises when it fails."""

    def __init__(
        self,
        command: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
        timeout_seconds: Optional[int] = 300,
        log_path: Optional[Path] = None,
    ) -> None:
        if not command:
            raise ValueError("Database initialisation command cannot be empty")
        self.command = tuple(command)
        self._cwd = cwd
        self._env = env
        self._timeout = timeout_seconds
        self._log_path = log_path

    def __call__(self) -> None:
        proc_env = os.environ.copy()
        proc_env.update(self._env or {})
        logger.info("Initialising database", extra={"command": " ".join(self.command)})
        try:
            result = subprocess.run(
                self.command,
                cwd=self._cwd,
                env=proc_env,
                capture_output=True,
                text=True,
                check=False,
                timeout=self._timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise DatabaseInitError(f"Database initialisation could not run: {exc}") from exc
        if self._log_path is not None:
            self._log_path.parent.mkdir(parents=True, exist_ok=True)
            self._log_path.write_text(result.stdout + result.stderr, encoding="utf-8")
        if result.returncode != 0:
            raise DatabaseInitError(
                f"Database initialisation exited with {result.returncode}: {result.stderr.strip()[-500:]}"
            )


__all__ = ["CommandDatabaseInitializer", "DatabaseInitializer"]
