"""Bounded poll-until-healthy validation for disaster-recovery checks."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HealthStatus:
    """Outcome of a single health probe."""

    healthy: bool
    detail: Optional[str] = None


@dataclass(frozen=True)
class RecoveryProbeResult:
    """Aggregate outcome of a recovery probe session."""

    recovered: bool
    elapsed: float
    attempts: int
    last_error: Optional[str] = None
    cancelled: bool = False


ProbeOutcome = Union[HealthStatus, bool]
Probe = Callable[[], ProbeOutcome]


class CancelSignal(Protocol):
    def is_set(self) -> bool: ...

    def wait(self, timeout: Optional[float] = None) -> bool: ...


def _normalise(outcome: ProbeOutcome) -> HealthStatus:
    if isinstance(outcome, HealthStatus):
        return outcome
    return HealthStatus(healthy=bool(outcome))


class RecoveryValidator:
    """Polls a health probe until it reports healthy or the deadline passes.

    ``timeout`` is a wall-clock ceiling: no probe starts once it has elapsed and
    waits between probes are clipped to the deadline, so the session can only
    overrun by the duration of the probe already in flight. ``poll_interval`` is
    measured from the start of one attempt to the start of the next.
    """

    def __init__(
        self,
        *,
        timeout: float,
        poll_interval: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        self.timeout = float(timeout)
        self.poll_interval = float(poll_interval)
        self._clock = clock

    def wait_for_recovery(
        self,
        probe: Probe,
        cancel: Optional[CancelSignal] = None,
    ) -> RecoveryProbeResult:
        signal = cancel if cancel is not None else threading.Event()
        start = self._clock()
        deadline = start + self.timeout
        attempts = 0
        last_error: Optional[str] = None

        while True:
            if signal.is_set():
                return self._finish(False, start, attempts, last_error, cancelled=True)

            attempt_started = self._clock()
            attempts += 1
            try:
                status = _normalise(probe())
            except Exception as exc:  # probe failures are retried until the deadline
                last_error = f"{type(exc).__name__}: {exc}"
                logger.debug("Recovery probe raised", extra={"attempt": attempts, "error": last_error})
            else:
                if status.healthy:
                    return self._finish(True, start, attempts, last_error)
                if status.detail:
                    last_error = status.detail

            now = self._clock()
            if now >= deadline:
                return self._finish(False, start, attempts, last_error)
            delay = min(attempt_started + self.poll_interval, deadline) - now
            if delay > 0 and signal.wait(delay):
                return self._finish(False, start, attempts, last_error, cancelled=True)
            if self._clock() >= deadline:
                return self._finish(False, start, attempts, last_error)

    def _finish(
        self,
        recovered: bool,
        start: float,
        attempts: int,
        last_error: Optional[str],
        *,
        cancelled: bool = False,
    ) -> RecoveryProbeResult:
        elapsed = self._clock() - start
        result = RecoveryProbeResult(
            recovered=recovered,
            elapsed=elapsed,
            attempts=attempts,
            last_error=None if recovered else last_error,
            cancelled=cancelled,
        )
        log = logger.info if recovered else logger.warning
        log(
            "Recovery probe session finished",
            extra={
                "recovered": recovered,
                "elapsed_seconds": round(elapsed, 3),
                "attempts": attempts,
                "cancelled": cancelled,
            },
        )
        return result


def wait_for_recovery(
    probe: Probe,
    *,
    timeout: float,
    poll_interval: float,
    cancel: Optional[CancelSignal] = None,
    clock: Callable[[], float] = time.monotonic,
) -> RecoveryProbeResult:
    """Poll ``probe`` until healthy, cancelled, or ``timeout`` seconds elapse."""

    validator = RecoveryValidator(timeout=timeout, poll_interval=poll_interval, clock=clock)
    return validator.wait_for_recovery(probe, cancel)


__all__ = [
    "CancelSignal",
    "HealthStatus",
    "Probe",
    "RecoveryProbeResult",
    "RecoveryValidator",
    "wait_for_recovery",
]
