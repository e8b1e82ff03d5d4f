"""Recovery-time validation primitives."""

from .probes import http_health_probe
from .validator import (
    CancelSignal,
    HealthStatus,
    Probe,
    RecoveryProbeResult,
    RecoveryValidator,
    wait_for_recovery,
)

__all__ = [
    "CancelSignal",
    "HealthStatus",
    "Probe",
    "RecoveryProbeResult",
    "RecoveryValidator",
    "http_health_probe",
    "wait_for_recovery",
]
