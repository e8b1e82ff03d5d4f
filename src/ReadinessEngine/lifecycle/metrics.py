"""Metric emission for readiness runs."""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping, Optional, Sequence

from opentelemetry import metrics as otel_metrics

logger = logging.getLogger(__name__)

OTEL_TOGGLE = "READINESS_ENABLE_OTEL"


@dataclass
class MetricPoint:
    """Represents a single metric measurement."""

    name: str
    value: float
    tags: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> Mapping[str, Any]:
        payload = asdict(self)
        payload["tags"] = dict(self.tags)
        return payload


class MetricsEmitter:
    """Buffers readiness metrics and forwards them to an OTEL meter when enabled.

    Points are always buffered so teardown can persist them; the meter is only
    consulted when ``READINESS_ENABLE_OTEL=1``.
    """

    def __init__(
        self,
        namespace: str = "readiness_engine",
        *,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._namespace = namespace
        self._buffer: list[MetricPoint] = []
        self._recorders: dict[str, Any] = {}
        self._meter = None
        source = os.environ if env is None else env
        if source.get(OTEL_TOGGLE, "0") == "1":
            self._meter = otel_metrics.get_meter_provider().get_meter(namespace)

    @property
    def otel_enabled(self) -> bool:
        return self._meter is not None

    def emit(self, name: str, value: float, **tags: str) -> None:
        if self._meter is not None:
            recorder = self._recorders.get(name)
            if recorder is None:
                recorder = self._meter.create_histogram(name)
                self._recorders[name] = recorder
            recorder.record(value, tags)
        self._buffer.append(MetricPoint(name=name, value=float(value), tags=dict(tags)))

    def flush(self) -> Sequence[MetricPoint]:
        data = tuple(self._buffer)
        self._buffer.clear()
        return data


__all__ = ["MetricPoint", "MetricsEmitter", "OTEL_TOGGLE"]
