"""OpenTelemetry bootstrap for readiness runs."""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

from opentelemetry import metrics as otel_metrics
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

logger = logging.getLogger(__name__)


def _parse_headers(raw: Optional[str]) -> Mapping[str, str]:
    if not raw:
        return {}
    result: dict[str, str] = {}
    for pair in (segment.strip() for segment in raw.split(",")):
        if "=" not in pair:
            continue
        key, value = pair.split("=", 1)
        result[key.strip()] = value.strip()
    return result


def configure_otel(
    service_name: str = "readiness_engine",
    *,
    env: Optional[Mapping[str, str]] = None,
) -> bool:
    """Install an OTLP meter provider when an exporter endpoint is configured.

    Returns ``True`` when a provider was installed.
    """

    source = os.environ if env is None else env
    endpoint = source.get("OTEL_EXPORTER_OTLP_ENDPOINT")
    if not endpoint:
        return False
    headers = _parse_headers(source.get("OTEL_EXPORTER_OTLP_HEADERS"))
    exporter = OTLPMetricExporter(endpoint=endpoint, headers=headers or None)
    reader = PeriodicExportingMetricReader(exporter)
    resource = Resource.create({"service.name": service_name})
    otel_metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))
    logger.info("OTLP metrics exporter configured", extra={"endpoint": endpoint})
    return True


__all__ = ["configure_otel"]
