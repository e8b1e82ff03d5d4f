"""Transport-specific probe builders for the recovery validator."""

from __future__ import annotations

from typing import Optional

import httpx

from .validator import HealthStatus, Probe


def http_health_probe(
    url: str,
    *,
    client: Optional[httpx.Client] = None,
    request_timeout: float = 10.0,
    healthy_value: str = "healthy",
) -> Probe:
    """Build a probe that reports healthy when ``url`` answers 2xx.

    When the endpoint returns a JSON object with a ``status`` field, that field
    must also equal ``healthy_value``. Transport errors become unhealthy
    statuses carrying the error text. Without an injected ``client`` each
    attempt opens and closes its own.
    """

    def fetch() -> httpx.Response:
        if client is not None:
            return client.get(url)
        with httpx.Client(timeout=request_timeout) as owned:
            return owned.get(url)

    def probe() -> HealthStatus:
        try:
            response = fetch()
        except httpx.HTTPError as exc:
            return HealthStatus(healthy=False, detail=f"{type(exc).__name__}: {exc}")
        if not response.is_success:
            return HealthStatus(healthy=False, detail=f"HTTP {response.status_code} from {url}")
        try:
            payload = response.json()
        except ValueError:
            return HealthStatus(healthy=True)
        if isinstance(payload, dict) and "status" in payload:
            status = str(payload["status"])
            if status != healthy_value:
                return HealthStatus(healthy=False, detail=f"status '{status}' from {url}")
        return HealthStatus(healthy=True)

    return probe


__all__ = ["http_health_probe"]
