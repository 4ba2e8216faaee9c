"""
Metrics Recorder
================
Prometheus counters and histograms for the gateway.

Each recorder owns its own CollectorRegistry, so the application and
every test get an isolated set of series. prometheus_client metrics are
safe to increment from many threads and tasks at once.
"""

from typing import Optional

import structlog
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

from ..gates.models import RequestOutcome

logger = structlog.get_logger(__name__)

# Status code label for requests closed without any HTTP response.
NO_RESPONSE_STATUS = 0


class MetricsRecorder:
    """Process-wide request metrics, injected into the pipeline at startup."""

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else CollectorRegistry()

        self.http_requests_total = Counter(
            name="http_requests_total",
            documentation="Total number of HTTP requests",
            labelnames=["method", "endpoint", "status_code", "hostname", "client_ip"],
            registry=self.registry,
        )

        self.http_request_duration_seconds = Histogram(
            name="http_request_duration_seconds",
            documentation="Duration of HTTP requests in seconds",
            labelnames=["method", "endpoint"],
            registry=self.registry,
        )

        self.signedurl_created_total = Counter(
            name="signedurl_created_total",
            documentation="Total number of signed URLs created",
            labelnames=["hostname", "client_ip"],
            registry=self.registry,
        )

        self.gate_outcomes_total = Counter(
            name="gate_outcomes_total",
            documentation="Requests by terminal gate outcome",
            labelnames=["outcome"],
            registry=self.registry,
        )

    def observe_duration(self, method: str, endpoint: str, seconds: float) -> None:
        self.http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(seconds)

    def record_request(
        self,
        method: str,
        endpoint: str,
        status_code: int,
        hostname: str,
        client_ip: str,
    ) -> None:
        self.http_requests_total.labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code),
            hostname=hostname,
            client_ip=client_ip,
        ).inc()

    def record_outcome(self, outcome: RequestOutcome) -> None:
        self.gate_outcomes_total.labels(outcome=outcome.value).inc()

    def increment_signed_url(self, hostname: str, client_ip: str) -> None:
        """Count one successful signed-URL issuance. Called by the handler, not the pipeline."""
        self.signedurl_created_total.labels(hostname=hostname, client_ip=client_ip).inc()

    def request_count(
        self,
        method: str,
        endpoint: str,
        status_code: int,
        hostname: str,
        client_ip: str,
    ) -> float:
        """Current value of one request counter series (0 if never incremented)."""
        value = self.registry.get_sample_value(
            "http_requests_total",
            {
                "method": method,
                "endpoint": endpoint,
                "status_code": str(status_code),
                "hostname": hostname,
                "client_ip": client_ip,
            },
        )
        return value or 0.0

    def exposition(self) -> bytes:
        """Render the registry in Prometheus text format."""
        return generate_latest(self.registry)
