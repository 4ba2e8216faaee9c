"""
Gateway Metrics
===============
Prometheus instrumentation for the request pipeline.

Usage:
    recorder = MetricsRecorder()
    app = MetricsMiddleware(app, recorder)

    # From the signed-URL handler
    recorder.increment_signed_url(hostname, client_ip)
"""

from .recorder import MetricsRecorder, NO_RESPONSE_STATUS

from .middleware import (
    MetricsMiddleware,
    set_request_outcome,
    get_request_outcome,
)

__all__ = [
    "MetricsRecorder",
    "NO_RESPONSE_STATUS",
    "MetricsMiddleware",
    "set_request_outcome",
    "get_request_outcome",
]
