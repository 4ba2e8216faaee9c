"""
Image Upload Gateway
====================
Request-gating pipeline in front of an object-storage upload service.
"""

__version__ = "0.1.0"

# Configuration
from upload_gateway.config import AccessPolicy, GatewaySettings, parse_csv

# Errors
from upload_gateway.errors import (
    GatewayError,
    ConfigurationError,
    MalformedRequestError,
    UpstreamStorageError,
)

# Gates
from upload_gateway.gates import (
    Gate,
    GateAction,
    GateResult,
    RequestOutcome,
    RouteClass,
    resolve_client_ip,
    APIKeyGate,
    IPAllowlistGate,
    CORSPolicyEnforcer,
    ABORT_EXTENSION,
)

# Metrics
from upload_gateway.metrics import MetricsRecorder, MetricsMiddleware

# Pipeline
from upload_gateway.pipeline import GatePipelineMiddleware, PipelineComposer

# Storage
from upload_gateway.storage import StorageAccessor, ObjectStorageClient

# Application
from upload_gateway.app import create_app
from upload_gateway.log import setup_logging

__all__ = [
    # Configuration
    "AccessPolicy",
    "GatewaySettings",
    "parse_csv",
    # Errors
    "GatewayError",
    "ConfigurationError",
    "MalformedRequestError",
    "UpstreamStorageError",
    # Gates
    "Gate",
    "GateAction",
    "GateResult",
    "RequestOutcome",
    "RouteClass",
    "resolve_client_ip",
    "APIKeyGate",
    "IPAllowlistGate",
    "CORSPolicyEnforcer",
    "ABORT_EXTENSION",
    # Metrics
    "MetricsRecorder",
    "MetricsMiddleware",
    # Pipeline
    "GatePipelineMiddleware",
    "PipelineComposer",
    # Storage
    "StorageAccessor",
    "ObjectStorageClient",
    # Application
    "create_app",
    "setup_logging",
]
