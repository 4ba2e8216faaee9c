"""
HTTP Routes
===========
Routers for the public (health, metrics) and protected (upload) endpoints.
"""

from .health import create_health_router
from .metrics import create_metrics_router
from .upload import create_upload_router, upload_paths

__all__ = [
    "create_health_router",
    "create_metrics_router",
    "create_upload_router",
    "upload_paths",
]
