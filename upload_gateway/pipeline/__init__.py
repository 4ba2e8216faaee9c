"""
Request Pipeline
================
Composition of gates into public and protected route chains.
"""

from .middleware import GatePipelineMiddleware
from .composer import PipelineComposer, PUBLIC_PATHS

__all__ = [
    "GatePipelineMiddleware",
    "PipelineComposer",
    "PUBLIC_PATHS",
]
