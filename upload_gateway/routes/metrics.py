"""
Metrics Exposition
==================
Prometheus scrape endpoint for the recorder injected at startup.
"""

from fastapi import APIRouter, Response

from ..metrics.recorder import MetricsRecorder


def create_metrics_router(recorder: MetricsRecorder, path: str = "/metrics") -> APIRouter:
    router = APIRouter(tags=["Metrics"])

    @router.get(path, include_in_schema=False)
    async def metrics_endpoint() -> Response:
        return Response(content=recorder.exposition(), media_type=recorder.content_type)

    return router
