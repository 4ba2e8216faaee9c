"""
Application Factory
===================
Assemble the gateway from settings: storage targets, routers, pipeline.
"""

from contextlib import asynccontextmanager
from typing import Dict, Optional

import structlog
from fastapi import FastAPI
from starlette.concurrency import run_in_threadpool

from . import __version__
from .config import GatewaySettings
from .errors import UpstreamStorageError
from .metrics.recorder import MetricsRecorder
from .pipeline.composer import PipelineComposer
from .routes.upload import create_upload_router
from .storage.base import StorageAccessor
from .storage.s3 import ObjectStorageClient

logger = structlog.get_logger(__name__)

PRIMARY_SUFFIX = ""
SECONDARY_SUFFIX = "-dev"


def build_storage_targets(settings: GatewaySettings) -> Dict[str, StorageAccessor]:
    """One storage accessor per route suffix; the secondary bucket is optional."""
    buckets = {PRIMARY_SUFFIX: settings.primary_bucket}
    if settings.secondary_bucket:
        buckets[SECONDARY_SUFFIX] = settings.secondary_bucket

    return {
        suffix: ObjectStorageClient(
            bucket_name=bucket,
            endpoint_url=settings.storage_endpoint_url,
            public_base_url=settings.storage_public_base_url,
            region=settings.storage_region,
            access_key_id=settings.storage_access_key_id,
            secret_access_key=settings.storage_secret_access_key,
            signed_url_expiry_seconds=settings.signed_url_expiry_seconds,
        )
        for suffix, bucket in buckets.items()
    }


async def _configure_bucket_cors(targets: Dict[str, StorageAccessor], settings: GatewaySettings) -> None:
    for storage in targets.values():
        logger.info(
            "bucket_cors_configuring",
            bucket=storage.bucket_name,
            origins=settings.allowed_origins,
        )
        try:
            await run_in_threadpool(storage.configure_cors, settings.allowed_origins)
        except UpstreamStorageError as e:
            logger.warning(
                "bucket_cors_configuration_failed",
                bucket=storage.bucket_name,
                error=str(e.cause or e),
                hint="browser uploads to signed URLs may fail if bucket CORS is not already set",
            )
        else:
            logger.info("bucket_cors_configured", bucket=storage.bucket_name)


def create_app(
    settings: GatewaySettings,
    metrics: Optional[MetricsRecorder] = None,
    storage_targets: Optional[Dict[str, StorageAccessor]] = None,
) -> FastAPI:
    """
    Create the gateway application.

    Args:
        settings: Validated process settings
        metrics: Recorder to instrument with (a fresh one if omitted)
        storage_targets: Accessors keyed by route suffix; built from
            settings if omitted

    Raises:
        ConfigurationError: settings or storage are unusable
    """
    settings.validate()
    metrics = metrics or MetricsRecorder()
    targets = storage_targets if storage_targets is not None else build_storage_targets(settings)

    routers = [
        create_upload_router(
            storage,
            metrics,
            max_file_size_bytes=settings.max_file_size_bytes,
            suffix=suffix,
        )
        for suffix, storage in targets.items()
    ]

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.configure_bucket_cors:
            await _configure_bucket_cors(targets, settings)
        yield
        for storage in targets.values():
            storage.close()
        logger.info("storage_clients_closed")

    composer = PipelineComposer(settings.access_policy(), metrics)
    app = composer.compose(routers, lifespan=lifespan, version=__version__)
    app.state.settings = settings
    app.state.storage_targets = targets
    return app
