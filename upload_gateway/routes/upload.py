"""
Upload Routes
=============
Protected endpoints that put images into object storage.

Two routes per storage target:

- ``POST /upload{suffix}``: multipart upload, field ``image``
- ``POST /signedurl{suffix}``: JSON ``{filename, contentType}``, returns a
  pre-signed PUT URL for direct browser upload

Handlers only run after every gate has passed.
"""

import os

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from ..errors import MalformedRequestError
from ..gates.client_ip import client_ip_for
from ..metrics.recorder import MetricsRecorder
from ..schemas import SignedUrlRequest, UploadResponse
from ..storage.base import (
    StorageAccessor,
    content_type_for,
    is_valid_image_type,
    object_name_for,
)

logger = structlog.get_logger(__name__)

IMAGE_FIELD = "image"
ALLOWED_TYPES_MESSAGE = "Invalid file type. Allowed: jpg, jpeg, png, gif, webp, bmp, svg"


def upload_paths(suffix: str = "") -> tuple:
    return (f"/upload{suffix}", f"/signedurl{suffix}")


def create_upload_router(
    storage: StorageAccessor,
    metrics: MetricsRecorder,
    max_file_size_bytes: int,
    suffix: str = "",
) -> APIRouter:
    """
    Build the upload and signed-URL routes for one storage target.

    Args:
        storage: Bucket accessor the routes write to
        metrics: Recorder for the signed-URL issuance counter
        max_file_size_bytes: Largest accepted multipart upload
        suffix: Route suffix selecting the target (``""`` or ``"-dev"``)
    """
    router = APIRouter(tags=["Upload"])
    upload_path, signed_url_path = upload_paths(suffix)
    max_size_mb = max_file_size_bytes // (1024 * 1024)

    @router.post(upload_path)
    async def upload_image(request: Request) -> JSONResponse:
        if not request.headers.get("content-type", "").lower().startswith("multipart/form-data"):
            raise MalformedRequestError(
                "Failed to parse form: request Content-Type isn't multipart/form-data"
            )

        try:
            form = await request.form()
        except (StarletteHTTPException, MultiPartException) as e:
            detail = getattr(e, "detail", None) or getattr(e, "message", None) or str(e)
            raise MalformedRequestError(f"Failed to parse form: {detail}")

        try:
            upload = form.get(IMAGE_FIELD)
            if not isinstance(upload, UploadFile):
                raise MalformedRequestError(
                    "No image file provided. Use 'image' as the form field name."
                )

            data = await upload.read(max_file_size_bytes + 1)
            if len(data) > max_file_size_bytes:
                raise MalformedRequestError(f"File too large. Max size: {max_size_mb} MB")

            filename = upload.filename or ""
            if not is_valid_image_type(filename):
                raise MalformedRequestError(ALLOWED_TYPES_MESSAGE)
        finally:
            await form.close()

        name = object_name_for(filename)
        _, ext = os.path.splitext(name)
        url = await run_in_threadpool(storage.upload_object, name, data, content_type_for(ext))

        logger.info(
            "image_uploaded",
            bucket=storage.bucket_name,
            object_name=name,
            size=len(data),
        )
        return JSONResponse(
            content=UploadResponse(
                success=True,
                url=url,
                message="Image uploaded successfully",
            ).to_content()
        )

    @router.post(signed_url_path)
    async def generate_signed_url(request: Request) -> JSONResponse:
        try:
            payload = await request.json()
            body = SignedUrlRequest.model_validate(payload)
        except (ValueError, ValidationError):
            raise MalformedRequestError("Invalid request body")

        if not body.filename or not body.content_type:
            raise MalformedRequestError("Filename and ContentType are required")

        if not is_valid_image_type(body.filename):
            raise MalformedRequestError("Invalid file type")

        logger.info("signed_url_requested", bucket=storage.bucket_name, filename=body.filename)
        url = await run_in_threadpool(
            storage.generate_signed_upload_url, body.filename, body.content_type
        )

        metrics.increment_signed_url(request.headers.get("host", ""), client_ip_for(request))

        return JSONResponse(
            content=UploadResponse(
                success=True,
                url=url,
                message="Signed URL generated successfully",
            ).to_content()
        )

    return router
