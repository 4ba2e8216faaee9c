"""
Object Storage
==============
Storage collaborator used by the upload and signed-URL handlers.
"""

from .base import (
    StorageAccessor,
    VALID_IMAGE_EXTENSIONS,
    CONTENT_TYPES,
    is_valid_image_type,
    content_type_for,
    object_name_for,
)

from .s3 import ObjectStorageClient

__all__ = [
    "StorageAccessor",
    "VALID_IMAGE_EXTENSIONS",
    "CONTENT_TYPES",
    "is_valid_image_type",
    "content_type_for",
    "object_name_for",
    "ObjectStorageClient",
]
