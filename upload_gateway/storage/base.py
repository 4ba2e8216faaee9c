"""
Storage Accessor
================
What the upload handlers need from object storage, plus the naming and
content-type rules for uploaded images.
"""

import os
import time
from typing import Optional, Protocol, Sequence, runtime_checkable

VALID_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".svg")

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".svg": "image/svg+xml",
}


@runtime_checkable
class StorageAccessor(Protocol):
    """Blocking object-storage operations for one bucket."""

    bucket_name: str

    def upload_object(self, name: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``name`` and return its public URL."""
        ...

    def generate_signed_upload_url(self, name: str, content_type: str) -> str:
        """Return a pre-signed PUT URL bound to ``content_type``."""
        ...

    def configure_cors(self, origins: Sequence[str]) -> None:
        ...

    def close(self) -> None:
        ...


def is_valid_image_type(filename: str) -> bool:
    return filename.lower().endswith(VALID_IMAGE_EXTENSIONS)


def content_type_for(extension: str) -> str:
    return CONTENT_TYPES.get(extension, "application/octet-stream")


def object_name_for(filename: str, now: Optional[float] = None) -> str:
    """Timestamped object name: ``<unix-seconds>-<basename><ext>``."""
    stem, ext = os.path.splitext(filename)
    timestamp = int(now if now is not None else time.time())
    return f"{timestamp}-{os.path.basename(stem)}{ext}"
