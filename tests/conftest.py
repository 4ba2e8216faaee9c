"""
Shared fixtures for upload gateway tests.
"""

from typing import Dict, Optional

import pytest
from starlette.requests import Request

from upload_gateway.app import create_app
from upload_gateway.config import GatewaySettings
from upload_gateway.errors import UpstreamStorageError
from upload_gateway.metrics.recorder import MetricsRecorder

API_KEY = "test-secret-key"


class FakeStorage:
    """In-memory storage accessor that records every call."""

    def __init__(self, bucket_name: str = "test-bucket", fail: bool = False):
        self.bucket_name = bucket_name
        self.fail = fail
        self.uploads = []
        self.signed = []
        self.cors_origins = None
        self.closed = False

    def upload_object(self, name: str, data: bytes, content_type: str) -> str:
        if self.fail:
            raise UpstreamStorageError("Failed to upload image", cause=RuntimeError("bucket exploded"))
        self.uploads.append((name, data, content_type))
        return f"https://storage.example/{self.bucket_name}/{name}"

    def generate_signed_upload_url(self, name: str, content_type: str) -> str:
        if self.fail:
            raise UpstreamStorageError("Failed to generate signed URL", cause=RuntimeError("no signer"))
        self.signed.append((name, content_type))
        return f"https://storage.example/{self.bucket_name}/{name}?X-Signature=abc"

    def configure_cors(self, origins) -> None:
        self.cors_origins = list(origins)

    def close(self) -> None:
        self.closed = True


def make_settings(**overrides) -> GatewaySettings:
    values = dict(
        primary_bucket="test-bucket",
        api_key=API_KEY,
        allowed_ips=[],
        allowed_origins=["*"],
        configure_bucket_cors=False,
    )
    values.update(overrides)
    return GatewaySettings(**values)


def make_request(
    method: str = "GET",
    path: str = "/",
    headers: Optional[Dict[str, str]] = None,
    client: Optional[tuple] = ("203.0.113.5", 51234),
) -> Request:
    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "query_string": b"",
        "root_path": "",
        "headers": [
            (key.lower().encode("latin-1"), value.encode("latin-1"))
            for key, value in (headers or {}).items()
        ],
        "client": client,
        "server": ("testserver", 80),
    }
    return Request(scope)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def recorder():
    return MetricsRecorder()


@pytest.fixture
def build_app(storage, recorder):
    """Factory building the full app around the fake storage and a fresh recorder."""

    def _build(storage_targets=None, **overrides):
        settings = make_settings(**overrides)
        targets = storage_targets if storage_targets is not None else {"": storage}
        return create_app(settings, metrics=recorder, storage_targets=targets)

    return _build
