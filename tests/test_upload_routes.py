"""
Handler tests for the upload and signed-URL endpoints.

Authentication is disabled here; the gates have their own tests.
"""

import re

import pytest
from fastapi.testclient import TestClient

from conftest import FakeStorage

PNG = b"\x89PNG\r\n\x1a\nfake"


@pytest.fixture
def client(build_app):
    return TestClient(build_app(api_key=""))


class TestUpload:
    """POST /upload"""

    def test_success(self, client, storage):
        response = client.post("/upload", files={"image": ("holiday.png", PNG, "image/png")})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Image uploaded successfully"
        assert "error" not in body

        name, data, content_type = storage.uploads[0]
        assert re.fullmatch(r"\d+-holiday\.png", name)
        assert data == PNG
        assert content_type == "image/png"
        assert body["url"] == f"https://storage.example/test-bucket/{name}"

    def test_uppercase_extension_not_mapped(self, client, storage):
        client.post("/upload", files={"image": ("photo.JPG", PNG, "application/octet-stream")})

        _, _, content_type = storage.uploads[0]
        assert content_type == "application/octet-stream"

    def test_content_type_from_extension_not_client(self, client, storage):
        client.post("/upload", files={"image": ("photo.jpg", PNG, "application/octet-stream")})

        _, _, content_type = storage.uploads[0]
        assert content_type == "image/jpeg"

    def test_missing_image_field(self, client, storage):
        response = client.post("/upload", files={"file": ("cat.png", PNG, "image/png")})

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "No image file provided. Use 'image' as the form field name.",
        }
        assert storage.uploads == []

    def test_invalid_file_type(self, client, storage):
        response = client.post("/upload", files={"image": ("notes.txt", b"hello", "text/plain")})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid file type. Allowed: jpg, jpeg, png, gif, webp, bmp, svg"
        assert storage.uploads == []

    def test_file_too_large(self, build_app, storage):
        client = TestClient(build_app(api_key="", max_file_size_mb=1))

        response = client.post(
            "/upload",
            files={"image": ("big.png", b"x" * (1024 * 1024 + 1), "image/png")},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "File too large. Max size: 1 MB"
        assert storage.uploads == []

    def test_file_at_limit_accepted(self, build_app, storage):
        client = TestClient(build_app(api_key="", max_file_size_mb=1))

        response = client.post(
            "/upload",
            files={"image": ("big.png", b"x" * (1024 * 1024), "image/png")},
        )

        assert response.status_code == 200

    def test_unparseable_form(self, client):
        response = client.post(
            "/upload",
            content=b"garbage",
            headers={"Content-Type": "multipart/form-data"},
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("Failed to parse form")

    @pytest.mark.parametrize("kwargs", [
        {"json": {"image": "cat.png"}},
        {"data": {"image": "cat.png"}},
        {"content": PNG},
    ])
    def test_non_multipart_body(self, client, storage, kwargs):
        response = client.post("/upload", **kwargs)

        assert response.status_code == 400
        assert response.json()["error"] == (
            "Failed to parse form: request Content-Type isn't multipart/form-data"
        )
        assert storage.uploads == []

    def test_storage_failure_is_generic(self, build_app):
        client = TestClient(build_app(api_key="", storage_targets={"": FakeStorage(fail=True)}))

        response = client.post("/upload", files={"image": ("cat.png", PNG, "image/png")})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to upload image"}
        assert "bucket exploded" not in response.text


class TestSignedUrl:
    """POST /signedurl"""

    def test_success(self, client, storage):
        response = client.post("/signedurl", json={"filename": "cat.png", "contentType": "image/png"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Signed URL generated successfully"
        assert body["url"].startswith("https://storage.example/test-bucket/cat.png")
        assert storage.signed == [("cat.png", "image/png")]

    def test_invalid_json(self, client):
        response = client.post(
            "/signedurl",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request body"

    def test_wrong_shape(self, client):
        response = client.post("/signedurl", json=["cat.png"])

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request body"

    @pytest.mark.parametrize("payload", [
        {"filename": "cat.png"},
        {"contentType": "image/png"},
        {"filename": "", "contentType": "image/png"},
        {},
    ])
    def test_missing_fields(self, client, storage, payload):
        response = client.post("/signedurl", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "Filename and ContentType are required"
        assert storage.signed == []

    def test_invalid_file_type(self, client, storage):
        response = client.post("/signedurl", json={"filename": "run.exe", "contentType": "image/png"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid file type"
        assert storage.signed == []

    def test_storage_failure_is_generic(self, build_app):
        client = TestClient(build_app(api_key="", storage_targets={"": FakeStorage(fail=True)}))

        response = client.post("/signedurl", json={"filename": "cat.png", "contentType": "image/png"})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to generate signed URL"}
