"""
S3-Compatible Object Storage
============================
boto3 client for one bucket on an S3-compatible endpoint. The default
endpoint is the Google Cloud Storage interoperability API.
"""

from typing import Optional, Sequence

import boto3
import structlog
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import ConfigurationError, UpstreamStorageError

logger = structlog.get_logger(__name__)

CORS_METHODS = ["GET", "HEAD", "PUT", "OPTIONS", "DELETE"]
CORS_RESPONSE_HEADERS = ["Content-Type", "Access-Control-Allow-Origin", "X-Requested-With"]
CORS_MAX_AGE_SECONDS = 3600


class ObjectStorageClient:
    """
    Upload objects and sign PUT URLs for a single bucket.

    All methods block; call them from a worker thread in async code.
    """

    def __init__(
        self,
        bucket_name: str,
        endpoint_url: Optional[str] = None,
        public_base_url: str = "https://storage.googleapis.com",
        region: str = "auto",
        access_key_id: str = "",
        secret_access_key: str = "",
        signed_url_expiry_seconds: int = 900,
        client=None,
    ):
        if not bucket_name:
            raise ConfigurationError("bucket name is required")

        self.bucket_name = bucket_name
        self.public_base_url = public_base_url.rstrip("/")
        self.signed_url_expiry_seconds = signed_url_expiry_seconds

        if client is not None:
            self._client = client
            return

        credentials = {}
        if access_key_id and secret_access_key:
            credentials = {
                "aws_access_key_id": access_key_id,
                "aws_secret_access_key": secret_access_key,
            }

        try:
            self._client = boto3.client(
                "s3",
                endpoint_url=endpoint_url or None,
                region_name=region,
                config=BotoConfig(signature_version="s3v4", s3={"addressing_style": "path"}),
                **credentials,
            )
        except (BotoCoreError, ValueError) as e:
            raise ConfigurationError(f"failed to create storage client: {e}") from e

        logger.info("storage_client_created", bucket=bucket_name, endpoint=endpoint_url)

    def public_url(self, name: str) -> str:
        return f"{self.public_base_url}/{self.bucket_name}/{name}"

    def upload_object(self, name: str, data: bytes, content_type: str) -> str:
        try:
            self._client.put_object(
                Bucket=self.bucket_name,
                Key=name,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise UpstreamStorageError("Failed to upload image", cause=e) from e

        logger.info("object_uploaded", bucket=self.bucket_name, key=name, size=len(data))
        return self.public_url(name)

    def generate_signed_upload_url(self, name: str, content_type: str) -> str:
        try:
            url = self._client.generate_presigned_url(
                ClientMethod="put_object",
                Params={
                    "Bucket": self.bucket_name,
                    "Key": name,
                    "ContentType": content_type,
                },
                ExpiresIn=self.signed_url_expiry_seconds,
                HttpMethod="PUT",
            )
        except (BotoCoreError, ClientError) as e:
            raise UpstreamStorageError("Failed to generate signed URL", cause=e) from e

        logger.info("signed_url_generated", bucket=self.bucket_name, key=name)
        return url

    def configure_cors(self, origins: Sequence[str]) -> None:
        """Replace the bucket's CORS rules so browsers can PUT to signed URLs."""
        try:
            self._client.put_bucket_cors(
                Bucket=self.bucket_name,
                CORSConfiguration={
                    "CORSRules": [
                        {
                            "AllowedOrigins": list(origins),
                            "AllowedMethods": CORS_METHODS,
                            "AllowedHeaders": ["*"],
                            "ExposeHeaders": CORS_RESPONSE_HEADERS,
                            "MaxAgeSeconds": CORS_MAX_AGE_SECONDS,
                        }
                    ]
                },
            )
        except (BotoCoreError, ClientError) as e:
            raise UpstreamStorageError("Failed to update bucket CORS", cause=e) from e

    def close(self) -> None:
        close = getattr(self._client, "close", None)
        if callable(close):
            close()
