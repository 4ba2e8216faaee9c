"""
Gateway Configuration
=====================
Settings loaded from the environment once at startup, and the frozen
access policy the gates read while serving.
"""

import os
from dataclasses import dataclass, field
from typing import List, Tuple

import structlog

from .errors import ConfigurationError

logger = structlog.get_logger(__name__)

DEFAULT_MAX_FILE_SIZE_MB = 10
DEFAULT_SIGNED_URL_EXPIRY_SECONDS = 15 * 60
DEFAULT_STORAGE_ENDPOINT = "https://storage.googleapis.com"


def parse_csv(value: str) -> List[str]:
    """Split a comma-separated setting, trimming entries and dropping empties."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("config_value_invalid", name=name, value=raw, fallback=default)
        return default


@dataclass(frozen=True)
class AccessPolicy:
    """
    Who may reach the protected routes.

    Immutable once built; every request reads the same instance.
    """
    api_key: str = ""
    allowed_ips: Tuple[str, ...] = ()
    allowed_origins: Tuple[str, ...] = ("*",)

    @property
    def auth_enabled(self) -> bool:
        return bool(self.api_key)

    @property
    def allowlist_enabled(self) -> bool:
        return len(self.allowed_ips) > 0


@dataclass
class GatewaySettings:
    """Process configuration for the upload gateway."""
    primary_bucket: str = ""
    secondary_bucket: str = ""
    storage_endpoint_url: str = DEFAULT_STORAGE_ENDPOINT
    storage_public_base_url: str = DEFAULT_STORAGE_ENDPOINT
    storage_region: str = "auto"
    storage_access_key_id: str = ""
    storage_secret_access_key: str = ""
    signed_url_expiry_seconds: int = DEFAULT_SIGNED_URL_EXPIRY_SECONDS
    configure_bucket_cors: bool = True
    host: str = "0.0.0.0"
    port: int = 8080
    max_file_size_mb: int = DEFAULT_MAX_FILE_SIZE_MB
    api_key: str = ""
    allowed_ips: List[str] = field(default_factory=list)
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    log_json: bool = True
    service_name: str = "upload-gateway"

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        """Read every setting from environment variables, applying defaults."""
        return cls(
            primary_bucket=os.getenv("STORAGE_BUCKET_PRIMARY", ""),
            secondary_bucket=os.getenv("STORAGE_BUCKET_SECONDARY", ""),
            storage_endpoint_url=os.getenv("STORAGE_ENDPOINT_URL", DEFAULT_STORAGE_ENDPOINT),
            storage_public_base_url=os.getenv("STORAGE_PUBLIC_BASE_URL", DEFAULT_STORAGE_ENDPOINT),
            storage_region=os.getenv("STORAGE_REGION", "auto"),
            storage_access_key_id=os.getenv("STORAGE_ACCESS_KEY_ID", ""),
            storage_secret_access_key=os.getenv("STORAGE_SECRET_ACCESS_KEY", ""),
            signed_url_expiry_seconds=_env_int(
                "SIGNED_URL_EXPIRY_SECONDS", DEFAULT_SIGNED_URL_EXPIRY_SECONDS
            ),
            configure_bucket_cors=_env_bool("CONFIGURE_BUCKET_CORS", True),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_int("PORT", 8080),
            max_file_size_mb=_env_int("MAX_FILE_SIZE_MB", DEFAULT_MAX_FILE_SIZE_MB),
            api_key=os.getenv("API_KEY", ""),
            allowed_ips=parse_csv(os.getenv("ALLOWED_IPS", "")),
            allowed_origins=parse_csv(os.getenv("ALLOWED_ORIGINS", "*")) or ["*"],
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_json=_env_bool("LOG_JSON", True),
            service_name=os.getenv("SERVICE_NAME", "upload-gateway"),
        )

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    def validate(self) -> None:
        """Raise ConfigurationError for settings the service cannot start with."""
        if not self.primary_bucket:
            raise ConfigurationError("STORAGE_BUCKET_PRIMARY environment variable is required")
        if self.max_file_size_mb <= 0:
            raise ConfigurationError("MAX_FILE_SIZE_MB must be a positive integer")
        if self.signed_url_expiry_seconds <= 0:
            raise ConfigurationError("SIGNED_URL_EXPIRY_SECONDS must be a positive integer")

    def access_policy(self) -> AccessPolicy:
        return AccessPolicy(
            api_key=self.api_key,
            allowed_ips=tuple(self.allowed_ips),
            allowed_origins=tuple(self.allowed_origins),
        )
