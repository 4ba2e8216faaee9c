"""
Tests for environment-driven configuration.
"""

import pytest

from upload_gateway.config import AccessPolicy, GatewaySettings, parse_csv
from upload_gateway.errors import ConfigurationError

ENV_VARS = (
    "STORAGE_BUCKET_PRIMARY",
    "STORAGE_BUCKET_SECONDARY",
    "STORAGE_ENDPOINT_URL",
    "STORAGE_PUBLIC_BASE_URL",
    "STORAGE_REGION",
    "SIGNED_URL_EXPIRY_SECONDS",
    "CONFIGURE_BUCKET_CORS",
    "PORT",
    "HOST",
    "MAX_FILE_SIZE_MB",
    "API_KEY",
    "ALLOWED_IPS",
    "ALLOWED_ORIGINS",
    "LOG_LEVEL",
    "LOG_JSON",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestParseCsv:
    def test_trims_and_drops_empty(self):
        assert parse_csv(" 10.0.0.1 , ,192.168.0.0/16,") == ["10.0.0.1", "192.168.0.0/16"]

    def test_empty(self):
        assert parse_csv("") == []


class TestFromEnv:
    """GatewaySettings.from_env"""

    def test_defaults(self, clean_env):
        clean_env.setenv("STORAGE_BUCKET_PRIMARY", "images")

        settings = GatewaySettings.from_env()

        assert settings.primary_bucket == "images"
        assert settings.secondary_bucket == ""
        assert settings.port == 8080
        assert settings.max_file_size_mb == 10
        assert settings.max_file_size_bytes == 10 * 1024 * 1024
        assert settings.signed_url_expiry_seconds == 900
        assert settings.api_key == ""
        assert settings.allowed_ips == []
        assert settings.allowed_origins == ["*"]
        assert settings.configure_bucket_cors is True
        assert settings.storage_endpoint_url == "https://storage.googleapis.com"

    def test_values(self, clean_env):
        clean_env.setenv("STORAGE_BUCKET_PRIMARY", "images")
        clean_env.setenv("STORAGE_BUCKET_SECONDARY", "images-dev")
        clean_env.setenv("PORT", "9000")
        clean_env.setenv("MAX_FILE_SIZE_MB", "25")
        clean_env.setenv("API_KEY", "k")
        clean_env.setenv("ALLOWED_IPS", "10.0.0.1, 192.168.0.0/16")
        clean_env.setenv("ALLOWED_ORIGINS", "https://a.com,https://b.com")
        clean_env.setenv("CONFIGURE_BUCKET_CORS", "false")

        settings = GatewaySettings.from_env()

        assert settings.secondary_bucket == "images-dev"
        assert settings.port == 9000
        assert settings.max_file_size_mb == 25
        assert settings.allowed_ips == ["10.0.0.1", "192.168.0.0/16"]
        assert settings.allowed_origins == ["https://a.com", "https://b.com"]
        assert settings.configure_bucket_cors is False

    def test_invalid_integer_falls_back(self, clean_env):
        clean_env.setenv("PORT", "eighty")

        assert GatewaySettings.from_env().port == 8080

    def test_blank_origins_mean_wildcard(self, clean_env):
        clean_env.setenv("ALLOWED_ORIGINS", " , ")

        assert GatewaySettings.from_env().allowed_origins == ["*"]


class TestValidate:
    def test_missing_primary_bucket(self):
        with pytest.raises(ConfigurationError, match="STORAGE_BUCKET_PRIMARY"):
            GatewaySettings().validate()

    def test_non_positive_size(self):
        with pytest.raises(ConfigurationError):
            GatewaySettings(primary_bucket="b", max_file_size_mb=0).validate()

    def test_non_positive_expiry(self):
        with pytest.raises(ConfigurationError):
            GatewaySettings(primary_bucket="b", signed_url_expiry_seconds=0).validate()

    def test_valid(self):
        GatewaySettings(primary_bucket="b").validate()


class TestAccessPolicy:
    def test_built_from_settings(self):
        policy = GatewaySettings(
            primary_bucket="b",
            api_key="k",
            allowed_ips=["10.0.0.1"],
            allowed_origins=["https://a.com"],
        ).access_policy()

        assert policy == AccessPolicy(
            api_key="k",
            allowed_ips=("10.0.0.1",),
            allowed_origins=("https://a.com",),
        )
        assert policy.auth_enabled is True
        assert policy.allowlist_enabled is True

    def test_disabled(self):
        policy = AccessPolicy()

        assert policy.auth_enabled is False
        assert policy.allowlist_enabled is False

    def test_frozen(self):
        policy = AccessPolicy(api_key="k")

        with pytest.raises(Exception):
            policy.api_key = "other"
