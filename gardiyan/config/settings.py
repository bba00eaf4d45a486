"""
Application configuration using Pydantic settings.

Configuration is loaded once per process from environment variables
(and a local .env file) and is frozen afterwards. Handlers receive it
through FastAPI dependencies and only ever read it.

Mock mode serves objects from memory, enabling local development
without an S3-compatible store.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.proxy.keys import build_object_url, strip_scheme

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """
    Proxy settings loaded from environment variables.

    Names follow the deployment's existing .env files (ACCESS_KEY_ID,
    S3_BUCKET_NAME, REGION, ...). AWS_* spellings are accepted as
    fallbacks where the AWS SDKs use them.
    """

    # Credentials
    access_key_id: str = Field(
        default="",
        validation_alias=AliasChoices("ACCESS_KEY_ID", "AWS_ACCESS_KEY_ID"),
        description="Access key for the S3-compatible store",
    )
    secret_access_key: str = Field(
        default="",
        validation_alias=AliasChoices("SECRET_ACCESS_KEY", "AWS_SECRET_ACCESS_KEY"),
        description="Secret key for the S3-compatible store",
    )

    # Storage target
    s3_bucket_name: str = Field(
        default="",
        description="Bucket every request is served from",
    )
    s3_endpoint: str = Field(
        default="",
        description="Custom S3-compatible endpoint (MinIO, Huawei OBS, ...). Empty means AWS S3.",
    )
    region: str = Field(
        default="us-east-1",
        validation_alias=AliasChoices("REGION", "AWS_REGION"),
        description="Storage region",
    )
    s3_force_path_style: bool = Field(
        default=False,
        description="Path-style addressing (endpoint/bucket) instead of virtual-host style (bucket.endpoint)",
    )
    s3_disable_ssl: bool = Field(
        default=False,
        description="Talk plain HTTP to the custom endpoint",
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Serve objects from an in-memory store instead of S3.",
    )

    # Server
    host: str = Field(default="0.0.0.0", description="Interface to bind")
    port: int = Field(default=8080, description="Port to listen on")

    # Logging
    log_level: LogLevel = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value):
        if isinstance(value, str):
            return value.upper()
        return value

    @property
    def clean_endpoint(self) -> str:
        """Custom endpoint without its scheme, e.g. 'minio.local:9000'."""
        return strip_scheme(self.s3_endpoint)

    @property
    def scheme(self) -> str:
        return "http" if self.s3_disable_ssl else "https"

    @property
    def endpoint_url(self) -> Optional[str]:
        """
        Scheme-qualified endpoint for the storage client.

        An endpoint given with an explicit scheme is used unchanged.
        """
        if not self.s3_endpoint:
            return None
        if self.s3_endpoint.startswith(("http://", "https://")):
            return self.s3_endpoint
        return f"{self.scheme}://{self.s3_endpoint}"

    def object_url(self, key: str) -> str:
        """Diagnostic URL for a key in the configured bucket."""
        return build_object_url(
            bucket=self.s3_bucket_name,
            key=key,
            region=self.region,
            endpoint=self.s3_endpoint or None,
            disable_ssl=self.s3_disable_ssl,
        )

    def validate_required_fields(self) -> list[str]:
        """
        Return the environment variables that must be set but are not.

        Credentials are only required when talking to a real store.
        """
        missing = []

        if not self.storage_mock_mode:
            if not self.access_key_id:
                missing.append("ACCESS_KEY_ID")
            if not self.secret_access_key:
                missing.append("SECRET_ACCESS_KEY")

        if not self.s3_bucket_name:
            missing.append("S3_BUCKET_NAME")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are read once per process. For tests, call
    get_settings.cache_clear() to reload from a patched environment.
    """
    return Settings()
