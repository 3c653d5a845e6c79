from pathlib import Path
from typing import Annotated
import logging

from croniter import croniter
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from app.utils.logging_helpers import sanitize_url_for_logging


logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "https://localhost:3000",
]


class CustomSettings(BaseSettings):
    """Application settings loaded from environment variables.

    Validates configuration at startup to catch misconfiguration early.
    """

    data_dir: str = "./data"
    ctaapi_url: str = "http://jamess-mac-mini.local:3001"
    cache_ttl_sec: int = 300  # 5 minutes
    request_timeout_sec: float = 10.0
    cache_warm_cron: str | None = None  # Disabled unless set

    frontend_url: str | None = None
    cors_origins: Annotated[list[str], NoDecode] = list(DEFAULT_CORS_ORIGINS)

    log_level: str = "INFO"
    port: int = 8080
    mock_upstream_port: int = 3001

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value):
        """Parse comma-separated origins or list."""
        if value is None:
            return []
        if isinstance(value, str):
            if not value.strip():
                return []
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        if isinstance(value, list):
            return value
        return []

    @field_validator("ctaapi_url")
    @classmethod
    def validate_ctaapi_url(cls, value: str) -> str:
        """Validate the upstream base URL is HTTP/HTTPS and drop trailing slashes."""
        if not value.lower().startswith(("http://", "https://")):
            raise ValueError(f"CTAAPI URL must be HTTP/HTTPS: {value}")
        return value.rstrip("/")

    @field_validator("data_dir")
    @classmethod
    def validate_data_dir(cls, value: str) -> str:
        """Validate data directory is accessible."""
        path = Path(value)
        try:
            path.mkdir(parents=True, exist_ok=True)
            return value
        except (OSError, PermissionError) as exc:
            raise ValueError(f"Cannot access data directory '{value}': {exc}") from exc

    @field_validator("cache_ttl_sec")
    @classmethod
    def validate_cache_ttl(cls, value: int) -> int:
        """Ensure the cache TTL is positive."""
        if value <= 0:
            raise ValueError("cache_ttl_sec must be > 0")
        return value

    @field_validator("request_timeout_sec")
    @classmethod
    def validate_request_timeout(cls, value: float) -> float:
        """Ensure the upstream request timeout is positive."""
        if value <= 0:
            raise ValueError("request_timeout_sec must be > 0")
        return value

    @field_validator("port", "mock_upstream_port")
    @classmethod
    def validate_port(cls, value: int, info) -> int:
        """Validate TCP port range."""
        if not 0 < value < 65536:
            raise ValueError(f"{info.field_name} must be between 1 and 65535")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate log level name."""
        normalized = value.upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if normalized not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return normalized

    @field_validator("cache_warm_cron")
    @classmethod
    def validate_cron_expression(cls, value: str | None) -> str | None:
        """Validate cron expression is valid."""
        if value is None or not value.strip():
            return None
        try:
            croniter(value)
            return value
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Invalid cron expression '{value}': {exc}") from exc

    @model_validator(mode="after")
    def include_frontend_origin(self):
        """Allow the configured frontend URL through CORS."""
        if self.frontend_url and self.frontend_url not in self.cors_origins:
            self.cors_origins = [*self.cors_origins, self.frontend_url]
        return self

    def __init__(self, **data):
        """Initialize settings and log configuration."""
        super().__init__(**data)

        logger.info("Configuration loaded:")
        logger.info("  Data Directory: %s", self.data_dir)
        logger.info("  Upstream URL: %s", sanitize_url_for_logging(self.ctaapi_url))
        logger.info("  Cache TTL: %ss", self.cache_ttl_sec)
        logger.info("  Request Timeout: %ss", self.request_timeout_sec)
        logger.info("  Cache Warm Schedule: %s", self.cache_warm_cron or "disabled")
        logger.info("  CORS Origins: %s", ", ".join(self.cors_origins) or "none")


settings = CustomSettings()


def setup_logging() -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
