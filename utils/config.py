"""Configuration management for the link catalog API.

Settings are read from environment variables once, when the application is
created.  Every variable has a default so the API starts without any setup.
"""

import os as _os
from pathlib import Path

_TRUE_VALUES = {"1", "true", "t", "y", "yes", "on"}


def _env_bool(name: str, default: bool = False) -> bool:
    raw = _os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_list(name: str, default: str = "") -> list[str]:
    raw = _os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class AppConfig:
    """Application-level configuration loaded from environment variables.

    Environment variables:
        APP_DB_PATH: Path to the SQLite database file (default: link_catalog.sqlite)
        APP_PORT: API server port (default: 8000)
        APP_HOST: API server bind address (default: 127.0.0.1)
        APP_LOG_FORMAT: Logging format, "text" or "json" (default: text)
        APP_LOG_LEVEL: Root log level (default: INFO)
        APP_CORS_ORIGINS: Comma-separated allowed origins (default: *)
        APP_DB_POOL_SIZE: Max DB connections in pool (default: 10)
        APP_API_TOKENS: Comma-separated bearer tokens accepted as authenticated
        APP_MAX_PAGE_SIZE: Upper bound for the listing ``limit`` (default: 500)
        APP_LEGACY_PAGE_WINDOW: Return ``page * limit`` rows per page, as the
            legacy listing did (default: false)
        APP_VALIDATION_ERROR_STATUS: HTTP status for failed validation
            (default: 500, kept for compatibility with the admin front-end)
    """

    def __init__(self) -> None:
        self.db_path = Path(_os.getenv("APP_DB_PATH", "link_catalog.sqlite"))
        self.api_port = int(_os.getenv("APP_PORT", "8000"))
        self.api_host = _os.getenv("APP_HOST", "127.0.0.1")
        self.log_format = _os.getenv("APP_LOG_FORMAT", "text")
        self.log_level = _os.getenv("APP_LOG_LEVEL", "INFO").upper()
        raw_origins = _os.getenv("APP_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )
        self.pool_size = int(_os.getenv("APP_DB_POOL_SIZE", "10"))
        self.api_tokens: list[str] = _env_list("APP_API_TOKENS")
        self.max_page_size = int(_os.getenv("APP_MAX_PAGE_SIZE", "500"))
        self.legacy_page_window = _env_bool("APP_LEGACY_PAGE_WINDOW")
        self.validation_error_status = int(_os.getenv("APP_VALIDATION_ERROR_STATUS", "500"))

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig instance populated from environment variables."""
        return cls()
