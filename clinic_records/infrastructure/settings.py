"""Application Settings and Configuration.

This module combines the database configuration from the configuration
manager with application-level settings read from ``CR_*`` environment
variables.

Security Impact:
    - The API token is read from the environment and never logged
    - Database credentials stay inside DatabaseConfig SecretStr fields
"""

import os
from typing import Optional

from clinic_records.infrastructure.config_manager import DatabaseConfig, get_database_config

APP_NAME = "Clinic Records"

DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    """Application settings loaded from configuration manager and environment.

    Attributes:
        app_name: Display name used in API metadata and CLI output
        log_level: Root logging level
        json_logs: Emit JSON log lines instead of human-readable ones
        api_token: Expected bearer token; when unset any non-empty token passes
        cors_origins: Origins allowed to call the API from a browser
        enable_hsts: Send Strict-Transport-Security
        seed_demo_data: Insert demo records at startup
        host, port: Bind address for ``clinic-records serve``
    """

    def __init__(self, db_config: Optional[DatabaseConfig] = None):
        self._db_config = db_config

        self.app_name = os.getenv("CR_APP_NAME", APP_NAME)
        self.log_level = os.getenv("CR_LOG_LEVEL", "INFO")
        self.json_logs = _env_flag("CR_JSON_LOGS")
        self.api_token = os.getenv("CR_API_TOKEN") or None
        origins = os.getenv("CR_CORS_ORIGINS")
        self.cors_origins = (
            [origin.strip() for origin in origins.split(",") if origin.strip()]
            if origins else list(DEFAULT_CORS_ORIGINS)
        )
        self.enable_hsts = _env_flag("CR_ENABLE_HSTS")
        self.seed_demo_data = _env_flag("CR_SEED_DEMO_DATA")
        self.host = os.getenv("CR_HOST", "127.0.0.1")
        self.port = int(os.getenv("CR_PORT", "3001"))

    @property
    def db_config(self) -> DatabaseConfig:
        """Database configuration, loaded lazily from the environment."""
        if self._db_config is None:
            self._db_config = get_database_config()
        return self._db_config


# Global settings instance
settings = Settings()
