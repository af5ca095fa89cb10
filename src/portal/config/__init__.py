"""Configuration package for the content portal."""

from portal.config.app_config import (
    AppConfig,
    AuthConfig,
    BootstrapAdmin,
    DatabaseConfig,
    UploadConfig,
    clear_config_cache,
    load_app_config,
)
from portal.config.log_setup import configure_logging

__all__ = [
    "AppConfig",
    "AuthConfig",
    "BootstrapAdmin",
    "DatabaseConfig",
    "UploadConfig",
    "clear_config_cache",
    "configure_logging",
    "load_app_config",
]
