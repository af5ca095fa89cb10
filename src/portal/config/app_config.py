"""Application configuration loader.

Loads centralized configuration from data/config/portal_config_v1.yaml
with fallback to built-in defaults.

Usage:
    from portal.config.app_config import load_app_config

    config = load_app_config()
    upload_dir = config.uploads.dir
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/portal_config_v1.yaml")

PAGE_RENDERERS = ("placeholder", "pymupdf")


@dataclass
class DatabaseConfig:
    """SQLite database settings."""

    path: str = "db/portal.db"


@dataclass
class UploadConfig:
    """Settings for PDF uploads and page rendering."""

    dir: str = "uploads"
    max_bytes: int = 50 * 1024 * 1024
    page_renderer: str = "placeholder"  # placeholder | pymupdf
    render_dpi: int = 110


@dataclass
class AuthConfig:
    """Settings for login sessions and passwords."""

    token_ttl_minutes: int = 24 * 60
    min_password_length: int = 6


@dataclass
class BootstrapAdmin:
    """Admin account created by `portal init-db` when configured."""

    username: str
    password: str
    email: str | None = None


@dataclass
class AppConfig:
    """Application-wide configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    uploads: UploadConfig = field(default_factory=UploadConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    cors_allow_origins: list[str] = field(default_factory=lambda: ["*"])
    cors_allow_credentials: bool = False
    bootstrap_admin: BootstrapAdmin | None = None

    @property
    def upload_dir(self) -> Path:
        return Path(self.uploads.dir)

    @property
    def db_path(self) -> Path:
        return Path(self.database.path)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {"path": "db/portal.db"},
        "uploads": {
            "dir": "uploads",
            "max_bytes": 50 * 1024 * 1024,
            "page_renderer": "placeholder",
            "render_dpi": 110,
        },
        "auth": {
            "token_ttl_minutes": 24 * 60,
            "min_password_length": 6,
        },
        "cors": {"allow_origins": ["*"], "allow_credentials": False},
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    db_data = data.get("database") or {}
    database = DatabaseConfig(path=db_data.get("path", "db/portal.db"))

    up_data = data.get("uploads") or {}
    renderer = up_data.get("page_renderer", "placeholder")
    if renderer not in PAGE_RENDERERS:
        logger.warning("app_config.unknown_page_renderer", renderer=renderer)
        renderer = "placeholder"
    uploads = UploadConfig(
        dir=up_data.get("dir", "uploads"),
        max_bytes=int(up_data.get("max_bytes", 50 * 1024 * 1024)),
        page_renderer=renderer,
        render_dpi=int(up_data.get("render_dpi", 110)),
    )

    auth_data = data.get("auth") or {}
    auth = AuthConfig(
        token_ttl_minutes=int(auth_data.get("token_ttl_minutes", 24 * 60)),
        min_password_length=int(auth_data.get("min_password_length", 6)),
    )

    bootstrap = None
    admin_data = data.get("bootstrap_admin")
    if admin_data and admin_data.get("username") and admin_data.get("password"):
        bootstrap = BootstrapAdmin(
            username=admin_data["username"],
            password=admin_data["password"],
            email=admin_data.get("email"),
        )

    cors_data = data.get("cors") or {}
    origins = cors_data.get("allow_origins", ["*"])
    credentials = bool(cors_data.get("allow_credentials", False))
    if credentials and "*" in origins:
        # Browsers reject credentialed responses for a wildcard origin
        logger.warning("app_config.cors_credentials_with_wildcard")
        credentials = False

    return AppConfig(
        database=database,
        uploads=uploads,
        auth=auth,
        cors_allow_origins=list(origins),
        cors_allow_credentials=credentials,
        bootstrap_admin=bootstrap,
    )


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
