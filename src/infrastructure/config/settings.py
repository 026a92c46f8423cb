"""
Settings Module - Centralized Configuration Management
=======================================================

ARCHITECTURAL DECISION:
- All configuration is loaded from environment variables (no hardcoded secrets)
- Settings are immutable dataclasses grouped per concern
- Single source of truth for all configurable values

EXTENSIBILITY:
- To add another outbound integration: add a settings group and wire it
  into the root Settings container
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache

# Load .env file if present (development convenience)
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass  # python-dotenv is optional


DEFAULT_MEDIA_BASE_URL = "https://media.ikk.ist"


@dataclass(frozen=True)
class MongoSettings:
    """MongoDB connection settings for the review catalog."""

    uri: str = field(default_factory=lambda: os.getenv("MONGODB_URI", ""))
    database: str = field(default_factory=lambda: os.getenv("MONGODB_DB") or "reviews")
    collection: str = "reviews"

    max_pool_size: int = 5
    server_selection_timeout_ms: int = 5000


@dataclass(frozen=True)
class AdminSettings:
    """Admin login and API write access."""

    password: str = field(default_factory=lambda: os.getenv("ADMIN_PASSWORD", ""))
    token: str = field(default_factory=lambda: os.getenv("ADMIN_TOKEN", ""))

    session_cookie: str = "admin_session"
    session_max_age: int = 60 * 60 * 12  # 12 hours


@dataclass(frozen=True)
class MediaSettings:
    """Where relative product image / GIF paths are served from."""

    base_url: str = field(
        default_factory=lambda: (os.getenv("MEDIA_BASE_URL") or DEFAULT_MEDIA_BASE_URL).rstrip("/")
    )


@dataclass(frozen=True)
class TikTokSettings:
    """TikTok oEmbed lookup used when a pasted video is not in the catalog."""

    oembed_url: str = "https://www.tiktok.com/oembed"
    user_agent: str = "Mozilla/5.0"
    timeout_seconds: int = 8


@dataclass(frozen=True)
class ServerSettings:
    """Uvicorn bind address."""

    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))


@dataclass(frozen=True)
class Settings:
    """
    Root settings container - Single source of truth for all configuration.

    Usage:
        from src.infrastructure.config import get_settings
        settings = get_settings()
        print(settings.mongo.uri)
    """

    mongo: MongoSettings = field(default_factory=MongoSettings)
    admin: AdminSettings = field(default_factory=AdminSettings)
    media: MediaSettings = field(default_factory=MediaSettings)
    tiktok: TikTokSettings = field(default_factory=TikTokSettings)
    server: ServerSettings = field(default_factory=ServerSettings)

    def validate(self) -> list[str]:
        """
        Validate settings and return list of warnings/errors.
        Returns empty list if all settings are valid.
        """
        issues = []

        if not self.mongo.uri:
            issues.append(
                "WARNING: MONGODB_URI not set. "
                "Catalog queries will fail until it is configured."
            )

        if not self.admin.password:
            issues.append(
                "WARNING: ADMIN_PASSWORD not set. "
                "Admin login is disabled."
            )

        if not self.admin.token:
            issues.append(
                "INFO: ADMIN_TOKEN not set. "
                "API writes require an admin session cookie."
            )

        return issues


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get singleton Settings instance.
    Cached to ensure consistent settings throughout application lifecycle.
    """
    return Settings()
