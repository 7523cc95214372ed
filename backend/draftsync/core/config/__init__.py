"""Configuration module for the DraftSync backend.

Provides centralized configuration management with type-safe enums.

Usage:
    from draftsync.core.config import settings, Environment

    # Access settings
    page_size = settings.PUBLISH_QUERY_PAGE_SIZE

    # Use enums for type safety
    if settings.ENVIRONMENT == Environment.PRD:
        ...
"""

from draftsync.core.config.enums import Environment, LogFormat, StorageBackendType
from draftsync.core.config.settings import Settings

__all__ = [
    "Settings",
    "StorageBackendType",
    "Environment",
    "LogFormat",
    "settings",
]

# Singleton settings instance
settings = Settings()
