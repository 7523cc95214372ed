"""Configuration enums for type-safe settings.

These enums provide type safety and IDE autocomplete for configuration values.
They inherit from str to maintain JSON serialization compatibility.
"""

from enum import Enum


class StorageBackendType(str, Enum):
    """Storage backend types.

    Determines where asset and font bytes live when the engine asks for
    their removal.
    """

    FILESYSTEM = "filesystem"


class Environment(str, Enum):
    """Deployment environments.

    Controls environment-specific behavior like logging format and defaults.
    """

    LOCAL = "local"
    TEST = "test"
    DEV = "dev"
    PRD = "prd"


class LogFormat(str, Enum):
    """Log output formats."""

    TEXT = "text"
    JSON = "json"
