"""Application settings.

All values are read from the environment (or a local ``.env`` file). Nested
values use ``__`` as delimiter.
"""

from typing import Optional

from pydantic import Field, PostgresDsn, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from draftsync.core.config.enums import Environment, LogFormat, StorageBackendType


class Settings(BaseSettings):
    """Settings for the DraftSync backend.

    Attributes:
    ----------
        PROJECT_NAME (str): The name of the project.
        ENVIRONMENT (Environment): Deployment environment.
        LOG_LEVEL (str): Root log level.
        LOG_FORMAT (LogFormat): Plain text or JSON lines.
        POSTGRES_HOST (str): The PostgreSQL server hostname.
        POSTGRES_PORT (int): The PostgreSQL server port.
        POSTGRES_USER (str): The PostgreSQL username.
        POSTGRES_PASSWORD (str): The PostgreSQL password.
        POSTGRES_DB (str): The PostgreSQL database name.
        POSTGRES_SSLMODE (str): SSL mode passed to the driver.
        PUBLISH_QUERY_PAGE_SIZE (int): Rows per page when reading a table.
        PUBLISH_WRITE_BATCH_SIZE (int): Rows per upsert request.
        PUBLISH_LOOKUP_CHUNK_SIZE (int): Ids per ``IN (...)`` lookup.
        STORAGE_BACKEND (StorageBackendType): Where asset bytes live.
        STORAGE_PATH (str): Root directory for the filesystem backend.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "DraftSync"
    ENVIRONMENT: Environment = Environment.LOCAL
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: LogFormat = LogFormat.TEXT
    TESTING: bool = False

    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "draftsync"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "draftsync"
    POSTGRES_SSLMODE: str = "prefer"
    SQLALCHEMY_ASYNC_DATABASE_URI: Optional[PostgresDsn] = Field(
        default=None, validate_default=True
    )

    db_pool_size: int = Field(default=10, ge=1)
    db_pool_max_overflow: int = Field(default=20, ge=0)

    # Hosted stores cap a single read at 1000 rows
    PUBLISH_QUERY_PAGE_SIZE: int = Field(default=1000, ge=1)
    PUBLISH_WRITE_BATCH_SIZE: int = Field(default=500, ge=1)
    PUBLISH_LOOKUP_CHUNK_SIZE: int = Field(default=100, ge=1)

    STORAGE_BACKEND: StorageBackendType = StorageBackendType.FILESYSTEM
    STORAGE_PATH: str = "local_storage"
    ASSETS_STORAGE_PREFIX: str = "assets"
    FONTS_STORAGE_PREFIX: str = "fonts"

    RUN_ALEMBIC_MIGRATIONS: bool = False

    @field_validator("SQLALCHEMY_ASYNC_DATABASE_URI", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info) -> PostgresDsn:
        """Build the async database URI from the individual POSTGRES_* fields.

        Args:
        ----
            v (Optional[str]): An explicitly configured URI, used verbatim.
            info: Validation info carrying the already-parsed fields.

        Returns:
        -------
            PostgresDsn: The ``postgresql+asyncpg`` connection URI.

        """
        if isinstance(v, str) and v:
            return v
        data = info.data
        return PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=data.get("POSTGRES_USER"),
            password=data.get("POSTGRES_PASSWORD") or None,
            host=data.get("POSTGRES_HOST"),
            port=data.get("POSTGRES_PORT"),
            path=data.get("POSTGRES_DB") or "",
        )
