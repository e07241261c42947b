"""Dataclass-based domain configuration pattern.

The catalog defines its connection settings, upload location and app
flags as a frozen dataclass. This gives you:
- Type safety (IDE autocompletion, mypy checking)
- Default values (sensible out-of-the-box)
- Immutability (frozen=True prevents accidental mutation)
- Easy overrides (from env vars or explicit construction in tests)

The config object is built once by the caller and handed to create_app();
nothing in the catalog reads it from module-level state.
"""

import os
from dataclasses import dataclass, field


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


# ---------------------------------------------------------------------------
# Nested config sections
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DatabaseConfig:
    """Async engine settings."""

    url: str = "sqlite+aiosqlite:///./catalog.db"
    pool_size: int = 20
    max_overflow: int = 10
    echo: bool = False
    create_tables: bool = True  # no migrations, tables come from metadata

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


@dataclass(frozen=True)
class UploadConfig:
    """Where author images are written and how they are addressed."""

    directory: str = "uploads/images"
    url_prefix: str = "/images"


# ---------------------------------------------------------------------------
# Top-level domain config
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CatalogConfig:
    """Complete configuration for the catalog application.

    Usage::

        config = CatalogConfig.from_env()
        app = create_app(config)
    """

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    uploads: UploadConfig = field(default_factory=UploadConfig)

    title: str = "Local Library"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = ("http://localhost:3000",)

    @classmethod
    def default(cls) -> "CatalogConfig":
        """Create config with all defaults."""
        return cls()

    @classmethod
    def from_env(cls) -> "CatalogConfig":
        """Create config from environment variables.

        Example: DATABASE_URL=postgresql+asyncpg://user:pw@db:5432/library
        """
        defaults_db = DatabaseConfig()
        database = DatabaseConfig(
            url=os.getenv("DATABASE_URL", defaults_db.url),
            pool_size=int(os.getenv("DB_POOL_SIZE", str(defaults_db.pool_size))),
            max_overflow=int(os.getenv("DB_MAX_OVERFLOW", str(defaults_db.max_overflow))),
            echo=_env_bool("DB_ECHO", "false"),
            create_tables=_env_bool("DB_CREATE_TABLES", "true"),
        )

        defaults_up = UploadConfig()
        uploads = UploadConfig(
            directory=os.getenv("CATALOG_UPLOAD_DIR", defaults_up.directory),
            url_prefix=os.getenv("CATALOG_UPLOAD_URL", defaults_up.url_prefix),
        )

        origins = os.getenv("CORS_ORIGINS")
        overrides = {}
        if origins:
            overrides["cors_origins"] = tuple(o.strip() for o in origins.split(",") if o.strip())

        return cls(
            database=database,
            uploads=uploads,
            debug=_env_bool("DEBUG", "false"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            **overrides,
        )
