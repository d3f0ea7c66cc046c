"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (MAPCOV__SECTION__KEY)
3. Repo YAML (.mapcov/config.yaml)
4. Global YAML (~/.config/mapcov/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    MAPCOV__<SECTION>__<KEY>=<VALUE>

Examples:
    MAPCOV__LOGGING__LEVEL=DEBUG
    MAPCOV__SOURCE_MAPS__CACHE=false
    MAPCOV__SOURCE_MAPS__CACHE_DIRECTORY=/tmp/mapcov-cache
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from mapcov.config.constants import DEFAULT_CACHE_DIRECTORY

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        MAPCOV__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every cache read and unmapped location.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class SourceMapsConfig(BaseModel):
    """Source map caching configuration.

    Env vars:
        MAPCOV__SOURCE_MAPS__CACHE: Persist extracted maps to disk
        MAPCOV__SOURCE_MAPS__CACHE_DIRECTORY: Where cache files live
        MAPCOV__SOURCE_MAPS__CONCURRENCY: Parallel cache reads during reload
    """

    cache: bool = Field(
        default=True,
        description="Persist extracted source maps to the cache directory, keyed by "
        "content hash. When false, maps are only held in memory for the current run.",
    )
    cache_directory: str = Field(
        default=DEFAULT_CACHE_DIRECTORY,
        description="Directory for cached maps. Relative paths resolve against the repo root.",
    )
    concurrency: int | None = Field(
        default=None,
        description="Max parallel cache reads. Defaults to the CPU count (at least 1).",
    )

    @field_validator("concurrency")
    @classmethod
    def validate_concurrency(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError(f"Concurrency must be >= 1, got {v}")
        return v

    def resolve_cache_directory(self, repo_root: Path) -> Path:
        """Return the cache directory as an absolute path."""
        path = Path(self.cache_directory).expanduser()
        if not path.is_absolute():
            path = repo_root / path
        return path


class MapCovConfig(BaseModel):
    """Root configuration for mapcov.

    All settings can be configured via:
    1. Environment variables: MAPCOV__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    source_maps: SourceMapsConfig = Field(default_factory=SourceMapsConfig)
