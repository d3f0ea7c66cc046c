"""Core module exports."""

from mapcov.core.errors import (
    CacheError,
    ConfigError,
    ErrorCode,
    MapCovError,
)
from mapcov.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    run_scope,
    set_run_id,
)

__all__ = [
    # Errors
    "CacheError",
    "ConfigError",
    "ErrorCode",
    "MapCovError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "run_scope",
    "set_run_id",
]
