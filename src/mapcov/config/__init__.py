"""Config module exports."""

from mapcov.config.loader import load_config
from mapcov.config.models import (
    LoggingConfig,
    LogOutputConfig,
    MapCovConfig,
    SourceMapsConfig,
)

__all__ = [
    "load_config",
    "LoggingConfig",
    "LogOutputConfig",
    "MapCovConfig",
    "SourceMapsConfig",
]
