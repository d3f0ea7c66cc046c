"""mapcov error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Source map cache
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Source map cache (3xxx)
    CACHE_WRITE_FAILED = 3001
    CACHE_DIRECTORY_UNAVAILABLE = 3002


@dataclass(frozen=True, slots=True)
class MapCovError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CACHE_WRITE_FAILED')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(MapCovError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class CacheError(MapCovError):
    """Source map disk cache errors."""

    @classmethod
    def write_failed(cls, path: str, reason: str) -> "CacheError":
        return cls(
            code=ErrorCode.CACHE_WRITE_FAILED,
            message=f"Failed to write source map cache entry {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )

    @classmethod
    def directory_unavailable(cls, path: str, reason: str) -> "CacheError":
        return cls(
            code=ErrorCode.CACHE_DIRECTORY_UNAVAILABLE,
            message=f"Cache directory unavailable: {path}: {reason}",
            details={"path": path, "reason": reason},
        )
