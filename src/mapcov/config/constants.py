"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
For configurable values, see models.py.
"""

# =============================================================================
# Paths
# =============================================================================

CONFIG_DIRNAME = ".mapcov"
"""Per-repo directory holding config.yaml and, by default, the map cache."""

DEFAULT_CACHE_DIRECTORY = ".mapcov/cache"
"""Default cache directory, relative to the repo root."""

# =============================================================================
# Cache file format
# =============================================================================

CACHE_FILE_SUFFIX = ".map"
"""Extension of cached source map files: <stem>-<hash><suffix>."""

COVERAGE_FINAL_FILENAME = "coverage-final.json"
"""Istanbul per-file coverage report name."""
