"""Source map extraction, disk caching and coverage remapping."""

from mapcov.sourcemaps.codec import CacheCodec, hash_source
from mapcov.sourcemaps.extract import RawSourceMap, extract
from mapcov.sourcemaps.reload import (
    Found,
    MapLoad,
    NotFound,
    ReloadStats,
    reload_cached_source_maps,
)
from mapcov.sourcemaps.session import SourceMapSession
from mapcov.sourcemaps.store import MapStore

__all__ = [
    "CacheCodec",
    "Found",
    "MapLoad",
    "MapStore",
    "NotFound",
    "RawSourceMap",
    "ReloadStats",
    "SourceMapSession",
    "extract",
    "hash_source",
    "reload_cached_source_maps",
]
