"""Source map session: the entry point for instrumentation and reporting.

Typical flow:

    session = SourceMapSession.from_config(load_config(repo_root), repo_root)

    # Instrumentation pass, once per generated file
    source_map = session.extract(code, filename)
    await session.register_map(filename, content_hash, source_map)

    # Reporting pass
    await session.reload_cached_source_maps(raw_report)
    remapped = await session.remap_coverage(raw_report)

Every session owns its own store and loaded-map cache, so sessions in one
process never see each other's maps. Log events emitted by a session's
operations carry that session's ``run_id``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from mapcov.config.models import MapCovConfig
from mapcov.core.logging import get_logger, new_run_id, run_scope
from mapcov.sourcemaps.codec import CacheCodec
from mapcov.sourcemaps.extract import RawSourceMap, extract
from mapcov.sourcemaps.reload import MapLoad, ReloadStats, reload_cached_source_maps
from mapcov.sourcemaps.store import MapStore

log = get_logger(__name__)


class SourceMapSession:
    """Extraction, caching, reload and remapping of source maps for one run."""

    def __init__(
        self,
        *,
        cache: bool,
        cache_directory: Path,
        concurrency: int | None = None,
        codec: CacheCodec | None = None,
        run_id: str | None = None,
    ) -> None:
        self.cache = cache
        self.cache_directory = Path(cache_directory)
        self.concurrency = concurrency
        self.codec = codec or CacheCodec(self.cache_directory)
        self.run_id = run_id or new_run_id()
        self.loaded_maps: dict[str, MapLoad] = {}
        self.store = MapStore()
        self._pending_reads: dict[str, asyncio.Task[MapLoad]] = {}

    @classmethod
    def from_config(cls, config: MapCovConfig, repo_root: Path) -> SourceMapSession:
        options = config.source_maps
        return cls(
            cache=options.cache,
            cache_directory=options.resolve_cache_directory(repo_root),
            concurrency=options.concurrency,
        )

    def cached_path(self, source: str | Path, content_hash: str) -> Path:
        return self.codec.cached_path(source, content_hash)

    def extract(self, code: str, filename: str | Path) -> RawSourceMap | None:
        with run_scope(self.run_id):
            return extract(code, filename)

    async def register_map(
        self,
        filename: str | Path,
        content_hash: str | None,
        source_map: RawSourceMap | None,
    ) -> None:
        """Persist or register the map for a generated file.

        With caching on and a content hash available the map is written to the
        disk cache; the call returns once the write has completed. Otherwise
        the map goes straight into the in-memory store.

        Raises:
            CacheError: If the cache entry cannot be written.
        """
        if not source_map:
            return

        with run_scope(self.run_id):
            if self.cache and content_hash:
                map_path = self.cached_path(filename, content_hash)
                await asyncio.to_thread(self.codec.write, map_path, source_map)
            else:
                self.store.register_map(filename, source_map)

    async def reload_cached_source_maps(self, report: Mapping[str, Any]) -> ReloadStats:
        with run_scope(self.run_id):
            return await reload_cached_source_maps(
                report,
                codec=self.codec,
                store=self.store,
                loaded=self.loaded_maps,
                concurrency=self.concurrency,
                pending=self._pending_reads,
            )

    async def remap_coverage(self, raw_report: Mapping[str, Any]) -> dict[str, Any]:
        """Return ``raw_report`` with locations translated to original sources.

        Entries without a registered map are returned as deep copies of the
        input, including any keys the coverage model does not know about.
        """
        with run_scope(self.run_id):
            remapped = await self.store.transform_coverage(raw_report)
            log.debug(
                "coverage_remapped",
                input_files=len(raw_report),
                output_files=len(remapped),
            )
        return remapped

    def purge_cache(self) -> None:
        """Forget every registered map and every loaded cache entry."""
        self.store = MapStore()
        self.loaded_maps = {}
        self._pending_reads = {}
