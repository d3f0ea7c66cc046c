"""Repopulating the map store from the disk cache.

A coverage report produced by earlier runs names each generated file and the
content hash it had when coverage was captured. For every distinct hash the
coordinator reads ``<stem>-<hash>.map`` once, remembers the outcome in the
session's loaded-map cache, and registers the map for every file carrying
that hash. Failed reads are remembered as ``NotFound`` and never retried.
A read already in flight for a hash is awaited rather than repeated.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from mapcov.core.logging import get_logger
from mapcov.sourcemaps.codec import CacheCodec
from mapcov.sourcemaps.extract import RawSourceMap
from mapcov.sourcemaps.store import MapStore

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Found:
    """A cache entry that was read and decoded."""

    source_map: RawSourceMap


@dataclass(frozen=True, slots=True)
class NotFound:
    """A cache entry that could not be read; not retried."""

    reason: str = ""


MapLoad = Found | NotFound


@dataclass(slots=True)
class ReloadStats:
    """Outcome of one reload pass."""

    files_seen: int = 0
    files_registered: int = 0
    disk_reads: int = 0
    misses: int = 0


def default_concurrency() -> int:
    """CPU count, or 1 when the platform reports none."""
    return os.cpu_count() or 1


def _group_by_hash(report: Mapping[str, Any]) -> dict[str, list[str]]:
    groups: dict[str, list[str]] = {}
    for abs_file, file_report in report.items():
        if not isinstance(file_report, Mapping):
            continue
        content_hash = file_report.get("contentHash")
        if not content_hash:
            continue
        groups.setdefault(str(content_hash), []).append(abs_file)
    return groups


async def reload_cached_source_maps(
    report: Mapping[str, Any],
    *,
    codec: CacheCodec,
    store: MapStore,
    loaded: dict[str, MapLoad],
    concurrency: int | None = None,
    pending: dict[str, asyncio.Task[MapLoad]] | None = None,
) -> ReloadStats:
    """Register cached maps for every file in ``report`` that carries a hash.

    Args:
        report: Coverage report mapping absolute file path to file coverage.
        codec: Cache codec used to locate and decode entries.
        store: Store receiving the maps.
        loaded: Loaded-map cache, updated in place.
        concurrency: Max parallel disk reads. Defaults to the CPU count.
        pending: Reads in flight, keyed by hash. Passes sharing this dict
            wait on each other's reads instead of repeating them.

    Returns:
        Counters describing the pass.
    """
    groups = _group_by_hash(report)
    stats = ReloadStats(files_seen=sum(len(files) for files in groups.values()))
    semaphore = asyncio.Semaphore(max(1, concurrency or default_concurrency()))
    in_flight = pending if pending is not None else {}

    async def fetch(content_hash: str, map_path: Path) -> MapLoad:
        result: MapLoad
        try:
            async with semaphore:
                stats.disk_reads += 1
                try:
                    source_map = await asyncio.to_thread(codec.read, map_path)
                except (OSError, ValueError) as e:
                    result = NotFound(reason=str(e))
                    stats.misses += 1
                    log.debug("cached_source_map_missing", path=str(map_path), error=str(e))
                else:
                    result = Found(source_map)
            loaded[content_hash] = result
            return result
        finally:
            in_flight.pop(content_hash, None)

    async def resolve(content_hash: str, files: list[str]) -> None:
        result = loaded.get(content_hash)
        if result is None:
            task = in_flight.get(content_hash)
            if task is None:
                map_path = codec.cached_path(files[0], content_hash)
                task = asyncio.create_task(fetch(content_hash, map_path))
                in_flight[content_hash] = task
            result = await task

        if isinstance(result, Found):
            for abs_file in files:
                store.register_map(abs_file, result.source_map)
                stats.files_registered += 1

    await asyncio.gather(*(resolve(h, files) for h, files in groups.items()))

    log.info(
        "cached_source_maps_reloaded",
        files=stats.files_seen,
        registered=stats.files_registered,
        disk_reads=stats.disk_reads,
        misses=stats.misses,
    )
    return stats
