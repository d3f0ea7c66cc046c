"""Tests for repopulating the map store from the disk cache."""

import asyncio
import json
import os
from pathlib import Path
from typing import Any

import pytest

from mapcov.sourcemaps.reload import (
    Found,
    MapLoad,
    NotFound,
    default_concurrency,
    reload_cached_source_maps,
)
from mapcov.sourcemaps.store import MapStore


def _entry(content_hash: str | None) -> dict[str, Any]:
    entry: dict[str, Any] = {"statementMap": {}, "s": {}}
    if content_hash is not None:
        entry["contentHash"] = content_hash
    return entry


class TestReloadCachedSourceMaps:
    @pytest.mark.asyncio
    async def test_cached_maps_registered(
        self, project: Path, counting_codec: Any, sample_map: dict[str, Any]
    ) -> None:
        """Each file with a cached map ends up registered in the store."""
        # Given
        a_js = str(project / "src" / "a.js")
        b_js = str(project / "src" / "b.js")
        counting_codec.write(counting_codec.cached_path(a_js, "h1"), sample_map)
        counting_codec.write(counting_codec.cached_path(b_js, "h2"), sample_map)
        store = MapStore()
        loaded: dict[str, MapLoad] = {}

        # When
        stats = await reload_cached_source_maps(
            {a_js: _entry("h1"), b_js: _entry("h2")},
            codec=counting_codec,
            store=store,
            loaded=loaded,
        )

        # Then
        assert store.get_map(a_js) == sample_map
        assert store.get_map(b_js) == sample_map
        assert loaded == {"h1": Found(sample_map), "h2": Found(sample_map)}
        assert stats.files_registered == 2
        assert stats.disk_reads == 2
        assert stats.misses == 0

    @pytest.mark.asyncio
    async def test_second_pass_reads_nothing(
        self, project: Path, counting_codec: Any, sample_map: dict[str, Any]
    ) -> None:
        """Hashes resolved once are never read again."""
        files = {str(project / "src" / f"f{i}.js"): f"h{i}" for i in range(4)}
        for path, content_hash in files.items():
            counting_codec.write(counting_codec.cached_path(path, content_hash), sample_map)
        report = {path: _entry(content_hash) for path, content_hash in files.items()}
        store = MapStore()
        loaded: dict[str, MapLoad] = {}

        await reload_cached_source_maps(report, codec=counting_codec, store=store, loaded=loaded)
        assert len(counting_codec.reads) == 4

        stats = await reload_cached_source_maps(
            report, codec=counting_codec, store=store, loaded=loaded
        )

        assert len(counting_codec.reads) == 4
        assert stats.disk_reads == 0
        assert stats.files_registered == 4

    @pytest.mark.asyncio
    async def test_missing_entry_marked_not_found_and_never_reread(
        self, project: Path, counting_codec: Any
    ) -> None:
        a_js = str(project / "src" / "a.js")
        store = MapStore()
        loaded: dict[str, MapLoad] = {}

        for _ in range(3):
            await reload_cached_source_maps(
                {a_js: _entry("gone")}, codec=counting_codec, store=store, loaded=loaded
            )

        assert isinstance(loaded["gone"], NotFound)
        assert len(counting_codec.reads) == 1
        assert not store.has_map(a_js)

    @pytest.mark.asyncio
    async def test_corrupt_entry_marked_not_found(self, project: Path, counting_codec: Any) -> None:
        a_js = str(project / "src" / "a.js")
        path = counting_codec.cached_path(a_js, "bad")
        path.parent.mkdir(parents=True)
        path.write_text("{truncated")
        store = MapStore()
        loaded: dict[str, MapLoad] = {}

        stats = await reload_cached_source_maps(
            {a_js: _entry("bad")}, codec=counting_codec, store=store, loaded=loaded
        )
        await reload_cached_source_maps(
            {a_js: _entry("bad")}, codec=counting_codec, store=store, loaded=loaded
        )

        assert isinstance(loaded["bad"], NotFound)
        assert stats.misses == 1
        assert len(counting_codec.reads) == 1
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_entries_without_hash_are_skipped(self, project: Path, counting_codec: Any) -> None:
        report: dict[str, Any] = {
            str(project / "src" / "a.js"): _entry(None),
            str(project / "src" / "b.js"): {"contentHash": ""},
            str(project / "src" / "c.js"): None,
            str(project / "src" / "d.js"): "not an object",
        }
        loaded: dict[str, MapLoad] = {}

        stats = await reload_cached_source_maps(
            report, codec=counting_codec, store=MapStore(), loaded=loaded
        )

        assert counting_codec.reads == []
        assert loaded == {}
        assert stats.files_seen == 0

    @pytest.mark.asyncio
    async def test_shared_hash_read_once_for_all_files(
        self, project: Path, counting_codec: Any, sample_map: dict[str, Any]
    ) -> None:
        """Files sharing a content hash cost a single read."""
        first = str(project / "src" / "one" / "a.js")
        second = str(project / "src" / "two" / "a.js")
        counting_codec.write(counting_codec.cached_path(first, "same"), sample_map)
        store = MapStore()

        stats = await reload_cached_source_maps(
            {first: _entry("same"), second: _entry("same")},
            codec=counting_codec,
            store=store,
            loaded={},
            concurrency=4,
        )

        assert len(counting_codec.reads) == 1
        assert store.has_map(first)
        assert store.has_map(second)
        assert stats.files_seen == 2
        assert stats.files_registered == 2

    @pytest.mark.asyncio
    async def test_serial_concurrency_loads_everything(
        self, project: Path, counting_codec: Any, sample_map: dict[str, Any]
    ) -> None:
        report = {}
        for i in range(6):
            path = str(project / "src" / f"m{i}.js")
            counting_codec.write(counting_codec.cached_path(path, f"h{i}"), sample_map)
            report[path] = _entry(f"h{i}")
        store = MapStore()

        await reload_cached_source_maps(
            report, codec=counting_codec, store=store, loaded={}, concurrency=1
        )

        assert len(store) == 6

    @pytest.mark.asyncio
    async def test_non_object_cache_entry_marked_not_found(
        self, project: Path, counting_codec: Any
    ) -> None:
        a_js = str(project / "src" / "a.js")
        path = counting_codec.cached_path(a_js, "list")
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps([1, 2]))
        loaded: dict[str, MapLoad] = {}

        await reload_cached_source_maps(
            {a_js: _entry("list")}, codec=counting_codec, store=MapStore(), loaded=loaded
        )

        assert isinstance(loaded["list"], NotFound)

    @pytest.mark.asyncio
    async def test_overlapping_passes_share_one_read(
        self, project: Path, counting_codec: Any, sample_map: dict[str, Any]
    ) -> None:
        """Two passes started together wait on the same read of a hash."""
        # Given
        a_js = str(project / "src" / "a.js")
        counting_codec.write(counting_codec.cached_path(a_js, "h1"), sample_map)
        store = MapStore()
        loaded: dict[str, MapLoad] = {}
        pending: dict[str, asyncio.Task[MapLoad]] = {}

        # When
        first, second = await asyncio.gather(
            *(
                reload_cached_source_maps(
                    {a_js: _entry("h1")},
                    codec=counting_codec,
                    store=store,
                    loaded=loaded,
                    pending=pending,
                )
                for _ in range(2)
            )
        )

        # Then
        assert len(counting_codec.reads) == 1
        assert first.disk_reads + second.disk_reads == 1
        assert first.files_registered == second.files_registered == 1
        assert loaded == {"h1": Found(sample_map)}
        assert pending == {}


class TestDefaultConcurrency:
    def test_at_least_one(self) -> None:
        assert default_concurrency() >= 1

    def test_zero_cpus_falls_back_to_one(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(os, "cpu_count", lambda: 0)
        assert default_concurrency() == 1
