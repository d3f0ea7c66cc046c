"""Shared fixtures for source map tests.

The sample map describes a generated ``a.js`` whose line 5 was produced from
line 42 of ``a.ts``:

- generated 5:0  -> original 42:0
- generated 5:10 -> original 42:12

Lines 1-4 of the generated file carry no mappings.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from mapcov.sourcemaps.codec import CacheCodec

SAMPLE_MAPPINGS = ";;;;AAyCA,UAAY"


def loc(start_line: int, start_col: int, end_line: int, end_col: int | None) -> dict[str, Any]:
    return {
        "start": {"line": start_line, "column": start_col},
        "end": {"line": end_line, "column": end_col},
    }


class CountingCodec(CacheCodec):
    """Cache codec that records every disk read."""

    def __init__(self, cache_directory: Path) -> None:
        super().__init__(cache_directory)
        self.reads: list[Path] = []

    def read(self, path: Path) -> dict[str, Any]:
        self.reads.append(path)
        return super().read(path)


@pytest.fixture()
def sample_map() -> dict[str, Any]:
    return {
        "version": 3,
        "file": "a.js",
        "sources": ["a.ts"],
        "names": [],
        "mappings": SAMPLE_MAPPINGS,
        "sourcesContent": ["// original\n"],
    }


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    root = tmp_path / "proj"
    (root / "src").mkdir(parents=True)
    return root


@pytest.fixture()
def counting_codec(project: Path) -> CountingCodec:
    return CountingCodec(project / ".cache")


@pytest.fixture()
def file_report() -> Callable[..., dict[str, Any]]:
    """Build one coverage-final.json entry with a statement per location."""

    def build(
        path: str,
        statements: list[tuple[dict[str, Any], int]],
        content_hash: str | None = None,
        functions: list[tuple[str, dict[str, Any], dict[str, Any], int]] | None = None,
        branches: list[tuple[str, list[dict[str, Any]], list[int]]] | None = None,
    ) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "path": path,
            "statementMap": {str(i): stmt for i, (stmt, _) in enumerate(statements)},
            "fnMap": {},
            "branchMap": {},
            "s": {str(i): hits for i, (_, hits) in enumerate(statements)},
            "f": {},
            "b": {},
        }
        for i, (name, decl, span, hits) in enumerate(functions or []):
            entry["fnMap"][str(i)] = {"name": name, "decl": decl, "loc": span, "line": decl["start"]["line"]}
            entry["f"][str(i)] = hits
        for i, (type_, locations, hits) in enumerate(branches or []):
            entry["branchMap"][str(i)] = {
                "type": type_,
                "loc": locations[0],
                "locations": locations,
                "line": locations[0]["start"]["line"],
            }
            entry["b"][str(i)] = hits
        if content_hash is not None:
            entry["contentHash"] = content_hash
        return entry

    return build


@pytest.fixture()
def make_loc() -> Callable[..., dict[str, Any]]:
    return loc
