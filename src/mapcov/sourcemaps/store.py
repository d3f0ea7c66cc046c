"""In-memory source map registry and coverage transformation.

Maps are registered against the absolute path of the generated file they
describe. ``transform_coverage`` rewrites every statement, function and
branch location of a ``coverage-final.json`` report into original-source
coordinates:

- Entries without a registered map are copied through untouched.
- A location maps only when both its start and end resolve to a mapped
  segment of the same original source. Unmappable locations are dropped.
- All arms of a branch must land in the same original source.
- Items landing on the same original location are merged by summing hits.
- A mapped file where nothing could be mapped is dropped from the output.

Decoding and position lookup are done by the ``sourcemap`` package. Lookup
takes the nearest mapped segment at or before the generated column and
carries the column offset from that segment over to the original source.
A position before the first segment of its line takes the next segment on
that line instead.
"""

from __future__ import annotations

import asyncio
import copy
import json
import os
import sys
from bisect import bisect_right
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import sourcemap

from mapcov.core.logging import get_logger
from mapcov.coverage.merge import merge_file_coverage
from mapcov.coverage.models import CoverageMap, FileCoverage, Position, Range
from mapcov.sourcemaps.extract import RawSourceMap

log = get_logger(__name__)


def _key(path: str | Path) -> str:
    return os.path.normpath(os.fspath(path))


@dataclass(frozen=True, slots=True)
class _OriginalPosition:
    source: str
    line: int
    column: int | None


@dataclass(slots=True)
class _Entry:
    raw: RawSourceMap
    index: Any = None
    decoded: bool = False


class MapStore:
    """Registry of decoded source maps keyed by generated file path."""

    def __init__(self) -> None:
        self._maps: dict[str, _Entry] = {}

    def register_map(self, path: str | Path, source_map: RawSourceMap) -> None:
        """Associate ``source_map`` with the generated file at ``path``."""
        self._maps[_key(path)] = _Entry(raw=source_map)

    def has_map(self, path: str | Path) -> bool:
        return _key(path) in self._maps

    def get_map(self, path: str | Path) -> RawSourceMap | None:
        entry = self._maps.get(_key(path))
        return entry.raw if entry is not None else None

    def clear(self) -> None:
        self._maps.clear()

    def __len__(self) -> int:
        return len(self._maps)

    def _index_for(self, path: str) -> Any:
        """Return the decoded index for ``path``, or None if unavailable."""
        entry = self._maps.get(_key(path))
        if entry is None:
            return None
        if not entry.decoded:
            entry.decoded = True
            raw = dict(entry.raw)
            raw.setdefault("names", [])
            try:
                entry.index = sourcemap.loads(json.dumps(raw))
            except (
                sourcemap.SourceMapDecodeError,
                AttributeError,
                IndexError,
                KeyError,
                TypeError,
                ValueError,
            ) as e:
                log.warning("source_map_undecodable", path=path, error=str(e))
                entry.index = None
        return entry.index

    async def transform_coverage(self, report: Mapping[str, Any]) -> dict[str, Any]:
        """Remap a ``coverage-final.json`` document onto original sources.

        Runs in a worker thread. The input is not modified.
        """
        return await asyncio.to_thread(self.transform_coverage_sync, report)

    def transform_coverage_sync(self, report: Mapping[str, Any]) -> dict[str, Any]:
        mapped = CoverageMap()
        unmapped: dict[str, Any] = {}

        for key, entry in report.items():
            path = _entry_path(key, entry)
            index = self._index_for(path)
            if index is None:
                unmapped[path] = copy.deepcopy(entry)
                continue
            changes = _process_file(FileCoverage.from_dict(entry, path), index, mapped)
            if not changes:
                log.debug("coverage_file_unmapped", path=path)

        result = mapped.to_dict()
        for path, entry in unmapped.items():
            target = mapped.files.get(path)
            if target is None:
                result[path] = entry
            else:
                passthrough = FileCoverage.from_dict(entry, path)
                result[path] = merge_file_coverage([target, passthrough]).to_dict()

        return result


def _entry_path(key: str, entry: Any) -> str:
    if isinstance(entry, Mapping) and entry.get("path"):
        return str(entry["path"])
    return key


def _find_token(index: Any, line: int, column: int) -> tuple[Any, bool] | None:
    """Segment for a 0-based generated position.

    Returns the segment and whether it sits at or before ``column``.
    """
    try:
        token = index.lookup(line, column)
    except (IndexError, KeyError):
        token = None
    if token is not None and token.dst_line == line and token.dst_col <= column:
        return token, True

    columns = index.line_index[line] if 0 <= line < len(index.line_index) else []
    following = bisect_right(columns, column)
    if following < len(columns):
        return index.index[(line, columns[following])], False
    return None


def _original_position(
    index: Any, line: int, column: int | None, *, exclusive: bool = False
) -> _OriginalPosition | None:
    """Translate a 1-based line / 0-based column through ``index``.

    ``exclusive`` marks end positions, which point one past the last
    character of the span.
    """
    if line < 1:
        return None

    step_back = exclusive and column is not None and column > 0
    lookup_col = sys.maxsize if column is None else column - 1 if step_back else column

    found = _find_token(index, line - 1, lookup_col)
    if found is None:
        return None
    token, preceding = found
    if token.src is None:
        return None

    if column is None:
        original_col = None
    elif preceding:
        original_col = token.src_col + (lookup_col - token.dst_col) + (1 if step_back else 0)
    else:
        original_col = token.src_col

    return _OriginalPosition(source=token.src, line=token.src_line + 1, column=original_col)


def _resolve_source(source: str, generated_path: str) -> str:
    if source.startswith("file://"):
        source = source[len("file://") :]
    if os.path.isabs(source):
        return os.path.normpath(source)
    return os.path.normpath(os.path.join(os.path.dirname(generated_path), source))


def _map_range(index: Any, generated_path: str, loc: Range) -> tuple[str, Range] | None:
    start = _original_position(index, loc.start.line, loc.start.column or 0)
    end = _original_position(index, loc.end.line, loc.end.column, exclusive=True)
    if start is None or end is None or start.source != end.source:
        return None

    mapped = Range(
        start=Position(line=start.line, column=start.column),
        end=Position(line=end.line, column=end.column),
    )
    return _resolve_source(start.source, generated_path), mapped


def _process_file(fc: FileCoverage, index: Any, out: CoverageMap) -> int:
    """Fold the remapped items of ``fc`` into ``out``; return how many mapped."""
    generated_path = fc.path
    changes = 0

    for stmt_id, loc in fc.statement_map.items():
        mapping = _map_range(index, generated_path, loc)
        if mapping is None:
            continue
        source, mapped_loc = mapping
        out.file_coverage_for(source).add_statement(mapped_loc, fc.s.get(stmt_id, 0))
        changes += 1

    for fn_id, fn in fc.fn_map.items():
        decl = _map_range(index, generated_path, fn.decl)
        span = _map_range(index, generated_path, fn.loc)
        if decl is None or span is None or decl[0] != span[0]:
            continue
        out.file_coverage_for(decl[0]).add_function(fn.name, decl[1], span[1], fc.f.get(fn_id, 0))
        changes += 1

    for branch_id, branch in fc.branch_map.items():
        counts = fc.b.get(branch_id) or []
        source: str | None = None
        locations: list[Range] = []
        hits: list[int] = []
        consistent = True
        for i, loc in enumerate(branch.locations):
            mapping = _map_range(index, generated_path, loc)
            if mapping is None:
                continue
            if source is None:
                source = mapping[0]
            elif mapping[0] != source:
                consistent = False
                break
            locations.append(mapping[1])
            hits.append(counts[i] if i < len(counts) else 0)

        if not consistent or source is None:
            continue

        branch_loc = _map_range(index, generated_path, branch.loc)
        mapped_loc = branch_loc[1] if branch_loc and branch_loc[0] == source else locations[0]
        out.file_coverage_for(source).add_branch(branch.type, mapped_loc, locations, hits)
        changes += 1

    return changes
