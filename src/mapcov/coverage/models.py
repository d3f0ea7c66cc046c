"""Istanbul coverage data model.

Typed view over the ``coverage-final.json`` shape produced by Istanbul
instrumentation. Lines are 1-based, columns 0-based. End columns may be
``None`` when the instrumenter could not determine them.

Counters are keyed by the string ids used in the JSON document so a
``from_dict``/``to_dict`` pass preserves ids exactly.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any


class CoverageParseError(Exception):
    """Error parsing coverage data."""

    pass


@dataclass(frozen=True, slots=True)
class Position:
    """A single location in a file."""

    line: int
    column: int | None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Position:
        return cls(line=int(data.get("line") or 0), column=data.get("column"))

    def to_dict(self) -> dict[str, Any]:
        return {"line": self.line, "column": self.column}


@dataclass(frozen=True, slots=True)
class Range:
    """Start/end span of a statement, function or branch arm."""

    start: Position
    end: Position

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Range:
        start = Position.from_dict(data.get("start") or {})
        end = Position.from_dict(data.get("end") or data.get("start") or {})
        return cls(start=start, end=end)

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}

    @property
    def key(self) -> tuple[int, int | None, int, int | None]:
        """Identity used to merge coverage items that share a location."""
        return (self.start.line, self.start.column, self.end.line, self.end.column)


@dataclass(frozen=True, slots=True)
class FunctionMapping:
    """Function declaration metadata (``fnMap`` entry)."""

    name: str
    decl: Range
    loc: Range
    line: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], fn_id: str = "") -> FunctionMapping:
        loc = Range.from_dict(data.get("loc") or data.get("decl") or {})
        decl = Range.from_dict(data["decl"]) if data.get("decl") else loc
        return cls(
            name=data.get("name") or f"(anonymous_{fn_id})",
            decl=decl,
            loc=loc,
            line=int(data.get("line") or decl.start.line),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "decl": self.decl.to_dict(),
            "loc": self.loc.to_dict(),
            "line": self.line,
        }


@dataclass(frozen=True, slots=True)
class BranchMapping:
    """Branch point metadata (``branchMap`` entry)."""

    type: str
    loc: Range
    locations: tuple[Range, ...]
    line: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BranchMapping:
        locations = tuple(Range.from_dict(loc) for loc in data.get("locations") or [])
        if data.get("loc"):
            loc = Range.from_dict(data["loc"])
        elif locations:
            loc = locations[0]
        else:
            loc = Range(Position(0, 0), Position(0, 0))
        return cls(
            type=data.get("type") or "",
            loc=loc,
            locations=locations,
            line=int(data.get("line") or loc.start.line),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "loc": self.loc.to_dict(),
            "locations": [loc.to_dict() for loc in self.locations],
            "line": self.line,
        }


@dataclass(slots=True)
class FileCoverage:
    """Coverage data for a single file.

    ``s``, ``f`` and ``b`` hold hit counters keyed by the same ids as
    ``statement_map``, ``fn_map`` and ``branch_map``.
    """

    path: str
    statement_map: dict[str, Range] = field(default_factory=dict)
    fn_map: dict[str, FunctionMapping] = field(default_factory=dict)
    branch_map: dict[str, BranchMapping] = field(default_factory=dict)
    s: dict[str, int] = field(default_factory=dict)
    f: dict[str, int] = field(default_factory=dict)
    b: dict[str, list[int]] = field(default_factory=dict)
    content_hash: str | None = None
    _item_ids: dict[str, tuple[int, dict[Any, str]]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str | None = None) -> FileCoverage:
        """Build from one ``coverage-final.json`` entry.

        Raises:
            CoverageParseError: If the entry is not an object.
        """
        if not isinstance(data, Mapping):
            raise CoverageParseError(f"File coverage for {path!r} is not an object")

        statement_map = {
            str(k): Range.from_dict(v) for k, v in (data.get("statementMap") or {}).items()
        }
        fn_map = {
            str(k): FunctionMapping.from_dict(v, str(k))
            for k, v in (data.get("fnMap") or {}).items()
        }
        branch_map = {
            str(k): BranchMapping.from_dict(v) for k, v in (data.get("branchMap") or {}).items()
        }
        raw_b = data.get("b") or {}
        return cls(
            path=data.get("path") or path or "",
            statement_map=statement_map,
            fn_map=fn_map,
            branch_map=branch_map,
            s={str(k): int(v) for k, v in (data.get("s") or {}).items()},
            f={str(k): int(v) for k, v in (data.get("f") or {}).items()},
            b={str(k): [int(h) for h in v] for k, v in raw_b.items()},
            content_hash=data.get("contentHash"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "path": self.path,
            "statementMap": {k: v.to_dict() for k, v in self.statement_map.items()},
            "fnMap": {k: v.to_dict() for k, v in self.fn_map.items()},
            "branchMap": {k: v.to_dict() for k, v in self.branch_map.items()},
            "s": dict(self.s),
            "f": dict(self.f),
            "b": {k: list(v) for k, v in self.b.items()},
        }
        if self.content_hash is not None:
            data["contentHash"] = self.content_hash
        return data

    def line_hits(self) -> dict[int, int]:
        """Line number → hit count, derived from statements starting on the line."""
        lines: dict[int, int] = {}
        for stmt_id, loc in self.statement_map.items():
            hits = self.s.get(stmt_id, 0)
            line = loc.start.line
            if line not in lines or lines[line] < hits:
                lines[line] = hits
        return lines

    # Builders used when assembling remapped coverage. Each keeps a lookup
    # from location key to item id, rebuilt when the maps were filled directly.

    def _ids_for(self, kind: str) -> dict[Any, str]:
        items: Mapping[str, Any]
        if kind == "s":
            items, keyer = self.statement_map, _statement_key
        elif kind == "f":
            items, keyer = self.fn_map, _function_key
        else:
            items, keyer = self.branch_map, _branch_key
        size, ids = self._item_ids.get(kind, (-1, {}))
        if size != len(items):
            ids = {}
            for item_id, item in items.items():
                ids.setdefault(keyer(item), item_id)
            self._item_ids[kind] = (len(items), ids)
        return ids

    def _indexed(self, kind: str, key: Any, item_id: str) -> None:
        ids = self._item_ids[kind][1]
        ids[key] = item_id
        self._item_ids[kind] = (self._item_ids[kind][0] + 1, ids)

    def add_statement(self, loc: Range, hits: int) -> None:
        ids = self._ids_for("s")
        stmt_id = ids.get(loc.key)
        if stmt_id is not None:
            self.s[stmt_id] += hits
            return
        stmt_id = str(len(self.statement_map))
        self.statement_map[stmt_id] = loc
        self.s[stmt_id] = hits
        self._indexed("s", loc.key, stmt_id)

    def add_function(self, name: str, decl: Range, loc: Range, hits: int) -> None:
        ids = self._ids_for("f")
        fn_id = ids.get(decl.key)
        if fn_id is not None:
            self.f[fn_id] += hits
            return
        fn_id = str(len(self.fn_map))
        self.fn_map[fn_id] = FunctionMapping(name=name, decl=decl, loc=loc, line=decl.start.line)
        self.f[fn_id] = hits
        self._indexed("f", decl.key, fn_id)

    def add_branch(self, type_: str, loc: Range, locations: list[Range], hits: list[int]) -> None:
        branch = BranchMapping(type=type_, loc=loc, locations=tuple(locations), line=loc.start.line)
        ids = self._ids_for("b")
        key = _branch_key(branch)
        branch_id = ids.get(key)
        if branch_id is not None:
            self.b[branch_id] = [a + h for a, h in zip(self.b[branch_id], hits)]
            return
        branch_id = str(len(self.branch_map))
        self.branch_map[branch_id] = branch
        self.b[branch_id] = list(hits)
        self._indexed("b", key, branch_id)


def _statement_key(loc: Range) -> tuple[int, int | None, int, int | None]:
    return loc.key


def _function_key(fn: FunctionMapping) -> tuple[int, int | None, int, int | None]:
    return fn.decl.key


def _branch_key(branch: BranchMapping) -> tuple[tuple[int, int | None, int, int | None], ...]:
    """Branches are identified by all of their arm locations."""
    return tuple(arm.key for arm in branch.locations) or (branch.loc.key,)


@dataclass(slots=True)
class CoverageMap:
    """Complete coverage report keyed by file path."""

    files: dict[str, FileCoverage] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CoverageMap:
        """Build from a ``coverage-final.json`` document.

        The input is not modified; every entry is copied into typed objects.
        """
        files: dict[str, FileCoverage] = {}
        for path, entry in data.items():
            fc = FileCoverage.from_dict(entry, path)
            files[fc.path or path] = fc
        return cls(files=files)

    def to_dict(self) -> dict[str, Any]:
        return {path: fc.to_dict() for path, fc in self.files.items()}

    def __iter__(self) -> Iterator[str]:
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)

    def file_coverage_for(self, path: str) -> FileCoverage:
        """Return the coverage for ``path``, creating an empty entry if needed."""
        fc = self.files.get(path)
        if fc is None:
            fc = FileCoverage(path=path)
            self.files[path] = fc
        return fc
