"""Coverage summaries in Istanbul's metric vocabulary.

Output schema for build_summary:
{
    "total": {
        "lines": {"total": int, "covered": int, "pct": float},
        "statements": {...},
        "functions": {...},
        "branches": {...}
    },
    "files": [
        {"path": str, "lines": {...}, "statements": {...}, "functions": {...},
         "branches": {...}, "uncovered_lines": [int, ...]},
        ...
    ]
}

A metric with nothing to count reports 100.0 percent, matching Istanbul.
"""

from typing import Any

from mapcov.coverage.models import CoverageMap, FileCoverage

_METRICS = ("lines", "statements", "functions", "branches")


def _metric(total: int, covered: int) -> dict[str, Any]:
    pct = (covered / total * 100.0) if total > 0 else 100.0
    return {"total": total, "covered": covered, "pct": round(pct, 2)}


def summarize_file(fc: FileCoverage) -> dict[str, Any]:
    """Compute per-metric totals for a single file."""
    lines = fc.line_hits()
    branch_hits = [hits for counts in fc.b.values() for hits in counts]

    return {
        "path": fc.path,
        "lines": _metric(len(lines), sum(1 for hits in lines.values() if hits > 0)),
        "statements": _metric(len(fc.s), sum(1 for hits in fc.s.values() if hits > 0)),
        "functions": _metric(len(fc.f), sum(1 for hits in fc.f.values() if hits > 0)),
        "branches": _metric(len(branch_hits), sum(1 for hits in branch_hits if hits > 0)),
        "uncovered_lines": sorted(line for line, hits in lines.items() if hits == 0),
    }


def build_summary(
    coverage_map: CoverageMap,
    *,
    include_files: bool = True,
    max_uncovered_lines: int = 20,
) -> dict[str, Any]:
    """Build a structured coverage summary.

    Args:
        coverage_map: The coverage to summarize.
        include_files: Whether to include per-file details.
        max_uncovered_lines: Max uncovered lines to list per file.

    Returns:
        Structured dict suitable for JSON serialization.
    """
    file_stats = [summarize_file(coverage_map.files[path]) for path in sorted(coverage_map.files)]

    total: dict[str, Any] = {}
    for metric in _METRICS:
        total[metric] = _metric(
            sum(fs[metric]["total"] for fs in file_stats),
            sum(fs[metric]["covered"] for fs in file_stats),
        )

    result: dict[str, Any] = {"total": total}

    if include_files:
        for fs in file_stats:
            uncovered = fs["uncovered_lines"]
            if len(uncovered) > max_uncovered_lines:
                fs["uncovered_lines"] = uncovered[:max_uncovered_lines]
                fs["uncovered_lines_truncated"] = True
        result["files"] = file_stats

    return result


def build_text_summary(coverage_map: CoverageMap) -> str:
    """Build a concise one-line summary for display contexts."""
    summary = build_summary(coverage_map, include_files=False)["total"]
    if summary["statements"]["total"] == 0:
        return "No coverage data"

    lines = summary["lines"]
    return f"Coverage: {lines['pct']:.1f}% ({lines['covered']}/{lines['total']} lines)"
