"""Istanbul coverage model, I/O, merging and summaries.

Usage:
    from mapcov.coverage import CoverageMap, load_coverage_report, build_summary

    raw = load_coverage_report(Path("coverage/coverage-final.json"))
    summary = build_summary(CoverageMap.from_dict(raw))
"""

from mapcov.coverage.io import load_coverage_report, write_coverage_report
from mapcov.coverage.merge import merge_file_coverage, merge_reports
from mapcov.coverage.models import (
    BranchMapping,
    CoverageMap,
    CoverageParseError,
    FileCoverage,
    FunctionMapping,
    Position,
    Range,
)
from mapcov.coverage.report import build_summary, build_text_summary, summarize_file

__all__ = [
    # Models
    "BranchMapping",
    "CoverageMap",
    "CoverageParseError",
    "FileCoverage",
    "FunctionMapping",
    "Position",
    "Range",
    # I/O
    "load_coverage_report",
    "write_coverage_report",
    # Merge
    "merge_file_coverage",
    "merge_reports",
    # Report
    "build_summary",
    "build_text_summary",
    "summarize_file",
]
