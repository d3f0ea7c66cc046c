"""Tests for coverage summaries."""

from mapcov.coverage import (
    CoverageMap,
    FileCoverage,
    Position,
    Range,
    build_summary,
    build_text_summary,
    summarize_file,
)


def _range(line: int) -> Range:
    return Range(Position(line, 0), Position(line, 10))


def _file(path: str, line_hits: dict[int, int]) -> FileCoverage:
    fc = FileCoverage(path=path)
    for line, hits in line_hits.items():
        fc.add_statement(_range(line), hits)
    return fc


class TestSummarizeFile:
    def test_counts_each_metric(self) -> None:
        fc = _file("/a.ts", {1: 1, 2: 0, 3: 4})
        fc.add_function("f", _range(1), _range(1), 0)
        fc.add_branch("if", _range(3), [_range(3), _range(3)], [1, 0])

        stats = summarize_file(fc)

        assert stats["statements"] == {"total": 3, "covered": 2, "pct": 66.67}
        assert stats["lines"] == {"total": 3, "covered": 2, "pct": 66.67}
        assert stats["functions"] == {"total": 1, "covered": 0, "pct": 0.0}
        assert stats["branches"] == {"total": 2, "covered": 1, "pct": 50.0}
        assert stats["uncovered_lines"] == [2]

    def test_empty_metrics_report_full_coverage(self) -> None:
        stats = summarize_file(FileCoverage(path="/empty.ts"))
        assert stats["branches"] == {"total": 0, "covered": 0, "pct": 100.0}


class TestBuildSummary:
    def test_totals_across_files(self) -> None:
        cmap = CoverageMap(
            files={
                "/a.ts": _file("/a.ts", {1: 1, 2: 0}),
                "/b.ts": _file("/b.ts", {1: 1, 2: 1}),
            }
        )

        summary = build_summary(cmap)

        assert summary["total"]["statements"] == {"total": 4, "covered": 3, "pct": 75.0}
        assert [f["path"] for f in summary["files"]] == ["/a.ts", "/b.ts"]

    def test_uncovered_lines_truncated(self) -> None:
        cmap = CoverageMap(files={"/a.ts": _file("/a.ts", dict.fromkeys(range(1, 31), 0))})

        summary = build_summary(cmap, max_uncovered_lines=5)

        file_stats = summary["files"][0]
        assert file_stats["uncovered_lines"] == [1, 2, 3, 4, 5]
        assert file_stats["uncovered_lines_truncated"] is True

    def test_files_can_be_omitted(self) -> None:
        summary = build_summary(CoverageMap(), include_files=False)
        assert "files" not in summary


class TestBuildTextSummary:
    def test_no_data(self) -> None:
        assert build_text_summary(CoverageMap()) == "No coverage data"

    def test_line_percentage(self) -> None:
        cmap = CoverageMap(files={"/a.ts": _file("/a.ts", {1: 1, 2: 0})})
        assert build_text_summary(cmap) == "Coverage: 50.0% (1/2 lines)"
