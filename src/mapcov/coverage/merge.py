"""Coverage merging with additive hit semantics.

Coverage for the same file may arrive from several places: multiple
generated bundles mapping onto one original source, or a pass-through file
that also appears as a remap target. Hits are summed per location:

- statement at range R: s = sum of s over inputs with a statement at R
- function declared at range D: f = sum of f
- branch with the same arm locations: b[i] = sum of b[i]

Items at locations only one input knows about are carried over as-is.
"""

from collections.abc import Iterable

from mapcov.coverage.models import CoverageMap, FileCoverage


def merge_file_coverage(files: Iterable[FileCoverage]) -> FileCoverage:
    """Merge FileCoverage objects for the same file into a new object.

    Args:
        files: FileCoverage objects to merge (must have same path).

    Returns:
        Merged FileCoverage with summed hits.
    """
    files_list = list(files)
    if not files_list:
        raise ValueError("Cannot merge empty file coverage list")

    result = FileCoverage(path=files_list[0].path)
    hashes = {fc.content_hash for fc in files_list}
    if len(hashes) == 1:
        result.content_hash = hashes.pop()

    for fc in files_list:
        for stmt_id, loc in fc.statement_map.items():
            result.add_statement(loc, fc.s.get(stmt_id, 0))
        for fn_id, fn in fc.fn_map.items():
            result.add_function(fn.name, fn.decl, fn.loc, fc.f.get(fn_id, 0))
        for branch_id, branch in fc.branch_map.items():
            hits = fc.b.get(branch_id) or [0] * len(branch.locations)
            result.add_branch(branch.type, branch.loc, list(branch.locations), hits)

    return result


def merge_reports(reports: Iterable[CoverageMap]) -> CoverageMap:
    """Merge CoverageMap objects, summing hits for files present in several.

    Args:
        reports: CoverageMap objects to merge.

    Returns:
        New CoverageMap; inputs are left untouched.
    """
    files_by_path: dict[str, list[FileCoverage]] = {}
    for report in reports:
        for path, fc in report.files.items():
            files_by_path.setdefault(path, []).append(fc)

    merged: dict[str, FileCoverage] = {}
    for path, file_list in files_by_path.items():
        if len(file_list) == 1:
            merged[path] = FileCoverage.from_dict(file_list[0].to_dict(), path)
        else:
            merged[path] = merge_file_coverage(file_list)

    return CoverageMap(files=merged)
