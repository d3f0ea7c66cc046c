"""Reading and writing Istanbul ``coverage-final.json`` documents.

Structure of coverage-final.json:
{
  "/path/to/file.js": {
    "path": "/path/to/file.js",
    "statementMap": { "0": {"start": {"line": 1, "column": 0}, "end": ...}, ... },
    "s": { "0": 1, "1": 0, ... },  // statement hit counts
    "branchMap": { "0": {"type": "if", "locations": [...], "line": 5}, ... },
    "b": { "0": [1, 0], ... },  // branch hit counts per location
    "fnMap": { "0": {"name": "foo", "decl": {"start": {"line": 1}}, ...}, ... },
    "f": { "0": 1, ... },  // function hit counts
    "contentHash": "..."  // present when the instrumenter caches transforms
  }
}
"""

import json
from pathlib import Path
from typing import Any

from mapcov.config.constants import COVERAGE_FINAL_FILENAME
from mapcov.coverage.models import CoverageParseError


def load_coverage_report(path: Path) -> dict[str, Any]:
    """Load a coverage report from a JSON file or a directory containing one.

    Raises:
        CoverageParseError: If the file is missing or is not a JSON object.
    """
    if not path.exists():
        raise CoverageParseError(f"Coverage path not found: {path}")

    if path.is_dir():
        json_file = path / COVERAGE_FINAL_FILENAME
        if not json_file.exists():
            raise CoverageParseError(f"{COVERAGE_FINAL_FILENAME} not found in {path}")
    else:
        json_file = path

    try:
        with json_file.open(encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CoverageParseError(f"Failed to parse coverage JSON: {e}") from e

    if not isinstance(data, dict):
        raise CoverageParseError(f"Coverage JSON must be an object: {json_file}")
    return data


def write_coverage_report(path: Path, data: dict[str, Any]) -> None:
    """Write a coverage report as JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f)
