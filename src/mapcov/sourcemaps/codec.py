"""On-disk source map cache entries.

Each entry is a JSON document at ``<cache_directory>/<stem>-<hash>.map``,
where ``stem`` is the generated file's base name without its extension and
``hash`` is the content hash the coverage pipeline computed for it.
"""

from __future__ import annotations

import contextlib
import hashlib
import json
import os
import tempfile
from pathlib import Path

from mapcov.config.constants import CACHE_FILE_SUFFIX
from mapcov.core.errors import CacheError
from mapcov.core.logging import get_logger
from mapcov.sourcemaps.extract import RawSourceMap

log = get_logger(__name__)


def hash_source(code: str) -> str:
    """Content hash for generated code, for callers without their own."""
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


class CacheCodec:
    """Path derivation and (de)serialization for cache entries."""

    def __init__(self, cache_directory: Path) -> None:
        self.cache_directory = Path(cache_directory)

    def cached_path(self, source: str | Path, content_hash: str) -> Path:
        return self.cache_directory / f"{Path(source).stem}-{content_hash}{CACHE_FILE_SUFFIX}"

    def write(self, path: Path, source_map: RawSourceMap) -> None:
        """Serialize ``source_map`` to ``path``, replacing any existing entry.

        The document is written to a temporary sibling and moved into place,
        so a failed write leaves nothing at ``path``.

        Raises:
            CacheError: If the directory cannot be created or the write fails.
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheError.directory_unavailable(str(path.parent), str(e)) from e

        payload = json.dumps(source_map)
        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            raise CacheError.write_failed(str(path), str(e)) from e

        log.debug("source_map_cached", path=str(path), bytes=len(payload))

    def read(self, path: Path) -> RawSourceMap:
        """Load a cache entry.

        Raises:
            OSError: If the file cannot be read.
            ValueError: If the file is not a JSON object.
        """
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Cached source map is not a JSON object: {path}")
        return data
