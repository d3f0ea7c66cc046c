"""Source map discovery in generated code.

Two annotation forms are recognised, in this order:

1. Inline maps embedded as a data URI:
   ``//# sourceMappingURL=data:application/json;base64,<payload>``
2. Sidecar map files referenced by path, resolved relative to the directory
   of the generated file:
   ``//# sourceMappingURL=bundle.js.map``

Both also accept the legacy ``//@`` prefix and the ``/*# ... */`` comment
form used by CSS. When a file carries several annotations the last one wins.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from pathlib import Path
from typing import Any
from urllib.parse import unquote

from mapcov.core.logging import get_logger

log = get_logger(__name__)

RawSourceMap = dict[str, Any]

_INLINE_RE = re.compile(
    r"^\s*?/[/*][@#]\s+?sourceMappingURL=data:"
    r"(?:(?:application|text)/json(?:;charset=(?P<charset>[^;,]+?)?)?)?"
    r"(?:;(?P<base64>base64))?,(?P<payload>.*?)$",
    re.MULTILINE,
)

_MAP_FILE_RE = re.compile(
    r"(?://[@#][ \t]+?sourceMappingURL=(?P<line>[^\s'\"`]+?)[ \t]*?$)"
    r"|(?:/\*[@#][ \t]+sourceMappingURL=(?P<block>[^*]+?)[ \t]*?(?:\*/)[ \t]*?$)",
    re.MULTILINE,
)


def _last_match(pattern: re.Pattern[str], code: str) -> re.Match[str] | None:
    match = None
    for match in pattern.finditer(code):
        pass
    return match


def _decode_object(text: str) -> RawSourceMap:
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("source map must be a JSON object")
    return data


def from_inline_comment(code: str) -> RawSourceMap | None:
    """Decode the last inline data-URI source map in ``code``, if any."""
    match = _last_match(_INLINE_RE, code)
    if match is None:
        return None

    payload = match.group("payload").strip()
    if payload.endswith("*/"):
        payload = payload[:-2].rstrip()
    charset = match.group("charset") or "utf-8"

    try:
        if match.group("base64"):
            text = base64.b64decode(payload).decode(charset)
        else:
            text = unquote(payload, encoding=charset)
        return _decode_object(text)
    except (binascii.Error, LookupError, ValueError) as e:
        log.warning("inline_source_map_invalid", error=str(e))
        return None


def from_map_file_comment(code: str, directory: Path) -> RawSourceMap | None:
    """Read the sidecar map referenced by the last map-file annotation in ``code``."""
    match = _last_match(_MAP_FILE_RE, code)
    if match is None:
        return None

    reference = (match.group("line") or match.group("block") or "").strip()
    if not reference or reference.startswith("data:"):
        return None

    map_path = directory / unquote(reference)
    try:
        return _decode_object(map_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("source_map_file_unreadable", path=str(map_path), error=str(e))
        return None


def extract(code: str, filename: str | Path) -> RawSourceMap | None:
    """Locate and decode the source map for a generated file.

    Args:
        code: Full text of the generated file.
        filename: Path of the generated file; sidecar references resolve
            against its directory.

    Returns:
        The decoded source map, or None when the file carries no usable map.
    """
    source_map = from_inline_comment(code)
    if source_map is None:
        source_map = from_map_file_comment(code, Path(filename).parent)
    return source_map
