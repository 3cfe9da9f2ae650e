"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Line-level v3 source maps for rewritten modules.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import Any

_BASE64 = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"


def encode_vlq(value: int) -> str:
    """Base64 VLQ encoding of one signed integer."""
    vlq = (value << 1) if value >= 0 else ((-value) << 1) | 1
    out = ""
    while True:
        digit = vlq & 31
        vlq >>= 5
        if vlq:
            digit |= 32
        out += _BASE64[digit]
        if not vlq:
            return out


def line_source_map(
    *,
    file_id: str,
    source: str,
    line_origins: Sequence[int | None],
) -> dict[str, Any]:
    """
    Build a source map with one segment per generated line.

    `line_origins[i]` is the 0-based source line generated line `i` comes
    from, or `None` for synthesized lines.
    """
    segments: list[str] = []
    previous_line = 0
    for origin in line_origins:
        if origin is None:
            segments.append("")
            continue
        # generated column 0, source 0, line delta, source column 0
        segments.append("A" + "A" + encode_vlq(origin - previous_line) + "A")
        previous_line = origin
    return {
        "version": 3,
        "file": os.path.basename(file_id),
        "sources": [file_id],
        "sourcesContent": [source],
        "names": [],
        "mappings": ";".join(segments),
    }
