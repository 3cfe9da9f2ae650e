"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Runtime side of the style authoring API.

`css` templates only exist at build time; the transform replaces every one
of them with a class name. Reaching `css` at runtime means the transform did
not run for the calling module.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..core.errors import StyleRuntimeError


def css(*_raw: Any) -> str:
    raise StyleRuntimeError(
        "styleweave: called 'css' at runtime. This indicates an error in the transform."
    )


def style(strings: Sequence[str], *values: Any) -> str:
    """Concatenate template parts and interpolated values."""
    out = ""
    for index in range(max(len(strings), len(values))):
        if index < len(strings):
            out += strings[index]
        if index < len(values) and values[index] is not None:
            out += str(values[index])
    return out
