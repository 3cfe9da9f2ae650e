"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Extraction engine contract consumed by the transform orchestrator.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..cache.values import ValueCache
from ..core.config import LIBRARY_IMPORT_NAME
from .classnames import ClassNameGenerator

LoadFile = Callable[[str, str], Awaitable[tuple[str, str]]]
"""`(specifier, importer_id) -> (canonical_id, contents)`; empty contents mean opaque."""


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """
    Output of one engine run on a styled file.

    Attributes:
        code: Rewritten program code importing the virtual CSS module.
        css: Generated CSS text; `None` when CSS evaluation was skipped.
        sourcemap: Source map (v3 dict) for the rewritten code, if any.
    """

    code: str
    css: str | None = None
    sourcemap: dict[str, Any] | None = None


@dataclass(slots=True)
class EngineOptions:
    """Capabilities and shared state injected into an engine."""

    load_file: LoadFile
    value_cache: ValueCache
    ignored_imports: Mapping[str, frozenset[str] | None] = field(default_factory=dict)
    library_import: str = LIBRARY_IMPORT_NAME
    class_names: ClassNameGenerator = field(default_factory=ClassNameGenerator)
    debug: bool = False
    temporary_programs: dict[str, str] | None = None


class ExtractionEngine(Protocol):
    """Static evaluator/rewriter turning style declarations into class names + CSS."""

    supports_css_skip: bool

    async def transform(
        self,
        code: str,
        file_id: str,
        *,
        skip_css_evaluation: bool,
        virtual_module_specifier: str,
    ) -> ExtractionResult | None: ...


EngineFactory = Callable[[EngineOptions], ExtractionEngine]
