"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Extraction engine contract and the reference engine.
"""

from .classnames import ClassNameGenerator
from .contracts import (
    EngineFactory,
    EngineOptions,
    ExtractionEngine,
    ExtractionResult,
    LoadFile,
)
from .simple import OpaqueValue, SimpleExtractionEngine

__all__ = [
    "ClassNameGenerator",
    "EngineFactory",
    "EngineOptions",
    "ExtractionEngine",
    "ExtractionResult",
    "LoadFile",
    "OpaqueValue",
    "SimpleExtractionEngine",
]
