"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/__init__.py.
"""

from .artifacts import ArtifactCache, artifact_key, source_file_for_key
from .deferred import DeferredEntry, EntryAlreadySettledError, EntryState
from .state import BuildState
from .values import ValueCache

__all__ = [
    "ArtifactCache",
    "BuildState",
    "DeferredEntry",
    "EntryAlreadySettledError",
    "EntryState",
    "ValueCache",
    "artifact_key",
    "source_file_for_key",
]
