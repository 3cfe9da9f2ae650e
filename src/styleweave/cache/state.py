"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Process-scoped build state shared by every coordination component.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .artifacts import ArtifactCache
from .values import ValueCache


@dataclass(slots=True)
class BuildState:
    """
    Mutable state for one build or dev-server process.

    Attributes:
        artifacts: Deferred CSS entries keyed by artifact key.
        values: Export-value records keyed by source file.
        styled_files: Files whose last transform produced a style artifact.
        temporary_programs: Retained intermediate engine programs, only
            populated when debug mode is enabled.
    """

    artifacts: ArtifactCache = field(default_factory=ArtifactCache)
    values: ValueCache = field(default_factory=ValueCache)
    styled_files: set[str] = field(default_factory=set)
    temporary_programs: dict[str, str] | None = None

    @classmethod
    def create(cls, *, debug: bool = False) -> "BuildState":
        return cls(temporary_programs={} if debug else None)

    def mark_styled(self, file_id: str) -> None:
        self.styled_files.add(file_id)

    def unmark_styled(self, file_id: str) -> None:
        self.styled_files.discard(file_id)

    def contains_styles(self, file_id: str) -> bool:
        return file_id in self.styled_files

    def is_tracked(self, file_id: str) -> bool:
        """Whether any cached state exists that a change to `file_id` affects."""
        return file_id in self.styled_files or self.values.has_record(file_id)
