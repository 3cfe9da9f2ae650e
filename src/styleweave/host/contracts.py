"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Capabilities a host bundler exposes to the style plugin.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@runtime_checkable
class PluginContext(Protocol):
    """Per-hook context handed to `transform` and `load`."""

    async def resolve(self, specifier: str, importer: str) -> str | None:
        """Resolve `specifier` relative to `importer`; `None` when not found."""

    def add_watch_file(self, file_id: str) -> None:
        """Register `file_id` as a build dependency of the current module."""


class ModuleNode(Protocol):
    id: str

    @property
    def importers(self) -> Iterable["ModuleNode"]: ...


class ModuleGraph(Protocol):
    def get_module_by_id(self, module_id: str) -> ModuleNode | None: ...


class DevServer(Protocol):
    """Live development server capabilities used for hot updates."""

    module_graph: ModuleGraph

    async def reload_module(self, module: ModuleNode) -> None:
        """Ask the host to re-process `module` through its transform pipeline."""


@dataclass(frozen=True, slots=True)
class HotUpdateContext:
    """One file-change notification from the host's watcher."""

    file: str
    server: DevServer
    timestamp: float = field(default_factory=time.time)
