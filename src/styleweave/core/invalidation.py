"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Hot update handling: clear stale cache state and reprocess dependents.
"""

from __future__ import annotations

import logging
from typing import Any

from ..cache.artifacts import artifact_key
from ..cache.state import BuildState
from ..host.contracts import DevServer
from .config import PluginOptions
from .metrics import BuildMetrics, NoOpBuildMetrics

logger = logging.getLogger("styleweave.invalidation")


class InvalidationProtocol:
    """
    React to file changes reported by the host watcher.

    Invalidation walks one hop of importers. Each invalidated importer keeps
    a snapshot of its previous export record; once the host has reprocessed
    it, `propagate_if_changed` continues to the next hop only when the
    importer's own exported values changed.
    """

    def __init__(
        self,
        state: BuildState,
        options: PluginOptions,
        *,
        metrics: BuildMetrics | None = None,
    ) -> None:
        self._state = state
        self._options = options
        self._metrics: BuildMetrics = metrics or NoOpBuildMetrics()
        self._snapshots: dict[str, dict[str, Any]] = {}

    def invalidate_file(self, file_id: str) -> dict[str, Any]:
        """Drop the export record and CSS entry of `file_id`; return the old record."""
        snapshot = self._state.values.clear(file_id)
        self._state.artifacts.delete(artifact_key(file_id, self._options.css_extension))
        self._metrics.incr("invalidations")
        return snapshot

    def has_snapshot(self, file_id: str) -> bool:
        return file_id in self._snapshots

    def discard_snapshot(self, file_id: str) -> None:
        self._snapshots.pop(file_id, None)

    async def handle_file_change(self, file_id: str, server: DevServer) -> list[str]:
        """Invalidate `file_id` and reprocess its importers; returns reloaded ids."""
        if not self._state.is_tracked(file_id):
            return []
        logger.debug("Invalidating '%s'", file_id)
        self.invalidate_file(file_id)
        self._snapshots.pop(file_id, None)
        return await self._reprocess_importers(file_id, server)

    async def propagate_if_changed(self, file_id: str, server: DevServer | None) -> list[str]:
        snapshot = self._snapshots.pop(file_id, None)
        if snapshot is None or server is None:
            return []
        current = self._state.values.peek(file_id) or {}
        if current == snapshot:
            return []
        logger.debug("Exports of '%s' changed, invalidating its importers", file_id)
        return await self._reprocess_importers(file_id, server)

    async def _reprocess_importers(self, file_id: str, server: DevServer) -> list[str]:
        module = server.module_graph.get_module_by_id(file_id)
        if module is None:
            return []

        reloaded: list[str] = []
        for importer in sorted(module.importers, key=lambda node: node.id):
            if self._state.is_tracked(importer.id):
                self._snapshots[importer.id] = self.invalidate_file(importer.id)
            await server.reload_module(importer)
            reloaded.append(importer.id)
        return reloaded
