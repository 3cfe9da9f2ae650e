"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Virtual CSS modules and the bounded wait with watchdog warnings.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field

from ..cache.artifacts import artifact_key, source_file_for_key
from ..cache.deferred import DeferredEntry
from ..cache.state import BuildState
from ..host.contracts import PluginContext
from .config import PluginOptions
from .errors import MissingArtifactError
from .metrics import BuildMetrics, NoOpBuildMetrics

logger = logging.getLogger("styleweave.virtual")

VIRTUAL_MODULE_PREFIX = "virtual:styleweave:"
RESOLVED_VIRTUAL_MODULE_PREFIX = "\0" + VIRTUAL_MODULE_PREFIX


@dataclass(slots=True)
class PendingWait:
    """Watchdog bookkeeping for one outstanding virtual module load."""

    key: str
    started_at: float = field(default_factory=time.monotonic)
    ticks: int = 0

    @property
    def elapsed_s(self) -> float:
        return time.monotonic() - self.started_at


class VirtualModuleProtocol:
    """
    Serve generated CSS as virtual modules.

    `load` waits on the artifact's deferred entry in rounds of
    `watchdog_interval_s`. Every round that times out logs a warning and
    re-fetches the entry by key, so a waiter follows an entry that was
    replaced by invalidation. The wait ends only when an entry settles.
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

    @property
    def watchdog_interval_s(self) -> float:
        return self._options.watchdog_interval_s

    def specifier_for(self, file_id: str) -> str:
        return VIRTUAL_MODULE_PREFIX + artifact_key(file_id, self._options.css_extension)

    def internal_id_for(self, key: str) -> str:
        return RESOLVED_VIRTUAL_MODULE_PREFIX + key

    def resolve_id(self, requested_id: str) -> str | None:
        if requested_id.startswith(VIRTUAL_MODULE_PREFIX):
            return RESOLVED_VIRTUAL_MODULE_PREFIX + requested_id[len(VIRTUAL_MODULE_PREFIX) :]
        return None

    def owns(self, module_id: str) -> bool:
        return module_id.startswith(RESOLVED_VIRTUAL_MODULE_PREFIX)

    def key_for(self, module_id: str) -> str:
        module_id = module_id.split("?", 1)[0]
        return module_id[len(RESOLVED_VIRTUAL_MODULE_PREFIX) :]

    async def load(self, module_id: str, ctx: PluginContext | None = None) -> str | None:
        """CSS text for a resolved virtual id; `None` for ids owned by others."""
        if not self.owns(module_id):
            return None
        return await self.load_key(self.key_for(module_id), module_id=module_id, ctx=ctx)

    async def load_key(
        self,
        key: str,
        *,
        module_id: str | None = None,
        ctx: PluginContext | None = None,
    ) -> str:
        entry = self._state.artifacts.get(key)
        if entry is None:
            raise MissingArtifactError(key, module_id or key)

        if ctx is not None:
            ctx.add_watch_file(source_file_for_key(key, self._options.css_extension))

        return await self.wait_for_entry(key, entry)

    async def wait_for_entry(self, key: str, entry: DeferredEntry) -> str:
        wait = PendingWait(key=key)
        interval = self._options.watchdog_interval_s
        while True:
            try:
                return await asyncio.wait_for(entry.wait(), timeout=interval)
            except asyncio.TimeoutError:
                if entry.done:
                    # settled while the timeout fired
                    return entry.value

            wait.ticks += 1
            self._metrics.incr("watchdog_warnings")
            logger.warning(
                "CSS entry '%s' pending for over %.1fs, possible deadlock",
                key,
                wait.elapsed_s,
            )

            current = self._state.artifacts.get(key)
            if current is not None and current is not entry:
                logger.debug("CSS entry '%s' was replaced, following the new entry", key)
                entry = current
