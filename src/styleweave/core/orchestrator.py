"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Per-file transform entry point driving the extraction engine.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..cache.artifacts import artifact_key
from ..cache.state import BuildState
from ..host.contracts import DevServer
from .config import PluginOptions
from .errors import StyleTransformError
from .metrics import BuildMetrics, NoOpBuildMetrics

if TYPE_CHECKING:
    from ..engine.contracts import ExtractionEngine

logger = logging.getLogger("styleweave.orchestrator")

SpecifierFactory = Callable[[str], str]
"""Maps a source file id to the module specifier its rewritten code imports."""


@dataclass(frozen=True, slots=True)
class TransformOutput:
    """Rewritten code handed back to the host."""

    code: str
    map: dict[str, Any] | None = None


class TransformOrchestrator:
    """
    Run one file through the engine and manage its artifact entry.

    The run that creates an entry is its only writer: it settles the entry
    with the generated CSS, rejects it on failure, or removes it when the
    file turns out to contain no styles.
    """

    def __init__(
        self,
        state: BuildState,
        options: PluginOptions,
        engine: ExtractionEngine,
        *,
        specifier_for: SpecifierFactory,
        internal_id_for: Callable[[str], str] | None = None,
        metrics: BuildMetrics | None = None,
    ) -> None:
        self._state = state
        self._options = options
        self._engine = engine
        self._specifier_for = specifier_for
        self._internal_id_for = internal_id_for
        self._metrics: BuildMetrics = metrics or NoOpBuildMetrics()

    @property
    def engine(self) -> ExtractionEngine:
        return self._engine

    async def transform(
        self,
        code: str,
        file_id: str,
        *,
        server: DevServer | None = None,
    ) -> TransformOutput | None:
        """Return rewritten code, or `None` to leave the module unchanged."""
        if not self._options.accepts(file_id):
            return None

        key = artifact_key(file_id, self._options.css_extension)
        entry, is_new = self._state.artifacts.get_or_create(key)
        skip_css = not is_new and self._engine.supports_css_skip

        self._metrics.incr("transforms_total")
        started = time.perf_counter()
        try:
            result = await self._engine.transform(
                code,
                file_id,
                skip_css_evaluation=skip_css,
                virtual_module_specifier=self._specifier_for(file_id),
            )
        except asyncio.CancelledError as exc:
            if is_new and not entry.done:
                entry.fail(exc)
            raise
        except Exception as exc:
            self._metrics.incr("transform_errors")
            error = StyleTransformError.from_exception(exc, module_id=file_id, source=code)
            if is_new:
                entry.fail(error)
            logger.debug("Transform of '%s' failed: %s", file_id, error.message)
            raise error from exc
        finally:
            self._metrics.observe("transform_seconds", time.perf_counter() - started)

        if result is None:
            if is_new:
                entry.settle("")
            if is_new or entry.done:
                self._state.artifacts.delete_if(key, entry)
            self._state.unmark_styled(file_id)
            return None

        if skip_css:
            self._metrics.incr("transforms_skipped")
        if is_new:
            if result.css is None:
                error = StyleTransformError(
                    "extraction engine returned no CSS for a full evaluation",
                    module_id=file_id,
                )
                entry.fail(error)
                raise error
            entry.settle(result.css)
            self._metrics.incr("styled_files")

        self._state.mark_styled(file_id)

        if server is not None and is_new and self._internal_id_for is not None:
            await self._reload_virtual_module(server, self._internal_id_for(key))

        return TransformOutput(code=result.code, map=result.sourcemap)

    async def _reload_virtual_module(self, server: DevServer, module_id: str) -> None:
        module = server.module_graph.get_module_by_id(module_id)
        if module is not None:
            await server.reload_module(module)
