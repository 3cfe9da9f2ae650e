"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Wiring shared by every host adapter.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..cache.state import BuildState
from ..core.config import PluginOptions, load_options
from ..core.invalidation import InvalidationProtocol
from ..core.metrics import BuildMetrics, NoOpBuildMetrics
from ..core.orchestrator import TransformOrchestrator, TransformOutput
from ..core.resolution import ResolutionAdapter
from ..core.virtual import VirtualModuleProtocol
from ..engine.classnames import ClassNameGenerator
from ..engine.contracts import EngineFactory, EngineOptions, ExtractionEngine
from ..engine.simple import SimpleExtractionEngine
from ..host.contracts import DevServer, PluginContext


def coerce_options(options: PluginOptions | Mapping[str, Any] | None) -> PluginOptions:
    if options is None:
        return PluginOptions()
    if isinstance(options, PluginOptions):
        return options
    return load_options(options)


class StyleCoordinator:
    """
    Owns the process-scoped state and the components operating on it.

    Pass the same `BuildState` to several adapters to let them share
    artifacts and export records within one process.
    """

    def __init__(
        self,
        options: PluginOptions | Mapping[str, Any] | None = None,
        *,
        state: BuildState | None = None,
        engine_factory: EngineFactory | None = None,
        metrics: BuildMetrics | None = None,
        root: str | Path | None = None,
    ) -> None:
        self.options = coerce_options(options)
        self.state = state or BuildState.create(debug=self.options.debug)
        if self.options.debug and self.state.temporary_programs is None:
            self.state.temporary_programs = {}
        self.metrics: BuildMetrics = metrics or NoOpBuildMetrics()
        self.resolution = ResolutionAdapter(self.options, root=root)
        self.virtual_modules = VirtualModuleProtocol(self.state, self.options, metrics=self.metrics)
        self.invalidation = InvalidationProtocol(self.state, self.options, metrics=self.metrics)
        self._engine_factory: EngineFactory = engine_factory or SimpleExtractionEngine
        self._orchestrator: TransformOrchestrator | None = None
        self._server: DevServer | None = None

    @property
    def css_extension(self) -> str:
        return self.options.css_extension

    @property
    def mocks(self) -> dict[str, str]:
        """Live mock table; entries added here apply to later loads."""
        return self.resolution.mocks

    @property
    def engine(self) -> ExtractionEngine | None:
        return self._orchestrator.engine if self._orchestrator is not None else None

    def specifier_for(self, file_id: str) -> str:
        return self.virtual_modules.specifier_for(file_id)

    async def setup(self) -> TransformOrchestrator:
        """Build the engine and orchestrator once."""
        if self._orchestrator is not None:
            return self._orchestrator
        engine = self._engine_factory(
            EngineOptions(
                load_file=self.resolution.load_file,
                value_cache=self.state.values,
                ignored_imports=self.options.ignored_imports,
                library_import=self.options.library_import,
                class_names=ClassNameGenerator(self.options.class_name_seed),
                debug=self.options.debug,
                temporary_programs=self.state.temporary_programs,
            )
        )
        self._orchestrator = TransformOrchestrator(
            self.state,
            self.options,
            engine,
            specifier_for=self.specifier_for,
            internal_id_for=self.virtual_modules.internal_id_for,
            metrics=self.metrics,
        )
        return self._orchestrator

    async def run_transform(
        self, code: str, file_id: str, ctx: PluginContext | None = None
    ) -> TransformOutput | None:
        orchestrator = await self.setup()
        if ctx is not None:
            self.resolution.bind_resolver(ctx.resolve)
        try:
            output = await orchestrator.transform(code, file_id, server=self._server)
        except BaseException:
            # a failed re-transform never reaches propagation
            self.invalidation.discard_snapshot(file_id)
            raise
        await self.invalidation.propagate_if_changed(file_id, self._server)
        return output

    async def handle_file_change(self, file_id: str, server: DevServer) -> list[str]:
        return await self.invalidation.handle_file_change(file_id, server)

    def get_temporary_programs(self) -> dict[str, str]:
        return dict(self.state.temporary_programs or {})
