"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Hook-style plugin for bundlers exposing resolve/load/transform hooks.
"""

from __future__ import annotations

from ..core.orchestrator import TransformOutput
from ..host.contracts import DevServer, HotUpdateContext, PluginContext
from .base import StyleCoordinator


class StyleWeavePlugin(StyleCoordinator):
    """
    Plugin object whose methods map onto host hooks.

    Hooks: `config`, `configure_server`, `resolve_id`, `load`, `transform`,
    `handle_hot_update`.
    """

    name = "styleweave"
    enforce = "pre"

    async def config(self) -> None:
        await self.setup()

    def configure_server(self, server: DevServer) -> None:
        self._server = server

    def resolve_id(self, requested_id: str) -> str | None:
        return self.virtual_modules.resolve_id(requested_id)

    async def load(self, module_id: str, ctx: PluginContext | None = None) -> str | None:
        return await self.virtual_modules.load(module_id, ctx)

    async def transform(
        self, code: str, file_id: str, ctx: PluginContext | None = None
    ) -> TransformOutput | None:
        return await self.run_transform(code, file_id, ctx)

    async def handle_hot_update(self, ctx: HotUpdateContext) -> list[str]:
        return await self.handle_file_change(ctx.file, ctx.server)
