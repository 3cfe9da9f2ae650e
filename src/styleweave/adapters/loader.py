"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Loader-chain adapter: a transform loader for source files plus a CSS loader
serving the generated stylesheet of each file.
"""

from __future__ import annotations

from typing import Any

from ..cache.artifacts import artifact_key, source_file_for_key
from ..host.contracts import PluginContext
from .base import StyleCoordinator

FILEPATH_QUERY = "?filepath="


class LoaderAdapter(StyleCoordinator):
    """
    Rewritten modules import `<file>.<ext>?filepath=<file>`; the host routes
    that request to `css_loader`, which waits for the file's CSS artifact.
    """

    def specifier_for(self, file_id: str) -> str:
        return f"{artifact_key(file_id, self.css_extension)}{FILEPATH_QUERY}{file_id}"

    async def transform_loader(
        self,
        source: str,
        resource_path: str,
        ctx: PluginContext | None = None,
        input_map: dict[str, Any] | None = None,
    ) -> tuple[str, dict[str, Any] | None]:
        """Return `(code, map)`; unstyled modules pass through untouched."""
        output = await self.run_transform(source, resource_path, ctx)
        if output is None:
            return source, input_map
        return output.code, output.map

    async def css_loader(
        self,
        resource_path: str,
        resource_query: str = "",
        ctx: PluginContext | None = None,
    ) -> str:
        file_id = source_file_for_key(resource_path, self.css_extension)
        if resource_query.startswith(FILEPATH_QUERY):
            file_id = resource_query[len(FILEPATH_QUERY) :].split("&", 1)[0]
        key = artifact_key(file_id, self.css_extension)
        return await self.virtual_modules.load_key(
            key, module_id=f"{resource_path}{resource_query}", ctx=ctx
        )
