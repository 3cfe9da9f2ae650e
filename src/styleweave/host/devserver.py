"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

In-process development host driving a `StyleWeavePlugin`.

Suitable for tests and local experiments. It resolves relative specifiers on
the file system, records importer edges as the plugin resolves imports, and
replays hot updates the way a dev server does: plugin hook first, then a
reload of the changed module.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from ..core.config import DEFAULT_EXTENSIONS
from .contracts import HotUpdateContext

if TYPE_CHECKING:
    from ..adapters.plugin import StyleWeavePlugin
    from ..core.orchestrator import TransformOutput

logger = logging.getLogger("styleweave.host")


class DevModuleNode:
    """One module in the development module graph."""

    __slots__ = ("id", "importers", "imported", "code", "transform_count")

    def __init__(self, module_id: str) -> None:
        self.id = module_id
        self.importers: set[DevModuleNode] = set()
        self.imported: set[DevModuleNode] = set()
        self.code: str | None = None
        self.transform_count = 0

    def __repr__(self) -> str:
        return f"DevModuleNode({self.id!r})"


class DevModuleGraph:
    def __init__(self) -> None:
        self._modules: dict[str, DevModuleNode] = {}

    def get_module_by_id(self, module_id: str) -> DevModuleNode | None:
        return self._modules.get(module_id)

    def ensure(self, module_id: str) -> DevModuleNode:
        node = self._modules.get(module_id)
        if node is None:
            node = DevModuleNode(module_id)
            self._modules[module_id] = node
        return node

    def add_edge(self, importer_id: str, imported_id: str) -> None:
        importer = self.ensure(importer_id)
        imported = self.ensure(imported_id)
        importer.imported.add(imported)
        imported.importers.add(importer)

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._modules


class _DevPluginContext:
    def __init__(self, server: "InMemoryDevServer", module_id: str) -> None:
        self._server = server
        self._module_id = module_id

    async def resolve(self, specifier: str, importer: str) -> str | None:
        resolved = self._server.resolve_path(specifier, importer)
        if resolved is not None:
            self._server.module_graph.add_edge(importer, resolved)
        return resolved

    def add_watch_file(self, file_id: str) -> None:
        self._server.watch_files.setdefault(self._module_id, set()).add(file_id)


class InMemoryDevServer:
    """Minimal dev server implementing the `DevServer` capabilities."""

    def __init__(
        self,
        plugin: "StyleWeavePlugin",
        *,
        root: str | Path,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        aliases: Mapping[str, str] | None = None,
    ) -> None:
        self.plugin = plugin
        self.root = str(Path(root).resolve())
        self.extensions = tuple(extensions)
        self.aliases = dict(aliases or {})
        self.module_graph = DevModuleGraph()
        self.watch_files: dict[str, set[str]] = {}
        self.reloaded: list[str] = []

    async def start(self) -> None:
        await self.plugin.config()
        self.plugin.configure_server(self)

    def resolve_path(self, specifier: str, importer: str) -> str | None:
        if specifier in self.aliases:
            return self.aliases[specifier]
        if specifier.startswith(("./", "../", "/")):
            base = specifier
            if not os.path.isabs(specifier):
                base = os.path.join(os.path.dirname(importer), specifier)
            base = os.path.normpath(base)
            candidates = [base]
            candidates += [base + ext for ext in self.extensions]
            candidates += [os.path.join(base, "index" + ext) for ext in self.extensions]
            for candidate in candidates:
                if os.path.isfile(candidate):
                    return candidate
            return None
        external = os.path.join(self.root, "node_modules", specifier)
        return external if os.path.exists(external) else None

    async def transform_file(self, file_id: str) -> "TransformOutput | None":
        code = await asyncio.to_thread(Path(file_id).read_text, encoding="utf-8")
        node = self.module_graph.ensure(file_id)
        output = await self.plugin.transform(code, file_id, _DevPluginContext(self, file_id))
        node.code = output.code if output is not None else code
        node.transform_count += 1
        if output is not None:
            virtual_id = self.plugin.resolve_id(self.plugin.specifier_for(file_id))
            if virtual_id is not None:
                self.module_graph.add_edge(file_id, virtual_id)
        return output

    async def load_virtual(self, specifier: str) -> str:
        module_id = self.plugin.resolve_id(specifier)
        if module_id is None:
            raise KeyError(f"'{specifier}' is not a virtual module id")
        css = await self.plugin.load(module_id, _DevPluginContext(self, module_id))
        if css is None:
            raise KeyError(f"'{module_id}' was not served by the plugin")
        return css

    async def notify_change(self, file_id: str) -> list[str]:
        """Replay a watcher event for `file_id`; returns ids reloaded by the plugin."""
        reloaded = await self.plugin.handle_hot_update(HotUpdateContext(file=file_id, server=self))
        node = self.module_graph.get_module_by_id(file_id)
        if node is not None:
            await self.reload_module(node)
        return reloaded

    async def reload_module(self, module: DevModuleNode) -> None:
        self.reloaded.append(module.id)
        if self.plugin.virtual_modules.owns(module.id):
            return
        if not os.path.isfile(module.id):
            logger.debug("Skipping reload of '%s': not a file", module.id)
            return
        await self.transform_file(module.id)
