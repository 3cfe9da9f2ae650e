"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Resolution adapter: maps import specifiers to files and loads their contents
for static evaluation.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable, Mapping
from pathlib import Path

from .config import PluginOptions
from .errors import ResolutionError

logger = logging.getLogger("styleweave.resolution")

Resolver = Callable[[str, str], Awaitable[str | None]]
"""`(specifier, importer_id) -> resolved id (may carry a ?query) | None`."""

ExternalCanonicalizer = Callable[[str], str]


def strip_query(module_id: str) -> str:
    return module_id.split("?", 1)[0]


def default_external_id(root: str, marker: str = "node_modules") -> ExternalCanonicalizer:
    """Canonical id for a bare specifier: its location under `<root>/<marker>`."""

    def canonicalize(specifier: str) -> str:
        if os.path.isabs(specifier):
            return specifier
        return os.path.join(root, marker, specifier)

    return canonicalize


class ResolutionAdapter:
    """
    Turn `(specifier, importer)` pairs into file identities and contents.

    Files inside the project are read live from disk so edits are seen
    without restarting. Files under an external marker directory (and the
    style library itself) come back with empty contents and a canonical id,
    telling the engine to treat them opaquely. Mocks replace a specifier's
    source entirely and take precedence over both paths.
    """

    def __init__(
        self,
        options: PluginOptions,
        *,
        root: str | Path | None = None,
        resolver: Resolver | None = None,
        mocks: Mapping[str, str] | None = None,
        external_id: ExternalCanonicalizer | None = None,
    ) -> None:
        self._options = options
        self.root = str(Path(root or os.getcwd()).resolve())
        self._resolver = resolver
        self.mocks: dict[str, str] = dict(options.mocks)
        self.mocks.update(mocks or {})
        marker = options.external_markers[0] if options.external_markers else "node_modules"
        self._external_id = external_id or default_external_id(self.root, marker)

    @property
    def bound(self) -> bool:
        return self._resolver is not None

    def bind_resolver(self, resolver: Resolver) -> None:
        """Attach the host resolver; later calls keep the first binding."""
        if self._resolver is None:
            self._resolver = resolver

    def is_external(self, file_id: str) -> bool:
        if self._options.is_external(file_id):
            return True
        return any(
            file_id.startswith(os.path.join(self.root, marker) + os.sep)
            for marker in self._options.external_markers
        )

    async def resolve(self, specifier: str, importer: str) -> str:
        """Resolve through the host; raises `ResolutionError` when not found."""
        if self._resolver is None:
            raise RuntimeError("ResolutionAdapter used before a host resolver was bound")
        resolved = await self._resolver(specifier, importer) if specifier else None
        if not resolved:
            raise ResolutionError(specifier, importer)
        return resolved

    async def load_file(self, specifier: str, importer: str) -> tuple[str, str]:
        """Return `(canonical_id, contents)`; empty contents mean opaque."""
        if specifier in self.mocks:
            return self._external_id(specifier), self.mocks[specifier]

        file_id = strip_query(await self.resolve(specifier, importer))

        if not self.is_external(file_id) and not specifier.startswith(
            self._options.library_import
        ):
            try:
                contents = await asyncio.to_thread(Path(file_id).read_text, encoding="utf-8")
            except OSError as exc:
                logger.debug(
                    "Could not read '%s' (%s), treating '%s' as external", file_id, exc, specifier
                )
            else:
                return file_id, contents

        return self._external_id(specifier), ""
