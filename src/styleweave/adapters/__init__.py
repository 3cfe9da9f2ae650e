"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Host adapters.

Quick start::

    from styleweave.adapters import StyleWeavePlugin

    plugin = StyleWeavePlugin({"css_extension": "css"})
    await plugin.config()
    output = await plugin.transform(code, "/src/app.tsx", ctx)
    css = await plugin.load(plugin.resolve_id(f"virtual:styleweave:/src/app.tsx.css"))
"""

from .base import StyleCoordinator, coerce_options
from .loader import LoaderAdapter
from .plugin import StyleWeavePlugin

__all__ = [
    "LoaderAdapter",
    "StyleCoordinator",
    "StyleWeavePlugin",
    "coerce_options",
]
