"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: host/__init__.py.
"""

from .contracts import DevServer, HotUpdateContext, ModuleGraph, ModuleNode, PluginContext
from .devserver import DevModuleGraph, DevModuleNode, InMemoryDevServer

__all__ = [
    "DevModuleGraph",
    "DevModuleNode",
    "DevServer",
    "HotUpdateContext",
    "InMemoryDevServer",
    "ModuleGraph",
    "ModuleNode",
    "PluginContext",
]
