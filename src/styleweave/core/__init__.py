"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Coordination core: configuration, resolution, transform orchestration,
virtual CSS modules and hot-update invalidation.
"""

from .config import (
    DEFAULT_IMPORT,
    LIBRARY_IMPORT_NAME,
    PluginOptions,
    PluginOptionsModel,
    filter_matches,
    load_options,
    options_from_env,
)
from .errors import (
    ConfigError,
    EngineError,
    MissingArtifactError,
    ResolutionError,
    SourceLocation,
    StyleRuntimeError,
    StyleTransformError,
    StyleWeaveError,
)
from .invalidation import InvalidationProtocol
from .metrics import BuildMetrics, InMemoryBuildMetrics, NoOpBuildMetrics, PrometheusBuildMetrics
from .orchestrator import TransformOrchestrator, TransformOutput
from .resolution import ResolutionAdapter
from .virtual import (
    RESOLVED_VIRTUAL_MODULE_PREFIX,
    VIRTUAL_MODULE_PREFIX,
    PendingWait,
    VirtualModuleProtocol,
)

__all__ = [
    "DEFAULT_IMPORT",
    "LIBRARY_IMPORT_NAME",
    "RESOLVED_VIRTUAL_MODULE_PREFIX",
    "VIRTUAL_MODULE_PREFIX",
    "BuildMetrics",
    "ConfigError",
    "EngineError",
    "InMemoryBuildMetrics",
    "InvalidationProtocol",
    "MissingArtifactError",
    "NoOpBuildMetrics",
    "PendingWait",
    "PluginOptions",
    "PluginOptionsModel",
    "PrometheusBuildMetrics",
    "ResolutionAdapter",
    "ResolutionError",
    "SourceLocation",
    "StyleRuntimeError",
    "StyleTransformError",
    "StyleWeaveError",
    "TransformOrchestrator",
    "TransformOutput",
    "VirtualModuleProtocol",
    "filter_matches",
    "load_options",
    "options_from_env",
]
