"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Plugin options, option validation and environment loading.
"""

from __future__ import annotations

import os
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError

Filter: TypeAlias = "re.Pattern[str] | Callable[[str], bool]"

LIBRARY_IMPORT_NAME = "@styleweave/core"
DEFAULT_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx")
DEFAULT_WATCHDOG_INTERVAL_S = 10.0


class _DefaultImport(Enum):
    DEFAULT = "default"


DEFAULT_IMPORT = _DefaultImport.DEFAULT
"""Marker for the default export inside an `ignored_imports` name list."""

DEFAULT_EXPORT_NAME = "default"


def compile_filters(filters: Iterable[Filter | str] | Filter | str | None) -> tuple[Filter, ...]:
    """Normalize a filter or list of filters; strings compile as regexes."""
    if filters is None:
        return ()
    if isinstance(filters, (str, re.Pattern)) or callable(filters):
        filters = [filters]  # type: ignore[list-item]
    out: list[Filter] = []
    for item in filters:  # type: ignore[union-attr]
        if isinstance(item, str):
            try:
                out.append(re.compile(item))
            except re.error as exc:
                raise ConfigError(f"Invalid filter pattern {item!r}: {exc}") from exc
        elif isinstance(item, re.Pattern) or callable(item):
            out.append(item)
        else:
            raise ConfigError(f"Unsupported filter: {item!r}")
    return tuple(out)


def filter_matches(filters: Sequence[Filter], file_id: str) -> bool:
    """True when `filters` is empty or any filter matches `file_id`."""
    if not filters:
        return True
    for item in filters:
        if isinstance(item, re.Pattern):
            if item.search(file_id):
                return True
        elif item(file_id):
            return True
    return False


def normalize_ignored_imports(
    raw: Mapping[str, bool | Sequence[str | _DefaultImport] | None] | None,
) -> dict[str, frozenset[str] | None]:
    """
    Normalize ignored imports to `specifier -> names`.

    `True` ignores every export (stored as `None`), an empty list ignores
    nothing and is dropped, `DEFAULT_IMPORT` maps to the default export name.
    """
    out: dict[str, frozenset[str] | None] = {}
    for specifier, value in (raw or {}).items():
        if value is True or value is None:
            out[specifier] = None
            continue
        if value is False:
            continue
        names = frozenset(
            DEFAULT_EXPORT_NAME if item is DEFAULT_IMPORT else str(item) for item in value
        )
        if names:
            out[specifier] = names
    return out


def is_import_ignored(
    ignored_imports: Mapping[str, frozenset[str] | None], specifier: str, name: str
) -> bool:
    if specifier not in ignored_imports:
        return False
    names = ignored_imports[specifier]
    return names is None or name in names


@dataclass(frozen=True, slots=True)
class PluginOptions:
    """
    Options shared by every host adapter.

    Attributes:
        include: Filters a file id must match (empty matches everything).
        exclude: Filters that reject a file id.
        css_extension: Extension of generated CSS artifacts, without dot.
        extensions: Source file extensions the transform considers.
        ignored_imports: Specifiers whose exports are never statically
            evaluated; `True` for all exports or a list of names.
        mocks: Inert stand-in sources for runtime-only modules.
        debug: Retain intermediate engine programs for diagnostics.
        watchdog_interval_s: Seconds between "still pending" warnings.
        class_name_seed: Fixed seed for generated class names.
        external_markers: Path segments marking third-party files.
        library_import: Import specifier of the style authoring API.
    """

    include: tuple[Filter, ...] = ()
    exclude: tuple[Filter, ...] = ()
    css_extension: str = "css"
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    ignored_imports: Mapping[str, Any] = field(default_factory=dict)
    mocks: Mapping[str, str] = field(default_factory=dict)
    debug: bool = False
    watchdog_interval_s: float = DEFAULT_WATCHDOG_INTERVAL_S
    class_name_seed: str | None = None
    external_markers: tuple[str, ...] = ("node_modules",)
    library_import: str = LIBRARY_IMPORT_NAME

    def __post_init__(self) -> None:
        css_extension = self.css_extension.strip().lstrip(".")
        if not css_extension:
            raise ConfigError("css_extension must be non-empty")
        if self.watchdog_interval_s <= 0:
            raise ConfigError("watchdog_interval_s must be positive")
        object.__setattr__(self, "css_extension", css_extension)
        object.__setattr__(self, "include", compile_filters(self.include))
        object.__setattr__(self, "exclude", compile_filters(self.exclude))
        object.__setattr__(
            self,
            "ignored_imports",
            MappingProxyType(normalize_ignored_imports(self.ignored_imports)),
        )
        object.__setattr__(self, "mocks", MappingProxyType(dict(self.mocks)))

    def is_external(self, file_id: str) -> bool:
        return any(f"/{marker}/" in file_id for marker in self.external_markers)

    def accepts(self, file_id: str | None) -> bool:
        """Whether the transform should process `file_id` at all."""
        if not file_id or self.is_external(file_id):
            return False
        path = file_id.split("?", 1)[0]
        if not path.endswith(self.extensions):
            return False
        if not filter_matches(self.include, file_id):
            return False
        return not (self.exclude and filter_matches(self.exclude, file_id))


class PluginOptionsModel(BaseModel):
    """Validation model for options read from configuration files or env."""

    model_config = ConfigDict(extra="forbid")

    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)
    css_extension: str = "css"
    extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    ignored_imports: dict[str, bool | list[str]] = Field(default_factory=dict)
    mocks: dict[str, str] = Field(default_factory=dict)
    debug: bool = False
    watchdog_interval_s: float = Field(default=DEFAULT_WATCHDOG_INTERVAL_S, gt=0)
    class_name_seed: str | None = None
    external_markers: list[str] = Field(default_factory=lambda: ["node_modules"])
    library_import: str = LIBRARY_IMPORT_NAME

    @field_validator("css_extension")
    @classmethod
    def _css_extension_non_empty(cls, value: str) -> str:
        value = value.strip().lstrip(".")
        if not value:
            raise ValueError("css_extension must be non-empty")
        return value

    @field_validator("library_import")
    @classmethod
    def _library_import_non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("library_import must be non-empty")
        return value

    @field_validator("extensions")
    @classmethod
    def _dotted_extensions(cls, value: list[str]) -> list[str]:
        return [item if item.startswith(".") else f".{item}" for item in value if item]

    def to_options(self) -> PluginOptions:
        return PluginOptions(
            include=tuple(self.include),  # type: ignore[arg-type]
            exclude=tuple(self.exclude),  # type: ignore[arg-type]
            css_extension=self.css_extension,
            extensions=tuple(self.extensions),
            ignored_imports=self.ignored_imports,
            mocks=self.mocks,
            debug=self.debug,
            watchdog_interval_s=self.watchdog_interval_s,
            class_name_seed=self.class_name_seed,
            external_markers=tuple(self.external_markers),
            library_import=self.library_import,
        )


def load_options(raw: Mapping[str, Any] | None = None) -> PluginOptions:
    """Validate a raw option mapping into `PluginOptions`."""
    try:
        model = PluginOptionsModel.model_validate(dict(raw or {}))
    except ValidationError as exc:
        raise ConfigError(f"Invalid styleweave options: {exc}") from exc
    return model.to_options()


ENV_PREFIX = "STYLEWEAVE_"
_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _split_patterns(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


# (variable suffix, option field, parser)
_ENV_FIELDS: tuple[tuple[str, str, Callable[[str], Any]], ...] = (
    ("CSS_EXTENSION", "css_extension", str),
    ("DEBUG", "debug", lambda raw: raw.lower() in _TRUTHY),
    ("WATCHDOG_INTERVAL_S", "watchdog_interval_s", str),
    ("CLASS_NAME_SEED", "class_name_seed", str),
    ("LIBRARY_IMPORT", "library_import", str),
    ("INCLUDE", "include", _split_patterns),
    ("EXCLUDE", "exclude", _split_patterns),
)


def _env_value(suffix: str) -> str | None:
    """Stripped `STYLEWEAVE_<suffix>`; blank values count as unset."""
    value = os.getenv(ENV_PREFIX + suffix, "").strip()
    return value or None


def options_from_env(base: Mapping[str, Any] | None = None) -> PluginOptions:
    """
    Build options from `base` overridden by `STYLEWEAVE_*` variables.

    Variables:
    - `STYLEWEAVE_CSS_EXTENSION`
    - `STYLEWEAVE_DEBUG` (`1`, `true`, `yes`, `on`)
    - `STYLEWEAVE_WATCHDOG_INTERVAL_S`
    - `STYLEWEAVE_CLASS_NAME_SEED`
    - `STYLEWEAVE_LIBRARY_IMPORT`
    - `STYLEWEAVE_INCLUDE` / `STYLEWEAVE_EXCLUDE` (comma separated regexes)
    """
    raw: dict[str, Any] = dict(base or {})
    for suffix, option, parse in _ENV_FIELDS:
        value = _env_value(suffix)
        if value is not None:
            raw[option] = parse(value)
    return load_options(raw)
