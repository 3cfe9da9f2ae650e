from __future__ import annotations

import re

import pytest

from styleweave.core import (
    DEFAULT_IMPORT,
    ConfigError,
    PluginOptions,
    filter_matches,
    load_options,
    options_from_env,
)
from styleweave.core.config import is_import_ignored, normalize_ignored_imports


def test_defaults():
    options = PluginOptions()
    assert options.css_extension == "css"
    assert options.watchdog_interval_s == 10.0
    assert options.library_import == "@styleweave/core"
    assert options.accepts("/src/app.tsx")
    assert not options.accepts("/src/app.css")
    assert not options.accepts(None)


def test_css_extension_is_normalized_and_required():
    assert PluginOptions(css_extension=".scss").css_extension == "scss"
    with pytest.raises(ConfigError, match="css_extension"):
        PluginOptions(css_extension="  ")


def test_external_files_are_never_accepted():
    options = PluginOptions()
    assert options.is_external("/app/node_modules/lib/index.js")
    assert not options.accepts("/app/node_modules/lib/index.ts")


def test_include_and_exclude_filters():
    options = PluginOptions(include=[r"/src/"], exclude=[re.compile(r"\.test\.ts$")])
    assert options.accepts("/app/src/button.ts")
    assert not options.accepts("/app/lib/button.ts")
    assert not options.accepts("/app/src/button.test.ts")


def test_callable_filter_and_empty_filter_list():
    assert filter_matches((), "/anything")
    options = PluginOptions(include=lambda file_id: file_id.endswith("ok.ts"))
    assert options.accepts("/src/ok.ts")
    assert not options.accepts("/src/nope.ts")


def test_invalid_filter_pattern_raises_config_error():
    with pytest.raises(ConfigError, match="Invalid filter pattern"):
        PluginOptions(include=["("])


def test_ignored_imports_normalization():
    ignored = normalize_ignored_imports(
        {"all": True, "none": [], "off": False, "some": ["a", DEFAULT_IMPORT]}
    )
    assert ignored == {"all": None, "some": frozenset({"a", "default"})}
    assert is_import_ignored(ignored, "all", "whatever")
    assert is_import_ignored(ignored, "some", "default")
    assert not is_import_ignored(ignored, "some", "b")
    assert not is_import_ignored(ignored, "none", "a")


def test_options_survive_renormalization():
    first = PluginOptions(ignored_imports={"lib": True})
    second = PluginOptions(ignored_imports=first.ignored_imports)
    assert dict(second.ignored_imports) == {"lib": None}


def test_load_options_validates_raw_mapping():
    options = load_options({"css_extension": "less", "extensions": ["ts", ".mts"]})
    assert options.css_extension == "less"
    assert options.extensions == (".ts", ".mts")

    with pytest.raises(ConfigError, match="Invalid styleweave options"):
        load_options({"unknown_option": 1})
    with pytest.raises(ConfigError):
        load_options({"watchdog_interval_s": 0})


def test_options_from_env_overrides_base(monkeypatch):
    monkeypatch.setenv("STYLEWEAVE_CSS_EXTENSION", "pcss")
    monkeypatch.setenv("STYLEWEAVE_DEBUG", "yes")
    monkeypatch.setenv("STYLEWEAVE_WATCHDOG_INTERVAL_S", "2.5")
    monkeypatch.setenv("STYLEWEAVE_CLASS_NAME_SEED", "fixed")
    monkeypatch.setenv("STYLEWEAVE_INCLUDE", r"/src/, /lib/")
    monkeypatch.delenv("STYLEWEAVE_EXCLUDE", raising=False)

    options = options_from_env({"css_extension": "css", "debug": False})
    assert options.css_extension == "pcss"
    assert options.debug is True
    assert options.watchdog_interval_s == 2.5
    assert options.class_name_seed == "fixed"
    assert [item.pattern for item in options.include] == ["/src/", "/lib/"]
    assert options.exclude == ()


def test_blank_env_values_are_ignored(monkeypatch):
    monkeypatch.setenv("STYLEWEAVE_CSS_EXTENSION", "   ")
    monkeypatch.delenv("STYLEWEAVE_DEBUG", raising=False)
    options = options_from_env({"css_extension": "sass"})
    assert options.css_extension == "sass"
    assert options.debug is False


def test_library_import_is_configurable():
    options = load_options({"library_import": "@acme/styles"})
    assert options.library_import == "@acme/styles"
    assert load_options({}).library_import == "@styleweave/core"

    with pytest.raises(ConfigError, match="library_import"):
        load_options({"library_import": "   "})


def test_library_import_from_env(monkeypatch):
    monkeypatch.setenv("STYLEWEAVE_LIBRARY_IMPORT", "@acme/styles")
    assert options_from_env().library_import == "@acme/styles"
