from __future__ import annotations

import asyncio
import posixpath

import pytest

from styleweave.cache import ValueCache
from styleweave.core import EngineError
from styleweave.core.config import normalize_ignored_imports
from styleweave.engine import (
    ClassNameGenerator,
    EngineOptions,
    SimpleExtractionEngine,
)

ENTRY = "/src/a.ts"
SPECIFIER = "virtual:styleweave:/src/a.ts.css"

BUTTON = """import { css } from "@styleweave/core";

const size = 16;

export const button = css`
  padding: ${size}px;
`;
"""


def run_async(coro):
    return asyncio.run(coro)


def _engine(
    files: dict[str, str] | None = None,
    *,
    calls: list[str] | None = None,
    debug: bool = False,
    ignored: dict | None = None,
) -> tuple[SimpleExtractionEngine, EngineOptions]:
    files = files or {}

    async def load_file(specifier: str, importer: str) -> tuple[str, str]:
        if calls is not None:
            calls.append(specifier)
        if specifier.startswith("."):
            path = posixpath.normpath(posixpath.join(posixpath.dirname(importer), specifier)) + ".ts"
            return path, files[path]
        return f"/node_modules/{specifier}", ""

    options = EngineOptions(
        load_file=load_file,
        value_cache=ValueCache(),
        ignored_imports=normalize_ignored_imports(ignored),
        class_names=ClassNameGenerator("test"),
        debug=debug,
        temporary_programs={} if debug else None,
    )
    return SimpleExtractionEngine(options), options


async def _full(engine: SimpleExtractionEngine, code: str, file_id: str = ENTRY):
    return await engine.transform(
        code, file_id, skip_css_evaluation=False, virtual_module_specifier=SPECIFIER
    )


def test_css_declaration_becomes_class_name_and_rule():
    async def scenario() -> None:
        engine, _ = _engine()
        result = await _full(engine, BUTTON)
        name = ClassNameGenerator("test").generate(ENTRY, "button")

        assert result is not None
        assert result.css == f".{name} {{\npadding: 16px;\n}}"
        assert result.code.startswith(f'import "{SPECIFIER}";\nimport {{ css }}')
        assert f'export const button = "{name}";' in result.code
        assert "css`" not in result.code
        assert result.sourcemap is not None
        assert result.sourcemap["sources"] == [ENTRY]
        assert result.sourcemap["mappings"].startswith(";AAAA;AACA")

    run_async(scenario())


def test_module_without_css_declarations_is_left_alone():
    async def scenario() -> None:
        engine, options = _engine()
        assert await _full(engine, "export const color = 'red';\n") is None
        assert options.value_cache.peek(ENTRY) is None

    run_async(scenario())


def test_skip_mode_rewrites_code_without_css():
    async def scenario() -> None:
        engine, _ = _engine()
        full = await _full(engine, BUTTON)
        skipped = await engine.transform(
            BUTTON, ENTRY, skip_css_evaluation=True, virtual_module_specifier=SPECIFIER
        )
        assert skipped is not None and full is not None
        assert skipped.css is None
        assert skipped.code == full.code

    run_async(scenario())


def test_imported_values_are_evaluated_and_recorded():
    async def scenario() -> None:
        files = {"/src/theme.ts": 'export const color = "red";\nexport const gap = 4;\n'}
        engine, options = _engine(files)
        code = (
            'import { css } from "@styleweave/core";\n'
            'import { color, gap } from "./theme";\n'
            'const border = "1px solid " + color;\n'
            "export const card = css`border: ${border}; margin: ${gap + 2}px;`;\n"
        )
        result = await _full(engine, code)

        assert result is not None
        assert "border: 1px solid red; margin: 6px;" in result.css
        assert options.value_cache.peek("/src/theme.ts") == {"color": "red", "gap": 4}
        name = ClassNameGenerator("test").generate(ENTRY, "card")
        assert options.value_cache.peek(ENTRY) == {"card": name}

    run_async(scenario())


def test_dependency_is_loaded_once_per_run():
    async def scenario() -> None:
        calls: list[str] = []
        files = {"/src/theme.ts": 'export const a = "x";\nexport const b = "y";\n'}
        engine, _ = _engine(files, calls=calls)
        code = (
            'import { css } from "@styleweave/core";\n'
            'import { a, b } from "./theme";\n'
            "export const box = css`content: ${a}${b};`;\n"
        )
        result = await _full(engine, code)
        assert result is not None and "content: xy;" in result.css
        assert calls == ["./theme"]

    run_async(scenario())


def test_value_cache_record_wins_over_file_contents():
    async def scenario() -> None:
        files = {"/src/theme.ts": 'export const color = "red";\n'}
        engine, options = _engine(files)
        options.value_cache.record("/src/theme.ts")["color"] = "cached"
        code = (
            'import { css } from "@styleweave/core";\n'
            'import { color } from "./theme";\n'
            "export const box = css`color: ${color};`;\n"
        )
        result = await _full(engine, code)
        assert result is not None and "color: cached;" in result.css

    run_async(scenario())


def test_default_export_is_resolved():
    async def scenario() -> None:
        files = {"/src/theme.ts": 'const accent = "teal";\nexport default accent;\n'}
        engine, _ = _engine(files)
        code = (
            'import { css } from "@styleweave/core";\n'
            'import theme from "./theme";\n'
            "export const box = css`color: ${theme};`;\n"
        )
        result = await _full(engine, code)
        assert result is not None and "color: teal;" in result.css

    run_async(scenario())


def test_external_value_used_in_css_reports_location():
    async def scenario() -> None:
        engine, _ = _engine()
        code = (
            'import { css } from "@styleweave/core";\n'
            'import { brand } from "some-lib";\n'
            "export const box = css`\n"
            "  color: ${brand};\n"
            "`;\n"
        )
        with pytest.raises(EngineError, match="cannot statically evaluate 'brand'") as excinfo:
            await _full(engine, code)
        assert excinfo.value.line == 4
        assert excinfo.value.file_id == ENTRY

    run_async(scenario())


def test_external_value_outside_css_is_harmless():
    async def scenario() -> None:
        engine, _ = _engine()
        code = (
            'import { css } from "@styleweave/core";\n'
            'import { brand } from "some-lib";\n'
            "export const label = brand;\n"
            "export const box = css`color: red;`;\n"
        )
        result = await _full(engine, code)
        assert result is not None and "color: red;" in result.css

    run_async(scenario())


def test_ignored_import_is_never_loaded():
    async def scenario() -> None:
        calls: list[str] = []
        files = {"/src/theme.ts": 'export const color = "red";\n'}
        engine, _ = _engine(files, calls=calls, ignored={"./theme": ["color"]})
        code = (
            'import { css } from "@styleweave/core";\n'
            'import { color } from "./theme";\n'
            "export const box = css`color: ${color};`;\n"
        )
        with pytest.raises(EngineError, match="imported from './theme'"):
            await _full(engine, code)
        assert calls == []

    run_async(scenario())


def test_undefined_identifier_reports_location():
    async def scenario() -> None:
        engine, _ = _engine()
        code = 'import { css } from "@styleweave/core";\nexport const box = css`color: ${missing};`;\n'
        with pytest.raises(EngineError, match="'missing' is not defined") as excinfo:
            await _full(engine, code)
        assert excinfo.value.line == 2
        assert excinfo.value.column == code.splitlines()[1].index("missing") + 1

    run_async(scenario())


def test_circular_evaluation_is_an_error():
    async def scenario() -> None:
        files = {
            "/src/a.ts": "",
            "/src/b.ts": 'import { y } from "./a";\nexport const x = y;\n',
        }
        code = (
            'import { css } from "@styleweave/core";\n'
            'import { x } from "./b";\n'
            "export const y = x;\n"
            "export const box = css`width: ${x};`;\n"
        )
        files["/src/a.ts"] = code
        engine, _ = _engine(files)
        with pytest.raises(EngineError, match="circular reference"):
            await _full(engine, code)

    run_async(scenario())


def test_nested_css_template_is_rejected():
    async def scenario() -> None:
        engine, _ = _engine()
        code = (
            'import { css } from "@styleweave/core";\n'
            "function make() {\n"
            "  return css`color: red;`;\n"
            "}\n"
        )
        with pytest.raises(EngineError, match="top-level declarations") as excinfo:
            await _full(engine, code)
        assert excinfo.value.line == 3

    run_async(scenario())


def test_unterminated_template_is_rejected():
    async def scenario() -> None:
        engine, _ = _engine()
        code = 'import { css } from "@styleweave/core";\nexport const box = css`color: red;\n'
        with pytest.raises(EngineError, match="unterminated"):
            await _full(engine, code)

    run_async(scenario())


def test_debug_mode_retains_programs():
    async def scenario() -> None:
        files = {"/src/theme.ts": 'export const color = "red";\n'}
        engine, options = _engine(files, debug=True)
        code = (
            'import { css } from "@styleweave/core";\n'
            'import { color } from "./theme";\n'
            "export const box = css`color: ${color};`;\n"
        )
        await _full(engine, code)
        programs = options.temporary_programs
        assert programs is not None
        assert ENTRY in programs
        assert '"red"' in programs["/src/theme.ts (/src/a.ts)"]

    run_async(scenario())


def test_class_names_are_stable_per_seed():
    first = ClassNameGenerator("seed")
    second = ClassNameGenerator("seed")
    name = first.generate("/src/a.ts", "button")
    assert name == second.generate("/src/a.ts", "button")
    assert name.startswith("button-")
    assert len(name) == len("button-") + 6
    assert name != first.generate("/src/b.ts", "button")
