"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Reference extraction engine.

Evaluates the small module subset described in `engine.parser`: `css`
templates become generated class names and CSS rules, imported values are
resolved through `load_file` and memoized in the shared value cache.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from ..core.config import is_import_ignored
from ..core.errors import EngineError
from .contracts import EngineOptions, ExtractionResult
from .parser import (
    Concat,
    Declaration,
    Expr,
    ImportBinding,
    Literal,
    ParsedModule,
    Ref,
    Template,
    Unparsed,
    parse_module,
)
from .sourcemap import line_source_map


@dataclass(frozen=True, slots=True)
class OpaqueValue:
    """Value that can not be evaluated statically (external or ignored import)."""

    source: str
    name: str


def to_js_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def css_rule(class_name: str, body: str) -> str:
    declarations = [line.strip() for line in body.splitlines() if line.strip()]
    return f".{class_name} {{\n" + "\n".join(declarations) + "\n}"


class _Scope:
    """Lazily evaluated top-level bindings of one module within one run."""

    def __init__(self, run: "_Run", module: ParsedModule) -> None:
        self.run = run
        self.module = module
        self.locals: dict[str, Any] = {}

    @property
    def file_id(self) -> str:
        return self.module.file_id

    async def export_value(self, name: str) -> Any:
        local = self.module.exports.get(name)
        if local is None:
            raise EngineError(f"'{name}' is not exported by '{self.file_id}'", file_id=self.file_id)
        return await self.value_of(local)

    async def value_of(self, name: str, *, line: int | None = None, column: int | None = None) -> Any:
        if name in self.locals:
            return self.locals[name]

        marker = (self.file_id, name)
        if marker in self.run.active:
            raise EngineError(
                f"circular reference while evaluating '{name}' in '{self.file_id}'",
                file_id=self.file_id,
                line=line,
                column=column,
            )
        self.run.active.add(marker)
        try:
            decl = self.module.declarations.get(name)
            if decl is not None:
                value = await self._evaluate_declaration(decl)
            elif name in self.module.imports:
                value = await self.run.import_value(self, self.module.imports[name])
            else:
                raise EngineError(
                    f"'{name}' is not defined",
                    file_id=self.file_id,
                    line=line,
                    column=column,
                )
        finally:
            self.run.active.discard(marker)

        self.locals[name] = value
        return value

    async def _evaluate_declaration(self, decl: Declaration) -> Any:
        expr = decl.expr
        if isinstance(expr, Template) and self.module.style_tags.get(expr.tag) == "css":
            return self.run.engine.class_name(self.file_id, decl.name)
        return await self.evaluate(expr, line=decl.line, column=decl.column)

    async def evaluate(self, expr: Expr, *, line: int | None, column: int | None) -> Any:
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Ref):
            return await self.value_of(expr.name, line=line, column=column)
        if isinstance(expr, Concat):
            result = await self.evaluate(expr.parts[0], line=line, column=column)
            self._require_concrete(result, line, column)
            for part in expr.parts[1:]:
                value = await self.evaluate(part, line=line, column=column)
                self._require_concrete(value, line, column)
                if _is_number(result) and _is_number(value):
                    result = result + value
                else:
                    result = to_js_string(result) + to_js_string(value)
            return result
        if isinstance(expr, Template):
            return await self.render_template(expr)
        if isinstance(expr, Unparsed):
            raise EngineError(
                f"cannot statically evaluate expression '{expr.text}'",
                file_id=self.file_id,
                line=line,
                column=column,
            )
        raise TypeError(f"unknown expression node: {expr!r}")

    async def render_template(self, template: Template) -> str:
        out = template.quasis[0]
        for hole, quasi in zip(template.holes, template.quasis[1:]):
            value = await self.evaluate(hole.expr, line=hole.line, column=hole.column)
            self._require_concrete(value, hole.line, hole.column)
            out += to_js_string(value) + quasi
        return out

    def _require_concrete(self, value: Any, line: int | None, column: int | None) -> None:
        if isinstance(value, OpaqueValue):
            raise EngineError(
                f"cannot statically evaluate '{value.name}' imported from '{value.source}'",
                file_id=self.file_id,
                line=line,
                column=column,
            )


class _Run:
    """State of one `transform` call: parsed dependencies and the active stack."""

    def __init__(self, engine: "SimpleExtractionEngine") -> None:
        self.engine = engine
        self.active: set[tuple[str, str]] = set()
        self.scopes: dict[str, _Scope] = {}
        self._loaded: dict[tuple[str, str], tuple[str, str]] = {}

    async def import_value(self, importer: _Scope, binding: ImportBinding) -> Any:
        options = self.engine.options
        if binding.source == options.library_import and binding.imported in ("css", "style"):
            return OpaqueValue(binding.source, binding.imported)
        if binding.imported == "*" or is_import_ignored(
            options.ignored_imports, binding.source, binding.imported
        ):
            return OpaqueValue(binding.source, binding.imported)

        load_key = (binding.source, importer.file_id)
        if load_key not in self._loaded:
            self._loaded[load_key] = await options.load_file(binding.source, importer.file_id)
        canonical_id, contents = self._loaded[load_key]
        if not contents:
            return OpaqueValue(binding.source, binding.imported)

        record = options.value_cache.record(canonical_id)
        if binding.imported in record:
            return record[binding.imported]

        scope = self.scopes.get(canonical_id)
        if scope is None:
            module = parse_module(contents, canonical_id, library_import=options.library_import)
            scope = _Scope(self, module)
            self.scopes[canonical_id] = scope

        value = await scope.export_value(binding.imported)
        record[binding.imported] = value
        self.engine.retain_program(scope, importer=importer.file_id)
        return value


class SimpleExtractionEngine:
    """Reference `ExtractionEngine` implementation."""

    supports_css_skip = True

    def __init__(self, options: EngineOptions) -> None:
        self.options = options

    def class_name(self, file_id: str, name: str) -> str:
        return self.options.class_names.generate(file_id, name)

    async def transform(
        self,
        code: str,
        file_id: str,
        *,
        skip_css_evaluation: bool,
        virtual_module_specifier: str,
    ) -> ExtractionResult | None:
        module = parse_module(code, file_id, library_import=self.options.library_import)
        declarations = module.style_declarations("css")
        if not declarations:
            return None

        run = _Run(self)
        scope = _Scope(run, module)
        run.scopes[file_id] = scope
        class_names = {decl.name: self.class_name(file_id, decl.name) for decl in declarations}

        css: str | None = None
        if not skip_css_evaluation:
            rules = []
            for decl in declarations:
                if not isinstance(decl.expr, Template):
                    raise TypeError(f"css declaration '{decl.name}' is not a template")
                body = await scope.render_template(decl.expr)
                rules.append(css_rule(class_names[decl.name], body))
            css = "\n".join(rules)
            await self._record_exports(scope)
            self.retain_program(scope, importer=None)

        rewritten, origins = _rewrite(code, declarations, class_names, virtual_module_specifier)
        sourcemap = line_source_map(file_id=file_id, source=code, line_origins=origins)
        return ExtractionResult(code=rewritten, css=css, sourcemap=sourcemap)

    async def _record_exports(self, scope: _Scope) -> None:
        fresh: dict[str, Any] = {}
        for exported, local in scope.module.exports.items():
            try:
                fresh[exported] = await scope.value_of(local)
            except EngineError:
                # left for lazy evaluation by importers, which report it if used
                continue
        record = self.options.value_cache.record(scope.file_id)
        record.clear()
        record.update(fresh)

    def retain_program(self, scope: _Scope, *, importer: str | None) -> None:
        programs = self.options.temporary_programs
        if not self.options.debug or programs is None:
            return
        label = scope.file_id if importer is None else f"{scope.file_id} ({importer})"
        names = ", ".join(repr(name) for name in sorted(scope.locals))
        lines = [f"// {label}: {{{names}}}"]
        for name in sorted(scope.locals):
            lines.append(f"let {name} = {_program_literal(scope.locals[name])};")
        programs[label] = "\n".join(lines) + "\n"


def _program_literal(value: Any) -> str:
    if isinstance(value, OpaqueValue):
        return f"require({json.dumps(value.source)})[{json.dumps(value.name)}]"
    if isinstance(value, bool):
        return "true" if value else "false"
    if _is_number(value):
        return to_js_string(value)
    return json.dumps(str(value))


def _rewrite(
    code: str,
    declarations: list[Declaration],
    class_names: dict[str, str],
    virtual_module_specifier: str,
) -> tuple[str, list[int | None]]:
    """Prepend the virtual import and replace each `css` declaration in place."""
    out: list[str] = [f"import {json.dumps(virtual_module_specifier)};"]
    origins: list[int | None] = [None, 0]
    out.append("\n")

    def emit(text: str, first_line: int, *, verbatim: bool) -> None:
        parts = text.split("\n")
        out.append(parts[0])
        for index, part in enumerate(parts[1:], start=1):
            origins.append(first_line + index if verbatim else first_line)
            out.append("\n")
            out.append(part)

    cursor = 0
    line = 0
    for decl in sorted(declarations, key=lambda item: item.start):
        chunk = code[cursor : decl.start]
        emit(chunk, line, verbatim=True)
        line += chunk.count("\n")
        prefix = "export " if decl.exported else ""
        emit(f"{prefix}{decl.kind} {decl.name} = {json.dumps(class_names[decl.name])};", line, verbatim=False)
        line += code[decl.start : decl.end].count("\n")
        cursor = decl.end
    emit(code[cursor:], line, verbatim=True)
    return "".join(out), origins
