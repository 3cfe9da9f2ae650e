"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Parser for the module subset understood by the reference engine.

Only top-level statements are recognized:

- `import { a, b as c } from "x";`, `import d from "x";`,
  `import d, { a } from "x";`, `import * as ns from "x";`
- `[export] const|let|var NAME = EXPR;`
- `export default NAME;` and `export { a, b as c };`

Expressions are numbers, string literals, identifiers, `+` chains and
tagged templates (`css`...``, `style`...``) with `${expr}` holes.
"""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from ..core.errors import EngineError

IDENT = r"[A-Za-z_$][\w$]*"
STYLE_TAGS = ("css", "style")

_IMPORT_RE = re.compile(
    r"^import\s+(?P<clause>[^;'\"]+?)\s+from\s+(?P<quote>['\"])(?P<source>[^'\"]+)(?P=quote)[ \t]*;?",
    re.M,
)
_DECL_RE = re.compile(
    rf"^(?P<export>export\s+)?(?P<kind>const|let|var)\s+(?P<name>{IDENT})\s*=\s*",
    re.M,
)
_DEFAULT_EXPORT_RE = re.compile(rf"^export\s+default\s+(?P<name>{IDENT})[ \t]*;?[ \t]*$", re.M)
_EXPORT_LIST_RE = re.compile(r"^export\s*\{(?P<names>[^}]*)\}[ \t]*;?[ \t]*$", re.M)
_TAG_RE = re.compile(rf"(?P<tag>{IDENT})`")
_TOKEN_RE = re.compile(
    rf"""\s*(?:
        (?P<num>-?\d+(?:\.\d+)?)
      | (?P<str>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
      | (?P<ident>{IDENT})
      | (?P<op>\+)
    )""",
    re.X,
)
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", "'": "'", '"': '"'}


@dataclass(frozen=True, slots=True)
class Literal:
    value: Any


@dataclass(frozen=True, slots=True)
class Ref:
    name: str


@dataclass(frozen=True, slots=True)
class Concat:
    parts: tuple["Expr", ...]


@dataclass(frozen=True, slots=True)
class Unparsed:
    text: str


@dataclass(frozen=True, slots=True)
class Hole:
    """One `${...}` interpolation with its 1-based position."""

    expr: "Expr"
    line: int
    column: int


@dataclass(frozen=True, slots=True)
class Template:
    tag: str
    quasis: tuple[str, ...]
    holes: tuple[Hole, ...]
    offset: int


Expr: TypeAlias = "Literal | Ref | Concat | Unparsed | Template"


@dataclass(frozen=True, slots=True)
class ImportBinding:
    local: str
    source: str
    imported: str
    line: int


@dataclass(frozen=True, slots=True)
class Declaration:
    name: str
    kind: str
    exported: bool
    expr: Expr
    start: int
    end: int
    line: int
    column: int


@dataclass(slots=True)
class ParsedModule:
    """Top-level structure of one module."""

    file_id: str
    source: str
    imports: dict[str, ImportBinding] = field(default_factory=dict)
    declarations: dict[str, Declaration] = field(default_factory=dict)
    exports: dict[str, str] = field(default_factory=dict)
    style_tags: dict[str, str] = field(default_factory=dict)

    def style_declarations(self, tag: str = "css") -> list[Declaration]:
        return [
            decl
            for decl in self.declarations.values()
            if isinstance(decl.expr, Template) and self.style_tags.get(decl.expr.tag) == tag
        ]


class _Lines:
    def __init__(self, source: str) -> None:
        self._starts = [0] + [m.end() for m in re.finditer("\n", source)]

    def position(self, offset: int) -> tuple[int, int]:
        index = bisect.bisect_right(self._starts, offset) - 1
        return index + 1, offset - self._starts[index] + 1


def parse_module(source: str, file_id: str, *, library_import: str) -> ParsedModule:
    """Parse `source`; raises `EngineError` for malformed style templates."""
    lines = _Lines(source)
    module = ParsedModule(file_id=file_id, source=source)

    for match in _IMPORT_RE.finditer(source):
        line, _ = lines.position(match.start())
        for binding in _parse_import_clause(match.group("clause"), match.group("source"), line):
            module.imports[binding.local] = binding
            if binding.source == library_import and binding.imported in STYLE_TAGS:
                module.style_tags[binding.local] = binding.imported

    for match in _DECL_RE.finditer(source):
        name = match.group("name")
        expr, end = _parse_initializer(source, match.end(), module.style_tags, lines, file_id)
        line, column = lines.position(match.start())
        module.declarations[name] = Declaration(
            name=name,
            kind=match.group("kind"),
            exported=bool(match.group("export")),
            expr=expr,
            start=match.start(),
            end=end,
            line=line,
            column=column,
        )
        if match.group("export"):
            module.exports[name] = name

    for match in _DEFAULT_EXPORT_RE.finditer(source):
        module.exports["default"] = match.group("name")

    for match in _EXPORT_LIST_RE.finditer(source):
        for part in match.group("names").split(","):
            part = part.strip()
            if not part:
                continue
            local, _, exported = part.partition(" as ")
            module.exports[(exported or local).strip()] = local.strip()

    _check_stray_templates(module, lines)
    return module


def _parse_import_clause(clause: str, source: str, line: int) -> list[ImportBinding]:
    clause = clause.strip()
    bindings: list[ImportBinding] = []

    named = ""
    if "{" in clause:
        head, _, rest = clause.partition("{")
        named, _, _ = rest.partition("}")
        clause = head.strip().rstrip(",").strip()

    if clause.startswith("*"):
        local = clause.split(" as ", 1)[-1].strip()
        bindings.append(ImportBinding(local=local, source=source, imported="*", line=line))
    elif clause:
        bindings.append(ImportBinding(local=clause, source=source, imported="default", line=line))

    for part in named.split(","):
        part = part.strip()
        if not part:
            continue
        imported, _, local = part.partition(" as ")
        imported = imported.strip()
        bindings.append(
            ImportBinding(local=(local or imported).strip(), source=source, imported=imported, line=line)
        )
    return bindings


def _parse_initializer(
    source: str,
    start: int,
    style_tags: dict[str, str],
    lines: _Lines,
    file_id: str,
) -> tuple[Expr, int]:
    tag_match = _TAG_RE.match(source, start)
    if tag_match is not None and tag_match.group("tag") in style_tags:
        template, end = _parse_template(source, tag_match, lines, file_id)
        return template, _consume_semicolon(source, end)

    end = _scan_expression_end(source, start)
    text = source[start:end].strip()
    return parse_expression(text), _consume_semicolon(source, end)


def _consume_semicolon(source: str, index: int) -> int:
    probe = index
    while probe < len(source) and source[probe] in " \t":
        probe += 1
    if probe < len(source) and source[probe] == ";":
        return probe + 1
    return index


def _scan_expression_end(source: str, start: int) -> int:
    index = start
    quote: str | None = None
    depth = 0
    while index < len(source):
        char = source[index]
        if quote is not None:
            if char == "\\":
                index += 2
                continue
            if char == quote:
                quote = None
        elif char in "'\"`":
            quote = char
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        elif depth <= 0 and char in ";\n":
            return index
        index += 1
    return index


def _parse_template(
    source: str, tag_match: re.Match[str], lines: _Lines, file_id: str
) -> tuple[Template, int]:
    index = tag_match.end()
    quasis: list[str] = []
    holes: list[Hole] = []
    chunk_start = index
    while index < len(source):
        char = source[index]
        if char == "\\":
            index += 2
            continue
        if char == "`":
            quasis.append(source[chunk_start:index])
            template = Template(
                tag=tag_match.group("tag"),
                quasis=tuple(quasis),
                holes=tuple(holes),
                offset=tag_match.start(),
            )
            return template, index + 1
        if source.startswith("${", index):
            quasis.append(source[chunk_start:index])
            hole_start = index + 2
            close = _matching_brace(source, hole_start)
            if close < 0:
                break
            line, column = lines.position(hole_start)
            holes.append(
                Hole(expr=parse_expression(source[hole_start:close].strip()), line=line, column=column)
            )
            index = close + 1
            chunk_start = index
            continue
        index += 1

    line, column = lines.position(tag_match.start())
    raise EngineError("unterminated style template", file_id=file_id, line=line, column=column)


def _matching_brace(source: str, start: int) -> int:
    depth = 1
    for index in range(start, len(source)):
        char = source[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return -1


def parse_expression(text: str) -> Expr:
    """Parse a literal / identifier / `+` chain; anything else is `Unparsed`."""
    if not text:
        return Unparsed(text)
    parts: list[Expr] = []
    position = 0
    expect_operand = True
    while position < len(text):
        match = _TOKEN_RE.match(text, position)
        if match is None or match.end() == position:
            if text[position:].strip():
                return Unparsed(text)
            break
        position = match.end()
        if match.group("op"):
            if expect_operand:
                return Unparsed(text)
            expect_operand = True
            continue
        if not expect_operand:
            return Unparsed(text)
        expect_operand = False
        if match.group("num") is not None:
            raw = match.group("num")
            parts.append(Literal(float(raw) if "." in raw else int(raw)))
        elif match.group("str") is not None:
            parts.append(Literal(_unquote(match.group("str"))))
        else:
            ident = match.group("ident")
            if ident in ("true", "false"):
                parts.append(Literal(ident == "true"))
            else:
                parts.append(Ref(ident))
    if expect_operand or not parts:
        return Unparsed(text)
    return parts[0] if len(parts) == 1 else Concat(tuple(parts))


def _unquote(raw: str) -> str:
    body = raw[1:-1]
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)


def _check_stray_templates(module: ParsedModule, lines: _Lines) -> None:
    """Reject `css` templates that are not a top-level declaration initializer."""
    css_tags = [local for local, tag in module.style_tags.items() if tag == "css"]
    if not css_tags:
        return
    consumed = {
        decl.expr.offset
        for decl in module.declarations.values()
        if isinstance(decl.expr, Template)
    }
    pattern = re.compile(r"\b(?:" + "|".join(re.escape(tag) for tag in css_tags) + r")`")
    for match in pattern.finditer(module.source):
        if match.start() in consumed:
            continue
        line, column = lines.position(match.start())
        raise EngineError(
            "css templates are only supported as top-level declarations",
            file_id=module.file_id,
            line=line,
            column=column,
        )
