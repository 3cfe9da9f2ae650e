"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error taxonomy for the style coordination layer.
"""

from __future__ import annotations

from dataclasses import dataclass


class StyleWeaveError(Exception):
    """Base class for every error raised by styleweave."""


class ConfigError(StyleWeaveError, ValueError):
    """Raised when plugin options are invalid."""


class ResolutionError(StyleWeaveError):
    """Raised when an import specifier can not be mapped to a file."""

    def __init__(self, specifier: str, importer: str) -> None:
        super().__init__(f"failed to resolve import '{specifier}' from '{importer}'")
        self.specifier = specifier
        self.importer = importer


class EngineError(StyleWeaveError):
    """
    Static evaluation or parse failure reported by an extraction engine.

    `line` and `column` are 1-based and refer to `file_id` when known.
    """

    def __init__(
        self,
        message: str,
        *,
        file_id: str | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.file_id = file_id
        self.line = line
        self.column = column


class MissingArtifactError(StyleWeaveError):
    """Raised when a virtual CSS module is requested for an unknown artifact."""

    def __init__(self, key: str, module_id: str) -> None:
        super().__init__(f"failed to load virtual CSS file '{key}' from id '{module_id}'")
        self.key = key
        self.module_id = module_id


class StyleRuntimeError(StyleWeaveError):
    """Raised when a build-time-only style API is called at runtime."""


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """1-based location inside a source file."""

    file: str
    line: int
    column: int


class StyleTransformError(StyleWeaveError):
    """
    Transform failure surfaced to the host.

    Carries the failing module id, an optional location and a rendered code
    frame so the host can display the error with source context. The
    original exception is always available as `__cause__`.
    """

    def __init__(
        self,
        message: str,
        *,
        module_id: str,
        loc: SourceLocation | None = None,
        frame: str | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.module_id = module_id
        self.loc = loc
        self.frame = frame
        self.code = code

    def __str__(self) -> str:
        if self.frame:
            return f"{self.message}\n{self.frame}"
        return self.message

    @classmethod
    def from_exception(
        cls, error: BaseException, *, module_id: str, source: str
    ) -> "StyleTransformError":
        """Wrap `error`, attaching a code frame when a location is known."""
        cause = error
        if not isinstance(error, EngineError) and isinstance(
            error.__cause__, EngineError
        ):
            cause = error.__cause__

        loc: SourceLocation | None = None
        frame: str | None = None
        file_id = module_id
        if isinstance(cause, EngineError) and cause.line is not None:
            file_id = cause.file_id or module_id
            loc = SourceLocation(file=file_id, line=cause.line, column=cause.column or 0)
            if file_id == module_id:
                frame = build_code_frame(source, loc, cause.message)

        message = str(getattr(cause, "message", None) or cause) or type(cause).__name__
        return cls(
            message,
            module_id=file_id,
            loc=loc,
            frame=frame,
            code=getattr(cause, "code", None),
        )


def build_code_frame(source: str, loc: SourceLocation, message: str) -> str:
    """Render up to two lines of context around `loc` with a caret marker."""
    lines = source.split("\n")
    start = max(0, loc.line - 3)
    end = min(len(lines), loc.line + 2)
    padding = len(str(end))

    out: list[str] = []
    for index in range(start, end):
        line_nr = index + 1
        is_error_line = line_nr == loc.line
        prefix = ">" if is_error_line else " "
        out.append(f"{prefix} {str(line_nr).rjust(padding)} | {lines[index]}")
        if is_error_line and loc.column > 0:
            out.append(" " * (padding + 3 + loc.column) + f"^ {message}")
    return "\n".join(out)
