"""Compiler-style diagnostic rendering.

Renders ``file:line:col: type: message`` followed by a numbered-gutter
context block, and prints it through rich on stderr.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from rich.console import Console
from rich.text import Text

err_console = Console(stderr=True)


@dataclass(frozen=True)
class ErrorPosition:
    """Source location of a diagnostic. 0 means unknown."""

    file: str
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class CompilerError:
    """
    A diagnostic to render.

    Attributes:
        position: Where the problem is.
        type: Diagnostic kind ("error", "warning", "info").
        message: Human-readable message.
        context: Source lines shown under the header.
        context_start: Document line number of ``context[0]``. When None the
            block is centred on ``position.line``.
    """

    position: ErrorPosition
    type: str
    message: str
    context: list[str] = field(default_factory=list)
    context_start: Optional[int] = None


def format_location(position: ErrorPosition) -> str:
    """Render ``file:line:col`` omitting unknown parts."""
    location = position.file
    if position.line > 0:
        location += f":{position.line}"
        if position.column > 0:
            location += f":{position.column}"
    return location


def source_context(text: str, line: int, radius: int = 2) -> tuple[list[str], Optional[int]]:
    """
    Return the lines of ``text`` within ``radius`` of ``line``.

    Returns:
        (context lines, document line number of the first one). The window is
        clamped to the document; an unknown line (0) gives no context.
    """
    if line <= 0:
        return [], None
    lines = text.split("\n")
    start = max(1, line - radius)
    end = min(len(lines), line + radius)
    return [lines[i - 1] for i in range(start, end + 1)], start


def format_error(err: CompilerError) -> str:
    """Render a diagnostic as plain text."""
    lines = [f"{format_location(err.position)}: {err.type}: {err.message}"]

    if err.context:
        start = err.context_start
        if start is None:
            start = max(1, err.position.line - len(err.context) // 2)
        width = len(str(start + len(err.context) - 1))
        for offset, text in enumerate(err.context):
            number = start + offset
            lines.append(f"{number:>{width}} | {text}")

        if err.position.line > 0 and err.position.column > 0:
            error_index = err.position.line - start
            if 0 <= error_index < len(err.context):
                pointer = " " * (width + 3 + err.position.column - 1) + "^"
                lines.insert(error_index + 2, pointer)

    return "\n".join(lines)


def print_error(err: CompilerError, console: Optional[Console] = None) -> None:
    """Print a rendered diagnostic, styling the header by diagnostic type."""
    style = {"error": "bold red", "warning": "bold yellow"}.get(err.type, "bold")
    rendered = format_error(err)
    header, _, body = rendered.partition("\n")

    target = console or err_console
    target.print(Text(header, style=style), soft_wrap=True)
    if body:
        target.print(Text(body, style="dim"), soft_wrap=True)
