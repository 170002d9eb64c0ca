"""Import resolution errors and their compiler-style rendering."""

from __future__ import annotations

import logging
from typing import Optional

from mdflow.console import CompilerError, ErrorPosition, format_error, source_context
from mdflow.parser.errors import RemoteFetchError, WorkflowParseError

logger = logging.getLogger(__name__)

# Cause substring -> rendered message, in priority order
CAUSE_MESSAGES: list[tuple[str, str]] = [
    ("file not found", "import file not found"),
    ("failed to download", "failed to download import file"),
    ("failed to resolve ref", "failed to resolve import reference"),
    ("invalid workflowspec", "invalid import specification"),
]


class WorkflowImportError(WorkflowParseError):
    """
    An import that could not be resolved.

    Attributes:
        import_path: The import path that failed (e.g. "nonexistent.md").
        file_path: The document that declared the import.
        line: 1-based line of the import in that document (0 if unknown).
        column: 1-based column of the import (0 if unknown).
        cause: The underlying error.
        source: Raw text of the declaring document, when known.
    """

    def __init__(
        self,
        import_path: str,
        file_path: str = "",
        line: int = 0,
        column: int = 0,
        cause: Optional[BaseException] = None,
        source: Optional[str] = None,
    ):
        self._import_path = import_path
        self._file_path = file_path
        self._line = line
        self._column = column
        self._cause = cause
        self._source = source
        super().__init__(str(self))
        self.__cause__ = cause

    @property
    def import_path(self) -> str:
        return self._import_path

    @property
    def file_path(self) -> str:
        return self._file_path

    @property
    def line(self) -> int:
        return self._line

    @property
    def column(self) -> int:
        return self._column

    @property
    def cause(self) -> Optional[BaseException]:
        return self._cause

    @property
    def source(self) -> Optional[str]:
        return self._source

    def __str__(self) -> str:
        return f"failed to resolve import '{self._import_path}': {self._cause}"

    def __reduce__(self):
        return (
            type(self),
            (
                self._import_path,
                self._file_path,
                self._line,
                self._column,
                self._cause,
                self._source,
            ),
        )


class FormattedImportError(WorkflowParseError):
    """A ``WorkflowImportError`` rendered with source location and context."""

    def __init__(self, formatted: str, import_error: WorkflowImportError):
        self.formatted = formatted
        self.import_error = import_error
        super().__init__(formatted)


def classify_cause(cause: Optional[BaseException]) -> str:
    """Map an underlying error onto the message shown to users."""
    if cause is None:
        return "failed to resolve import"

    if isinstance(cause, RemoteFetchError):
        # the fetcher's own reason outranks the download wrapper
        message = _match_cause(cause.reason)
        if message is not None:
            return message

    cause_message = str(cause)
    message = _match_cause(cause_message)
    return message if message is not None else cause_message


def _match_cause(text: str) -> Optional[str]:
    for needle, message in CAUSE_MESSAGES:
        if needle in text:
            return message
    return None


def format_import_error(err: WorkflowImportError, yaml_content: str) -> str:
    """
    Render an import error as a compiler diagnostic.

    Args:
        err: The import error.
        yaml_content: Raw text of the declaring document (before parsing),
            used for position discovery and the context window.

    Returns:
        ``file:line:col: error: message`` followed by numbered context lines.
    """
    line, column = err.line, err.column
    if line <= 0:
        line, column = find_import_item_location(yaml_content, err.import_path)

    logger.debug(
        "Formatting import error: path=%s, file=%s, line=%d", err.import_path, err.file_path, line
    )

    context, start_line = source_context(yaml_content, line)

    compiler_error = CompilerError(
        position=ErrorPosition(file=err.file_path, line=line, column=column),
        type="error",
        message=classify_cause(err.cause),
        context=context,
        context_start=start_line,
    )
    return format_error(compiler_error)


def find_imports_field_location(yaml_content: str) -> tuple[int, int]:
    """Return (line, column) of the ``imports:`` key, or (1, 1) if absent."""
    for i, line in enumerate(yaml_content.split("\n")):
        if line.strip().startswith("imports:"):
            return i + 1, line.index("imports:") + 1
    return 1, 1


def find_import_item_location(yaml_content: str, import_path: str) -> tuple[int, int]:
    """
    Return (line, column) of ``import_path`` inside the ``imports:`` block.

    Falls back to the ``imports:`` key location, then to (1, 1).
    """
    in_imports = False

    for i, line in enumerate(yaml_content.split("\n")):
        if not in_imports:
            if line.strip().startswith("imports:"):
                in_imports = True
            continue

        # a new top-level key (or the closing delimiter) ends the block
        if line.strip() == "---" or (line and line[0] not in (" ", "\t", "-")):
            break

        if import_path and import_path in line:
            return i + 1, line.index(import_path) + 1

    return find_imports_field_location(yaml_content)
