"""
Shared parser error classes.

These errors are used across frontmatter parsing, import resolution and
workflow rewriting. The messages of the import-related errors carry the
substrings the import error reporter classifies on ("file not found",
"failed to download", "invalid workflowspec").
"""

from __future__ import annotations

from mdflow.console import ErrorPosition, format_location


class WorkflowParseError(Exception):
    """Base exception for workflow parsing errors."""

    pass


class FrontmatterParseError(WorkflowParseError):
    """Raised when a document's frontmatter cannot be split or parsed.

    ``line`` and ``column`` are 1-based document positions; 0 means the
    position is unknown. When ``file_path`` is given the message is
    prefixed with ``file:line:col``.
    """

    def __init__(self, message: str, line: int = 0, column: int = 0, file_path: str = ""):
        self.message = message
        self.line = line
        self.column = column
        self.file_path = file_path
        if file_path:
            location = format_location(ErrorPosition(file_path, line, column))
            message = f"{location}: {message}"
        super().__init__(message)


class ShapeError(WorkflowParseError):
    """Raised when a YAML value does not have the expected shape."""

    def __init__(self, field: str, expected: str, actual: str):
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(f"'{field}' must be a {expected}, got {actual}")


class ImportSpecError(WorkflowParseError):
    """Raised for a malformed entry in an ``imports:`` list."""

    def __init__(self, message: str, entry: object = None):
        self.entry = entry
        super().__init__(message)


class ImportFileNotFoundError(WorkflowParseError):
    """Raised when a local import cannot be found."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"file not found: {path}")


class RemoteFetchError(WorkflowParseError):
    """Raised when remote import content cannot be fetched."""

    def __init__(self, spec: str, reason: str):
        self.spec = spec
        self.reason = reason
        super().__init__(f"failed to download import file from {spec}: {reason}")


class InvalidWorkflowSpecError(WorkflowParseError):
    """Raised for a remote reference that is not ``owner/repo/path@ref``."""

    def __init__(self, spec: str):
        self.spec = spec
        super().__init__(f"invalid workflowspec: must be owner/repo/path@ref (got '{spec}')")


class CircularImportError(WorkflowParseError):
    """Raised when circular imports are detected in an import graph."""

    def __init__(self, cycle: list[str]):
        """
        Initialize with the cycle path.

        Args:
            cycle: Identities forming the cycle, including the repeated
                   identity at the end (e.g., ["a.md", "b.md", "a.md"]).
        """
        self.cycle = cycle
        cycle_str = " -> ".join(cycle)
        super().__init__(f"Circular import detected: {cycle_str}")


class SectionNotFoundError(WorkflowParseError):
    """Raised when a ``path#Section`` import names a missing heading."""

    def __init__(self, section: str, path: str):
        self.section = section
        self.path = path
        super().__init__(f"section '{section}' not found in {path}")


class CopilotSetupError(WorkflowParseError):
    """Raised when a setup-steps workflow lacks its job or steps."""

    pass
