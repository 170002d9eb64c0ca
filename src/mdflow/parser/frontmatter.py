"""Split workflow documents into YAML frontmatter and markdown body.

The split is line based so that document line numbers survive for
diagnostics and the markdown body can be written back byte for byte.
YAML loading and dumping go through python-frontmatter's YAML handler.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from frontmatter.default_handlers import YAMLHandler

from mdflow.parser.errors import FrontmatterParseError
from mdflow.parser.yaml_error import extract_yaml_error
from mdflow.parser.yaml_value import yaml_kind

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"

_handler = YAMLHandler()


@dataclass
class FrontmatterResult:
    """
    A document split into its parts.

    Attributes:
        frontmatter: Parsed frontmatter mapping (empty when absent).
        markdown: Everything after the closing delimiter line.
        frontmatter_lines: Raw frontmatter lines between the delimiters.
        frontmatter_start: 1-based document line of the first frontmatter
            content line (0 when the document has no frontmatter).
        has_markdown: Whether any text (even an empty line) follows the
            closing delimiter.
    """

    frontmatter: dict[str, Any] = field(default_factory=dict)
    markdown: str = ""
    frontmatter_lines: list[str] = field(default_factory=list)
    frontmatter_start: int = 0
    has_markdown: bool = True

    @property
    def has_frontmatter(self) -> bool:
        return self.frontmatter_start > 0


def load_yaml(text: str) -> Any:
    """Load YAML text with the frontmatter handler (safe loader)."""
    return _handler.load(text)


def dump_yaml(data: dict[str, Any]) -> str:
    """Dump a mapping as block-style YAML, keeping key order."""
    if not data:
        return ""
    return _handler.export(data, sort_keys=False)


def extract_frontmatter_from_content(content: str, file_path: str = "") -> FrontmatterResult:
    """
    Split a document into frontmatter and markdown.

    Args:
        content: Full document text.
        file_path: Document path, used to prefix error messages.

    Returns:
        FrontmatterResult

    Raises:
        FrontmatterParseError: If the frontmatter is unterminated, is not
            valid YAML, or is not a mapping.
    """
    lines = content.split("\n")

    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        return FrontmatterResult(markdown=content)

    end_index = None
    for i in range(1, len(lines)):
        if lines[i].strip() == FRONTMATTER_DELIMITER:
            end_index = i
            break

    if end_index is None:
        raise FrontmatterParseError(
            "frontmatter not properly closed", line=1, column=1, file_path=file_path
        )

    frontmatter_lines = lines[1:end_index]
    markdown = "\n".join(lines[end_index + 1 :])
    frontmatter_start = 2

    frontmatter_text = "\n".join(frontmatter_lines)
    try:
        data = load_yaml(frontmatter_text) if frontmatter_text.strip() else None
    except yaml.YAMLError as e:
        line, column, message = extract_yaml_error(e, frontmatter_start)
        logger.debug("Frontmatter YAML error at %d:%d: %s", line, column, message)
        raise FrontmatterParseError(
            f"failed to parse frontmatter: {message}",
            line=line,
            column=column,
            file_path=file_path,
        ) from e

    if data is None:
        data = {}
    elif not isinstance(data, dict):
        raise FrontmatterParseError(
            f"frontmatter must be a mapping, got {yaml_kind(data)}",
            line=frontmatter_start,
            column=1,
            file_path=file_path,
        )

    return FrontmatterResult(
        frontmatter=data,
        markdown=markdown,
        frontmatter_lines=frontmatter_lines,
        frontmatter_start=frontmatter_start,
        has_markdown=end_index + 1 < len(lines),
    )


def extract_frontmatter_from_file(path: Path) -> FrontmatterResult:
    """Read a file and split it. See ``extract_frontmatter_from_content``."""
    return extract_frontmatter_from_content(Path(path).read_text(), str(path))
