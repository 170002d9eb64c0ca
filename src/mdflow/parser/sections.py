"""Markdown heading sections for ``path#Section`` imports."""

from __future__ import annotations

import re
from typing import Optional

from mdflow.parser.errors import SectionNotFoundError

_HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.*?)\s*#*\s*$")


def split_section(path: str) -> tuple[str, Optional[str]]:
    """Split ``file.md#Section`` into ``("file.md", "Section")``."""
    if "#" in path:
        file_path, section = path.split("#", 1)
        return file_path, section or None
    return path, None


def extract_markdown_section(markdown: str, section: str, source: str = "") -> str:
    """
    Return the content under the heading named ``section``.

    The section runs until the next heading of the same or a higher level.
    The heading line itself is excluded.

    Raises:
        SectionNotFoundError: If no heading has that text.
    """
    lines = markdown.split("\n")
    start = None
    level = 0
    in_fence = False

    for i, line in enumerate(lines):
        if line.lstrip().startswith(("```", "~~~")):
            in_fence = not in_fence
            continue
        if in_fence:
            continue

        match = _HEADING_PATTERN.match(line)
        if not match:
            continue

        heading_level = len(match.group(1))
        if start is None:
            if match.group(2) == section:
                start = i + 1
                level = heading_level
        elif heading_level <= level:
            return _trim("\n".join(lines[start:i]))

    if start is None:
        raise SectionNotFoundError(section, source or "document")

    return _trim("\n".join(lines[start:]))


def _trim(content: str) -> str:
    return content.strip("\n").rstrip()
