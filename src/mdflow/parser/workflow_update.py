"""Programmatic edits of a workflow document's frontmatter.

The markdown body is written back exactly as it was read.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Callable, Optional, Union

from mdflow.parser.frontmatter import (
    FRONTMATTER_DELIMITER,
    dump_yaml,
    extract_frontmatter_from_content,
)

logger = logging.getLogger(__name__)

# A mutation may raise to abort the update before anything is written.
FrontmatterMutation = Callable[[dict[str, Any]], Optional[Any]]

_CRON_PATTERN = re.compile(r"^(\s*-?\s*cron:\s*)([0-9][^\n\"']*)$", re.MULTILINE)


def update_workflow_frontmatter(
    workflow_path: Union[str, Path],
    mutate: FrontmatterMutation,
) -> None:
    """
    Apply ``mutate`` to a workflow's frontmatter and write the file back.

    Args:
        workflow_path: Workflow file to edit.
        mutate: Called with the live frontmatter mapping (empty if the file
            has none). Exceptions propagate and nothing is written.

    Raises:
        OSError: If the file cannot be read or written.
        FrontmatterParseError: If the existing frontmatter is malformed.
    """
    path = Path(workflow_path)
    logger.debug("Updating workflow frontmatter: path=%s", path)

    content = path.read_text()
    result = extract_frontmatter_from_content(content, str(path))

    frontmatter = result.frontmatter
    mutate(frontmatter)

    frontmatter_yaml = dump_yaml(frontmatter)
    markdown = result.markdown if result.has_frontmatter else content
    has_markdown = result.has_markdown if result.has_frontmatter else bool(content)

    updated = reconstruct_workflow_file(frontmatter_yaml, markdown, has_markdown)
    path.write_text(updated)
    logger.info("Updated workflow file: %s", path)


def reconstruct_workflow_file(
    frontmatter_yaml: str, markdown: str, has_markdown: bool = True
) -> str:
    """
    Rebuild ``---\\n<yaml>\\n---\\n<markdown>``.

    An empty frontmatter still yields both delimiters. ``has_markdown``
    distinguishes an empty body line from no body at all.
    """
    lines = [FRONTMATTER_DELIMITER]

    frontmatter_yaml = frontmatter_yaml.rstrip("\n")
    if frontmatter_yaml:
        lines.extend(frontmatter_yaml.split("\n"))

    lines.append(FRONTMATTER_DELIMITER)

    if markdown or has_markdown:
        lines.append(markdown)

    return "\n".join(lines)


def ensure_tools_section(frontmatter: dict[str, Any]) -> dict[str, Any]:
    """Return the ``tools`` mapping, creating or replacing a non-mapping value."""
    tools = frontmatter.get("tools")
    if not isinstance(tools, dict):
        if tools is not None:
            logger.warning("Replacing non-mapping tools section")
        tools = {}
        frontmatter["tools"] = tools
    return tools


def quote_cron_expressions(yaml_content: str) -> str:
    """
    Quote unquoted ``cron:`` values such as ``cron: 0 14 * * 1-5``.

    Trailing ``# comments`` stay outside the quotes.
    """

    def _quote(match: re.Match) -> str:
        prefix = match.group(1)
        value = match.group(2).strip()
        if "#" in value:
            value, comment = value.split("#", 1)
            return f'{prefix}"{value.strip()}" #{comment}'
        return f'{prefix}"{value}"'

    return _CRON_PATTERN.sub(_quote, yaml_content)
