"""Expansion of inline import directives in workflow prose.

Each line holding an ``@include``/``@import``/``{{#import ...}}`` directive is
replaced by the included document's markdown body (frontmatter stripped,
``#Section`` scoping applied, nested directives expanded).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from mdflow.parser.errors import (
    CircularImportError,
    ImportFileNotFoundError,
    RemoteFetchError,
    WorkflowParseError,
)
from mdflow.parser.frontmatter import extract_frontmatter_from_content
from mdflow.parser.import_directive import parse_import_directive
from mdflow.parser.manifest import ImportManifest
from mdflow.parser.remote import Fetcher, is_workflow_spec, parse_workflow_spec
from mdflow.parser.sections import extract_markdown_section, split_section

logger = logging.getLogger(__name__)


def process_includes(
    content: str,
    base_dir: Union[str, Path],
    *,
    manifest: Optional[ImportManifest] = None,
    fetcher: Optional[Fetcher] = None,
) -> str:
    """
    Expand include directives in markdown content.

    Args:
        content: Markdown text (without frontmatter).
        base_dir: Directory that local include paths resolve against.
        manifest: Remote content cache; created when omitted.
        fetcher: Callable returning remote content for ``owner/repo/path@ref``.

    Returns:
        The expanded text; every emitted line ends with a newline.

    Raises:
        ImportFileNotFoundError: A required local include is missing.
        RemoteFetchError: A required remote include cannot be fetched.
        CircularImportError: Includes form a cycle.
    """
    expander = _IncludeExpander(Path(base_dir), manifest or ImportManifest(), fetcher)
    return expander.expand(content, [])


class _IncludeExpander:
    def __init__(self, base_dir: Path, manifest: ImportManifest, fetcher: Optional[Fetcher]):
        self.base_dir = base_dir
        self.manifest = manifest
        self.fetcher = fetcher

    def expand(self, content: str, stack: list[str]) -> str:
        output = []
        for line in content.split("\n"):
            directive = parse_import_directive(line)
            if directive is None:
                output.append(line + "\n")
                continue

            if directive.path in stack:
                raise CircularImportError(stack[stack.index(directive.path) :] + [directive.path])

            try:
                included = self._load(directive.path)
            except (ImportFileNotFoundError, RemoteFetchError) as e:
                if directive.is_optional:
                    logger.info("Skipping missing optional include %s: %s", directive.path, e)
                    continue
                raise

            expanded = self.expand(included, stack + [directive.path])
            output.append(expanded)

        result = "".join(output)
        # content without a trailing newline must not gain a blank line
        if content.endswith("\n") and result.endswith("\n\n"):
            result = result[:-1]
        return result

    def _load(self, path: str) -> str:
        file_part, section = split_section(path)

        if is_workflow_spec(file_part):
            key = str(parse_workflow_spec(file_part))
            content = self.manifest.get(key)
            if content is None:
                if self.fetcher is None:
                    raise RemoteFetchError(key, "no remote fetcher configured")
                try:
                    content = self.manifest.get_or_fetch(key, self.fetcher)
                except WorkflowParseError:
                    raise
                except Exception as e:
                    raise RemoteFetchError(key, str(e)) from e
        else:
            full_path = self.base_dir / file_part
            if not full_path.is_file():
                raise ImportFileNotFoundError(str(full_path))
            content = full_path.read_text()

        markdown = extract_frontmatter_from_content(content, file_part).markdown
        if section:
            return extract_markdown_section(markdown, section, file_part)
        return markdown.strip("\n")
