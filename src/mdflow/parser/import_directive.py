"""Parser for inline import directives embedded in workflow prose.

Recognized forms:
    @include path, @include? path, @import path, @import? path   (legacy)
    {{#import: path}}, {{#import?: path}}, {{#import path}}, {{#import? path}}

A trailing ``#Section`` fragment is kept as part of the path.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# The colon after #import is optional and ignored if present
INCLUDE_DIRECTIVE_PATTERN = re.compile(
    r"^(?:@(?:include|import)(\?)?\s+(.+)|\{\{#import(\?)?\s*:?\s*(.+?)\s*\}\})$"
)

LEGACY_INCLUDE_DIRECTIVE_PATTERN = re.compile(r"^@(?:include|import)(\?)?\s+(.+)$")


@dataclass(frozen=True)
class ImportDirectiveMatch:
    """Parsed components of an import directive."""

    path: str
    is_optional: bool
    is_legacy: bool
    original: str


def parse_import_directive(line: str) -> Optional[ImportDirectiveMatch]:
    """
    Parse an import directive line.

    Args:
        line: One line of document prose.

    Returns:
        ImportDirectiveMatch, or None when the line is not a directive
        (a bare ``@include`` without a path is not one).
    """
    trimmed = line.strip()

    match = INCLUDE_DIRECTIVE_PATTERN.match(trimmed)
    if match is None:
        return None

    is_legacy = LEGACY_INCLUDE_DIRECTIVE_PATTERN.match(trimmed) is not None

    if is_legacy:
        is_optional = match.group(1) == "?"
        path = match.group(2).strip()
    else:
        is_optional = match.group(3) == "?"
        path = match.group(4).strip()

    if not path:
        return None

    logger.debug(
        "Parsed import directive: path=%s, optional=%s, legacy=%s", path, is_optional, is_legacy
    )
    return ImportDirectiveMatch(
        path=path,
        is_optional=is_optional,
        is_legacy=is_legacy,
        original=trimmed,
    )
