"""Shape-checked accessors for loosely typed YAML values.

Frontmatter is loaded into plain Python containers. These helpers name the
shape of a value and either return it typed or raise ``ShapeError``; the
lenient variants are used where one malformed section must not abort a whole
import resolution.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from mdflow.parser.errors import ShapeError

logger = logging.getLogger(__name__)


def yaml_kind(value: Any) -> str:
    """Return the YAML kind of a loaded value."""
    if value is None:
        return "null"
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "sequence"
    if isinstance(value, dict):
        return "mapping"
    return type(value).__name__


def expect_mapping(value: Any, field: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ShapeError(field, "mapping", yaml_kind(value))
    return value


def expect_sequence(value: Any, field: str) -> list[Any]:
    if not isinstance(value, (list, tuple)):
        raise ShapeError(field, "sequence", yaml_kind(value))
    return list(value)


def expect_string(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise ShapeError(field, "string", yaml_kind(value))
    return value


def mapping_or_empty(
    value: Any, field: str, log: Optional[logging.Logger] = None
) -> dict[str, Any]:
    """Return ``value`` as a mapping, or an empty mapping if it has another shape."""
    if value is None:
        return {}
    try:
        return expect_mapping(value, field)
    except ShapeError as e:
        (log or logger).warning("Ignoring malformed section: %s", e)
        return {}


def sequence_or_empty(
    value: Any, field: str, log: Optional[logging.Logger] = None
) -> list[Any]:
    """Return ``value`` as a list, or an empty list if it has another shape."""
    if value is None:
        return []
    try:
        return expect_sequence(value, field)
    except ShapeError as e:
        (log or logger).warning("Ignoring malformed section: %s", e)
        return []
