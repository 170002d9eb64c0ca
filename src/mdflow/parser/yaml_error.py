"""
Line/column recovery for YAML parse errors.

YAML errors reach us in several shapes: structured exceptions carrying a
``problem_mark`` (PyYAML), a bracketed ``[line:column] message`` rendering,
and a family of ``yaml: line X: ...`` strings. ``extract_yaml_error`` tries
each shape in order and maps the frontmatter-relative position onto the whole
document.

A column of 0 means the parser did not report one. Callers must not render it
as column 1.
"""

from __future__ import annotations

import logging
import re
from typing import Union

logger = logging.getLogger(__name__)

YAMLErrorPosition = tuple[int, int, str]

_LINE_COLUMN_PATTERN = re.compile(r"yaml: line (\d+):.*?column (\d+):(.*)", re.DOTALL)
_LINE_ONLY_PATTERN = re.compile(r"yaml: line (\d+):(.*)", re.DOTALL)
_EMBEDDED_LINE_PATTERN = re.compile(r"line (\d+):(.*)")
_PYYAML_MARK_PATTERN = re.compile(r"line (\d+), column (\d+)")


def extract_yaml_error(
    err: Union[BaseException, str], frontmatter_line_offset: int
) -> YAMLErrorPosition:
    """
    Extract line and column information from a YAML parsing error.

    Args:
        err: The YAML engine's exception (or its rendered text).
        frontmatter_line_offset: 1-based document line on which the first
            frontmatter content line sits.

    Returns:
        Tuple of (line, column, message). Line and column are 0 when the
        position could not be recovered.
    """
    logger.debug("Extracting YAML error information: offset=%d", frontmatter_line_offset)

    if isinstance(err, BaseException):
        position = _extract_from_mark(err, frontmatter_line_offset)
        if position is not None:
            return position
        err_str = str(err)
    else:
        err_str = err

    line, column, message = _extract_from_bracketed(err_str, frontmatter_line_offset)
    if line > 0 or column > 0 or message:
        logger.debug("Extracted error location from bracketed format: line=%d, column=%d", line, column)
        return line, column, message

    logger.debug("Falling back to string parsing for error location")
    return _extract_from_string(err_str, frontmatter_line_offset)


def _adjust(line: int, column: int, message: str, offset: int) -> YAMLErrorPosition:
    """Shift an engine position to the document and drop degenerate [1:1] positions."""
    if line > 0:
        # YAML positions are 1-based relative to the frontmatter content
        line += offset - 1

    if line <= offset and column <= 1:
        return 0, 0, message

    return line, column, message


def _extract_from_mark(err: BaseException, offset: int) -> YAMLErrorPosition | None:
    mark = getattr(err, "problem_mark", None) or getattr(err, "context_mark", None)
    if mark is None:
        return None

    problem = getattr(err, "problem", None) or getattr(err, "context", None) or str(err)
    # PyYAML marks are 0-based
    return _adjust(mark.line + 1, mark.column + 1, problem.strip(), offset)


def _extract_from_bracketed(err_str: str, offset: int) -> YAMLErrorPosition:
    """Parse the ``[5:10] mapping value is not allowed in this context`` format."""
    start = err_str.find("[")
    end = err_str.find("]")
    if start < 0 or end <= start:
        return 0, 0, ""

    location = err_str[start + 1 : end]
    message = err_str[end + 1 :].strip()

    parts = location.split(":")
    if len(parts) != 2:
        return 0, 0, ""

    try:
        line = int(parts[0].strip())
        column = int(parts[1].strip())
    except ValueError:
        return 0, 0, ""

    return _adjust(line, column, message, offset)


def _extract_from_string(err_str: str, offset: int) -> YAMLErrorPosition:
    # yaml: line X: column Y: message
    match = _LINE_COLUMN_PATTERN.search(err_str)
    if match:
        line = int(match.group(1)) + offset - 1
        return line, int(match.group(2)), match.group(3).strip()

    # yaml: line X: message
    match = _LINE_ONLY_PATTERN.search(err_str)
    if match:
        line = int(match.group(1)) + offset - 1
        return line, 0, match.group(2).strip()

    # yaml: unmarshal errors:\n  line X: message\n  line Y: message
    if "yaml: unmarshal errors:" in err_str:
        for error_line in err_str.split("\n"):
            match = _EMBEDDED_LINE_PATTERN.search(error_line.strip())
            if match:
                line = int(match.group(1)) + offset - 1
                return line, 0, match.group(2).strip()

    # PyYAML rendering: '... in "<unicode string>", line X, column Y:'
    match = _PYYAML_MARK_PATTERN.search(err_str)
    if match:
        message = err_str.strip().split("\n", 1)[0].strip()
        line = int(match.group(1)) + offset - 1
        return line, int(match.group(2)), message

    return 0, 0, err_str
