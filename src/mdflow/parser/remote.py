"""Remote workflow references of the form ``owner/repo/path@ref``."""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from typing import Callable

from mdflow.parser.errors import InvalidWorkflowSpecError

# A fetcher returns the raw content of a remote workflow spec or raises.
Fetcher = Callable[[str], str]

_SEGMENT = r"[A-Za-z0-9_.-]+"
_WORKFLOW_SPEC_PATTERN = re.compile(rf"^({_SEGMENT})/({_SEGMENT})/([^@\s]+)@([^@\s]+)$")


@dataclass(frozen=True)
class WorkflowSpec:
    """A parsed remote reference."""

    owner: str
    repo: str
    path: str
    ref: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}/{self.path}@{self.ref}"

    @property
    def repo_slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    def join(self, relative: str) -> "WorkflowSpec":
        """Resolve a path relative to this spec's directory in the same repo and ref."""
        directory = posixpath.dirname(self.path)
        joined = posixpath.normpath(posixpath.join(directory, relative))
        if joined.startswith(".."):
            raise InvalidWorkflowSpecError(f"{self.repo_slug}/{joined}@{self.ref}")
        return WorkflowSpec(owner=self.owner, repo=self.repo, path=joined, ref=self.ref)


def is_workflow_spec(path: str) -> bool:
    """Check whether an import path names remote content.

    Local paths never carry an ``@ref``; anything else with one is treated as
    a remote reference (and validated by ``parse_workflow_spec``).
    """
    file_part = path.split("#", 1)[0]
    if file_part.startswith(("/", "./", "../")):
        return False
    return "@" in file_part and "/" in file_part


def parse_workflow_spec(spec: str) -> WorkflowSpec:
    """
    Parse ``owner/repo/path@ref``.

    Raises:
        InvalidWorkflowSpecError: If the spec is malformed.
    """
    match = _WORKFLOW_SPEC_PATTERN.match(spec.strip())
    if match is None:
        raise InvalidWorkflowSpecError(spec)
    owner, repo, path, ref = match.groups()
    return WorkflowSpec(owner=owner, repo=repo, path=path, ref=ref)
