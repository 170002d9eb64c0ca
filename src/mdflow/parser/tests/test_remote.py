"""
Tests for remote workflow specs.
"""

from __future__ import annotations

import pytest

from mdflow.parser.errors import InvalidWorkflowSpecError
from mdflow.parser.remote import WorkflowSpec, is_workflow_spec, parse_workflow_spec


class TestIsWorkflowSpec:
    @pytest.mark.parametrize(
        "path",
        [
            "githubnext/agentics/workflows/shared/tools.md@v1.2.0",
            "owner/repo/docs.md@main#Tools",
            "owner/bad@v1",
        ],
    )
    def test_remote(self, path):
        assert is_workflow_spec(path) is True

    @pytest.mark.parametrize(
        "path",
        [
            "shared/tools.md",
            "tools.md",
            "./shared/a@b.md",
            "../shared/a@b.md",
            "/abs/a@b.md",
            "docs.md#user@host",
        ],
    )
    def test_local(self, path):
        assert is_workflow_spec(path) is False


class TestParseWorkflowSpec:
    def test_parses_components(self):
        spec = parse_workflow_spec("githubnext/agentics/workflows/shared/tools.md@v1.2.0")

        assert spec == WorkflowSpec("githubnext", "agentics", "workflows/shared/tools.md", "v1.2.0")
        assert spec.repo_slug == "githubnext/agentics"
        assert str(spec) == "githubnext/agentics/workflows/shared/tools.md@v1.2.0"

    @pytest.mark.parametrize(
        "spec",
        ["owner/bad@v1", "owner/repo/path.md", "owner/repo/path.md@", "owner/repo/a@b@c"],
    )
    def test_invalid(self, spec):
        with pytest.raises(InvalidWorkflowSpecError) as exc_info:
            parse_workflow_spec(spec)

        assert "invalid workflowspec" in str(exc_info.value)


class TestJoin:
    def test_sibling(self):
        spec = parse_workflow_spec("o/r/workflows/shared/a.md@v1")
        assert str(spec.join("b.md")) == "o/r/workflows/shared/b.md@v1"

    def test_parent_directory(self):
        spec = parse_workflow_spec("o/r/workflows/shared/a.md@v1")
        assert str(spec.join("../common/c.md")) == "o/r/workflows/common/c.md@v1"

    def test_escaping_repo_root(self):
        spec = parse_workflow_spec("o/r/a.md@v1")
        with pytest.raises(InvalidWorkflowSpecError):
            spec.join("../outside.md")
