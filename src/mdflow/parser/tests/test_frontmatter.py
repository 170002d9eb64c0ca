"""
Tests for frontmatter splitting.
"""

from __future__ import annotations

from textwrap import dedent

import pytest
import yaml

from mdflow.parser.errors import FrontmatterParseError
from mdflow.parser.frontmatter import (
    dump_yaml,
    extract_frontmatter_from_content,
    extract_frontmatter_from_file,
    load_yaml,
)


class TestExtractFrontmatter:
    """Tests for extract_frontmatter_from_content."""

    def test_splits_frontmatter_and_markdown(self):
        content = dedent("""\
            ---
            on: push
            tools:
              github: {}
            ---
            # Title

            Body text.
            """)

        result = extract_frontmatter_from_content(content)

        assert result.frontmatter["tools"] == {"github": {}}
        assert result.markdown == "# Title\n\nBody text.\n"
        assert result.frontmatter_lines == ["on: push", "tools:", "  github: {}"]
        assert result.frontmatter_start == 2
        assert result.has_frontmatter is True
        assert result.has_markdown is True

    def test_no_frontmatter(self):
        content = "# Just markdown\n"

        result = extract_frontmatter_from_content(content)

        assert result.frontmatter == {}
        assert result.markdown == content
        assert result.has_frontmatter is False

    def test_empty_frontmatter(self):
        result = extract_frontmatter_from_content("---\n---\nBody\n")

        assert result.frontmatter == {}
        assert result.markdown == "Body\n"
        assert result.has_frontmatter is True

    def test_nothing_after_closing_delimiter(self):
        result = extract_frontmatter_from_content("---\nengine: copilot\n---")

        assert result.markdown == ""
        assert result.has_markdown is False

    def test_unclosed_frontmatter(self):
        with pytest.raises(FrontmatterParseError) as exc_info:
            extract_frontmatter_from_content("---\nengine: copilot\n# Body\n")

        assert "not properly closed" in str(exc_info.value)

    def test_invalid_yaml_reports_document_line(self):
        content = "---\nname: ok\nbroken: a: b\n---\nBody\n"

        with pytest.raises(FrontmatterParseError) as exc_info:
            extract_frontmatter_from_content(content)

        err = exc_info.value
        assert err.line == 3
        assert err.column > 0
        assert "failed to parse frontmatter" in err.message
        assert err.__cause__ is not None

    def test_error_message_prefixed_with_file_path(self):
        with pytest.raises(FrontmatterParseError) as exc_info:
            extract_frontmatter_from_content("---\n- a\n---\n", "shared/a.md")

        err = exc_info.value
        assert str(err) == "shared/a.md:2:1: frontmatter must be a mapping, got sequence"
        assert err.message == "frontmatter must be a mapping, got sequence"
        assert err.file_path == "shared/a.md"

    def test_non_mapping_frontmatter(self):
        with pytest.raises(FrontmatterParseError) as exc_info:
            extract_frontmatter_from_content("---\n- a\n- b\n---\n")

        assert "must be a mapping, got sequence" in str(exc_info.value)

    def test_from_file(self, tmp_path):
        path = tmp_path / "workflow.md"
        path.write_text("---\nengine: claude\n---\nHello\n")

        result = extract_frontmatter_from_file(path)

        assert result.frontmatter == {"engine": "claude"}
        assert result.markdown == "Hello\n"


class TestYamlHelpers:
    """Tests for load_yaml and dump_yaml."""

    def test_dump_keeps_key_order(self):
        text = dump_yaml({"name": "triage", "engine": "copilot", "tools": {"github": None}})
        assert text.split("\n")[:2] == ["name: triage", "engine: copilot"]

    def test_dump_empty_mapping(self):
        assert dump_yaml({}) == ""

    def test_load_uses_safe_loader(self):
        with pytest.raises(yaml.YAMLError):
            load_yaml("!!python/object/apply:os.system ['true']")

    def test_dump_then_load(self):
        data = {"tools": {"bash": ["ls", "cat"]}, "timeout-minutes": 10}
        assert load_yaml(dump_yaml(data)) == data
