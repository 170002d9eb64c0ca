"""
Tests for YAML workflow and setup-steps imports.
"""

from __future__ import annotations

from textwrap import dedent

import pytest
import yaml

from mdflow.config import MdflowConfig
from mdflow.parser.copilot_setup import (
    ensure_checkout_first,
    extract_steps_from_copilot_setup,
    is_copilot_setup_steps_file,
    is_yaml_workflow_file,
    process_yaml_workflow_import,
)
from mdflow.parser.errors import CopilotSetupError, FrontmatterParseError

SETUP_WITHOUT_CHECKOUT = dedent("""\
    name: Copilot Setup Steps
    on: workflow_dispatch
    jobs:
      copilot-setup-steps:
        runs-on: ubuntu-latest
        steps:
          - name: Set up Node.js
            uses: actions/setup-node@v4
            with:
              node-version: "20"
          - name: Install gh-aw extension
            run: gh extension install githubnext/gh-aw
    """)


class TestFileClassification:
    @pytest.mark.parametrize(
        "path",
        [
            "copilot-setup-steps.yml",
            ".github/workflows/copilot-setup-steps.yaml",
            "shared/COPILOT-SETUP-STEPS.YML",
        ],
    )
    def test_setup_steps_files(self, path):
        assert is_copilot_setup_steps_file(path) is True

    @pytest.mark.parametrize(
        "path", ["ci.yml", "copilot-setup-steps.md", "my-copilot-setup-steps.yml"]
    )
    def test_other_files(self, path):
        assert is_copilot_setup_steps_file(path) is False

    def test_yaml_workflow_suffixes(self):
        assert is_yaml_workflow_file("ci.yml")
        assert is_yaml_workflow_file("ci.YAML")
        assert not is_yaml_workflow_file("tools.md")


class TestEnsureCheckoutFirst:
    def test_prepends_when_absent(self):
        steps = [{"run": "make"}]

        result = ensure_checkout_first(steps, "actions/checkout@v4")

        assert result == [{"name": "Checkout code", "uses": "actions/checkout@v4"}, {"run": "make"}]

    def test_moves_existing_checkout_to_front(self):
        steps = [{"run": "make"}, {"uses": "actions/checkout@v5", "with": {"fetch-depth": 0}}]

        result = ensure_checkout_first(steps, "actions/checkout@v4")

        assert result == [
            {"uses": "actions/checkout@v5", "with": {"fetch-depth": 0}},
            {"run": "make"},
        ]

    def test_already_first_unchanged(self):
        steps = [{"uses": "actions/checkout@v4"}, {"run": "make"}]
        assert ensure_checkout_first(steps, "actions/checkout@v4") is steps


class TestExtractStepsFromCopilotSetup:
    def test_steps_rendered_as_yaml_array(self):
        workflow = yaml.safe_load(SETUP_WITHOUT_CHECKOUT)

        steps_yaml = extract_steps_from_copilot_setup(workflow)

        assert steps_yaml.startswith("- ")
        assert "steps:" not in steps_yaml
        steps = yaml.safe_load(steps_yaml)
        assert steps[0] == {"name": "Checkout code", "uses": "actions/checkout@v4"}
        assert steps[1]["name"] == "Set up Node.js"
        assert steps[2]["run"] == "gh extension install githubnext/gh-aw"

    def test_input_workflow_not_mutated(self):
        workflow = yaml.safe_load(SETUP_WITHOUT_CHECKOUT)

        extract_steps_from_copilot_setup(workflow)

        assert len(workflow["jobs"]["copilot-setup-steps"]["steps"]) == 2

    def test_missing_job(self):
        with pytest.raises(CopilotSetupError) as exc_info:
            extract_steps_from_copilot_setup({"jobs": {"build": {"steps": [{"run": "x"}]}}})

        assert "copilot-setup-steps job not found" in str(exc_info.value)

    def test_no_steps(self):
        with pytest.raises(CopilotSetupError) as exc_info:
            extract_steps_from_copilot_setup({"jobs": {"copilot-setup-steps": {"steps": []}}})

        assert "no steps found" in str(exc_info.value)

    def test_custom_job_and_checkout(self):
        workflow = {"jobs": {"setup": {"steps": [{"run": "make"}]}}}

        steps = yaml.safe_load(
            extract_steps_from_copilot_setup(workflow, "setup", "actions/checkout@v5")
        )

        assert steps[0]["uses"] == "actions/checkout@v5"


class TestProcessYamlWorkflowImport:
    def test_setup_steps_file(self):
        result = process_yaml_workflow_import(SETUP_WITHOUT_CHECKOUT, "copilot-setup-steps.yml")

        assert result.is_copilot_setup is True
        assert result.copilot_setup_steps.startswith("- name: Checkout code")
        assert result.jobs == {}

    def test_config_selects_checkout_action(self):
        config = MdflowConfig(CHECKOUT_ACTION="actions/checkout@v5")

        result = process_yaml_workflow_import(
            SETUP_WITHOUT_CHECKOUT, "copilot-setup-steps.yml", config
        )

        assert "actions/checkout@v5" in result.copilot_setup_steps

    def test_regular_workflow_contributes_jobs_and_services(self):
        content = dedent("""\
            on: push
            jobs:
              test:
                runs-on: ubuntu-latest
                services:
                  postgres:
                    image: postgres:16
                steps:
                  - run: make test
              lint:
                runs-on: ubuntu-latest
                steps:
                  - run: make lint
            """)

        result = process_yaml_workflow_import(content, "ci.yml")

        assert result.is_copilot_setup is False
        assert sorted(result.jobs) == ["lint", "test"]
        assert result.services == {"postgres": {"image": "postgres:16"}}
        assert result.copilot_setup_steps == ""

    def test_invalid_yaml(self):
        with pytest.raises(FrontmatterParseError) as exc_info:
            process_yaml_workflow_import("jobs:\n  a: b: c\n", "ci.yml")

        assert exc_info.value.line == 2
        assert "failed to parse workflow ci.yml" in exc_info.value.message
