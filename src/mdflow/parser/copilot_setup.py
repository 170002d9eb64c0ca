"""
Imports of whole YAML automation workflows.

A ``.yml``/``.yaml`` import contributes its jobs (and any job-level
services). The platform's reserved setup-steps workflow is special: only the
steps of its designated job are taken, with a checkout step guaranteed first.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Optional

import yaml

from mdflow.config import MdflowConfig
from mdflow.parser.errors import CopilotSetupError, FrontmatterParseError
from mdflow.parser.yaml_error import extract_yaml_error
from mdflow.parser.yaml_value import expect_mapping, mapping_or_empty, sequence_or_empty

logger = logging.getLogger(__name__)

COPILOT_SETUP_STEPS_FILENAMES = ("copilot-setup-steps.yml", "copilot-setup-steps.yaml")
YAML_WORKFLOW_SUFFIXES = (".yml", ".yaml")


@dataclass
class YAMLWorkflowImport:
    """What a YAML workflow import contributes."""

    is_copilot_setup: bool = False
    copilot_setup_steps: str = ""
    jobs: dict[str, Any] = field(default_factory=dict)
    services: dict[str, Any] = field(default_factory=dict)


def is_yaml_workflow_file(path: str) -> bool:
    return path.lower().endswith(YAML_WORKFLOW_SUFFIXES)


def is_copilot_setup_steps_file(path: str) -> bool:
    """Case-insensitive basename match against the setup-steps workflow file."""
    return PurePosixPath(path.replace("\\", "/")).name.lower() in COPILOT_SETUP_STEPS_FILENAMES


def is_checkout_step(step: Any) -> bool:
    if not isinstance(step, dict):
        return False
    uses = step.get("uses")
    return isinstance(uses, str) and uses.startswith("actions/checkout")


def ensure_checkout_first(steps: list[Any], checkout_action: str) -> list[Any]:
    """Move an existing checkout step to the front, or prepend one."""
    for index, step in enumerate(steps):
        if is_checkout_step(step):
            if index == 0:
                return steps
            logger.debug("Moving checkout step from position %d to the front", index)
            return [step] + steps[:index] + steps[index + 1 :]

    logger.debug("Adding checkout step to setup steps")
    return [{"name": "Checkout code", "uses": checkout_action}] + steps


def extract_steps_from_copilot_setup(
    workflow: dict[str, Any],
    job_name: str = MdflowConfig.DEFAULT_COPILOT_SETUP_JOB,
    checkout_action: str = MdflowConfig.DEFAULT_CHECKOUT_ACTION,
) -> str:
    """
    Extract the setup job's steps as a YAML array string.

    Args:
        workflow: The parsed setup-steps workflow.
        job_name: Name of the job holding the steps.
        checkout_action: Action used when a checkout step must be added.

    Returns:
        YAML text beginning with ``- `` (no ``steps:`` wrapper).

    Raises:
        CopilotSetupError: If the job or its steps are missing.
    """
    jobs = mapping_or_empty(workflow.get("jobs"), "jobs")
    job = jobs.get(job_name)
    if not isinstance(job, dict):
        raise CopilotSetupError(f"{job_name} job not found in setup steps workflow")

    steps = sequence_or_empty(job.get("steps"), f"jobs.{job_name}.steps")
    if not steps:
        raise CopilotSetupError(f"no steps found in {job_name} job")

    steps = ensure_checkout_first(copy.deepcopy(steps), checkout_action)
    return yaml.safe_dump(steps, sort_keys=False, default_flow_style=False, allow_unicode=True)


def process_yaml_workflow_import(
    content: str,
    path: str,
    config: Optional[MdflowConfig] = None,
) -> YAMLWorkflowImport:
    """
    Classify and extract a YAML workflow import.

    Raises:
        FrontmatterParseError: If the YAML is invalid or not a mapping.
        CopilotSetupError: For a setup-steps workflow without steps.
    """
    config = config or MdflowConfig()

    try:
        workflow = yaml.safe_load(content)
    except yaml.YAMLError as e:
        line, column, message = extract_yaml_error(e, 1)
        raise FrontmatterParseError(
            f"failed to parse workflow {path}: {message}", line=line, column=column
        ) from e

    workflow = expect_mapping(workflow if workflow is not None else {}, path)

    if is_copilot_setup_steps_file(path):
        logger.debug("Processing setup steps workflow: %s", path)
        steps = extract_steps_from_copilot_setup(
            workflow, config.COPILOT_SETUP_JOB, config.CHECKOUT_ACTION
        )
        return YAMLWorkflowImport(is_copilot_setup=True, copilot_setup_steps=steps)

    jobs = mapping_or_empty(workflow.get("jobs"), f"{path}: jobs", logger)
    services: dict[str, Any] = {}
    for job_name, job in jobs.items():
        if isinstance(job, dict):
            services.update(mapping_or_empty(job.get("services"), f"jobs.{job_name}.services"))

    return YAMLWorkflowImport(jobs=jobs, services=services)
