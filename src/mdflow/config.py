"""
mdflow configuration management.

Loads configuration from an ``mdflow.config`` file in the current directory.
The file holds ``KEY=value`` lines; missing keys take their defaults.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import ClassVar, Optional

from pydantic import BaseModel, Field, field_validator


class MdflowConfig(BaseModel):
    """mdflow project configuration."""

    # Configuration defaults (ClassVar to avoid treating as fields)
    DEFAULT_WORKFLOWS_DIR: ClassVar[str] = ".github/workflows"
    DEFAULT_COPILOT_SETUP_JOB: ClassVar[str] = "copilot-setup-steps"
    DEFAULT_CHECKOUT_ACTION: ClassVar[str] = "actions/checkout@v4"
    DEFAULT_LOG_LEVEL: ClassVar[str] = "WARNING"

    VALID_LOG_LEVELS: ClassVar[list[str]] = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

    WORKFLOWS_DIR: str = Field(
        default=DEFAULT_WORKFLOWS_DIR,
        description="Directory where workflows are looked up by name",
    )
    COPILOT_SETUP_JOB: str = Field(
        default=DEFAULT_COPILOT_SETUP_JOB,
        description="Job name whose steps are taken from a setup-steps workflow import",
    )
    CHECKOUT_ACTION: str = Field(
        default=DEFAULT_CHECKOUT_ACTION,
        description="Action used for the checkout step added to setup steps",
    )
    LOG_LEVEL: str = Field(
        default=DEFAULT_LOG_LEVEL,
        description="Logging level for the mdflow command line",
    )

    model_config = {"extra": "allow"}

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> str:
        """Accept level names in any case."""
        return str(v).upper()

    def get_absolute_workflows_path(self) -> Path:
        """Get the workflows directory relative to the config file location."""
        path = Path(self.WORKFLOWS_DIR)
        if path.is_absolute():
            return path
        return get_config_file_path().parent / path

    @property
    def log_level(self) -> int:
        return getattr(logging, self.LOG_LEVEL, logging.WARNING)


def get_config_file_path() -> Path:
    """Get the path to the mdflow configuration file."""
    return Path.cwd() / "mdflow.config"


def config_file_exists() -> bool:
    return get_config_file_path().exists()


def load_config(config_file: Optional[Path] = None) -> MdflowConfig:
    """
    Load mdflow configuration from an ``mdflow.config`` file.

    The file should contain key=value pairs:

    # Where workflows live
    WORKFLOWS_DIR=.github/workflows
    CHECKOUT_ACTION="actions/checkout@v5"

    Returns:
        MdflowConfig with loaded settings

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If configuration is invalid
    """
    config_file = config_file or get_config_file_path()

    if not config_file.exists():
        raise FileNotFoundError(f"mdflow configuration file not found: {config_file}")

    config_data = {}
    with open(config_file, "r") as f:
        for line in f:
            line = line.strip()
            # Skip empty lines and comments
            if not line or line.startswith("#"):
                continue

            if "=" in line:
                key, value = line.split("=", 1)
                config_data[key.strip()] = value.strip().strip('"').strip("'")

    return MdflowConfig(**config_data)


def get_config_or_default() -> MdflowConfig:
    """Load the config file if present, otherwise return defaults."""
    if config_file_exists():
        return load_config()
    return MdflowConfig()


def validate_config(config: MdflowConfig) -> list[str]:
    """
    Validate configuration values.

    Returns:
        List of problems (empty if valid)
    """
    issues = []

    if config.LOG_LEVEL not in MdflowConfig.VALID_LOG_LEVELS:
        issues.append(
            f"Invalid LOG_LEVEL: {config.LOG_LEVEL}. "
            f"Must be one of: {', '.join(MdflowConfig.VALID_LOG_LEVELS)}"
        )

    if not config.COPILOT_SETUP_JOB.strip():
        issues.append("COPILOT_SETUP_JOB is empty")

    if "@" not in config.CHECKOUT_ACTION:
        issues.append(
            f"CHECKOUT_ACTION should be pinned as 'owner/action@ref': {config.CHECKOUT_ACTION}"
        )

    return issues
