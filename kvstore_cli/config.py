"""CLI configuration with YAML support."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import Field, field_validator

from kvstore_core.schemas import BaseSchema
from store.database import DEFAULT_TIMEOUT_S, default_db_path


class CLIConfig(BaseSchema):
    """Settings shared by all kvstore commands."""

    # Database path; None means $HOME/kvstore.db
    path: str | None = None

    log_level: str = "WARNING"

    # How long to wait on a locked database
    timeout_s: float = Field(default=DEFAULT_TIMEOUT_S, gt=0)

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level


def load_config(yaml_path: str | Path) -> CLIConfig:
    """Load CLI configuration from YAML file.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        CLIConfig instance

    Raises:
        FileNotFoundError: If YAML file doesn't exist
        ValueError: If YAML is invalid or holds unknown values
    """
    yaml_path = Path(yaml_path)

    if not yaml_path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    with open(yaml_path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {yaml_path}: {e}") from e

    if not data or not isinstance(data, dict):
        raise ValueError(f"Empty or invalid YAML file: {yaml_path}")

    try:
        return CLIConfig.from_dict(data)
    except Exception as e:
        raise ValueError(f"Invalid configuration in {yaml_path}: {e}") from e


def save_config(config: CLIConfig, yaml_path: str | Path) -> None:
    """Save CLI configuration to YAML file."""
    yaml_path = Path(yaml_path)
    yaml_path.parent.mkdir(parents=True, exist_ok=True)

    with open(yaml_path, "w") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False, indent=2)


def resolve_db_path(cli_path: str | None, config: CLIConfig) -> str:
    """Pick the database path: command line, then config file, then default."""
    if cli_path:
        return cli_path
    if config.path:
        return config.path
    return default_db_path()
